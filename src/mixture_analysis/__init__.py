import logging
import sys

from mixture_analysis.core.settings import RuntimeSettings

# 1. Set up a handler and formatter for console output.
# This handler will be used by all loggers that don't have their own handlers.
console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(logging.DEBUG)
formatter = logging.Formatter(
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
console_handler.setFormatter(formatter)

# 2. Root logger level comes from the runtime settings (MIXTURE_LOG_LEVEL).
# All application loggers (using __name__) inherit from the root logger.
root_logger = logging.getLogger()
root_logger.setLevel(RuntimeSettings().log_level)
root_logger.addHandler(console_handler)

# 3. Suppress chatty library loggers
logging.getLogger("numba").setLevel(logging.WARNING)
