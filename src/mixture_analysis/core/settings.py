from typing import Literal

from pydantic_settings import BaseSettings

MIXTURE_ENV_PREFIX = "MIXTURE_"


class RuntimeSettings(BaseSettings):
    model_config = {"env_prefix": MIXTURE_ENV_PREFIX}

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    n_jobs: int = 1
