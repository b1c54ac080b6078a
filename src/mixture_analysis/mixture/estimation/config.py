"""
Configuration dataclasses for beta-binomial mixture estimation.

This module defines the configuration parameters for:
- The per-component beta-binomial MLE solver (bounds, L-BFGS-B budget)
- Convergence criteria for the EM iteration
- Overall mixture estimation settings
"""

from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as package_version
from pathlib import Path

import toml
from omegaconf import OmegaConf

from mixture_analysis.core.exceptions import InputError
from mixture_analysis.core.paths import (
    ProjectRootNotFound,
    get_project_root_dir,
)
from mixture_analysis.mixture.estimation.enums import (
    AssignmentMode,
    ConvergenceMode,
    EmptyComponentPolicy,
)

# Default shape parameter bounds
# The lower bound keeps the optimizer away from log(0) and degenerate fits
DEFAULT_SHAPE_LOWER_BOUND = 1e-3
DEFAULT_SHAPE_UPPER_BOUND = 1e6

# Default L-BFGS-B settings
DEFAULT_MAX_LBFGS_ITERATIONS = 1000
DEFAULT_MAX_FUNCTION_EVALUATIONS = 15000
DEFAULT_LBFGS_TOLERANCE = 1e-10

# Default EM settings
DEFAULT_N_COMPONENTS = 2
DEFAULT_MAX_EM_ITERATIONS = 100
DEFAULT_LIKELIHOOD_DELTA_THRESHOLD = 1e-6
DEFAULT_RANDOM_SEED = 0
DEFAULT_MIN_COMPONENT_SIZE = 1

PACKAGE_NAME = "mixture-analysis"


def _get_project_version() -> str:
    try:
        root_dir = get_project_root_dir()
    except ProjectRootNotFound:
        try:
            return package_version(PACKAGE_NAME)
        except PackageNotFoundError:
            return "unknown"

    with open(root_dir / "pyproject.toml") as f:
        data = toml.load(f)

    version = data.get("project", {}).get("version")

    if not version:
        raise ValueError("Version not found in pyproject.toml")

    assert isinstance(version, str)
    return version


@dataclass(frozen=True)
class SolverConfig:
    """
    Configuration for the beta-binomial maximum-likelihood solver.

    Attributes:
        lower_bound: Smallest admissible value of alpha and beta.
        upper_bound: Largest admissible value of alpha and beta. Samples
            without overdispersion push the MLE towards infinity; the bound
            keeps the optimizer finite.
        max_iterations: Iteration budget for L-BFGS-B.
        max_function_evaluations: Function evaluation budget for L-BFGS-B.
        tolerance: Relative reduction tolerance (ftol) for L-BFGS-B.
    """

    lower_bound: float = DEFAULT_SHAPE_LOWER_BOUND
    upper_bound: float = DEFAULT_SHAPE_UPPER_BOUND
    max_iterations: int = DEFAULT_MAX_LBFGS_ITERATIONS
    max_function_evaluations: int = DEFAULT_MAX_FUNCTION_EVALUATIONS
    tolerance: float = DEFAULT_LBFGS_TOLERANCE

    def __post_init__(self) -> None:
        if self.lower_bound <= 0:
            raise InputError(
                f"lower_bound must be > 0, got {self.lower_bound}"
            )
        if self.upper_bound <= self.lower_bound:
            raise InputError(
                f"upper_bound must be > lower_bound, got {self.upper_bound}"
            )
        if self.max_iterations <= 0 or self.max_function_evaluations <= 0:
            raise InputError("solver budgets must be positive")


@dataclass(frozen=True)
class ConvergenceConfig:
    """
    Configuration for EM convergence.

    Attributes:
        max_iterations: Maximum number of EM steps.
        mode: ASSIGNMENT_STABLE stops when no observation changes component;
            LIKELIHOOD_DELTA stops when the mixture log-likelihood improves
            by less than likelihood_delta_threshold.
        likelihood_delta_threshold: Threshold for LIKELIHOOD_DELTA mode.
        max_seconds: Optional wall-clock budget, checked between steps.
    """

    max_iterations: int = DEFAULT_MAX_EM_ITERATIONS
    mode: ConvergenceMode = ConvergenceMode.ASSIGNMENT_STABLE
    likelihood_delta_threshold: float = DEFAULT_LIKELIHOOD_DELTA_THRESHOLD
    max_seconds: float | None = None

    def __post_init__(self) -> None:
        if self.max_iterations <= 0:
            raise InputError(
                f"max_iterations must be > 0, got {self.max_iterations}"
            )
        if self.likelihood_delta_threshold < 0:
            raise InputError("likelihood_delta_threshold must be >= 0")
        if self.max_seconds is not None and self.max_seconds <= 0:
            raise InputError("max_seconds must be > 0")


@dataclass(frozen=True)
class MixtureConfig:
    """
    Master configuration for beta-binomial mixture estimation.

    Attributes:
        n_components: Number of mixture components K (>= 2).
        random_seed: Seed for the random initial assignment.
        min_component_size: A component with fewer observations than this
            is treated as empty.
        use_uniform_priors: If False, mixing weights are estimated as the
            fraction of observations per component and used both in the
            assignment step and in the posterior computation.
        empty_component_policy: FAIL aborts the fit on an empty component;
            RESEED_LARGEST refills it from the largest component.
        assignment_mode: HARD re-fits each component on its assigned
            observations only; SOFT re-fits every component on all
            observations weighted by their responsibilities.
        n_jobs: Worker threads for the per-component solver calls.
        convergence: Convergence criteria for the EM iteration.
        solver: Settings for the per-component MLE.
        model_version: Version string for reproducibility tracking.
    """

    n_components: int = DEFAULT_N_COMPONENTS
    random_seed: int = DEFAULT_RANDOM_SEED
    min_component_size: int = DEFAULT_MIN_COMPONENT_SIZE
    use_uniform_priors: bool = True
    empty_component_policy: EmptyComponentPolicy = EmptyComponentPolicy.FAIL
    assignment_mode: AssignmentMode = AssignmentMode.HARD
    n_jobs: int = 1
    convergence: ConvergenceConfig = field(default_factory=ConvergenceConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)
    model_version: str = field(default_factory=_get_project_version)

    def __post_init__(self) -> None:
        if self.n_components < 2:
            raise InputError(
                f"n_components must be >= 2, got {self.n_components}"
            )
        if self.min_component_size < 1:
            raise InputError(
                f"min_component_size must be >= 1, "
                f"got {self.min_component_size}"
            )
        if self.n_jobs < 1:
            raise InputError(f"n_jobs must be >= 1, got {self.n_jobs}")


def default_config() -> MixtureConfig:
    """Create a default mixture configuration."""
    return MixtureConfig()


def load_mixture_config(yaml_path: Path) -> MixtureConfig:
    """Load and validate a mixture configuration from YAML.

    Keys missing from the file keep their defaults.

    Args:
        yaml_path: Path to YAML config file

    Returns:
        Validated MixtureConfig

    Raises:
        FileNotFoundError: If yaml_path doesn't exist
        InputError: If a value fails validation
    """
    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    schema = OmegaConf.structured(MixtureConfig)
    user_config = OmegaConf.load(yaml_path)
    config = OmegaConf.merge(schema, user_config)

    result = OmegaConf.to_object(config)
    assert isinstance(result, MixtureConfig)

    return result
