from pathlib import Path

import pytest

from mixture_analysis.core.exceptions import InputError
from mixture_analysis.mixture.estimation.config import (
    DEFAULT_MAX_EM_ITERATIONS,
    ConvergenceConfig,
    MixtureConfig,
    SolverConfig,
    default_config,
    load_mixture_config,
)
from mixture_analysis.mixture.estimation.enums import (
    AssignmentMode,
    ConvergenceMode,
    EmptyComponentPolicy,
)


class TestMixtureConfig:
    def test_defaults(self) -> None:
        config = default_config()

        assert config.n_components == 2
        assert config.random_seed == 0
        assert config.min_component_size == 1
        assert config.use_uniform_priors is True
        assert config.empty_component_policy == EmptyComponentPolicy.FAIL
        assert config.assignment_mode == AssignmentMode.HARD
        assert config.convergence.max_iterations == DEFAULT_MAX_EM_ITERATIONS
        assert config.convergence.mode == ConvergenceMode.ASSIGNMENT_STABLE
        assert config.convergence.likelihood_delta_threshold == 1e-6
        assert config.model_version == "0.1.0"

    def test_single_component_rejected(self) -> None:
        with pytest.raises(InputError, match="n_components"):
            MixtureConfig(n_components=1)

    def test_min_component_size_rejected(self) -> None:
        with pytest.raises(InputError, match="min_component_size"):
            MixtureConfig(min_component_size=0)

    def test_n_jobs_rejected(self) -> None:
        with pytest.raises(InputError, match="n_jobs"):
            MixtureConfig(n_jobs=0)

    def test_is_frozen(self) -> None:
        config = MixtureConfig()
        with pytest.raises(AttributeError):
            config.n_components = 3  # type: ignore[misc]


class TestConvergenceConfig:
    def test_max_iterations_rejected(self) -> None:
        with pytest.raises(InputError, match="max_iterations"):
            ConvergenceConfig(max_iterations=0)

    def test_negative_threshold_rejected(self) -> None:
        with pytest.raises(InputError, match="likelihood_delta_threshold"):
            ConvergenceConfig(likelihood_delta_threshold=-1.0)

    def test_max_seconds_rejected(self) -> None:
        with pytest.raises(InputError, match="max_seconds"):
            ConvergenceConfig(max_seconds=0.0)


class TestSolverConfig:
    def test_lower_bound_must_be_positive(self) -> None:
        with pytest.raises(InputError, match="lower_bound"):
            SolverConfig(lower_bound=0.0)

    def test_bounds_ordered(self) -> None:
        with pytest.raises(InputError, match="upper_bound"):
            SolverConfig(lower_bound=1.0, upper_bound=0.5)

    def test_budgets_positive(self) -> None:
        with pytest.raises(InputError, match="budgets"):
            SolverConfig(max_iterations=0)


class TestLoadMixtureConfig:
    def test_partial_yaml_keeps_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "n_components: 3\n"
            "random_seed: 17\n"
            "convergence:\n"
            "  mode: LIKELIHOOD_DELTA\n"
            "  max_iterations: 25\n"
            "solver:\n"
            "  upper_bound: 1000.0\n"
        )

        config = load_mixture_config(path)

        assert isinstance(config, MixtureConfig)
        assert config.n_components == 3
        assert config.random_seed == 17
        assert config.convergence.mode == ConvergenceMode.LIKELIHOOD_DELTA
        assert config.convergence.max_iterations == 25
        assert config.convergence.max_seconds is None
        assert config.solver.upper_bound == 1000.0
        assert config.solver.lower_bound == SolverConfig().lower_bound
        assert config.min_component_size == 1

    def test_invalid_value_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("n_components: 1\n")

        with pytest.raises(InputError, match="n_components"):
            load_mixture_config(path)

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_mixture_config(tmp_path / "missing.yaml")
