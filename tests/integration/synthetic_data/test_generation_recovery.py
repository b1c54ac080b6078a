import numpy as np
import pytest

from mixture_analysis.synthetic_data.config import GenerationConfig
from mixture_analysis.synthetic_data.generators import (
    generate_mixture_observations,
)
from mixture_analysis.synthetic_data.presets import get_preset

LARGE_SAMPLE_SIZE = 20000


class TestGenerationRecovery:
    """
    Test that with large enough samples the generated data reproduce the
    configured component moments.
    """

    @pytest.fixture
    def large_config(self) -> GenerationConfig:
        config = get_preset("two_component")
        for component in config.components:
            component.size = LARGE_SAMPLE_SIZE
        return config

    def test_component_mean_rates(
        self, large_config: GenerationConfig
    ) -> None:
        """Observed rates per component match alpha / (alpha + beta)."""
        data = generate_mixture_observations(large_config)
        rates = data.observations.rates

        for label, spec in enumerate(large_config.components):
            target = spec.alpha / (spec.alpha + spec.beta)
            actual = rates[data.true_labels == label].mean()
            assert abs(actual - target) < 0.005

    def test_component_overdispersion(
        self, large_config: GenerationConfig
    ) -> None:
        """Rate variance includes both the Beta and the binomial spread."""
        data = generate_mixture_observations(large_config)
        rates = data.observations.rates

        for label, spec in enumerate(large_config.components):
            a, b, n = spec.alpha, spec.beta, spec.trials
            mu = a / (a + b)
            target = mu * (1 - mu) / n * (a + b + n) / (a + b + 1)
            actual = rates[data.true_labels == label].var()
            np.testing.assert_allclose(actual, target, rtol=0.05)
