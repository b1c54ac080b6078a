"""
Tests for beta-binomial likelihood computations.

Verifies the numba kernel against scipy and the analytical gradient
against central differences.
"""

import numpy as np
from scipy.stats import betabinom

from mixture_analysis.mixture.estimation.likelihood import (
    beta_binomial_logpmf,
    component_log_likelihoods,
    mixture_log_likelihood,
    negative_mean_log_likelihood,
    negative_mean_log_likelihood_gradient,
)


class TestLogLikelihoodMatrix:
    def test_matches_scipy(self) -> None:
        """Kernel output should match scipy's betabinom.logpmf."""
        successes = np.array([0, 3, 10, 27, 50, 100])
        trials = np.array([10, 100, 100, 100, 200, 100])
        alphas = np.array([2.0, 30.0, 0.5])
        betas = np.array([40.0, 80.0, 0.5])

        log_lik = component_log_likelihoods(successes, trials, alphas, betas)

        assert log_lik.shape == (6, 3)
        for k in range(3):
            expected = betabinom.logpmf(successes, trials, alphas[k], betas[k])
            np.testing.assert_allclose(
                log_lik[:, k], expected, rtol=1e-10, atol=1e-10
            )

    def test_matches_vectorized_logpmf(self) -> None:
        successes = np.array([1, 5, 9])
        trials = np.array([10, 10, 10])

        log_lik = component_log_likelihoods(
            successes, trials, np.array([3.0]), np.array([4.0])
        )
        expected = beta_binomial_logpmf(successes, trials, 3.0, 4.0)

        np.testing.assert_allclose(log_lik[:, 0], expected, rtol=1e-12)

    def test_zero_trials_has_probability_one(self) -> None:
        """With no trials, every component assigns probability 1."""
        log_lik = component_log_likelihoods(
            np.array([0]),
            np.array([0]),
            np.array([2.0, 30.0]),
            np.array([40.0, 80.0]),
        )

        np.testing.assert_allclose(log_lik, 0.0, atol=1e-12)

    def test_large_trials_stay_finite(self) -> None:
        log_lik = component_log_likelihoods(
            np.array([400_000]),
            np.array([1_000_000]),
            np.array([2.0]),
            np.array([3.0]),
        )

        assert np.isfinite(log_lik).all()

    def test_probabilities_sum_to_one_over_support(self) -> None:
        n = 25
        successes = np.arange(n + 1)
        trials = np.full(n + 1, n)

        log_lik = component_log_likelihoods(
            successes, trials, np.array([1.5]), np.array([7.0])
        )

        np.testing.assert_allclose(np.exp(log_lik).sum(), 1.0, rtol=1e-10)


class TestObjectiveGradient:
    def test_gradient_matches_numerical(self) -> None:
        """Analytical gradient should match numerical gradient."""
        rng = np.random.default_rng(42)
        trials = rng.integers(20, 200, size=100).astype(np.float64)
        successes = rng.binomial(
            trials.astype(np.int64), rng.beta(3.0, 9.0, size=100)
        ).astype(np.float64)
        weights = rng.random(100)

        for params in (
            np.array([3.0, 9.0]),
            np.array([0.4, 25.0]),
            np.array([120.0, 50.0]),
        ):
            grad_analytical = negative_mean_log_likelihood_gradient(
                params, successes, trials, weights
            )

            eps = 1e-6
            grad_numerical = np.zeros(2)
            for i in range(2):
                params_plus = params.copy()
                params_minus = params.copy()
                params_plus[i] += eps
                params_minus[i] -= eps
                f_plus = negative_mean_log_likelihood(
                    params_plus, successes, trials, weights
                )
                f_minus = negative_mean_log_likelihood(
                    params_minus, successes, trials, weights
                )
                grad_numerical[i] = (f_plus - f_minus) / (2 * eps)

            np.testing.assert_allclose(
                grad_analytical, grad_numerical, rtol=1e-4, atol=1e-7
            )

    def test_objective_is_weighted_mean(self) -> None:
        """Scaling all weights leaves the objective unchanged."""
        successes = np.array([1.0, 4.0, 7.0])
        trials = np.array([10.0, 10.0, 10.0])
        params = np.array([2.0, 3.0])
        weights = np.array([1.0, 2.0, 3.0])

        f1 = negative_mean_log_likelihood(params, successes, trials, weights)
        f2 = negative_mean_log_likelihood(
            params, successes, trials, 10 * weights
        )

        np.testing.assert_allclose(f1, f2, rtol=1e-12)


def test_mixture_log_likelihood_single_component() -> None:
    """With one component of weight 1 the mixture LL is the plain sum."""
    log_lik = np.array([[-1.0], [-2.5], [-0.3]])

    result = mixture_log_likelihood(log_lik, np.array([0.0]))

    np.testing.assert_allclose(result, -3.8)


def test_mixture_log_likelihood_two_components() -> None:
    log_lik = np.log(np.array([[0.2, 0.6], [0.1, 0.3]]))
    log_weights = np.log(np.array([0.5, 0.5]))

    result = mixture_log_likelihood(log_lik, log_weights)

    np.testing.assert_allclose(result, np.log(0.4) + np.log(0.2))
