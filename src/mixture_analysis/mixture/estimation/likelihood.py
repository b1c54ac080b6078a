"""
Beta-binomial log-likelihood and its analytical gradient.

The beta-binomial probability mass function is:
    P(s | n, α, β) = C(n, s) * B(s + α, n - s + β) / B(α, β)

All terms are evaluated through log-gamma functions so that large trial
counts stay finite:
    log P = lgamma(n+1) - lgamma(s+1) - lgamma(n-s+1)
            + lbeta(s+α, n-s+β) - lbeta(α, β)

For the (weighted) log-likelihood ℓ = Σ_i w_i log P(s_i | n_i, α, β):
    ∂ℓ / ∂α = Σ_i w_i [ψ(s_i+α) - ψ(n_i+α+β) - ψ(α) + ψ(α+β)]
    ∂ℓ / ∂β = Σ_i w_i [ψ(n_i-s_i+β) - ψ(n_i+α+β) - ψ(β) + ψ(α+β)]
"""

import math

import numpy as np
from numba import njit, prange  # type: ignore
from numpy.typing import NDArray
from scipy.special import betaln, digamma, gammaln, logsumexp


@njit  # type: ignore
def _log_beta(a: float, b: float) -> float:
    return math.lgamma(a) + math.lgamma(b) - math.lgamma(a + b)


@njit(parallel=True)  # type: ignore
def log_likelihood_matrix(
    successes: NDArray[np.float64],
    trials: NDArray[np.float64],
    alphas: NDArray[np.float64],
    betas: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Beta-binomial log-probability of every observation under every component.

    Each entry depends only on its own observation and component, so the
    result is identical for any number of threads.

    Args:
        successes: Success counts, shape (n_observations,).
        trials: Trial counts, shape (n_observations,).
        alphas: Component alpha parameters, shape (n_components,).
        betas: Component beta parameters, shape (n_components,).

    Returns:
        Log-probabilities, shape (n_observations, n_components).
    """
    n_obs = successes.shape[0]
    n_comp = alphas.shape[0]
    out = np.empty((n_obs, n_comp))

    # Run each observation in parallel
    for i in prange(n_obs):
        s = successes[i]
        n = trials[i]
        log_choose = (
            math.lgamma(n + 1.0)
            - math.lgamma(s + 1.0)
            - math.lgamma(n - s + 1.0)
        )
        for k in range(n_comp):
            out[i, k] = (
                log_choose
                + _log_beta(s + alphas[k], n - s + betas[k])
                - _log_beta(alphas[k], betas[k])
            )
    return out


def component_log_likelihoods(
    successes: NDArray[np.integer],
    trials: NDArray[np.integer],
    alphas: NDArray[np.float64],
    betas: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Cast inputs for the numba kernel and evaluate it."""
    result: NDArray[np.float64] = log_likelihood_matrix(
        np.ascontiguousarray(successes, dtype=np.float64),
        np.ascontiguousarray(trials, dtype=np.float64),
        np.ascontiguousarray(alphas, dtype=np.float64),
        np.ascontiguousarray(betas, dtype=np.float64),
    )
    return result


def beta_binomial_logpmf(
    successes: NDArray[np.floating],
    trials: NDArray[np.floating],
    alpha: float,
    beta: float,
) -> NDArray[np.float64]:
    """
    Vectorized beta-binomial log-probability for a single (α, β).

    Args:
        successes: Success counts, shape (n,).
        trials: Trial counts, shape (n,).
        alpha: Shape parameter α > 0.
        beta: Shape parameter β > 0.

    Returns:
        Log-probabilities, shape (n,).
    """
    s = np.asarray(successes, dtype=np.float64)
    n = np.asarray(trials, dtype=np.float64)
    log_choose = gammaln(n + 1.0) - gammaln(s + 1.0) - gammaln(n - s + 1.0)
    result: NDArray[np.float64] = (
        log_choose + betaln(s + alpha, n - s + beta) - betaln(alpha, beta)
    )
    return result


def negative_mean_log_likelihood(
    params: NDArray[np.float64],
    successes: NDArray[np.float64],
    trials: NDArray[np.float64],
    weights: NDArray[np.float64],
) -> float:
    """
    Weighted mean negative log-likelihood, the solver objective.

    Scaling by the total weight keeps the objective and gradient of similar
    magnitude for small and large components.

    Args:
        params: [α, β].
        successes: Success counts, shape (n,).
        trials: Trial counts, shape (n,).
        weights: Non-negative observation weights, shape (n,).
    """
    alpha, beta = float(params[0]), float(params[1])
    log_probs = beta_binomial_logpmf(successes, trials, alpha, beta)
    return float(-np.dot(weights, log_probs) / np.sum(weights))


def negative_mean_log_likelihood_gradient(
    params: NDArray[np.float64],
    successes: NDArray[np.float64],
    trials: NDArray[np.float64],
    weights: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Gradient of negative_mean_log_likelihood with respect to [α, β].

    Returns:
        Array of shape (2,).
    """
    alpha, beta = float(params[0]), float(params[1])
    total = np.sum(weights)

    common = digamma(alpha + beta) - digamma(trials + alpha + beta)
    d_alpha = digamma(successes + alpha) - digamma(alpha) + common
    d_beta = digamma(trials - successes + beta) - digamma(beta) + common

    grad = np.array(
        [np.dot(weights, d_alpha), np.dot(weights, d_beta)], dtype=np.float64
    )
    result: NDArray[np.float64] = -grad / total
    return result


def mixture_log_likelihood(
    log_lik: NDArray[np.float64],
    log_weights: NDArray[np.float64],
) -> float:
    """
    Total log-likelihood of the mixture.

    LL = Σ_i log Σ_k w_k P(s_i | n_i, α_k, β_k)

    Args:
        log_lik: Per-component log-probabilities, shape (n_obs, n_comp).
        log_weights: Log mixing weights, shape (n_comp,).
    """
    per_observation = logsumexp(log_lik + log_weights[np.newaxis, :], axis=1)
    return float(np.sum(per_observation))
