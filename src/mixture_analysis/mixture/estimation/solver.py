"""
Beta-binomial maximum-likelihood solver.

Fits the shape parameters (α, β) of a single beta-binomial distribution to
a set of (successes, trials) observations, optionally weighted, using
L-BFGS-B with analytical gradients. The starting point comes from the
method of moments on the observed rates.
"""

import logging

import numpy as np
from numpy.typing import NDArray
from scipy.optimize import minimize

from mixture_analysis.core.exceptions import InputError, OptimizationFailure
from mixture_analysis.mixture.estimation.config import SolverConfig
from mixture_analysis.mixture.estimation.likelihood import (
    negative_mean_log_likelihood,
    negative_mean_log_likelihood_gradient,
)

logger = logging.getLogger(__name__)

# Starting values when the rates carry no usable moment information
FALLBACK_ALPHA = 1.0
FALLBACK_BETA = 1.0

# Concentration used when every rate is identical
IDENTICAL_RATES_CONCENTRATION = 100.0

# scipy L-BFGS-B status for an exhausted iteration/evaluation budget
LBFGS_BUDGET_EXHAUSTED = 1


def method_of_moments(
    successes: NDArray[np.integer],
    trials: NDArray[np.integer],
    weights: NDArray[np.floating] | None = None,
) -> tuple[float, float]:
    """Estimate Beta(α, β) from the (weighted) mean and variance of rates.

    Var = μ(1-μ) / (α+β+1), so α+β = μ(1-μ)/Var - 1.

    Falls back to Beta(1, 1) when there are fewer than two observations,
    when the mean sits on the boundary, or when the variance exceeds the
    Beta maximum μ(1-μ). Identical rates get a tight prior around μ.

    Args:
        successes: Success counts, shape (n,).
        trials: Trial counts (> 0), shape (n,).
        weights: Optional non-negative weights, shape (n,).

    Returns:
        (alpha, beta) starting values.
    """
    rates = np.asarray(successes, dtype=np.float64) / np.asarray(
        trials, dtype=np.float64
    )
    if weights is None:
        weights = np.ones_like(rates)

    if len(rates) < 2 or np.count_nonzero(weights) < 2:
        return (FALLBACK_ALPHA, FALLBACK_BETA)

    mu = float(np.average(rates, weights=weights))
    var = float(np.average((rates - mu) ** 2, weights=weights))

    # Degenerate cases: mu at boundary makes Beta undefined
    if mu <= 0 or mu >= 1:
        return (FALLBACK_ALPHA, FALLBACK_BETA)

    if var < 1e-12:
        kappa = IDENTICAL_RATES_CONCENTRATION
        return (mu * kappa, (1 - mu) * kappa)

    if var >= mu * (1 - mu):
        return (FALLBACK_ALPHA, FALLBACK_BETA)

    common = mu * (1 - mu) / var - 1
    return (mu * common, (1 - mu) * common)


def fit_beta_binomial(
    successes: NDArray[np.integer],
    trials: NDArray[np.integer],
    weights: NDArray[np.floating] | None = None,
    config: SolverConfig | None = None,
) -> tuple[float, float]:
    """
    Maximum-likelihood (α, β) for a beta-binomial sample.

    Minimizes the weighted mean negative log-likelihood with L-BFGS-B,
    both parameters boxed to [lower_bound, upper_bound].

    Args:
        successes: Success counts, shape (n,).
        trials: Trial counts (> 0), shape (n,).
        weights: Optional non-negative observation weights, shape (n,).
            None weights every observation equally.
        config: Solver settings. Uses defaults if None.

    Returns:
        (alpha, beta), both strictly positive.

    Raises:
        InputError: If there are no observations or the weights sum to 0.
        OptimizationFailure: If the optimizer exhausts its budget or
            returns a non-finite optimum.
    """
    config = config or SolverConfig()

    s = np.asarray(successes, dtype=np.float64)
    n = np.asarray(trials, dtype=np.float64)
    if len(s) == 0:
        raise InputError("Cannot fit a beta-binomial to zero observations")

    if weights is None:
        w = np.ones_like(s)
    else:
        w = np.asarray(weights, dtype=np.float64)
        if w.shape != s.shape:
            raise InputError(
                f"weights must have shape {s.shape}, got {w.shape}"
            )
        if np.any(w < 0) or not np.sum(w) > 0:
            raise InputError("weights must be non-negative with positive sum")

    bounds = [(config.lower_bound, config.upper_bound)] * 2
    x0 = np.clip(
        np.array(method_of_moments(successes, trials, w), dtype=np.float64),
        config.lower_bound,
        config.upper_bound,
    )

    result = minimize(
        fun=negative_mean_log_likelihood,
        x0=x0,
        args=(s, n, w),
        method="L-BFGS-B",
        jac=negative_mean_log_likelihood_gradient,
        bounds=bounds,
        options={
            "maxiter": config.max_iterations,
            "maxfun": config.max_function_evaluations,
            "ftol": config.tolerance,
        },
    )

    if result.status == LBFGS_BUDGET_EXHAUSTED:
        raise OptimizationFailure(
            f"Beta-binomial MLE did not converge within budget "
            f"({result.nit} iterations, {result.nfev} evaluations): "
            f"{result.message}"
        )
    if not (np.all(np.isfinite(result.x)) and np.isfinite(result.fun)):
        raise OptimizationFailure(
            "Beta-binomial MLE returned a non-finite optimum: "
            f"{result.message}"
        )
    if not result.success:
        logger.warning(
            "L-BFGS-B stopped early (%s); keeping best point "
            "alpha=%.4f, beta=%.4f",
            result.message,
            result.x[0],
            result.x[1],
        )

    alpha = float(np.clip(result.x[0], config.lower_bound, config.upper_bound))
    beta = float(np.clip(result.x[1], config.lower_bound, config.upper_bound))
    return alpha, beta
