"""
Diagnostic utilities for mixture fits.

Provides functions to inspect the EM iteration history: how many labels
moved per step, how the log-likelihood evolved, and how component
parameters drifted.
"""

from collections.abc import Sequence

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from mixture_analysis.core.data_models import ObservationSet
from mixture_analysis.mixture.estimation.data_models import (
    ComponentParameters,
    ModelState,
    component_arrays,
)
from mixture_analysis.mixture.estimation.likelihood import (
    component_log_likelihoods,
    mixture_log_likelihood as _mixture_log_likelihood,
)
from mixture_analysis.mixture.posterior import resolve_weights


def count_assignment_changes(
    previous: ModelState, current: ModelState
) -> int:
    """Number of observations whose label differs between two states."""
    return int(np.sum(current.assignments != previous.assignments))


def summarize_history(
    states: tuple[ModelState, ...] | list[ModelState],
) -> pd.DataFrame:
    """Tabulate the iteration history, one row per state.

    Columns: iteration, log_likelihood, n_changed, and per component label k
    alpha_k, beta_k, mean_k, size_k. The initial state has no components, so
    its parameter columns are NaN and n_changed is 0.

    Args:
        states: States in iteration order, initial state first.

    Returns:
        DataFrame with one row per state.
    """
    changes = [0] + [
        count_assignment_changes(previous, current)
        for previous, current in zip(states[:-1], states[1:])
    ]

    rows: list[dict[str, float | int | None]] = []
    for state, n_changed in zip(states, changes):
        row: dict[str, float | int | None] = {
            "iteration": state.iteration,
            "log_likelihood": state.log_likelihood,
            "n_changed": n_changed,
        }
        sizes = state.component_sizes
        params = {c.label: c for c in state.components}
        for label in range(state.n_components):
            component = params.get(label)
            row[f"alpha_{label}"] = component.alpha if component else np.nan
            row[f"beta_{label}"] = component.beta if component else np.nan
            row[f"mean_{label}"] = component.mean if component else np.nan
            row[f"size_{label}"] = int(sizes[label])
        rows.append(row)

    return pd.DataFrame(rows)


def mixture_log_likelihood(
    observations: ObservationSet,
    components: tuple[ComponentParameters, ...],
    weights: Sequence[float] | NDArray[np.floating] | None = None,
) -> float:
    """Mixture log-likelihood of observations under fitted components.

    Weights default to the components' mixing weights when they carry
    them, uniform otherwise.
    """
    alphas, betas = component_arrays(components)
    log_lik = component_log_likelihoods(
        observations.successes, observations.trials, alphas, betas
    )
    with np.errstate(divide="ignore"):
        log_weights = np.log(resolve_weights(components, weights))
    return _mixture_log_likelihood(log_lik, log_weights)
