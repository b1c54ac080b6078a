"""
Component membership posteriors and shrinkage estimates.

For a fitted mixture, each observation gets:
    P(k | s_i, n_i) ∝ w_k * BetaBinomial(s_i | n_i, α_k, β_k)

and a shrunk rate estimate that blends the per-component conjugate
posterior means:
    p̂_i = Σ_k P(k | s_i, n_i) * (α_k + s_i) / (α_k + β_k + n_i)

Observations with zero trials carry no information; their membership
probabilities equal the mixing weights and their estimate is the mixture
prior mean Σ_k w_k α_k / (α_k + β_k).
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from mixture_analysis.core.data_models import ObservationSet
from mixture_analysis.core.exceptions import InputError
from mixture_analysis.core.utils import frozen_array, normalize_log_weights
from mixture_analysis.mixture.estimation.data_models import (
    ComponentParameters,
    MixtureFitResult,
    component_arrays,
)
from mixture_analysis.mixture.estimation.estimator import mixing_weights
from mixture_analysis.mixture.estimation.likelihood import (
    component_log_likelihoods,
)


@dataclass(frozen=True, eq=False)
class PosteriorResult:
    """
    Posterior membership and shrinkage per observation.

    Attributes:
        ids: Observation ids, shape (n_obs,).
        successes: Success counts, shape (n_obs,).
        trials: Trial counts, shape (n_obs,).
        probabilities: P(k | observation), shape (n_obs, n_components).
            Columns follow component label order.
        shrunk_estimates: Posterior-weighted rate estimates, shape (n_obs,).
        components: Components used, ordered by label.
        weights: Mixing weights used, shape (n_components,).
    """

    ids: NDArray[np.object_]
    successes: NDArray[np.int64]
    trials: NDArray[np.int64]
    probabilities: NDArray[np.float64]
    shrunk_estimates: NDArray[np.float64]
    components: tuple[ComponentParameters, ...]
    weights: NDArray[np.float64]

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "probabilities", frozen_array(self.probabilities)
        )
        object.__setattr__(
            self, "shrunk_estimates", frozen_array(self.shrunk_estimates)
        )
        object.__setattr__(self, "weights", frozen_array(self.weights))

    @property
    def most_likely_component(self) -> NDArray[np.int64]:
        """Label with the highest posterior probability (lowest on ties)."""
        labels = np.array([c.label for c in self.components], dtype=np.int64)
        result: NDArray[np.int64] = labels[
            np.argmax(self.probabilities, axis=1)
        ]
        return result

    def to_frame(self) -> pd.DataFrame:
        """
        Per-observation table.

        Columns: id, successes, trials, raw_rate, probability_<label> for
        each component, most_likely_component, shrunk_estimate.
        """
        trials = self.trials.astype(np.float64)
        with np.errstate(divide="ignore", invalid="ignore"):
            raw_rate = np.where(trials > 0, self.successes / trials, np.nan)

        frame = pd.DataFrame(
            {
                "id": list(self.ids),
                "successes": self.successes,
                "trials": self.trials,
                "raw_rate": raw_rate,
            }
        )
        for column, component in enumerate(self.components):
            frame[f"probability_{component.label}"] = self.probabilities[
                :, column
            ]
        frame["most_likely_component"] = self.most_likely_component
        frame["shrunk_estimate"] = self.shrunk_estimates
        return frame


def resolve_weights(
    components: tuple[ComponentParameters, ...],
    weights: Sequence[float] | NDArray[np.floating] | None = None,
) -> NDArray[np.float64]:
    """
    Mixing weights to use for posteriors.

    Explicit weights win; otherwise the components' own weights, otherwise
    uniform 1/K.

    Raises:
        InputError: If explicit weights have the wrong length, are negative
            or do not sum to a positive value.
    """
    if weights is None:
        return mixing_weights(components)

    resolved = np.asarray(weights, dtype=np.float64)
    if resolved.shape != (len(components),):
        raise InputError(
            f"Expected {len(components)} weights, got shape {resolved.shape}"
        )
    if np.any(resolved < 0) or not resolved.sum() > 0:
        raise InputError("weights must be non-negative with positive sum")
    result: NDArray[np.float64] = resolved / resolved.sum()
    return result


def compute_posteriors(
    observations: ObservationSet,
    components: tuple[ComponentParameters, ...],
    weights: Sequence[float] | NDArray[np.floating] | None = None,
) -> PosteriorResult:
    """
    Membership probabilities and shrinkage estimates for every observation.

    Args:
        observations: Observations to score. Zero trials are allowed.
        components: Fitted components.
        weights: Optional mixing weights in label order. Defaults to the
            components' weights, or uniform when they carry none.

    Returns:
        PosteriorResult aligned with the observations.

    Raises:
        InputError: If there are no components or the weights are invalid.
    """
    if not components:
        raise InputError("At least one component is required")

    ordered = tuple(sorted(components, key=lambda c: c.label))
    w = resolve_weights(ordered, weights)
    alphas, betas = component_arrays(ordered)

    log_lik = component_log_likelihoods(
        observations.successes, observations.trials, alphas, betas
    )
    with np.errstate(divide="ignore"):
        log_weights = np.log(w)
    probabilities = normalize_log_weights(
        log_lik + log_weights[np.newaxis, :], axis=1
    )

    s = observations.successes.astype(np.float64)
    n = observations.trials.astype(np.float64)
    component_means = np.column_stack(
        [component.posterior_mean(s, n) for component in ordered]
    )
    shrunk = np.sum(probabilities * component_means, axis=1)

    return PosteriorResult(
        ids=observations.ids,
        successes=observations.successes,
        trials=observations.trials,
        probabilities=probabilities,
        shrunk_estimates=shrunk,
        components=ordered,
        weights=w,
    )


def posteriors_from_fit(
    result: MixtureFitResult,
    observations: ObservationSet | None = None,
) -> PosteriorResult:
    """
    Posteriors under a fitted mixture.

    Args:
        result: A completed fit.
        observations: Observations to score. Defaults to the fitted ones.
    """
    if observations is None:
        observations = result.observations
    return compute_posteriors(observations, result.components)
