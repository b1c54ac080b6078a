"""
Data models for mixture estimation output.

This module defines:
- ComponentParameters: shape parameters (and optional weight) of one component
- ModelState: immutable snapshot of one EM iteration
- MixtureFitResult: terminal state plus the full iteration history
"""

from collections.abc import Hashable
from dataclasses import dataclass
from typing import Self

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field

from mixture_analysis.core.data_models import ObservationSet
from mixture_analysis.core.utils import frozen_array
from mixture_analysis.mixture.estimation.enums import ConvergenceStatus


class ComponentParameters(BaseModel):
    """
    Parameters of one beta-binomial mixture component.

    Attributes:
        label: Component label, 0..K-1. Lower labels win assignment ties.
        alpha: Beta prior shape α > 0.
        beta: Beta prior shape β > 0.
        weight: Mixing weight in [0, 1], or None when mixing priors are not
            tracked (uniform 1/K is then implied).
    """

    model_config = ConfigDict(frozen=True)

    label: int = Field(..., ge=0)
    alpha: float = Field(..., gt=0.0)
    beta: float = Field(..., gt=0.0)
    weight: float | None = Field(default=None, ge=0.0, le=1.0)

    @property
    def mean(self) -> float:
        """Prior mean success rate α / (α + β)."""
        return self.alpha / (self.alpha + self.beta)

    def posterior_mean(
        self, successes: NDArray[np.number], trials: NDArray[np.number]
    ) -> NDArray[np.float64]:
        """
        Conjugate posterior mean of the rate under this component.

        (α + s) / (α + β + n)
        """
        result: NDArray[np.float64] = (self.alpha + successes) / (
            self.alpha + self.beta + trials
        )
        return result

    def with_weight(self, weight: float | None) -> Self:
        """Copy of these parameters with a different mixing weight."""
        return self.model_copy(update={"weight": weight})


def component_arrays(
    components: tuple[ComponentParameters, ...],
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Split components (in label order) into alpha and beta arrays."""
    ordered = sorted(components, key=lambda c: c.label)
    alphas = np.array([c.alpha for c in ordered], dtype=np.float64)
    betas = np.array([c.beta for c in ordered], dtype=np.float64)
    return alphas, betas


@dataclass(frozen=True, eq=False)
class ModelState:
    """
    Snapshot of the EM iteration after one step.

    Arrays are stored read-only; a state is never modified once built.

    Attributes:
        iteration: 0 for the initial state, then 1, 2, ...
        components: Components fitted in this step's Maximization, ordered
            by label. Empty for the initial state.
        assignments: Hard component label per observation,
            shape (n_observations,).
        responsibilities: Per-observation component probabilities used by
            the next Maximization, shape (n_observations, n_components).
            One-hot in hard-assignment mode.
        log_likelihood: Mixture log-likelihood under this step's
            components, None for the initial state.
    """

    iteration: int
    components: tuple[ComponentParameters, ...]
    assignments: NDArray[np.int64]
    responsibilities: NDArray[np.float64]
    log_likelihood: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "assignments", frozen_array(self.assignments)
        )
        object.__setattr__(
            self, "responsibilities", frozen_array(self.responsibilities)
        )

    @property
    def n_components(self) -> int:
        """Number of mixture components."""
        return int(self.responsibilities.shape[1])

    @property
    def component_sizes(self) -> NDArray[np.int64]:
        """Number of observations hard-assigned to each label."""
        sizes: NDArray[np.int64] = np.bincount(
            self.assignments, minlength=self.n_components
        ).astype(np.int64)
        return sizes

    def assignment_map(
        self, observations: ObservationSet
    ) -> dict[Hashable, int]:
        """Map observation id to assigned component label."""
        return {
            obs_id: int(label)
            for obs_id, label in zip(observations.ids, self.assignments)
        }


@dataclass(frozen=True, eq=False)
class MixtureFitResult:
    """
    Result of beta-binomial mixture estimation.

    Attributes:
        observations: The observations that were fitted.
        states: Every ModelState in order, starting with the initial one.
        convergence_status: How the iteration terminated.
        model_version: Version string for reproducibility tracking.
    """

    observations: ObservationSet
    states: tuple[ModelState, ...]
    convergence_status: ConvergenceStatus
    model_version: str
    elapsed_seconds: float = 0.0

    @property
    def final_state(self) -> ModelState:
        """The last fully computed state."""
        return self.states[-1]

    @property
    def components(self) -> tuple[ComponentParameters, ...]:
        """Components of the final state."""
        return self.final_state.components

    @property
    def assignments(self) -> NDArray[np.int64]:
        """Hard labels of the final state."""
        return self.final_state.assignments

    @property
    def log_likelihood(self) -> float | None:
        """Mixture log-likelihood of the final state."""
        return self.final_state.log_likelihood

    @property
    def n_iterations(self) -> int:
        """Number of EM steps performed."""
        return self.final_state.iteration

    @property
    def converged(self) -> bool:
        """Whether estimation converged successfully."""
        return self.convergence_status == ConvergenceStatus.CONVERGED

    def to_summary(self) -> "MixtureFitSummary":
        """Serializable summary without per-observation arrays."""
        return MixtureFitSummary(
            components=self.components,
            log_likelihood=self.log_likelihood,
            n_iterations=self.n_iterations,
            n_observations=self.observations.n_observations,
            convergence_status=self.convergence_status,
            model_version=self.model_version,
        )


class MixtureFitSummary(BaseModel):
    """
    JSON-serializable summary of a fit.

    Attributes:
        components: Final component parameters.
        log_likelihood: Final mixture log-likelihood.
        n_iterations: Number of EM steps performed.
        n_observations: Number of fitted observations.
        convergence_status: Status indicating how estimation terminated.
        model_version: Version string for reproducibility tracking.
    """

    model_config = ConfigDict(frozen=True)

    components: tuple[ComponentParameters, ...]
    log_likelihood: float | None
    n_iterations: int
    n_observations: int
    convergence_status: ConvergenceStatus
    model_version: str

    @property
    def converged(self) -> bool:
        """Whether estimation converged successfully."""
        return self.convergence_status == ConvergenceStatus.CONVERGED
