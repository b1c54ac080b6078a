"""
Beta-binomial mixture estimator using hard-assignment EM.

Each step re-fits every component by maximum likelihood on the observations
currently assigned to it (Maximization), then moves every observation to
the component under which it is most likely (Expectation). The iteration
stops when the assignment no longer changes, or when the mixture
log-likelihood stops improving, or when the iteration budget runs out.
"""

import logging
import time
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from mixture_analysis.core.data_models import ObservationSet
from mixture_analysis.core.exceptions import (
    EmptyComponentError,
    NonConvergenceWarning,
    OptimizationFailure,
)
from mixture_analysis.core.utils import normalize_log_weights
from mixture_analysis.mixture.estimation.config import (
    MixtureConfig,
    SolverConfig,
)
from mixture_analysis.mixture.estimation.data_models import (
    ComponentParameters,
    MixtureFitResult,
    ModelState,
    component_arrays,
)
from mixture_analysis.mixture.estimation.enums import (
    AssignmentMode,
    ConvergenceMode,
    ConvergenceStatus,
    EmptyComponentPolicy,
)
from mixture_analysis.mixture.estimation.initialization import (
    one_hot,
    random_assignment,
)
from mixture_analysis.mixture.estimation.likelihood import (
    component_log_likelihoods,
    mixture_log_likelihood,
)
from mixture_analysis.mixture.estimation.solver import fit_beta_binomial

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset(
    {
        ConvergenceStatus.CONVERGED,
        ConvergenceStatus.MAX_ITERATIONS,
        ConvergenceStatus.FAILED,
    }
)


@dataclass
class EStepResult:
    """
    Results from the Expectation step.

    Attributes:
        assignments: Most likely component per observation, shape (n_obs,).
        responsibilities: Normalized component probabilities,
            shape (n_obs, n_components).
        log_likelihood: Mixture log-likelihood for the given components.
    """

    assignments: NDArray[np.int64]
    responsibilities: NDArray[np.float64]
    log_likelihood: float


def mixing_weights(
    components: tuple[ComponentParameters, ...],
) -> NDArray[np.float64]:
    """
    Mixing weights of a component set, in label order.

    Uses the components' own weights when every component carries one,
    otherwise uniform 1/K.
    """
    ordered = sorted(components, key=lambda c: c.label)
    if ordered and all(c.weight is not None for c in ordered):
        weights = np.array([c.weight for c in ordered], dtype=np.float64)
        return weights / weights.sum()
    return np.full(len(ordered), 1.0 / len(ordered), dtype=np.float64)


def expectation_step(
    observations: ObservationSet,
    components: tuple[ComponentParameters, ...],
    use_uniform_priors: bool = True,
) -> EStepResult:
    """
    Assign each observation to its most likely component.

    The score of component k is log P(s_i | n_i, α_k, β_k), plus log w_k when
    mixing priors are used. The strictly highest score wins; ties go to the
    lowest component label.

    Args:
        observations: Observations to assign.
        components: Current component parameters.
        use_uniform_priors: If False, add the components' log mixing
            weights to the scores.

    Returns:
        EStepResult with hard labels, responsibilities and log-likelihood.
    """
    alphas, betas = component_arrays(components)
    log_lik = component_log_likelihoods(
        observations.successes, observations.trials, alphas, betas
    )

    weights = mixing_weights(components)
    with np.errstate(divide="ignore"):
        log_weights = np.log(weights)

    if use_uniform_priors:
        scores = log_lik
    else:
        scores = log_lik + log_weights[np.newaxis, :]

    # np.argmax returns the first maximal column, i.e. the lowest label
    assignments = np.argmax(scores, axis=1).astype(np.int64)

    return EStepResult(
        assignments=assignments,
        responsibilities=normalize_log_weights(
            log_lik + log_weights[np.newaxis, :], axis=1
        ),
        log_likelihood=mixture_log_likelihood(log_lik, log_weights),
    )


class EMIterator:
    """
    Step-by-step EM state machine.

    Status moves from INITIALIZED to ITERATING on the first step and ends in
    CONVERGED, MAX_ITERATIONS or FAILED. Every state, including the initial
    random assignment, is kept in order.
    """

    def __init__(
        self,
        observations: ObservationSet,
        config: MixtureConfig | None = None,
    ):
        """
        Initialize the iterator with a seeded random assignment.

        Raises:
            InputError: If the observations cannot be fitted.
        """
        self.config = config or MixtureConfig()
        observations.validate_for_fitting()
        self.observations = observations

        n_components = self.config.n_components
        labels = random_assignment(
            observations.n_observations,
            n_components,
            self.config.random_seed,
        )
        self._states: list[ModelState] = [
            ModelState(
                iteration=0,
                components=(),
                assignments=labels,
                responsibilities=one_hot(labels, n_components),
            )
        ]
        self.status = ConvergenceStatus.INITIALIZED
        self.failure: EmptyComponentError | OptimizationFailure | None = None

    @property
    def states(self) -> tuple[ModelState, ...]:
        """All states computed so far, initial state first."""
        return tuple(self._states)

    @property
    def current_state(self) -> ModelState:
        """The most recent fully computed state."""
        return self._states[-1]

    @property
    def is_terminal(self) -> bool:
        """Whether the iterator has stopped."""
        return self.status in TERMINAL_STATUSES

    def step(self) -> ConvergenceStatus:
        """
        Run one Maximization + Expectation step.

        On failure no state is appended: the iterator moves to FAILED and
        the error is re-raised. Component sizes are checked both before the
        Maximization and after the Expectation, so no state with an empty
        component is ever recorded.

        Returns:
            The status after the step.

        Raises:
            EmptyComponentError: If a component is empty and the policy is
                FAIL (or reseeding is impossible).
            OptimizationFailure: If a component's MLE does not converge.
        """
        if self.is_terminal:
            raise RuntimeError(
                f"Cannot step an iterator with status {self.status.value}"
            )

        previous = self.current_state
        self.status = ConvergenceStatus.ITERATING

        try:
            responsibilities = self._check_components(
                previous.responsibilities
            )
            components = self._m_step(responsibilities)

            e_result = expectation_step(
                self.observations,
                components,
                use_uniform_priors=self.config.use_uniform_priors,
            )

            if self.config.assignment_mode == AssignmentMode.HARD:
                next_responsibilities = one_hot(
                    e_result.assignments, self.config.n_components
                )
            else:
                next_responsibilities = e_result.responsibilities
            checked = self._check_components(next_responsibilities)
        except (EmptyComponentError, OptimizationFailure) as exc:
            self.status = ConvergenceStatus.FAILED
            self.failure = exc
            logger.error(
                "EM step %d failed: %s", previous.iteration + 1, exc
            )
            raise

        if checked is next_responsibilities:
            assignments = e_result.assignments
        else:
            # reseeded: labels come from the one-hot matrix
            assignments = np.argmax(checked, axis=1).astype(np.int64)
            next_responsibilities = checked

        state = ModelState(
            iteration=previous.iteration + 1,
            components=components,
            assignments=assignments,
            responsibilities=next_responsibilities,
            log_likelihood=e_result.log_likelihood,
        )
        self._states.append(state)

        n_changed = int(np.sum(state.assignments != previous.assignments))
        logger.debug(
            f"Iteration {state.iteration}: "
            f"LL = {e_result.log_likelihood:.4f}, "
            f"{n_changed} assignments changed"
        )

        self.status = self._check_convergence(previous, state)
        return self.status

    def run(self) -> MixtureFitResult:
        """
        Step until a terminal status is reached.

        The wall-clock budget, if any, is checked between steps only.

        Returns:
            MixtureFitResult with the full state history.
        """
        max_seconds = self.config.convergence.max_seconds
        start = time.monotonic()

        while not self.is_terminal:
            self.step()
            elapsed = time.monotonic() - start
            if (
                not self.is_terminal
                and max_seconds is not None
                and elapsed >= max_seconds
            ):
                logger.info(
                    "Wall-clock budget of %.1fs exhausted after %d iterations",
                    max_seconds,
                    self.current_state.iteration,
                )
                self.status = ConvergenceStatus.MAX_ITERATIONS

        elapsed = time.monotonic() - start

        if self.status == ConvergenceStatus.MAX_ITERATIONS:
            warnings.warn(
                f"EM stopped after {self.current_state.iteration} iterations "
                f"without converging",
                NonConvergenceWarning,
                stacklevel=2,
            )

        logger.info(
            "EM finished: %s after %d iterations (LL = %.4f)",
            self.status.value,
            self.current_state.iteration,
            self.current_state.log_likelihood,
        )

        return MixtureFitResult(
            observations=self.observations,
            states=self.states,
            convergence_status=self.status,
            model_version=self.config.model_version,
            elapsed_seconds=elapsed,
        )

    def _check_components(
        self, responsibilities: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """
        Enforce the minimum component size before a Maximization step.

        Returns:
            The responsibilities to fit, reseeded if the policy allows it.
        """
        min_size = self.config.min_component_size

        for label in range(self.config.n_components):
            size = float(responsibilities[:, label].sum())
            if size >= min_size:
                continue
            if (
                self.config.empty_component_policy
                == EmptyComponentPolicy.FAIL
            ):
                raise EmptyComponentError(label, int(round(size)))
            responsibilities = self._reseed_from_largest(
                responsibilities, label
            )

        return responsibilities

    def _reseed_from_largest(
        self, responsibilities: NDArray[np.float64], empty_label: int
    ) -> NDArray[np.float64]:
        """
        Move the upper half (by rate) of the largest component to an empty one.

        The largest component is the one with the most hard-assigned
        observations, lowest label on ties. Within it, observations are
        ordered by rate and then by position.
        """
        n_components = self.config.n_components
        labels = np.argmax(responsibilities, axis=1).astype(np.int64)
        sizes = np.bincount(labels, minlength=n_components)
        sizes[empty_label] = -1
        largest = int(np.argmax(sizes))

        members = np.flatnonzero(labels == largest)
        if len(members) < 2 * self.config.min_component_size:
            raise EmptyComponentError(
                empty_label, int(np.sum(labels == empty_label))
            )

        rates = self.observations.rates[members]
        order = np.lexsort((members, rates))
        moved = members[order[len(members) // 2 :]]
        labels[moved] = empty_label

        logger.warning(
            "Component %d is empty; reseeded with %d observations "
            "from component %d",
            empty_label,
            len(moved),
            largest,
        )
        return one_hot(labels, n_components)

    def _m_step(
        self, responsibilities: NDArray[np.float64]
    ) -> tuple[ComponentParameters, ...]:
        """
        Maximization: fit every component independently.

        Args:
            responsibilities: Observation weights per component,
                shape (n_obs, n_components).

        Returns:
            Fresh component parameters, ordered by label.
        """
        n_obs = responsibilities.shape[0]
        sizes = responsibilities.sum(axis=0)
        track_weights = not self.config.use_uniform_priors
        soft = self.config.assignment_mode == AssignmentMode.SOFT
        successes = self.observations.successes
        trials = self.observations.trials
        solver_config = self.config.solver

        def fit_component(label: int) -> ComponentParameters:
            if soft:
                weights = responsibilities[:, label]
                s, n = successes, trials
            else:
                mask = responsibilities[:, label] > 0
                weights = None
                s, n = successes[mask], trials[mask]
            try:
                alpha, beta = fit_beta_binomial(s, n, weights, solver_config)
            except OptimizationFailure as exc:
                raise OptimizationFailure(
                    f"Component {label}: {exc}", component_label=label
                ) from exc
            return ComponentParameters(
                label=label,
                alpha=alpha,
                beta=beta,
                weight=float(sizes[label] / n_obs) if track_weights else None,
            )

        labels = range(self.config.n_components)
        n_workers = min(self.config.n_jobs, self.config.n_components)
        if n_workers == 1:
            return tuple(fit_component(label) for label in labels)

        # map() yields in label order and re-raises the first failure
        with ThreadPoolExecutor(max_workers=n_workers) as pool:
            return tuple(pool.map(fit_component, labels))

    def _check_convergence(
        self, previous: ModelState, current: ModelState
    ) -> ConvergenceStatus:
        """
        Decide the status after a step.

        Args:
            previous: State before the step.
            current: State produced by the step.

        Returns:
            CONVERGED, MAX_ITERATIONS or ITERATING.
        """
        convergence = self.config.convergence

        if convergence.mode == ConvergenceMode.ASSIGNMENT_STABLE:
            if np.array_equal(current.assignments, previous.assignments):
                return ConvergenceStatus.CONVERGED
        elif (
            previous.log_likelihood is not None
            and current.log_likelihood is not None
        ):
            improvement = current.log_likelihood - previous.log_likelihood
            if improvement < convergence.likelihood_delta_threshold:
                return ConvergenceStatus.CONVERGED

        if current.iteration >= convergence.max_iterations:
            return ConvergenceStatus.MAX_ITERATIONS

        return ConvergenceStatus.ITERATING


class MixtureEstimator:
    """
    Beta-binomial mixture estimator.

    The mixture model:
        P(s | n) = Σ_k w_k * BetaBinomial(s | n, α_k, β_k)

    Fitted with hard-assignment EM from a seeded random start; α_k, β_k are
    re-estimated per component with L-BFGS-B.
    """

    def __init__(self, config: MixtureConfig | None = None):
        """Initialize mixture estimator."""
        self.config = config or MixtureConfig()

    def fit(self, observations: ObservationSet) -> MixtureFitResult:
        """
        Fit the mixture to observations.

        Args:
            observations: Observations with trials > 0.

        Returns:
            MixtureFitResult with final components, labels, status and the
            full state history.

        Raises:
            InputError: If the observations cannot be fitted.
            EmptyComponentError: If a component empties and the policy is
                FAIL.
            OptimizationFailure: If a component's MLE does not converge.
        """
        logger.info(
            "Fitting %d-component mixture to %d observations (seed=%d)",
            self.config.n_components,
            observations.n_observations,
            self.config.random_seed,
        )
        iterator = EMIterator(observations, self.config)
        return iterator.run()


def fit_single_component(
    observations: ObservationSet,
    config: SolverConfig | None = None,
    model_version: str | None = None,
) -> MixtureFitResult:
    """
    One-component baseline: a plain MLE fit over all observations.

    The result has an initial state and a single fitted state, every
    observation labelled 0, and status CONVERGED.

    Args:
        observations: Observations with trials > 0.
        config: Solver settings. Uses defaults if None.
        model_version: Version string. Defaults to the project version.
    """
    observations.validate_for_fitting()
    if model_version is None:
        model_version = MixtureConfig().model_version

    alpha, beta = fit_beta_binomial(
        observations.successes, observations.trials, config=config
    )
    component = ComponentParameters(label=0, alpha=alpha, beta=beta)

    labels = np.zeros(observations.n_observations, dtype=np.int64)
    responsibilities = one_hot(labels, 1)
    log_lik = component_log_likelihoods(
        observations.successes,
        observations.trials,
        np.array([alpha]),
        np.array([beta]),
    )

    states = (
        ModelState(
            iteration=0,
            components=(),
            assignments=labels,
            responsibilities=responsibilities,
        ),
        ModelState(
            iteration=1,
            components=(component,),
            assignments=labels,
            responsibilities=responsibilities,
            log_likelihood=float(np.sum(log_lik)),
        ),
    )
    return MixtureFitResult(
        observations=observations,
        states=states,
        convergence_status=ConvergenceStatus.CONVERGED,
        model_version=model_version,
    )
