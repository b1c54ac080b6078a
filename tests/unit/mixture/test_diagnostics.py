import numpy as np
import pytest

from mixture_analysis.core.data_models import ObservationSet
from mixture_analysis.mixture.diagnostics import (
    count_assignment_changes,
    mixture_log_likelihood,
    summarize_history,
)
from mixture_analysis.mixture.estimation.data_models import (
    ComponentParameters,
    ModelState,
)
from mixture_analysis.mixture.estimation.initialization import one_hot
from mixture_analysis.mixture.estimation.likelihood import (
    beta_binomial_logpmf,
)

LOW = ComponentParameters(label=0, alpha=2.0, beta=40.0)
HIGH = ComponentParameters(label=1, alpha=30.0, beta=80.0)


def _state(
    iteration: int,
    labels: list[int],
    components: tuple[ComponentParameters, ...] = (),
    log_likelihood: float | None = None,
) -> ModelState:
    assignments = np.array(labels, dtype=np.int64)
    return ModelState(
        iteration=iteration,
        components=components,
        assignments=assignments,
        responsibilities=one_hot(assignments, 2),
        log_likelihood=log_likelihood,
    )


def test_count_assignment_changes() -> None:
    previous = _state(0, [0, 1, 0, 1])
    current = _state(1, [0, 0, 1, 1])

    assert count_assignment_changes(previous, current) == 2
    assert count_assignment_changes(current, current) == 0


def test_summarize_history() -> None:
    states = (
        _state(0, [0, 1, 0, 1]),
        _state(1, [0, 0, 1, 1], (LOW, HIGH), -12.5),
        _state(2, [0, 0, 1, 1], (LOW, HIGH), -12.0),
    )

    frame = summarize_history(states)

    assert len(frame) == 3
    assert frame["iteration"].tolist() == [0, 1, 2]
    assert frame["n_changed"].tolist() == [0, 2, 0]
    assert np.isnan(frame["alpha_0"].iloc[0])
    assert frame["alpha_1"].iloc[1] == pytest.approx(30.0)
    assert frame["mean_0"].iloc[2] == pytest.approx(LOW.mean)
    assert frame["size_1"].tolist() == [2, 2, 2]
    assert frame["log_likelihood"].iloc[2] == pytest.approx(-12.0)


class TestMixtureLogLikelihood:
    def test_single_component(self) -> None:
        observations = ObservationSet.from_arrays([3, 8], [20, 20])

        result = mixture_log_likelihood(observations, (LOW,))

        expected = beta_binomial_logpmf(
            np.array([3, 8]), np.array([20, 20]), 2.0, 40.0
        ).sum()
        np.testing.assert_allclose(result, expected)

    def test_explicit_weights(self) -> None:
        observations = ObservationSet.from_arrays([5], [50])

        result = mixture_log_likelihood(
            observations, (LOW, HIGH), [0.2, 0.8]
        )

        p_low = np.exp(
            beta_binomial_logpmf(np.array([5]), np.array([50]), 2.0, 40.0)
        )
        p_high = np.exp(
            beta_binomial_logpmf(np.array([5]), np.array([50]), 30.0, 80.0)
        )
        np.testing.assert_allclose(
            result, np.log(0.2 * p_low[0] + 0.8 * p_high[0])
        )
