from pathlib import Path

import numpy as np
import pytest

from mixture_analysis.core.data import load_csv_to_observations
from mixture_analysis.synthetic_data.config import (
    ComponentSpec,
    GenerationConfig,
)
from mixture_analysis.synthetic_data.generators import (
    generate_mixture_observations,
    to_csv,
    to_dataframe,
)


@pytest.fixture
def small_config() -> GenerationConfig:
    return GenerationConfig(
        components=[
            ComponentSpec(alpha=2.0, beta=40.0, trials=100, size=30),
            ComponentSpec(alpha=30.0, beta=80.0, trials=50, size=20),
        ],
        random_seed=3,
    )


def test_generate_basic(small_config: GenerationConfig) -> None:
    data = generate_mixture_observations(small_config)

    observations = data.observations
    assert observations.n_observations == 50
    assert data.n_components == 2
    assert data.true_labels.shape == (50,)
    assert np.sum(data.true_labels == 0) == 30
    assert np.all(observations.successes <= observations.trials)
    # Trial counts follow the labels through the shuffle
    np.testing.assert_array_equal(
        observations.trials, np.where(data.true_labels == 0, 100, 50)
    )
    assert list(observations.ids[:2]) == ["obs_0", "obs_1"]


def test_generate_reproducible(small_config: GenerationConfig) -> None:
    data1 = generate_mixture_observations(small_config)
    data2 = generate_mixture_observations(small_config)

    np.testing.assert_array_equal(
        data1.observations.successes, data2.observations.successes
    )
    np.testing.assert_array_equal(data1.true_labels, data2.true_labels)


def test_no_shuffle_keeps_label_blocks(small_config: GenerationConfig) -> None:
    small_config.shuffle = False

    data = generate_mixture_observations(small_config)

    np.testing.assert_array_equal(
        data.true_labels, np.repeat([0, 1], [30, 20])
    )


def test_true_rates_in_unit_interval(small_config: GenerationConfig) -> None:
    data = generate_mixture_observations(small_config)

    assert np.all((data.true_rates > 0) & (data.true_rates < 1))


def test_csv_round_trip(
    small_config: GenerationConfig, tmp_path: Path
) -> None:
    data = generate_mixture_observations(small_config)
    path = tmp_path / "synthetic.csv"

    to_csv(data, str(path))
    loaded = load_csv_to_observations(path)

    assert list(to_dataframe(data).columns) == [
        "id",
        "successes",
        "trials",
        "true_label",
    ]
    assert list(loaded.ids) == list(data.observations.ids)
    np.testing.assert_array_equal(
        loaded.successes, data.observations.successes
    )
