from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from mixture_analysis.core.data import (
    load_csv_to_observations,
    observations_to_frame,
)
from mixture_analysis.core.data_models import ObservationSet
from mixture_analysis.core.exceptions import InputError


def test_load_csv(tmp_path: Path) -> None:
    path = tmp_path / "counts.csv"
    pd.DataFrame(
        {"id": ["a", "b"], "successes": [3, 7], "trials": [10, 20]}
    ).to_csv(path, index=False)

    observations = load_csv_to_observations(path)

    assert list(observations.ids) == ["a", "b"]
    np.testing.assert_array_equal(observations.successes, [3, 7])
    np.testing.assert_array_equal(observations.trials, [10, 20])


def test_numeric_ids_read_as_strings(tmp_path: Path) -> None:
    path = tmp_path / "counts.csv"
    path.write_text("id,successes,trials\n001,1,2\n002,0,2\n")

    observations = load_csv_to_observations(path)

    assert list(observations.ids) == ["001", "002"]


def test_missing_column_raises(tmp_path: Path) -> None:
    path = tmp_path / "counts.csv"
    path.write_text("id,successes\na,1\n")

    with pytest.raises(InputError, match="'trials'"):
        load_csv_to_observations(path)


def test_missing_values_raise(tmp_path: Path) -> None:
    path = tmp_path / "counts.csv"
    path.write_text("id,successes,trials\na,1,\n")

    with pytest.raises(InputError, match="missing values"):
        load_csv_to_observations(path)


def test_inconsistent_row_raises(tmp_path: Path) -> None:
    path = tmp_path / "counts.csv"
    path.write_text("id,successes,trials\na,1,2\nb,5,4\n")

    with pytest.raises(InputError) as exc_info:
        load_csv_to_observations(path)

    assert exc_info.value.observation_id == "b"


def test_frame_round_trip_columns() -> None:
    observations = ObservationSet.from_arrays([1, 2], [3, 4], ids=["a", "b"])

    frame = observations_to_frame(observations)

    assert list(frame.columns) == ["id", "successes", "trials"]
    assert frame["successes"].tolist() == [1, 2]
