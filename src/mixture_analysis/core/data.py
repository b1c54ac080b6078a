"""
CSV loading utilities for binomial count data.
"""

from pathlib import Path

import pandas as pd

from mixture_analysis.core.data_models import ObservationSet
from mixture_analysis.core.exceptions import InputError

REQUIRED_COLUMNS = ("id", "successes", "trials")


def load_csv_to_observations(path: Path) -> ObservationSet:
    """Load a CSV file of count records into an ObservationSet.

    Expected CSV columns:
        - id: unique identifier for each record
        - successes: number of successes
        - trials: number of trials

    No filtering is applied; every row becomes an observation.

    Raises:
        InputError: If the CSV format is invalid or a record is inconsistent.
    """
    df = pd.read_csv(path, dtype={"id": str})

    for column in REQUIRED_COLUMNS:
        if column not in df.columns:
            raise InputError(f"CSV must have '{column}' column")

    if df[["successes", "trials"]].isna().any().any():
        raise InputError("successes and trials must not have missing values")

    return ObservationSet.from_arrays(
        successes=df["successes"].to_numpy(),
        trials=df["trials"].to_numpy(),
        ids=df["id"].tolist(),
    )


def observations_to_frame(observations: ObservationSet) -> pd.DataFrame:
    """Tabulate an ObservationSet with the same columns the loader reads."""
    return pd.DataFrame(
        {
            "id": observations.ids,
            "successes": observations.successes,
            "trials": observations.trials,
        }
    )
