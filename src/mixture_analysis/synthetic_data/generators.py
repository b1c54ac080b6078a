"""
Orchestration layer for synthetic mixture data generation.
"""

import numpy as np
import pandas as pd

from mixture_analysis.core.data import observations_to_frame
from mixture_analysis.core.data_models import ObservationSet
from mixture_analysis.core.utils import get_rng
from mixture_analysis.synthetic_data.config import GenerationConfig
from mixture_analysis.synthetic_data.data_models import GeneratedData


def generate_mixture_observations(config: GenerationConfig) -> GeneratedData:
    """
    Generate synthetic beta-binomial mixture data.

    This is the main entry point for the synthetic data generation pipeline:
        1. For each component, draw p ~ Beta(alpha, beta) per observation
        2. Draw s ~ Binomial(trials, p)
        3. Optionally shuffle observations across components
        4. Assign ids "obs_0", "obs_1", ... in final order

    Args:
        config: Complete generation configuration.

    Returns:
        GeneratedData with observations and true labels and rates.
    """
    rng = get_rng(config.random_seed)

    labels_list = []
    rates_list = []
    successes_list = []
    trials_list = []
    for label, spec in enumerate(config.components):
        rates = rng.beta(spec.alpha, spec.beta, size=spec.size)
        trials = np.full(spec.size, spec.trials, dtype=np.int64)
        labels_list.append(np.full(spec.size, label, dtype=np.int64))
        rates_list.append(rates)
        successes_list.append(rng.binomial(trials, rates).astype(np.int64))
        trials_list.append(trials)

    true_labels = np.concatenate(labels_list)
    true_rates = np.concatenate(rates_list)
    successes = np.concatenate(successes_list)
    trials = np.concatenate(trials_list)

    if config.shuffle:
        order = rng.permutation(len(true_labels))
        true_labels = true_labels[order]
        true_rates = true_rates[order]
        successes = successes[order]
        trials = trials[order]

    observations = ObservationSet.from_arrays(
        successes=successes,
        trials=trials,
        ids=[f"obs_{i}" for i in range(len(successes))],
    )

    return GeneratedData(
        observations=observations,
        true_labels=true_labels,
        true_rates=true_rates,
        config=config,
    )


def to_dataframe(data: GeneratedData) -> pd.DataFrame:
    """
    Convert GeneratedData to a pandas DataFrame.

    Args:
        data: Generated mixture data.

    Returns:
        DataFrame with columns: id, successes, trials, true_label.
    """
    df = observations_to_frame(data.observations)
    df["true_label"] = data.true_labels
    return df


def to_csv(data: GeneratedData, path: str) -> None:
    """
    Write GeneratedData to a CSV file readable by load_csv_to_observations.

    Args:
        data: Generated mixture data.
        path: Output file path.
    """
    df = to_dataframe(data)
    df.to_csv(path, index=False)
