"""
Data structures for synthetic mixture data generation.

Only contracts are defined here; generation logic lives in generators.py.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from mixture_analysis.core.data_models import ObservationSet
from mixture_analysis.synthetic_data.config import GenerationConfig


@dataclass(frozen=True, eq=False)
class GeneratedData:
    """
    Complete output from synthetic data generation.

    Contains the observations and the latent quantities used to draw them,
    for recovery checks.
    """

    # Primary output
    observations: ObservationSet

    # Latent data (for validation and debugging)
    true_labels: NDArray[np.int64]
    true_rates: NDArray[np.float64]

    # Generation metadata
    config: GenerationConfig

    @property
    def n_components(self) -> int:
        return len(self.config.components)
