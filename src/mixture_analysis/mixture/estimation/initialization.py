"""
Random initial cluster assignment.
"""

import numpy as np
from numpy.typing import NDArray

from mixture_analysis.core.exceptions import InputError
from mixture_analysis.core.utils import get_rng


def random_assignment(
    n_observations: int,
    n_components: int,
    seed: int,
) -> NDArray[np.int64]:
    """
    Assign every observation uniformly at random to one of K labels.

    A fresh generator is built from the seed on every call, so the result
    depends only on the arguments.

    Args:
        n_observations: Number of observations.
        n_components: Number of component labels K.
        seed: Random seed.

    Returns:
        Labels in 0..K-1, shape (n_observations,).
    """
    if n_components < 1:
        raise InputError(f"n_components must be >= 1, got {n_components}")
    if n_observations < 0:
        raise InputError("n_observations must be >= 0")

    rng = get_rng(seed)
    labels: NDArray[np.int64] = rng.integers(
        0, n_components, size=n_observations, dtype=np.int64
    )
    return labels


def one_hot(
    labels: NDArray[np.int64], n_components: int
) -> NDArray[np.float64]:
    """Responsibility matrix with all mass on each observation's label."""
    result = np.zeros((len(labels), n_components), dtype=np.float64)
    result[np.arange(len(labels)), labels] = 1.0
    return result
