"""
Core utility functions shared across mixture_analysis modules.
"""

import numpy as np
from numpy.random import Generator
from numpy.typing import NDArray


def get_rng(seed: int | None = None) -> Generator:
    """
    Create a numpy random Generator with optional seed.

    Args:
        seed: Random seed for reproducibility. If None, uses entropy.

    Returns:
        A numpy random Generator instance.
    """
    return np.random.default_rng(seed)


def normalize_log_weights(
    log_weights: NDArray[np.floating], axis: int = -1
) -> NDArray[np.float64]:
    """
    Turn unnormalized log-weights into probabilities.

    Numerically stable (max-shift before exponentiation). Rows that are
    entirely -inf come back as NaN.

    Args:
        log_weights: Array of unnormalized log-weights.
        axis: Axis along which to normalize.

    Returns:
        Array of probabilities that sum to 1 along the specified axis.
    """
    max_log = np.max(log_weights, axis=axis, keepdims=True)
    shifted = np.exp(log_weights - max_log)
    result: NDArray[np.float64] = shifted / np.sum(
        shifted, axis=axis, keepdims=True
    )
    return result


def frozen_array(array: NDArray[np.generic]) -> NDArray[np.generic]:
    """Return a read-only copy of an array."""
    result = np.array(array, copy=True)
    result.setflags(write=False)
    return result
