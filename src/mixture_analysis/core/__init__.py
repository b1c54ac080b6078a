"""
Core shared types and utilities for mixture_analysis.

This module provides the observation store, the error taxonomy and small
numerical helpers used by both the estimation engine and the synthetic data
layer.
"""

from mixture_analysis.core.data_models import Observation, ObservationSet
from mixture_analysis.core.exceptions import (
    EmptyComponentError,
    InputError,
    MixtureError,
    NonConvergenceWarning,
    OptimizationFailure,
)
from mixture_analysis.core.utils import get_rng, normalize_log_weights

__all__ = [
    "EmptyComponentError",
    "get_rng",
    "InputError",
    "MixtureError",
    "NonConvergenceWarning",
    "normalize_log_weights",
    "Observation",
    "ObservationSet",
    "OptimizationFailure",
]
