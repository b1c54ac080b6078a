"""
Beta-binomial mixture module.

This module provides:
- Mixture estimation (configuration, solver, EM iteration)
- Posterior membership probabilities and shrinkage estimates
- Diagnostic utilities for inspecting the iteration history
"""

from mixture_analysis.mixture.diagnostics import (
    count_assignment_changes,
    summarize_history,
)
from mixture_analysis.mixture.estimation.config import MixtureConfig
from mixture_analysis.mixture.estimation.data_models import (
    ComponentParameters,
    MixtureFitResult,
    ModelState,
)
from mixture_analysis.mixture.estimation.estimator import (
    EMIterator,
    MixtureEstimator,
    fit_single_component,
)
from mixture_analysis.mixture.posterior import (
    PosteriorResult,
    compute_posteriors,
)

__all__ = [
    "ComponentParameters",
    "EMIterator",
    "MixtureConfig",
    "MixtureEstimator",
    "MixtureFitResult",
    "ModelState",
    "PosteriorResult",
    "compute_posteriors",
    "count_assignment_changes",
    "fit_single_component",
    "summarize_history",
]
