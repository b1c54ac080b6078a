"""
Beta-binomial mixture estimation module.

This module fits a K-component beta-binomial mixture with hard-assignment
EM: a seeded random start, per-component maximum-likelihood fits
(L-BFGS-B), and reassignment by likelihood until the labels stop moving.

Key components:
- MixtureConfig: Configuration for estimation
- fit_beta_binomial: Single-component MLE solver
- EMIterator: Step-by-step EM state machine
- MixtureEstimator: Runs EMIterator to a terminal status
- MixtureFitResult: Output from estimation
"""
