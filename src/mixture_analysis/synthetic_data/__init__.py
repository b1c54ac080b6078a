"""
Synthetic data generation module for beta-binomial mixtures.

This module produces count data with known component labels for offline
evaluation of the mixture estimator (parameter and label recovery).

It is NOT intended for production inference.
"""
