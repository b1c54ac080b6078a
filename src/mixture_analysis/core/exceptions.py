"""
Error taxonomy for mixture fitting.

- InputError: invalid observations or configuration (fatal)
- OptimizationFailure: a beta-binomial MLE did not converge
- EmptyComponentError: a component lost all of its observations
- NonConvergenceWarning: the iteration budget ran out before convergence
"""

from collections.abc import Hashable


class MixtureError(Exception):
    """Base class for all errors raised by the mixture engine."""


class InputError(MixtureError, ValueError):
    def __init__(
        self, message: str, observation_id: Hashable | None = None
    ) -> None:
        self.observation_id = observation_id
        super().__init__(message)


class OptimizationFailure(MixtureError, RuntimeError):
    def __init__(
        self, message: str, component_label: int | None = None
    ) -> None:
        self.component_label = component_label
        super().__init__(message)


class EmptyComponentError(MixtureError, RuntimeError):
    def __init__(self, component_label: int, size: int) -> None:
        self.component_label = component_label
        self.size = size
        super().__init__(
            f"Component {component_label} has {size} assigned observations"
        )


class NonConvergenceWarning(UserWarning):
    pass
