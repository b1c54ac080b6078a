from enum import Enum


class ConvergenceStatus(str, Enum):
    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"
    MAX_ITERATIONS = "max_iterations"
    FAILED = "failed"


class ConvergenceMode(str, Enum):
    ASSIGNMENT_STABLE = "assignment_stable"
    LIKELIHOOD_DELTA = "likelihood_delta"


class EmptyComponentPolicy(str, Enum):
    FAIL = "fail"
    RESEED_LARGEST = "reseed_largest"


class AssignmentMode(str, Enum):
    HARD = "hard"
    SOFT = "soft"
