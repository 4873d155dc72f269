"""
Typed errors raised by the inference core.

Every error is surfaced synchronously to the caller (e.g. a sampler),
which decides whether to reject the candidate, retry or abort.
"""


class SimulatorInferenceError(Exception):
    """Base class for all siminfer errors."""


class ShapeMismatchError(SimulatorInferenceError, ValueError):
    """Candidate vector or component layout does not match the problem."""


class ParameterMismatchError(SimulatorInferenceError, AssertionError):
    """
    Stored forward problem parameters differ from the supplied model parameters.

    Raised when the forward solve is bypassed but the forward problem was
    produced from a different parameter vector.
    """


class DuplicateLikelihoodError(SimulatorInferenceError, ValueError):
    """Two likelihoods (or a likelihood and the model prior) share a name."""


class ObservableNotComputedError(SimulatorInferenceError, RuntimeError):
    """An observable was read before any forward simulation populated it."""
