"""
Exception hierarchy for the task assignment optimizer.

Input validation failures are raised before any population work begins;
contract violations on chromosomes (bad gene index, reading an unevaluated
fitness) fail loudly instead of being clamped or defaulted.
"""


class OptimizerError(Exception):
    """Base class for all taskopt errors."""
    pass


class InvalidInputError(OptimizerError, ValueError):
    """Raised when tasks or worker specifications are missing or malformed."""
    pass


class DimensionMismatchError(OptimizerError, ValueError):
    """Raised when a declared count disagrees with the length of its collection."""
    pass


class GeneIndexError(OptimizerError, IndexError):
    """Raised when a gene is accessed outside [0, chromosome length)."""
    pass


class UnevaluatedFitnessError(OptimizerError):
    """Raised when fitness is read before it has been (re)computed."""
    pass


class PopulationFullError(OptimizerError):
    """Raised when appending to a population that is already at capacity."""
    pass


class ConfigValidationError(OptimizerError):
    """Raised when a run or driver configuration is invalid."""
    pass


class DispatchError(OptimizerError):
    """Raised when a task could not be delivered to its assigned worker."""
    pass


class SessionExhaustedError(OptimizerError):
    """Raised when a broker session has no tasks left to dispatch."""
    pass
