class StatisticalError(ValueError):
    """Base class for errors raised by the statistical analysis modules"""


class InsufficientDataError(StatisticalError):
    """Raised when a sample is too small or too degenerate for the computation"""


class InvalidInputError(StatisticalError):
    """Raised when arguments are out of range or structurally inconsistent"""
