class LTIError(Exception):
    """Base class for all exceptions raised by the transfer-function algebra."""

    pass


class InvalidConstructionError(ValueError, LTIError):
    """
    Raised when a transfer function (or one of its derived quantities) cannot be
    built, e.g. dividing by the zero transfer function, a zero denominator, an
    invalid timestep, or a residue denominator that vanishes during
    partial-fraction expansion.
    Inherits from ValueError so callers can treat it as a bad argument.
    """

    pass


class EvaluationSingularityError(ZeroDivisionError, LTIError):
    """
    Raised when a transfer function is evaluated exactly at one of its poles.
    """

    pass


class RootFindingError(ArithmeticError, LTIError):
    """
    Raised when the roots of a symbolic polynomial cannot be expressed in closed form.
    """

    pass
