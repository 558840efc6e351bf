from typing import Optional


class PathError(Exception):
    """Base class for all errors raised by pathforge."""


class ParseError(PathError, ValueError):
    """
    Raised when path text cannot be parsed.

    Attributes:
        message: Human readable description of the problem.
        position: Character offset in the input where the problem was
                  detected, or None if it applies to the whole input.
    """

    def __init__(self, message: str, position: Optional[int] = None):
        self.message = message
        self.position = position
        if position is None:
            super().__init__(message)
        else:
            super().__init__(f"{message} (at position {position})")


class PreconditionError(PathError, ValueError):
    """
    Raised when an operation is called on input it does not accept, for
    example a boolean operation on an open path, or a curve parameter
    outside [0, 1].
    """


class NumericDegeneracyError(PathError, ArithmeticError):
    """
    Raised when a computation has no meaningful result for degenerate
    input, such as inverting a singular transform.
    """
