"""
Error taxonomy for devogrow.

Every error is raised eagerly, before any body or controller is built.
All derive from ValueError so callers that already catch configuration
errors keep working.
"""


class DevelopmentError(ValueError):
    """Base class for all development errors."""


class GenotypeSizeMismatch(DevelopmentError):
    """Genotype length or shape differs from what the mapper expects."""

    def __init__(self, expected, actual, what: str = "values"):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Wrong number of {what}: {expected} expected, {actual} found")


class InvalidTarget(DevelopmentError):
    """Target body cannot be used to bind a mapper."""


class InvalidPreviousState(DevelopmentError):
    """Previous stage does not carry the development state this strategy needs."""


class DimensionMismatch(DevelopmentError):
    """A controller function's arity disagrees with what the body requires."""

    def __init__(self, found: int, expected: int, what: str = "input"):
        self.found = found
        self.expected = expected
        self.what = what
        super().__init__(
            f"Wrong number of function {what} args: {expected} expected, {found} found"
        )
