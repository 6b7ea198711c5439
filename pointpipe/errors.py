"""Exceptions raised by the pointpipe pipeline stages.

Each error subclasses the builtin exception a caller would otherwise expect
(``ValueError`` for bad arguments, ``OSError`` for filesystem problems) so
that existing ``except`` clauses keep working.
"""


class PointPipeError(Exception):
    """Base class for all pointpipe errors."""


class ShapeMismatch(PointPipeError, ValueError):
    """Two sequences that must be index-aligned have different lengths."""

    def __init__(self, what: str, expected: int, found: int):
        super().__init__(f"{what}: expected length {expected} but found {found}")
        self.expected = expected
        self.found = found


class UnknownReferenceSystem(PointPipeError, ValueError):
    """The code is not a recognized EPSG coordinate reference system."""

    def __init__(self, code, reason: str = ""):
        message = f"unknown reference system: {code!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.code = code


class UnsupportedTransform(PointPipeError, ValueError):
    """No transformation path exists between two reference systems."""

    def __init__(self, source: int, target: int, reason: str = ""):
        message = f"cannot transform EPSG:{source} -> EPSG:{target}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.source = source
        self.target = target


class UnsupportedAttribute(PointPipeError, ValueError):
    """An attribute cannot be stored by the requested file format."""


class EmptyDataset(PointPipeError, ValueError):
    """An empty point set was given to an operation that needs points."""


class IOFailure(PointPipeError, OSError):
    """Reading or writing a file on disk failed."""
