"""
Errors raised by the condensed matrix store and the linkage strategies.

All of them derive from ValueError, which is what callers of the clustering
routines already catch for bad arguments.
"""

__all__ = [
    "LinkageError",
    "MalformedMatrix",
    "InvalidClusterReference",
    "StaleClusterReference",
]


class LinkageError(ValueError):
    """Base class for every error raised by this package."""


class MalformedMatrix(LinkageError):
    """The packed entries do not describe a condensed distance matrix."""


class InvalidClusterReference(LinkageError):
    """A cluster identifier is out of range, or a pair repeats the same identifier."""


class StaleClusterReference(LinkageError):
    """A cluster identifier was already folded into another cluster by a prior merge."""
