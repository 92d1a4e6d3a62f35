"""
Condensed (packed) storage for a symmetric distance matrix with a zero diagonal.

An n x n dissimilarity matrix only carries n(n-1)/2 distinct values: the diagonal
is zero and d(i, j) == d(j, i). The values are kept in a flat float32 array, the
columns of the strictly-lower triangle packed one after another:

    [ d(1,0), d(2,0), ..., d(n-1,0), d(2,1), ..., d(n-1,1), ..., d(n-1,n-2) ]

which is the same ordering scipy.spatial.distance.pdist produces. Single precision
halves the memory of an O(n^2) structure; the values are approximate anyway.

Doxygen-style docstrings are used (with @param / @return tags).
"""

import logging
import math
from typing import Union

import numpy as np

from .exceptions import InvalidClusterReference, MalformedMatrix

__all__ = [
    "DTYPE",
    "condensed_size",
    "condensed_index",
    "CondensedMatrix",
]

logger = logging.getLogger(__name__)

DTYPE = np.float32

IndexLike = Union[int, np.ndarray]


def condensed_size(length: int) -> int:
    """
    Number of points described by a condensed matrix of the given length.

    Solves size * (size - 1) / 2 == length for a positive integer.

    @param length: number of packed entries
    @return: the matrix size
    @raises MalformedMatrix: if length is not a triangular number
    """
    if length < 0:
        raise MalformedMatrix(f"Condensed matrix length must be non-negative, got {length}.")
    size = (1 + math.isqrt(1 + 8 * length)) // 2
    if size * (size - 1) // 2 != length:
        raise MalformedMatrix(
            f"Length {length} is not a triangular number; "
            "it does not describe a condensed distance matrix."
        )
    return size


def condensed_index(size: int, i: IndexLike, j: IndexLike) -> IndexLike:
    """
    Slot of the unordered pair (i, j) in a condensed matrix of the given size.

    The slot is the total length minus the entries held by column min(i, j) and
    every column after it, plus the row offset inside that column.
    Works on scalars and, elementwise, on integer arrays.

    @param size: matrix size
    @param i: first index (i != j)
    @param j: second index
    @return: offset into the packed array
    """
    lo = np.minimum(i, j)
    hi = np.maximum(i, j)
    length = size * (size - 1) // 2
    return length - (size - lo) * (size - lo - 1) // 2 + (hi - lo - 1)


class CondensedMatrix:
    """
    Symmetric, zero-diagonal distance matrix stored in condensed form.

    The store knows nothing about clusters: every index in [0, size) stays
    addressable for the lifetime of the object, and the size never changes.
    """

    def __init__(self, entries, copy: bool = False):
        """
        @param entries: 1D array-like of length n(n-1)/2. A float32 ndarray is used
                        as is (the caller's buffer is updated by merges) unless copy
                        is True; anything else is converted.
        @param copy: always work on a private copy of the entries
        @raises MalformedMatrix: if entries is not 1D or its length is not triangular
        """
        entries = np.asarray(entries, dtype=DTYPE)
        if entries.ndim != 1:
            raise MalformedMatrix(
                f"Condensed matrix must be one-dimensional, got shape {entries.shape}."
            )
        self._size = condensed_size(entries.shape[0])
        self.entries = entries.copy() if copy else entries
        logger.debug("Condensed matrix of size %d (%d entries)", self._size, entries.shape[0])

    @classmethod
    def from_dense(cls, matrix) -> "CondensedMatrix":
        """
        Pack a square symmetric matrix. The diagonal is ignored.

        @param matrix: 2D array-like, shape (n, n)
        @return: a new CondensedMatrix of size n
        @raises MalformedMatrix: if the matrix is not square or not symmetric
        """
        D = np.asarray(matrix, dtype=float)
        if D.ndim != 2 or D.shape[0] != D.shape[1]:
            raise MalformedMatrix(f"Dense distance matrix must be square, got shape {D.shape}.")
        if not np.allclose(D, D.T):
            raise MalformedMatrix("Dense distance matrix must be symmetric.")
        rows, cols = np.triu_indices(D.shape[0], k=1)
        return cls(D[rows, cols].astype(DTYPE))

    @property
    def size(self) -> int:
        """Number of indexable points; does not shrink as clusters merge."""
        return self._size

    def check_index(self, i) -> None:
        """
        @param i: cluster index
        @raises InvalidClusterReference: if i is not an integer in [0, size)
        """
        if not isinstance(i, (int, np.integer)) or isinstance(i, bool):
            raise InvalidClusterReference(f"Cluster index must be an integer, got {i!r}.")
        if not 0 <= i < self._size:
            raise InvalidClusterReference(
                f"Cluster index {i} is out of range [0, {self._size})."
            )

    def check_pair(self, i: int, j: int) -> None:
        """
        @param i: cluster index
        @param j: cluster index
        @raises InvalidClusterReference: if either index is invalid or i == j
        """
        self.check_index(i)
        self.check_index(j)
        if i == j:
            raise InvalidClusterReference(
                f"Pair ({i}, {j}) refers to the diagonal, which is not stored."
            )

    def _as_row(self, i: int, others) -> np.ndarray:
        self.check_index(i)
        others = np.asarray(others)
        if others.size == 0:
            return others.astype(np.intp)
        if not np.issubdtype(others.dtype, np.integer):
            raise InvalidClusterReference(
                f"Cluster indices must be integers, got dtype {others.dtype}."
            )
        if others.min() < 0 or others.max() >= self._size:
            raise InvalidClusterReference(
                f"Cluster indices must lie in [0, {self._size})."
            )
        if np.any(others == i):
            raise InvalidClusterReference(f"Row of {i} cannot include {i} itself.")
        return others.astype(np.intp)

    def index(self, i: int, j: int) -> int:
        """Offset of the pair (i, j) in entries."""
        self.check_pair(i, j)
        return int(condensed_index(self._size, i, j))

    def distance(self, i: int, j: int) -> float:
        """
        Dissimilarity between i and j. distance(i, j) == distance(j, i).

        @raises InvalidClusterReference: if i == j or either index is out of range
        """
        return float(self.entries[self.index(i, j)])

    def set_distance(self, i: int, j: int, value: float) -> None:
        """
        Overwrite the dissimilarity of the unordered pair (i, j).

        @raises InvalidClusterReference: if i == j or either index is out of range
        """
        self.entries[self.index(i, j)] = value

    def distances(self, i: int, others) -> np.ndarray:
        """
        Dissimilarities between i and each index in others.

        @param i: row index
        @param others: 1D integer array-like, none equal to i
        @return: float32 array shaped like others
        """
        others = self._as_row(i, others)
        return self.entries[condensed_index(self._size, i, others)]

    def set_distances(self, i: int, others, values) -> None:
        """
        Overwrite the dissimilarities between i and each index in others.

        @param i: row index
        @param others: 1D integer array-like, none equal to i
        @param values: scalar or array broadcastable to others
        """
        others = self._as_row(i, others)
        self.entries[condensed_index(self._size, i, others)] = values

    def to_dense(self) -> np.ndarray:
        """
        @return: float32 array shape (size, size), symmetric with a zero diagonal
        """
        D = np.zeros((self._size, self._size), dtype=DTYPE)
        rows, cols = np.triu_indices(self._size, k=1)
        D[rows, cols] = self.entries
        D[cols, rows] = self.entries
        return D

    def __repr__(self) -> str:
        return f"CondensedMatrix(size={self._size})"
