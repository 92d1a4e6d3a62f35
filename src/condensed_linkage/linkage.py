"""
Lance–Williams distance updates for agglomerative clustering on a condensed matrix.

After clusters i and j merge, the dissimilarity of the merged cluster to any other
cluster k follows from the pre-merge distances and the cluster sizes alone:

    d(i u j, k) = a_i d(i,k) + a_j d(j,k) + b d(i,j) + g |d(i,k) - d(j,k)|

The coefficients depend on the linkage criterion. Supported linkages:
    - 'single', 'complete', 'average', 'weighted' (McQuitty),
      'centroid', 'median', 'ward'

'centroid', 'median' and 'ward' have their geometric meaning when the matrix holds
squared Euclidean distances.

Which pair to merge next is left to the caller; LanceWilliamsLinkage only rewrites
the matrix in place.
"""

import logging
from enum import Enum
from typing import List, Tuple, Union

import numpy as np

from .condensed import CondensedMatrix
from .exceptions import StaleClusterReference

__all__ = [
    "Linkage",
    "lance_williams_coefficients",
    "lance_williams_update",
    "LanceWilliamsLinkage",
]

logger = logging.getLogger(__name__)


class Linkage(str, Enum):
    """
    Linkage criteria with a Lance–Williams update. Members compare equal to their
    names, so 'ward' and Linkage.WARD are interchangeable.
    """

    SINGLE = "single"
    COMPLETE = "complete"
    AVERAGE = "average"
    WEIGHTED = "weighted"
    CENTROID = "centroid"
    MEDIAN = "median"
    WARD = "ward"

    @classmethod
    def parse(cls, value: Union["Linkage", str]) -> "Linkage":
        """
        @param value: a Linkage or its name, case-insensitive
        @return: the matching Linkage
        @raises ValueError: for unknown names
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError("Unsupported linkage: " + str(value)) from None


Size = Union[int, np.ndarray]


def lance_williams_coefficients(linkage: Union[Linkage, str],
                                size_i: int, size_j: int,
                                size_k: Size = 1) -> Tuple[Size, Size, Size, float]:
    """
    Coefficients (alpha_i, alpha_j, beta, gamma) of the Lance–Williams recurrence.

    Only 'ward' depends on size_k; pass an array to get one set of coefficients per k.

    @param linkage: linkage criterion
    @param size_i: size of cluster i
    @param size_j: size of cluster j
    @param size_k: size(s) of the other cluster(s) k
    @return: tuple (alpha_i, alpha_j, beta, gamma)
    """
    linkage = Linkage.parse(linkage)
    if linkage is Linkage.SINGLE:
        return 0.5, 0.5, 0.0, -0.5
    elif linkage is Linkage.COMPLETE:
        return 0.5, 0.5, 0.0, 0.5
    elif linkage is Linkage.AVERAGE:
        return size_i / (size_i + size_j), size_j / (size_i + size_j), 0.0, 0.0
    elif linkage is Linkage.WEIGHTED:
        return 0.5, 0.5, 0.0, 0.0
    elif linkage is Linkage.CENTROID:
        alpha_i = size_i / (size_i + size_j)
        alpha_j = size_j / (size_i + size_j)
        return alpha_i, alpha_j, -alpha_i * alpha_j, 0.0
    elif linkage is Linkage.MEDIAN:
        return 0.5, 0.5, -0.25, 0.0
    else:
        size_k = np.asarray(size_k, dtype=float)
        total = size_i + size_j + size_k
        return (size_i + size_k) / total, (size_j + size_k) / total, -size_k / total, 0.0


def lance_williams_update(linkage: Union[Linkage, str],
                          d_ik, d_jk, d_ij: float,
                          size_i: int, size_j: int, size_k: Size = 1):
    """
    Distance from the merged cluster i u j to cluster(s) k.

    @param linkage: linkage criterion
    @param d_ik: distance(s) between cluster i and k (scalar or array)
    @param d_jk: distance(s) between cluster j and k, shaped like d_ik
    @param d_ij: distance between cluster i and j
    @param size_i: size of cluster i
    @param size_j: size of cluster j
    @param size_k: size(s) of cluster k, shaped like d_ik (only used by 'ward')
    @return: updated distance(s) d(i u j, k), in float64
    """
    linkage = Linkage.parse(linkage)
    d_ik = np.asarray(d_ik, dtype=float)
    d_jk = np.asarray(d_jk, dtype=float)
    # the general form rounds; min/max are exact
    if linkage is Linkage.SINGLE:
        return np.minimum(d_ik, d_jk)
    if linkage is Linkage.COMPLETE:
        return np.maximum(d_ik, d_jk)

    alpha_i, alpha_j, beta, gamma = lance_williams_coefficients(linkage, size_i, size_j, size_k)
    d_new = alpha_i * d_ik + alpha_j * d_jk + beta * float(d_ij)
    if gamma:
        d_new = d_new + gamma * np.abs(d_ik - d_jk)
    return d_new


class LanceWilliamsLinkage:
    """
    Merges clusters of a CondensedMatrix in place.

    Cluster i starts as observation i with one member. merge(i, j) keeps the lower
    identifier for the merged cluster; the higher one goes inactive and its row of
    the matrix is stale from then on. Callers pick the pairs.
    """

    def __init__(self,
                 matrix: Union[CondensedMatrix, np.ndarray, List[float]],
                 linkage: Union[Linkage, str] = Linkage.SINGLE,
                 strict: bool = __debug__):
        """
        @param matrix: CondensedMatrix, or packed distances to wrap in one
        @param linkage: linkage criterion
        @param strict: reject merges that name an inactive cluster
        """
        if not isinstance(matrix, CondensedMatrix):
            matrix = CondensedMatrix(matrix)
        self.matrix = matrix
        self.linkage = Linkage.parse(linkage)
        self.strict = strict
        n = matrix.size
        self.sizes = np.ones(n, dtype=np.int64)
        self.active = np.ones(n, dtype=bool)
        logger.debug("%s linkage over %d points (strict=%s)", self.linkage.value, n, strict)

    @property
    def size(self) -> int:
        """Number of cluster identifiers, merged-away ones included."""
        return self.matrix.size

    def distance(self, i: int, j: int) -> float:
        """
        @param i: cluster id
        @param j: cluster id, j != i
        @return: current dissimilarity between clusters i and j
        """
        return self.matrix.distance(i, j)

    def count(self, i: int) -> int:
        """Number of observations in cluster i (0 once i has been merged away)."""
        self.matrix.check_index(i)
        return int(self.sizes[i])

    def is_active(self, i: int) -> bool:
        """
        @param i: cluster id
        @return: False once i has been merged into another cluster
        """
        self.matrix.check_index(i)
        return bool(self.active[i])

    def active_clusters(self) -> np.ndarray:
        """Identifiers that have not been merged away, ascending."""
        return np.flatnonzero(self.active)

    def merge(self, i: int, j: int) -> int:
        """
        Merge clusters i and j and update their distance to every other active cluster.

        Nothing is written until all checks and all new distances are done, so a
        failing call leaves the matrix and the sizes as they were.

        @param i: cluster id
        @param j: cluster id, j != i
        @return: id of the merged cluster, min(i, j)
        @raises InvalidClusterReference: if i == j or either id is out of range
        @raises StaleClusterReference: in strict mode, if i or j was merged away already
        """
        self.matrix.check_pair(i, j)
        i, j = int(i), int(j)
        if self.strict:
            for c in (i, j):
                if not self.active[c]:
                    raise StaleClusterReference(
                        f"Cluster {c} was already merged into another cluster."
                    )

        keep, drop = (i, j) if i < j else (j, i)
        size_i = int(self.sizes[i])
        size_j = int(self.sizes[j])

        act_idx = np.flatnonzero(self.active)
        others = act_idx[(act_idx != i) & (act_idx != j)]

        d_ik = self.matrix.distances(i, others)
        d_jk = self.matrix.distances(j, others)
        d_ij = self.matrix.distance(i, j)
        d_new = lance_williams_update(self.linkage, d_ik, d_jk, d_ij,
                                      size_i, size_j, self.sizes[others])

        self.matrix.set_distances(keep, others, d_new)
        self.sizes[keep] = size_i + size_j
        self.sizes[drop] = 0
        self.active[drop] = False

        logger.debug("Merged %d and %d into %d (size %d, %d clusters left)",
                     i, j, keep, size_i + size_j, others.size + 1)
        return keep

    def __repr__(self) -> str:
        return (f"LanceWilliamsLinkage(linkage={self.linkage.value!r}, size={self.size}, "
                f"active={int(self.active.sum())})")
