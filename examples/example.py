"""
Merge five points with Ward linkage, always picking the closest pair.

Needs scipy for the initial distances: pip install -e .[examples]
"""

from itertools import combinations

from scipy.spatial.distance import pdist

from condensed_linkage.linkage import LanceWilliamsLinkage

if __name__ == "__main__":
    # Example dataset
    X = [
        [1.0, 0.0],
        [9.0, 1.0],
        [1.0, 1.0],
        [6.0, 2.0],
        [5.0, 6.0],
    ]

    # Ward expects squared Euclidean distances
    strategy = LanceWilliamsLinkage(pdist(X, "sqeuclidean"), linkage="ward")

    # Merge the closest pair until one cluster is left
    while len(strategy.active_clusters()) > 1:
        dist, i, j = min((strategy.distance(a, b), a, b)
                         for a, b in combinations(strategy.active_clusters().tolist(), 2))
        keep = strategy.merge(i, j)
        print(f"Merged {i} and {j} at {dist:.3f} -> cluster {keep} of size {strategy.count(keep)}")
