"""
Core data structures for the distclust algorithms.

This module provides the small containers exchanged between the solvers and
their callers: bounded nearest-neighbor lists, A* search records and the
typed results of the assignment and clustering solvers.
"""

from bisect import bisect_right
from dataclasses import dataclass
from typing import Any, Iterator, List, NamedTuple, Optional, Tuple


class Assignment(NamedTuple):
    """Result of the Hungarian solver.

    Unpacks as ``(cost, pairs)``; ``pairs`` holds one ``(row, col)`` per row,
    in row order.
    """
    cost: float
    pairs: List[Tuple[int, int]]

    def as_mapping(self) -> dict:
        """Row index -> column index."""
        return dict(self.pairs)


class AffinityPropagationResult(NamedTuple):
    """Result of affinity propagation: ``(prototypes, labels)``.

    ``labels[i]`` is the index of the prototype element of ``i``'s cluster.
    """
    prototypes: List[int]
    labels: List[int]


class KMedoidsResult(NamedTuple):
    """Result of k-medoids: ``(labels, clusters, medoids)``.

    ``labels[i]`` is the cluster number of element ``i``, ``clusters[c]``
    lists the ``(distance, index)`` members of cluster ``c`` by increasing
    distance to its medoid, and ``medoids[c]`` is the medoid's index.
    """
    labels: List[int]
    clusters: List[List[Tuple[float, int]]]
    medoids: List[int]


class ClassifResult(NamedTuple):
    """Outcome of a nearest-neighbor classification.

    ``class_id`` is the position of the class (or of the prototype), ``label``
    its key, ``distance`` the distance to ``prototype``, the nearest sample of
    the chosen class.
    """
    class_id: int
    label: Any
    distance: float
    prototype: Any


class NeighborList:
    """Bounded list of the ``k`` nearest neighbors of one element.

    Entries are ``(distance, index)`` pairs kept in ascending distance order.
    Equal distances keep their insertion order, and when the list is full a
    strictly closer candidate evicts the last (farthest, most recently
    inserted) entry. The last entry's distance is the k-distance.
    """

    __slots__ = ('k', '_distances', '_indices')

    def __init__(self, k: int):
        self.k = k
        self._distances: List[float] = []
        self._indices: List[int] = []

    def offer(self, distance: float, index: int) -> bool:
        """Insert ``(distance, index)`` if it belongs to the k nearest.

        Returns:
            True if the list changed
        """
        if len(self._distances) >= self.k:
            if not distance < self.k_distance:
                return False
            self._distances.pop()
            self._indices.pop()

        pos = bisect_right(self._distances, distance)
        self._distances.insert(pos, distance)
        self._indices.insert(pos, index)
        return True

    @property
    def k_distance(self) -> float:
        """Distance to the farthest kept neighbor (inf when empty)."""
        if not self._distances:
            return float('inf')
        return self._distances[-1]

    @property
    def distances(self) -> List[float]:
        return list(self._distances)

    @property
    def indices(self) -> List[int]:
        return list(self._indices)

    def __len__(self) -> int:
        return len(self._distances)

    def __iter__(self) -> Iterator[Tuple[float, int]]:
        return iter(zip(self._distances, self._indices))

    def __repr__(self) -> str:
        return f"NeighborList(k={self.k}, entries={list(self)})"


@dataclass
class AStarNode:
    """One record of the A* search arena.

    ``parent`` is the arena index of the node this one was reached from,
    or None for the start node.
    """
    node: Any
    cumul_cost: float = 0.0
    dist_to_end: float = 0.0
    total_cost: float = 0.0
    parent: Optional[int] = None
    closed: bool = False
