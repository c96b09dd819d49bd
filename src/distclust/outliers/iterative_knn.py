"""
Incremental k-nearest-neighbor graph.

Elements are appended one at a time; the k nearest neighbors of every
element are kept up to date so that LOF and LoOP scores can be queried at
any point. ``fast_add`` trades exactness for speed on large populations by
exploring the graph from a few evenly spaced seeds.
"""

import heapq
from typing import Generic, List, Set, Tuple

import torch
from torch import Tensor

from ..base.data_structures import NeighborList
from ..base.interfaces import DistanceFunction, T
from ..exceptions import DimensionError, DomainError
from .lof import _lof_scores, _loop_scores


class IterativeKNN(Generic[T]):
    """Nearest-neighbor lists maintained under insertion.

    Parameters
    ----------
    neighborhood : int
        Size k of the neighborhood (> 1)
    distance : callable
        ``distance(a, b) -> float``, assumed symmetric
    fast_min : int, default=50
        Population size below which ``fast_add`` performs an exact update
    fast_factor : int, default=10
        One seed every ``fast_factor`` elements in ``fast_add``
    fast_max : int, default=100
        Maximal number of seeds in ``fast_add``

    Examples
    --------
    >>> knn = IterativeKNN(3, lambda a, b: abs(a - b))
    >>> for x in [0.0, 0.1, 0.2, 0.3, 5.0]:
    ...     knn.add(x)
    >>> scores = knn.lof()
    """

    def __init__(self, neighborhood: int, distance: DistanceFunction,
                 fast_min: int = 50, fast_factor: int = 10, fast_max: int = 100):
        if neighborhood <= 1:
            raise DomainError(f"The neighborhood must be > 1, got {neighborhood}.")
        self.k = neighborhood
        self.distance = distance
        self.fast_min = fast_min
        self.fast_factor = fast_factor
        self.fast_max = fast_max

        self._data: List[T] = []
        self._neighbors: List[NeighborList] = []
        self.n_distance_calls_ = 0

    def add(self, value: T) -> None:
        """Append an element, comparing it with every previous element."""
        new = self._append(value)
        for el in range(new):
            self._visit(el, new)

    def fast_add(self, value: T) -> None:
        """Append an element, comparing it with a subset of the population.

        Below ``fast_min`` elements this is :meth:`add`. Otherwise the search
        starts from evenly spaced seeds and spreads to the neighbors of every
        element whose list, or the new element's list, was improved.
        """
        if len(self) + 1 < self.fast_min:
            self.add(value)
            return

        new = self._append(value)
        if new == 0:
            return

        n_seeds = min((new - 1) // self.fast_factor + 1, self.fast_max)
        to_visit = sorted({(t * (new - 1)) // n_seeds for t in range(n_seeds)})
        queued: Set[int] = set(to_visit)
        heapq.heapify(to_visit)

        while to_visit:
            el = heapq.heappop(to_visit)
            candidates = self._neighbors[el].indices
            if self._visit(el, new):
                for other in candidates:
                    if other != new and other not in queued:
                        queued.add(other)
                        heapq.heappush(to_visit, other)

    def _append(self, value: T) -> int:
        self._data.append(value)
        self._neighbors.append(NeighborList(self.k))
        return len(self._data) - 1

    def _visit(self, el: int, new: int) -> bool:
        """Offer the distance between ``el`` and ``new`` to both lists.

        Returns:
            True if either list changed
        """
        d = float(self.distance(self._data[new], self._data[el]))
        self.n_distance_calls_ += 1
        improved_new = self._neighbors[new].offer(d, el)
        improved_old = self._neighbors[el].offer(d, new)
        return improved_new or improved_old

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    def _table(self, context: str) -> Tuple[Tensor, Tensor, Tensor]:
        n = len(self)
        if n < self.k:
            raise DimensionError(f"{context}: {n} elements is less than the "
                                 f"neighborhood ({self.k}).")

        dist = torch.full((n, self.k), float('inf'), dtype=torch.float64)
        idx = torch.zeros(n, self.k, dtype=torch.long)
        mask = torch.zeros(n, self.k, dtype=torch.bool)
        for i, neighbors in enumerate(self._neighbors):
            m = len(neighbors)
            if m:
                dist[i, :m] = torch.tensor(neighbors.distances, dtype=torch.float64)
                idx[i, :m] = torch.tensor(neighbors.indices, dtype=torch.long)
                mask[i, :m] = True
        return dist, idx, mask

    def lof(self) -> List[float]:
        """Local Outlier Factor of every element.

        Raises:
            DimensionError: If there are fewer elements than the neighborhood
        """
        return _lof_scores(*self._table('IterativeKNN.lof')).tolist()

    def loop(self, lambda_: float) -> List[float]:
        """Local Outlier Probability of every element.

        Raises:
            DomainError: If lambda_ <= 0
            DimensionError: If there are fewer elements than the neighborhood
        """
        if lambda_ <= 0:
            raise DomainError(f"lambda must be > 0, got {lambda_}.")
        return _loop_scores(*self._table('IterativeKNN.loop'), lambda_).tolist()

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def neighbors(self, index: int) -> List[Tuple[float, int]]:
        """``(distance, index)`` pairs of the nearest neighbors of an element."""
        return list(self._neighbors[index])

    def __getitem__(self, index: int) -> T:
        return self._data[index]

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"IterativeKNN(k={self.k}, n_elements={len(self)})"
