"""
Lazily evaluated distance matrix.

Distances between elements of a population are computed on first access and
cached, so solvers that only look at part of the matrix avoid paying for all
of it.
"""

from typing import Any, Callable, Optional, Sequence, Tuple
import torch
from torch import Tensor


class LazyDistanceMatrix:
    """Symmetric distance matrix computed on demand.

    Parameters
    ----------
    data : sequence
        The population
    distance : callable
        ``distance(a, b) -> float``, assumed symmetric
    device : torch.device, optional
        Device of the cached matrix

    Examples
    --------
    >>> words = ['cat', 'cart', 'dog']
    >>> lazy = LazyDistanceMatrix(words, edit_distance)
    >>> lazy[0, 1]           # computed now
    1.0
    >>> lazy.n_computed
    1
    >>> D = lazy.to_tensor()  # computes the remaining pairs
    """

    def __init__(self, data: Sequence[Any], distance: Callable[[Any, Any], float],
                 device: Optional[torch.device] = None):
        self.data = data
        self.distance = distance
        n = len(data)
        self._matrix = torch.zeros(n, n, dtype=torch.float64, device=device)
        self._cached = torch.eye(n, dtype=torch.bool, device=device)
        self._n_computed = 0

    def at(self, i: int, j: int) -> float:
        """Distance between elements ``i`` and ``j``.

        No bound check is performed beyond the one of the underlying tensor.
        """
        if not self._cached[i, j]:
            d = float(self.distance(self.data[i], self.data[j]))
            self._matrix[i, j] = d
            self._matrix[j, i] = d
            self._cached[i, j] = True
            self._cached[j, i] = True
            self._n_computed += 1
        return self._matrix[i, j].item()

    def __getitem__(self, index: Tuple[int, int]) -> float:
        i, j = index
        return self.at(i, j)

    def to_tensor(self) -> Tensor:
        """The fully computed (n, n) distance matrix."""
        n = len(self)
        for i in range(n):
            for j in range(i + 1, n):
                if not self._cached[i, j]:
                    self.at(i, j)
        return self._matrix.clone()

    @property
    def shape(self) -> Tuple[int, int]:
        n = len(self)
        return (n, n)

    @property
    def n_computed(self) -> int:
        """Number of distinct pairs evaluated so far."""
        return self._n_computed

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        n = len(self)
        return f"LazyDistanceMatrix(n={n}, computed={self._n_computed}/{n * (n - 1) // 2})"
