"""Distance matrix construction and helpers."""

from .matrix import (
    pairwise_distances,
    off_diagonal,
    off_diagonal_median,
    max_distance,
    nth_neighbor_distances
)
from .lazy import LazyDistanceMatrix

__all__ = [
    'pairwise_distances',
    'off_diagonal',
    'off_diagonal_median',
    'max_distance',
    'nth_neighbor_distances',
    'LazyDistanceMatrix'
]
