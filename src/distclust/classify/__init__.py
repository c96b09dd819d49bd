"""Nearest-neighbor classification of a sample against labelled samples."""

from .neighbors import nearest_neighbor, k_nearest_neighbors, epsilon_neighbors

__all__ = [
    'nearest_neighbor',
    'k_nearest_neighbors',
    'epsilon_neighbors'
]
