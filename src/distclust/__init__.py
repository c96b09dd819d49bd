"""
distclust: clustering, assignment and search on distance matrices.

This package implements solvers that work from pairwise distances rather
than feature vectors, including:
- Hungarian (Kuhn-Munkres) assignment
- Affinity Propagation and k-medoids
- Spectral clustering with automatic scale selection
- LOF / LoOP outlier scores, batch and incremental
- Nearest-neighbor, k-NN and epsilon-neighbor classification
- A* path finding and a genetic algorithm driver

Example usage:
    >>> import torch
    >>> from distclust import pairwise_distances, affinity_propagation
    >>>
    >>> # Distances between sample points
    >>> X = torch.randn(200, 2)
    >>> D = pairwise_distances(X)
    >>>
    >>> # Exemplar based clustering
    >>> prototypes, labels = affinity_propagation(D, preference='medium')
"""

__version__ = '0.1.0'

# Import main algorithms
from .algorithms.hungarian import HungarianSolver, hungarian
from .algorithms.affinity_propagation import AffinityPropagation, Preference, affinity_propagation
from .algorithms.kmedoids import KMedoids, kmedoids
from .algorithms.spectral import SpectralClustering
from .outliers import (
    compute_lof,
    compute_loop,
    angular_outliers_e,
    angular_outliers_c,
    IterativeKNN
)
from .classify import nearest_neighbor, k_nearest_neighbors, epsilon_neighbors
from .search import (
    astar,
    genetic,
    GenerationStrategy,
    CrossOver,
    GenerationCounter,
    FitnessThreshold
)

# Convenience imports
from .distances import pairwise_distances, LazyDistanceMatrix
from .base import (
    Assignment,
    AffinityPropagationResult,
    KMedoidsResult,
    ClassifResult,
    NeighborList,
    AStarNode
)
from .exceptions import (
    DistClustError,
    InvalidArgumentError,
    DomainError,
    DimensionError,
    LogicError,
    NotFoundError,
    ConvergenceError
)

__all__ = [
    # Assignment and clustering
    'HungarianSolver',
    'hungarian',
    'AffinityPropagation',
    'Preference',
    'affinity_propagation',
    'KMedoids',
    'kmedoids',
    'SpectralClustering',

    # Outliers
    'compute_lof',
    'compute_loop',
    'angular_outliers_e',
    'angular_outliers_c',
    'IterativeKNN',

    # Classification
    'nearest_neighbor',
    'k_nearest_neighbors',
    'epsilon_neighbors',

    # Search
    'astar',
    'genetic',
    'GenerationStrategy',
    'CrossOver',
    'GenerationCounter',
    'FitnessThreshold',

    # Distances and results
    'pairwise_distances',
    'LazyDistanceMatrix',
    'Assignment',
    'AffinityPropagationResult',
    'KMedoidsResult',
    'ClassifResult',
    'NeighborList',
    'AStarNode',

    # Exceptions
    'DistClustError',
    'InvalidArgumentError',
    'DomainError',
    'DimensionError',
    'LogicError',
    'NotFoundError',
    'ConvergenceError',

    # Version
    '__version__'
]
