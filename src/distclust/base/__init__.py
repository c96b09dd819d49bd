"""Base classes, interfaces and data structures for distclust."""

from .interfaces import (
    ConvergenceCriterion,
    DistanceFunction,
    StepCostFunction,
    HeuristicFunction,
    NeighborFunction,
    BreedingFunction,
    EvaluationFunction,
    StopFunction,
    is_hashable
)

from .data_structures import (
    Assignment,
    AffinityPropagationResult,
    KMedoidsResult,
    ClassifResult,
    NeighborList,
    AStarNode
)

__all__ = [
    # Interfaces
    'ConvergenceCriterion',
    'DistanceFunction',
    'StepCostFunction',
    'HeuristicFunction',
    'NeighborFunction',
    'BreedingFunction',
    'EvaluationFunction',
    'StopFunction',
    'is_hashable',

    # Data structures
    'Assignment',
    'AffinityPropagationResult',
    'KMedoidsResult',
    'ClassifResult',
    'NeighborList',
    'AStarNode'
]
