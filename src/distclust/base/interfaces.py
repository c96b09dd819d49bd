"""
Core interfaces shared by the distclust algorithms.

Iterative solvers delegate their stopping rule to a ConvergenceCriterion.
User-supplied strategies (distances, step costs, breeding, evaluation) are
plain callables; the aliases below document their expected signatures.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Hashable, List, Tuple, TypeVar

import torch


T = TypeVar('T')

# distance(a, b) -> float
DistanceFunction = Callable[[Any, Any], float]

# step_cost(a, b) -> float, heuristic(a, goal) -> float, neighbors(a) -> [b, ...]
StepCostFunction = Callable[[Any, Any], float]
HeuristicFunction = Callable[[Any, Any], float]
NeighborFunction = Callable[[Any], List[Any]]

# breed(a, b, generator) -> (child1, child2), evaluate(g) -> fitness,
# stop(population) -> bool
BreedingFunction = Callable[[Any, Any, torch.Generator], Tuple[Any, Any]]
EvaluationFunction = Callable[[Any], float]
StopFunction = Callable[[List[Tuple[float, Any]]], bool]


class ConvergenceCriterion(ABC):
    """Abstract base class for convergence checking."""

    def __init__(self):
        self.history = []

    @abstractmethod
    def check(self, current_state: Dict[str, Any]) -> bool:
        """Check if algorithm has converged.

        Args:
            current_state: Dictionary containing current algorithm state

        Returns:
            True if converged, False otherwise
        """
        pass

    def reset(self):
        """Reset convergence history."""
        self.history = []


def is_hashable(value: Any) -> bool:
    """Whether ``value`` can be used as a dict key."""
    if not isinstance(value, Hashable):
        return False
    try:
        hash(value)
    except TypeError:
        # tuples holding lists pass the isinstance check
        return False
    return True
