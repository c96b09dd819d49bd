"""Search and optimisation drivers: A* path finding and genetic algorithm."""

from .astar import astar
from .genetic import (
    GenerationStrategy,
    genetic,
    CrossOver,
    GenerationCounter,
    FitnessThreshold
)

__all__ = [
    'astar',
    'GenerationStrategy',
    'genetic',
    'CrossOver',
    'GenerationCounter',
    'FitnessThreshold'
]
