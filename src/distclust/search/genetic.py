"""
Genetic algorithm driver.

The population is a list of ``(fitness, genotype)`` pairs kept sorted by
ascending fitness: lower is better. Each generation pairs individuals in a
random order, breeds them and builds the next population according to a
:class:`GenerationStrategy`.
"""

from enum import Enum
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

import torch
from torch import Tensor

from ..base.interfaces import BreedingFunction, EvaluationFunction, StopFunction
from ..exceptions import DimensionError, InvalidArgumentError, LogicError
from ..utils.validation import check_random_state


Population = List[Tuple[float, Any]]


class GenerationStrategy(Enum):
    """How the next generation is built from parents and children.

    KEEP_BEST_PARENT: the children plus the single best parent.
    KEEP_BEST_PARENTS_AND_CHILDREN: the best individuals among parents and
    children.
    """
    KEEP_BEST_PARENT = 'keep_best_parent'
    KEEP_BEST_PARENTS_AND_CHILDREN = 'keep_best_parents_and_children'


def _fitness(individual: Tuple[float, Any]) -> float:
    return individual[0]


def _breeding_pairs(population: Population, order: List[int]) -> List[Tuple[int, int]]:
    """Pick the pairs of parents from a random order of the population.

    The order is walked two individuals at a time. When a third individual
    follows, the two fittest of the triple are bred and the least fit one
    takes the third slot, to be part of the next triple. An odd individual
    left at the end is not bred.
    """
    order = list(order)
    pairs = []
    pos = 0
    while pos + 1 < len(order):
        i1, i2 = order[pos], order[pos + 1]
        pos += 2
        if pos >= len(order):
            pairs.append((i1, i2))
            continue

        i3 = order[pos]
        f1, f2, f3 = population[i1][0], population[i2][0], population[i3][0]
        if f1 < f2:
            if f2 < f3:
                pairs.append((i1, i2))
            else:
                pairs.append((i1, i3))
                order[pos] = i2
        else:
            if f1 < f3:
                pairs.append((i1, i2))
            else:
                pairs.append((i2, i3))
                order[pos] = i1
    return pairs


def genetic(individuals: Sequence[Any],
            breed: BreedingFunction,
            evaluate: EvaluationFunction,
            stop: StopFunction,
            strategy: GenerationStrategy = GenerationStrategy.KEEP_BEST_PARENT,
            random_state: Optional[Union[int, torch.Generator]] = None,
            callback: Optional[Callable[[int, Population], None]] = None,
            verbose: int = 0) -> Population:
    """Evolve a population until ``stop`` is satisfied.

    Args:
        individuals: Initial genotypes
        breed: ``breed(a, b, generator) -> (child1, child2)``
        evaluate: ``evaluate(genotype) -> fitness``, lower is better
        stop: ``stop(population) -> bool``, checked before each generation
        strategy: How parents and children form the next generation
        random_state: Seed or generator for the pairing order, also passed
            to ``breed``
        callback: Called as ``callback(generation, population)`` after each
            generation
        verbose: Verbosity level

    Returns:
        The final population as ``(fitness, genotype)`` pairs, sorted by
        ascending fitness

    Raises:
        LogicError: If fewer than two individuals are given
    """
    generator = check_random_state(random_state)
    if generator is None:
        # Global torch RNG, seeded by torch.manual_seed
        generator = torch.default_generator

    population: Population = sorted(((float(evaluate(g)), g) for g in individuals),
                                    key=_fitness)
    if len(population) < 2:
        raise LogicError("At least two individuals are needed to breed.")

    generation = 0
    while not stop(population):
        n = len(population)
        order = torch.randperm(n, generator=generator).tolist()

        children: Population = []
        for i1, i2 in _breeding_pairs(population, order):
            child1, child2 = breed(population[i1][1], population[i2][1], generator)
            children.append((float(evaluate(child1)), child1))
            children.append((float(evaluate(child2)), child2))

        if strategy is GenerationStrategy.KEEP_BEST_PARENT:
            population = sorted(children + [population[0]], key=_fitness)[:n]
        else:
            population = sorted(population + children, key=_fitness)[:n]

        generation += 1
        if verbose >= 2 or (verbose >= 1 and generation % 10 == 0):
            print(f"Generation {generation:4d}: best fitness {population[0][0]:.6g}")
        if callback is not None:
            callback(generation, population)

    if verbose:
        print(f"Stopped after {generation} generations, "
              f"best fitness {population[0][0]:.6g}")
    return population


# ----------------------------------------------------------------------
# Breeding and stop helpers
# ----------------------------------------------------------------------

class CrossOver:
    """Single cut point crossover.

    The children swap the tails of the parents after a random cut position
    drawn in ``[0, len - 1]``.

    Raises:
        DimensionError: If the parents do not have the same length
        InvalidArgumentError: If the parents are empty
    """

    def __call__(self, a, b, generator: Optional[torch.Generator] = None):
        if len(a) != len(b):
            raise DimensionError("The individuals must have the same size.")
        size = len(a)
        if size == 0:
            raise InvalidArgumentError("The individuals must not be empty.")

        cut = int(torch.randint(0, size, (1,), generator=generator).item())
        if isinstance(a, Tensor):
            return torch.cat([a[:cut], b[cut:]]), torch.cat([b[:cut], a[cut:]])
        return a[:cut] + b[cut:], b[:cut] + a[cut:]


class GenerationCounter:
    """Stop predicate that lets ``n_generations`` generations run."""

    def __init__(self, n_generations: int):
        self.n_generations = n_generations
        self.count = 0

    def __call__(self, population: Population) -> bool:
        if self.count >= self.n_generations:
            return True
        self.count += 1
        return False


class FitnessThreshold:
    """Stop predicate: the best individual's fitness is below a threshold."""

    def __init__(self, threshold: float):
        self.threshold = threshold

    def __call__(self, population: Population) -> bool:
        return population[0][0] < self.threshold
