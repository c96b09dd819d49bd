# tests/test_genetic.py
"""
Genetic algorithm driver and its helpers.
"""

from __future__ import annotations

import pytest

try:
    import torch
except Exception:  # pragma: no cover
    torch = None  # type: ignore

from distclust.search import (
    CrossOver,
    FitnessThreshold,
    GenerationCounter,
    GenerationStrategy,
    genetic,
)
from distclust.search.genetic import _breeding_pairs
from distclust.exceptions import DimensionError, InvalidArgumentError, LogicError


pytestmark = pytest.mark.skipif(torch is None, reason="PyTorch is required for these tests")


TARGET = [1, 0, 1, 1, 0, 0, 1, 0, 1, 1]


def _hamming(genotype):
    return float(sum(a != b for a, b in zip(genotype, TARGET)))


def _mutating_crossover(a, b, generator):
    c1, c2 = CrossOver()(a, b, generator)
    pos = int(torch.randint(0, len(c1), (1,), generator=generator).item())
    c1 = list(c1)
    c1[pos] = 1 - c1[pos]
    return c1, list(c2)


def _initial_population(n, seed=0):
    g = torch.Generator().manual_seed(seed)
    return [torch.randint(0, 2, (len(TARGET),), generator=g).tolist() for _ in range(n)]


def test_needs_two_individuals():
    with pytest.raises(LogicError):
        genetic([[0, 1]], _mutating_crossover, _hamming, GenerationCounter(3))


@pytest.mark.parametrize("strategy", list(GenerationStrategy))
@pytest.mark.parametrize("size", [6, 7])
def test_population_size_is_constant_and_sorted(strategy, size):
    sizes = []

    def record(generation, population):
        sizes.append(len(population))
        fitness = [f for f, _ in population]
        assert fitness == sorted(fitness)

    population = genetic(
        _initial_population(size), _mutating_crossover, _hamming,
        GenerationCounter(15), strategy=strategy, random_state=0, callback=record,
    )
    assert sizes == [size] * 15
    assert len(population) == size


@pytest.mark.parametrize("strategy", list(GenerationStrategy))
def test_best_fitness_never_gets_worse(strategy):
    best = []
    population = genetic(
        _initial_population(10), _mutating_crossover, _hamming,
        GenerationCounter(40), strategy=strategy, random_state=1,
        callback=lambda generation, population: best.append(population[0][0]),
    )
    assert all(b <= a for a, b in zip(best, best[1:]))
    assert population[0][0] == best[-1]
    assert population[0][0] == _hamming(population[0][1])


def test_fitness_threshold_stops_on_solution():
    threshold = FitnessThreshold(0.5)
    counter = GenerationCounter(500)
    population = genetic(
        _initial_population(20), _mutating_crossover, _hamming,
        lambda pop: threshold(pop) or counter(pop),
        strategy=GenerationStrategy.KEEP_BEST_PARENTS_AND_CHILDREN,
        random_state=2,
    )
    assert population[0][0] == 0.0
    assert population[0][1] == TARGET

    assert threshold([(0.0, "x"), (3.0, "y")]) is True
    assert threshold([(1.0, "x"), (3.0, "y")]) is False


def test_deterministic_with_seed():
    kwargs = dict(strategy=GenerationStrategy.KEEP_BEST_PARENT, random_state=5)
    a = genetic(_initial_population(8), _mutating_crossover, _hamming, GenerationCounter(10), **kwargs)
    b = genetic(_initial_population(8), _mutating_crossover, _hamming, GenerationCounter(10), **kwargs)
    assert a == b


def test_generation_counter():
    stop = GenerationCounter(2)
    assert [stop([]) for _ in range(4)] == [False, False, True, True]
    assert GenerationCounter(0)([]) is True


def test_breeding_pairs_keep_least_fit_for_next_triple():
    population = [(0.0, "a"), (1.0, "b"), (2.0, "c"), (3.0, "d")]
    # Triple (d, c, a): a and c are bred, d moves on to meet b
    assert _breeding_pairs(population, [3, 2, 0, 1]) == [(2, 0), (3, 1)]
    # Triple (a, c, d): a and c are bred, d is left over with no partner
    assert _breeding_pairs(population[:3] + [(3.0, "d")], [0, 2, 3]) == [(0, 2)]
    # Two individuals are always bred together
    assert _breeding_pairs(population[:2], [1, 0]) == [(1, 0)]


def test_crossover():
    g = torch.Generator().manual_seed(0)
    a, b = [0] * 8, [1] * 8
    for _ in range(20):
        c1, c2 = CrossOver()(a, b, g)
        assert len(c1) == len(c2) == 8
        assert [x + y for x, y in zip(c1, c2)] == [1] * 8
        # child1 is a prefix of a followed by a suffix of b
        cut = c1.index(1) if 1 in c1 else 8
        assert c1 == [0] * cut + [1] * (8 - cut)

    t1, t2 = CrossOver()(torch.zeros(5), torch.ones(5), g)
    assert torch.equal(t1 + t2, torch.ones(5))

    with pytest.raises(DimensionError):
        CrossOver()([1, 2], [1, 2, 3], g)
    with pytest.raises(InvalidArgumentError):
        CrossOver()([], [], g)
