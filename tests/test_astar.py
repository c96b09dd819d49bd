# tests/test_astar.py
"""
A* path finding on small explicit graphs.
"""

from __future__ import annotations

import pytest

from distclust.search import astar
from distclust.exceptions import NotFoundError

from data_gen import make_grid_graph


def _zero(a, b):
    return 0.0


def _manhattan(a, b):
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def test_line_graph():
    path = astar(
        0, 9,
        step_cost=lambda a, b: 1.0,
        heuristic=lambda a, goal: abs(goal - a),
        neighbors=lambda a: [n for n in (a - 1, a + 1) if 0 <= n <= 9],
    )
    assert path == list(range(10))


def test_start_is_goal():
    assert astar("a", "a", _zero, _zero, lambda a: []) == ["a"]


def test_disconnected_goal_raises():
    graph = {0: [1], 1: [0], 2: []}
    with pytest.raises(NotFoundError):
        astar(0, 2, lambda a, b: 1.0, _zero, graph.__getitem__)


def test_cheaper_detour_is_preferred():
    # Direct edge a->d is expensive, the detour through b and c is cheap
    costs = {("a", "d"): 10.0, ("a", "b"): 1.0, ("b", "c"): 1.0, ("c", "d"): 1.0}
    graph = {"a": ["d", "b"], "b": ["c"], "c": ["d"], "d": []}
    path = astar("a", "d", lambda u, v: costs[(u, v)], _zero, graph.__getitem__)
    assert path == ["a", "b", "c", "d"]


def test_known_node_is_updated_with_a_better_parent():
    # c is first reached through the expensive edge from a, then improved via b
    costs = {("a", "c"): 5.0, ("a", "b"): 1.0, ("b", "c"): 1.0, ("c", "g"): 1.0}
    graph = {"a": ["c", "b"], "b": ["c"], "c": ["g"], "g": []}
    path = astar("a", "g", lambda u, v: costs[(u, v)], _zero, graph.__getitem__)
    assert path == ["a", "b", "c", "g"]


def test_grid_around_a_wall():
    walls = [(2, 0), (2, 1), (2, 2), (2, 3)]
    graph = make_grid_graph(5, 5, walls)
    path = astar((0, 0), (4, 0), lambda a, b: 1.0, _manhattan, graph.__getitem__)

    assert path[0] == (0, 0)
    assert path[-1] == (4, 0)
    assert not set(path) & set(walls)
    # Around the wall through row 4: 4 up, 4 across, 4 down
    assert len(path) - 1 == 12
    for a, b in zip(path, path[1:]):
        assert _manhattan(a, b) == 1


def test_unhashable_nodes_give_the_same_path():
    def neighbors_of(node):
        x = node[0]
        return [[n] for n in (x - 1, x + 1) if 0 <= n <= 6]

    def cost(a, b):
        # Moving right from odd cells is expensive
        return 3.0 if (a[0] % 2 and b[0] > a[0]) else 1.0

    hashable = astar(
        (0,), (6,),
        lambda a, b: cost(list(a), list(b)),
        lambda a, goal: 0.0,
        lambda node: [tuple(n) for n in neighbors_of(list(node))],
    )
    unhashable = astar([0], [6], cost, lambda a, goal: 0.0, neighbors_of)

    assert [list(n) for n in hashable] == unhashable
    assert unhashable == [[i] for i in range(7)]


def test_array_nodes_are_compared_element_wise():
    np = pytest.importorskip("numpy")

    def neighbors_of(node):
        return [node + step for step in (np.array([1, 0]), np.array([0, 1]))
                if (node + step).max() <= 3]

    path = astar(
        np.array([0, 0]), np.array([3, 3]),
        lambda a, b: 1.0,
        lambda a, goal: float(np.abs(goal - a).sum()),
        neighbors_of,
    )
    assert len(path) == 7
    assert path[0].tolist() == [0, 0]
    assert path[-1].tolist() == [3, 3]
