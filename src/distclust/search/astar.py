"""
A* path finding.

Best-first search over a graph described by callables. Visited nodes are
stored in an arena of :class:`AStarNode` records that point to their parent
by arena index, so paths are rebuilt without reference cycles.
"""

import heapq
import itertools
from typing import Any, Dict, List, Optional, Tuple

from ..base.data_structures import AStarNode
from ..base.interfaces import (
    HeuristicFunction,
    NeighborFunction,
    StepCostFunction,
    is_hashable,
)
from ..exceptions import NotFoundError


def _same_node(a: Any, b: Any) -> bool:
    """``a == b``, reduced with ``all()`` when the comparison is element-wise."""
    shape_a, shape_b = getattr(a, 'shape', None), getattr(b, 'shape', None)
    if shape_a is not None and shape_b is not None and tuple(shape_a) != tuple(shape_b):
        return False
    equal = a == b
    if hasattr(equal, 'all'):
        return bool(equal.all())
    return bool(equal)


class _NodeIndex:
    """Arena lookup by node value.

    Hashable nodes are looked up in a dict; other nodes are compared with
    :func:`_same_node` against every record.
    """

    def __init__(self, arena: List[AStarNode], hashable: bool):
        self.arena = arena
        self.hashable = hashable
        self._positions: Dict[Any, int] = {}

    def find(self, node: Any) -> Optional[int]:
        if self.hashable:
            return self._positions.get(node)
        for pos, record in enumerate(self.arena):
            if _same_node(record.node, node):
                return pos
        return None

    def add(self, record: AStarNode) -> int:
        self.arena.append(record)
        pos = len(self.arena) - 1
        if self.hashable:
            self._positions[record.node] = pos
        return pos


def astar(start: Any, goal: Any,
          step_cost: StepCostFunction,
          heuristic: HeuristicFunction,
          neighbors: NeighborFunction) -> List[Any]:
    """Find the cheapest path from ``start`` to ``goal``.

    The open node with the lowest cumulated cost is expanded first, earliest
    inserted first among equal costs. The heuristic estimate is recorded on
    every node. A known node is only updated, and reopened if it was already
    expanded, when it is reached with a strictly lower cost.

    Args:
        start: First node
        goal: Last node, compared with ``==`` (element-wise comparisons such
            as numpy arrays must match everywhere)
        step_cost: ``step_cost(a, b)`` cost of moving from a to its neighbor b
        heuristic: ``heuristic(a, goal)`` estimated cost from a to the goal
        neighbors: ``neighbors(a)`` iterable of the nodes adjacent to a

    Returns:
        List of nodes from start to goal, both included

    Raises:
        NotFoundError: If the goal cannot be reached
    """
    arena: List[AStarNode] = []
    index = _NodeIndex(arena, is_hashable(start))
    counter = itertools.count()

    h = float(heuristic(start, goal))
    first = index.add(AStarNode(node=start, cumul_cost=0.0, dist_to_end=h, total_cost=h))
    open_heap: List[Tuple[float, int, int]] = [(0.0, next(counter), first)]

    while open_heap:
        cost, _, pos = heapq.heappop(open_heap)
        current = arena[pos]
        if current.closed or cost != current.cumul_cost:
            # Superseded entry
            continue
        current.closed = True

        if _same_node(current.node, goal):
            return _rebuild_path(arena, pos)

        for neigh in neighbors(current.node):
            new_cost = current.cumul_cost + float(step_cost(current.node, neigh))
            known = index.find(neigh)
            if known is not None:
                if arena[known].cumul_cost <= new_cost:
                    continue
                record = arena[known]
                record.closed = False
            else:
                record = AStarNode(node=neigh)
                known = index.add(record)

            record.cumul_cost = new_cost
            record.dist_to_end = float(heuristic(neigh, goal))
            record.total_cost = new_cost + record.dist_to_end
            record.parent = pos
            heapq.heappush(open_heap, (new_cost, next(counter), known))

    raise NotFoundError("astar: no path found.")


def _rebuild_path(arena: List[AStarNode], pos: int) -> List[Any]:
    path = []
    current: Optional[int] = pos
    while current is not None:
        path.append(arena[current].node)
        current = arena[current].parent
    path.reverse()
    return path
