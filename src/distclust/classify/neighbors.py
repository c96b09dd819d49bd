"""
Nearest-neighbor classifiers.

Samples are arbitrary objects compared through a user distance. The labelled
samples form a database mapping each class label to its samples; the class
id of a label is its position in the mapping's iteration order.
"""

from collections import Counter
from collections.abc import Iterable, Mapping
from typing import Any, List, Sequence, Tuple

from ..base.data_structures import ClassifResult, NeighborList
from ..base.interfaces import DistanceFunction
from ..exceptions import DomainError, InvalidArgumentError, NotFoundError


Database = Mapping[Any, Sequence[Any]]


def nearest_neighbor(sample: Any, prototypes: Sequence[Any],
                     distance: DistanceFunction) -> ClassifResult:
    """Find the prototype nearest to a sample.

    Args:
        sample: Object to classify
        prototypes: Candidate objects
        distance: ``distance(sample, prototype) -> float``

    Returns:
        ClassifResult whose class_id and label are the position of the
        nearest prototype (the first one on ties)

    Raises:
        NotFoundError: If there is no prototype
    """
    best = None
    for i, proto in enumerate(prototypes):
        d = float(distance(sample, proto))
        if best is None or d < best[0]:
            best = (d, i, proto)

    if best is None:
        raise NotFoundError("nearest_neighbor: no prototype.")
    d, i, proto = best
    return ClassifResult(class_id=i, label=i, distance=d, prototype=proto)


def k_nearest_neighbors(sample: Any, database: Database, k: int,
                        distance: DistanceFunction) -> ClassifResult:
    """Classify a sample by a vote of its k nearest labelled samples.

    The class with the most neighbors wins. Among tied classes, the one
    holding the nearest neighbor wins, and that neighbor is the returned
    prototype.

    Raises:
        DomainError: If k < 1
        InvalidArgumentError: If a class does not map to a collection of samples
        NotFoundError: If the database holds no sample
    """
    if k < 1:
        raise DomainError(f"k_nearest_neighbors: k must be >= 1, got {k}.")

    entries = _labelled_samples(database)
    nearest = NeighborList(k)
    for pos, (_, _, s) in enumerate(entries):
        nearest.offer(float(distance(sample, s)), pos)
    return _choose_class(entries, list(nearest))


def epsilon_neighbors(sample: Any, database: Database, epsilon: float,
                      distance: DistanceFunction) -> ClassifResult:
    """Classify a sample by a vote of the labelled samples closer than epsilon.

    Ties between classes are broken as in :func:`k_nearest_neighbors`.

    Raises:
        InvalidArgumentError: If a class does not map to a collection of samples
        NotFoundError: If no sample lies strictly within epsilon
    """
    entries = _labelled_samples(database)
    neighbors = []
    for pos, (_, _, s) in enumerate(entries):
        d = float(distance(sample, s))
        if d < epsilon:
            neighbors.append((d, pos))
    return _choose_class(entries, neighbors)


def _labelled_samples(database: Database) -> List[Tuple[int, Any, Any]]:
    """Flatten the database to ``(class_id, label, sample)`` entries."""
    if not isinstance(database, Mapping):
        raise InvalidArgumentError("The database must map labels to samples.")
    entries = []
    for class_id, (label, samples) in enumerate(database.items()):
        if isinstance(samples, (str, bytes)) or not isinstance(samples, Iterable):
            raise InvalidArgumentError(f"The samples of class {label!r} are not a collection.")
        entries.extend((class_id, label, s) for s in samples)
    return entries


def _choose_class(entries: List[Tuple[int, Any, Any]],
                  neighbors: List[Tuple[float, int]]) -> ClassifResult:
    """Nearest neighbor among the classes with the most neighbors."""
    if not neighbors:
        raise NotFoundError("No labelled sample to vote.")

    votes = Counter(entries[pos][0] for _, pos in neighbors)
    top = max(votes.values())
    d, pos = min((n for n in neighbors if votes[entries[n[1]][0]] == top),
                 key=lambda n: n[0])
    class_id, label, proto = entries[pos]
    return ClassifResult(class_id=class_id, label=label, distance=d, prototype=proto)
