# tests/test_convergence.py
"""
Convergence criterion behavior.

Covers:
- IdenticalAssignments: first labelling compared against zeros, patience,
  reset of the stable counter on change, reset().
"""

from __future__ import annotations

import pytest

try:
    import torch
except Exception:  # pragma: no cover
    torch = None  # type: ignore

from distclust.utils.convergence import IdenticalAssignments
from distclust.exceptions import DomainError


pytestmark = pytest.mark.skipif(torch is None, reason="PyTorch is required for these tests")


def test_identical_assignments_requires_patience_above_one():
    with pytest.raises(DomainError):
        IdenticalAssignments(patience=1)


def test_identical_assignments_patience_and_reset_on_change():
    crit = IdenticalAssignments(patience=2)
    a = torch.tensor([0, 0, 2])
    b = torch.tensor([1, 1, 2])

    # Differs from the initial all-zeros labelling
    assert crit.check({"iteration": 0, "assignments": a}) is False
    assert crit.check({"iteration": 1, "assignments": a}) is False
    assert crit.stable_count == 1

    # A change resets the counter
    assert crit.check({"iteration": 2, "assignments": b}) is False
    assert crit.stable_count == 0
    assert crit.check({"iteration": 3, "assignments": b}) is False
    assert crit.check({"iteration": 4, "assignments": b}) is True

    assert [h["n_changed"] for h in crit.history] == [1, 0, 2, 0, 0]


def test_identical_assignments_all_zero_labelling_counts_as_stable():
    crit = IdenticalAssignments(patience=2)
    zeros = [0, 0, 0, 0]
    assert crit.check({"assignments": zeros}) is False
    assert crit.check({"assignments": zeros}) is True


def test_identical_assignments_reset_clears_state():
    crit = IdenticalAssignments(patience=3, initial=[1, 2])
    assert crit.check({"assignments": [1, 2]}) is False
    assert crit.stable_count == 1

    crit.reset()
    assert crit.history == []
    assert crit.stable_count == 0
    # After reset the explicit initial labelling is used again
    crit.check({"assignments": [1, 2]})
    assert crit.stable_count == 1
