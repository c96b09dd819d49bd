# tests/utils.py
"""
Small, reusable helpers used across the distclust test suite.

Functions:
- brute_force_assignment(C): optimal assignment cost by enumerating permutations.
- perm_invariant_accuracy(y_pred, y_true): pairwise agreement of two labellings.
- time_block(label, meta=None): context manager that prints wall-clock time.
"""

from __future__ import annotations

import itertools
import json
import time
from contextlib import contextmanager
from typing import Any, Dict, Tuple

import numpy as np


def brute_force_assignment(C) -> Tuple[float, Tuple[int, ...]]:
    """
    Minimum assignment cost of a small square matrix.

    Returns
    -------
    (cost, perm) where perm[i] is the column assigned to row i.
    """
    C = np.asarray(C, dtype=np.float64)
    n = C.shape[0]
    best_cost, best_perm = np.inf, ()
    for perm in itertools.permutations(range(n)):
        cost = float(C[np.arange(n), list(perm)].sum())
        if cost < best_cost:
            best_cost, best_perm = cost, perm
    return best_cost, best_perm


def perm_invariant_accuracy(y_pred, y_true) -> float:
    """
    Fraction of pairs of elements on which two labellings agree.

    Two elements agree when both labellings put them together, or both keep
    them apart, so the score does not depend on the label values.
    """
    y_pred = np.asarray(y_pred)
    y_true = np.asarray(y_true)
    if y_pred.shape != y_true.shape:
        raise ValueError(f"Shape mismatch: {y_pred.shape} vs {y_true.shape}")
    same_pred = y_pred[:, None] == y_pred[None, :]
    same_true = y_true[:, None] == y_true[None, :]
    return float((same_pred == same_true).mean())


@contextmanager
def time_block(label: str, meta: Dict[str, Any] | None = None):
    """
    Context manager to time a block and print a single-line summary.

    Output
    ------
    [timing] fit {"n":400} 0.123s
    """
    t0 = time.perf_counter()
    try:
        yield
    finally:
        dt = time.perf_counter() - t0
        meta_str = " " + json.dumps(meta, separators=(",", ":")) if meta else ""
        print(f"[timing] {label}{meta_str} {dt:.3f}s")
