"""
Global pytest fixtures for the distclust tests.

- Provides deterministic seeding across Python, NumPy, and PyTorch.
- Forces single-threaded torch so eigen-decompositions are reproducible.
- Shares a few small distance matrices used by several test modules.
"""

from __future__ import annotations

import os
import random
import sys
from typing import Generator
from pathlib import Path

import numpy as np
import pytest

try:
    import torch
except Exception:  # pragma: no cover
    torch = None  # type: ignore

# Add the project's src directory to the Python path so tests can import the code
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))

from data_gen import make_blobs  # noqa: E402


def _get_seed() -> int:
    """Resolve the test seed from env or default."""
    env = os.getenv("TEST_RANDOM_SEED", "1337")
    try:
        return int(env)
    except ValueError:
        return 1337


@pytest.fixture(scope="session", autouse=True)
def seed_all() -> None:
    """
    Seed Python, NumPy, and PyTorch RNGs once per session.

    Seed value comes from TEST_RANDOM_SEED (default 1337).
    """
    seed = _get_seed()
    random.seed(seed)
    np.random.seed(seed)
    if torch is not None:
        torch.manual_seed(seed)


@pytest.fixture(scope="session", autouse=True)
def set_torch_threads() -> None:
    """Reduce PyTorch to a single thread."""
    if torch is not None and hasattr(torch, "set_num_threads"):
        torch.set_num_threads(1)


@pytest.fixture(scope="function")
def rng(seed_all: None) -> Generator[np.random.Generator, None, None]:
    """
    Per-test NumPy Generator seeded from the session seed.

    Each test receives a fresh Generator (reproducible within a test).
    """
    yield np.random.default_rng(_get_seed())


@pytest.fixture(scope="session")
def torch_device() -> "torch.device | None":
    """All tests run on CPU."""
    if torch is None:
        return None
    return torch.device("cpu")


@pytest.fixture(scope="function")
def two_blobs():
    """
    Two well separated 2D blobs of 15 points each.

    Returns (X, D, y): points, euclidean distance matrix (torch float64) and
    ground-truth labels.
    """
    from distclust.distances import pairwise_distances

    X, y = make_blobs(n_per=15, centers=((0.0, 0.0), (10.0, 10.0)), scale=0.5, seed=_get_seed())
    return X, pairwise_distances(X), y
