# tests/test_affinity_propagation.py
"""
Affinity Propagation on distance matrices.

Covers:
- recovery of well separated blobs
- consistency of the labelling (every label is a self-labelled prototype)
- preference policies
- parameter validation
"""

from __future__ import annotations

import numpy as np
import pytest

try:
    import torch
except Exception:  # pragma: no cover
    torch = None  # type: ignore

from distclust.algorithms.affinity_propagation import (
    AffinityPropagation,
    Preference,
    affinity_propagation,
    resolve_preference,
    similarity_matrix,
)
from distclust.base import AffinityPropagationResult
from distclust.exceptions import DimensionError, DomainError, InvalidArgumentError

from utils import perm_invariant_accuracy


pytestmark = pytest.mark.skipif(torch is None, reason="PyTorch is required for these tests")


def _assert_consistent(prototypes, labels):
    assert prototypes == sorted(set(labels))
    for i, label in enumerate(labels):
        assert labels[label] == label, f"label of {i} points at a non-prototype"


def test_two_blobs_are_recovered(two_blobs):
    _, D, y = two_blobs
    result = affinity_propagation(D, preference=Preference.MEDIUM, damping=0.7, max_iter=200)

    assert isinstance(result, AffinityPropagationResult)
    prototypes, labels = result
    _assert_consistent(prototypes, labels)
    assert len(prototypes) == 2
    assert perm_invariant_accuracy(labels, y) == 1.0


def test_estimator_attributes(two_blobs):
    _, D, _ = two_blobs
    model = AffinityPropagation(damping=0.7, max_iter=200).fit(D)

    n = D.shape[0]
    assert model.fitted_
    assert model.labels_.shape == (n,)
    assert model.responsibility_.shape == (n, n)
    assert model.availability_.shape == (n, n)
    assert model.n_clusters_ == model.cluster_centers_indices_.numel()
    assert 1 <= model.n_iter_ <= 200
    assert len(model.history_) == model.n_iter_


def test_labels_are_consistent_on_random_data(rng):
    X = rng.normal(size=(25, 2))
    D = np.linalg.norm(X[:, None] - X[None, :], axis=-1)
    for preference in ("low", "medium", 0.5):
        prototypes, labels = affinity_propagation(D, preference=preference, max_iter=30)
        assert len(labels) == 25
        assert len(prototypes) >= 1
        _assert_consistent(prototypes, labels)


def test_single_element():
    prototypes, labels = affinity_propagation([[0.0]])
    assert prototypes == [0]
    assert labels == [0]


def test_resolve_preference_policies():
    D = torch.tensor([[0.0, 1.0, 2.0],
                      [1.0, 0.0, 3.0],
                      [2.0, 3.0, 0.0]], dtype=torch.float64)
    assert resolve_preference(D, Preference.MEDIUM).tolist() == [2.0] * 3
    assert resolve_preference(D, "low").tolist() == [3.0] * 3
    assert resolve_preference(D, 0.25).tolist() == [0.25] * 3
    assert resolve_preference(D, [1.0, 2.0, 3.0]).tolist() == [1.0, 2.0, 3.0]

    s = similarity_matrix(D, [1.0, 2.0, 3.0])
    assert s.diagonal().tolist() == [-1.0, -2.0, -3.0]
    assert s[0, 2].item() == -2.0
    # The input is left untouched
    assert D.diagonal().tolist() == [0.0, 0.0, 0.0]


def test_per_element_preference_length_mismatch():
    D = torch.zeros(3, 3, dtype=torch.float64)
    with pytest.raises(DimensionError):
        affinity_propagation(D, preference=[1.0, 2.0])


def test_unknown_preference_policy():
    with pytest.raises(InvalidArgumentError):
        affinity_propagation([[0.0, 1.0], [1.0, 0.0]], preference="high")


@pytest.mark.parametrize("kwargs", [
    {"damping": 1.0},
    {"damping": -0.1},
    {"stable_iters_to_stop": 1},
    {"max_iter": 1},
])
def test_invalid_parameters(kwargs):
    with pytest.raises(DomainError):
        affinity_propagation([[0.0, 1.0], [1.0, 0.0]], **kwargs)


@pytest.mark.parametrize("distances", [[], [[0.0, 1.0]]])
def test_invalid_matrices(distances):
    with pytest.raises(InvalidArgumentError):
        affinity_propagation(distances)


def test_verbose_output(two_blobs, capsys):
    _, D, _ = two_blobs
    AffinityPropagation(verbose=1, damping=0.7, max_iter=200).fit(D)
    out = capsys.readouterr().out
    assert "Iteration" in out
    assert "Total fitting time" in out


def test_params_roundtrip():
    model = AffinityPropagation(damping=0.8)
    assert model.get_params()["damping"] == 0.8
    model.set_params(damping=0.6, max_iter=50)
    assert model.damping == 0.6
    assert model.max_iter == 50
