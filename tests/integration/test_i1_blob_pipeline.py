import numpy as np
import pytest
import torch

from utils import time_block
from data_gen import make_blobs

from distclust import (
    SpectralClustering,
    affinity_propagation,
    hungarian,
    pairwise_distances,
)


CENTERS = ((0.0, 0.0), (12.0, 0.0), (0.0, 12.0))


def _labels_to_ids(labels) -> np.ndarray:
    """Map arbitrary cluster labels (e.g. prototype indices) to 0..K-1."""
    _, ids = np.unique(np.asarray(labels), return_inverse=True)
    return ids


def _matched_accuracy(y_pred: np.ndarray, y_true: np.ndarray) -> float:
    """Accuracy after the best one-to-one matching of predicted and true clusters."""
    K = int(max(y_pred.max(), y_true.max())) + 1
    overlap = np.zeros((K, K))
    for p, t in zip(y_pred, y_true):
        overlap[p, t] += 1
    cost, _ = hungarian(-overlap)
    return -cost / len(y_true)


@pytest.fixture
def three_blobs():
    X, y = make_blobs(n_per=15, centers=CENTERS, scale=0.7, seed=21)
    return X, pairwise_distances(X), y


def test_affinity_propagation_then_matching(three_blobs):
    X, D, y = three_blobs
    with time_block("affinity_propagation", {"n": len(X)}):
        prototypes, labels = affinity_propagation(D, damping=0.7, max_iter=200)

    assert len(prototypes) == 3
    # Every prototype sits in its own blob
    assert sorted(y[prototypes].tolist()) == [0, 1, 2]
    assert _matched_accuracy(_labels_to_ids(labels), y) == 1.0


def test_spectral_embedding_then_matching(three_blobs):
    X, D, y = three_blobs
    with time_block("spectral", {"n": len(X)}):
        sc = SpectralClustering.from_local_scale(D, sigma_neighborhood=5)

    k = sc.estimate_cluster_number(1.0 - 1e-4) - 1
    assert k == 3

    Y = sc.project_data(k, normalize=True)
    # Same blob -> same unit vector, different blobs -> orthogonal vectors
    gram = (Y @ Y.t()).numpy()
    same = y[:, None] == y[None, :]
    assert np.allclose(gram[same], 1.0, atol=1e-6)
    assert np.allclose(gram[~same], 0.0, atol=1e-6)

    # One representative direction per cluster, then nearest direction
    reps = []
    for row in Y:
        if all(torch.dot(row, r).item() < 0.5 for r in reps):
            reps.append(row)
    assert len(reps) == 3
    labels = torch.argmax(Y @ torch.stack(reps).t(), dim=1).numpy()
    assert _matched_accuracy(labels, y) == 1.0
