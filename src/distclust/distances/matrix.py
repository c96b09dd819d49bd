"""
Dense distance matrix helpers.

Builds distance matrices from feature vectors and computes the summary
statistics the clustering solvers derive from them.
"""

from typing import Optional
import torch
from torch import Tensor

from ..utils.validation import as_tensor, validate_square_matrix


def pairwise_distances(X, Y=None, metric: str = 'euclidean') -> Tensor:
    """Compute pairwise distances between points.

    Args:
        X: (n, d) first set of points
        Y: (m, d) second set of points (if None, uses X)
        metric: Distance metric ('euclidean', 'cosine')

    Returns:
        (n, m) float64 distance matrix
    """
    X = as_tensor(X)
    Y = X if Y is None else as_tensor(Y, device=X.device)

    if X.dim() == 1:
        X = X.unsqueeze(1)
    if Y.dim() == 1:
        Y = Y.unsqueeze(1)

    if metric == 'euclidean':
        # ||x - y||² = ||x||² + ||y||² - 2<x,y>
        X_norm = (X ** 2).sum(dim=1, keepdim=True)
        Y_norm = (Y ** 2).sum(dim=1, keepdim=True)
        XY = torch.matmul(X, Y.t())
        distances = X_norm + Y_norm.t() - 2 * XY
        distances = torch.clamp(distances, min=0.0)  # Numerical safety
        distances = torch.sqrt(distances)
        if Y is X:
            distances.fill_diagonal_(0.0)
        return distances

    elif metric == 'cosine':
        X_unit = X / torch.norm(X, dim=1, keepdim=True).clamp(min=1e-12)
        Y_unit = Y / torch.norm(Y, dim=1, keepdim=True).clamp(min=1e-12)
        distances = 1 - torch.matmul(X_unit, Y_unit.t())
        return torch.clamp(distances, min=0.0)

    else:
        raise ValueError(f"Unknown metric: {metric}")


def off_diagonal(distances: Tensor) -> Tensor:
    """Flattened off-diagonal entries of a square matrix (row-major)."""
    n = distances.shape[0]
    mask = ~torch.eye(n, dtype=torch.bool, device=distances.device)
    return distances[mask]


def off_diagonal_median(distances) -> float:
    """Median of the off-diagonal entries.

    The entries are sorted ascending and the element at index ``M // 2`` is
    returned, ``M = n² - n`` being their count (upper median for even M).

    Args:
        distances: (n, n) matrix

    Returns:
        The median, or 0.0 if the matrix has fewer than two rows
    """
    D = validate_square_matrix(distances, allow_empty=True)
    values = off_diagonal(D)
    if values.numel() == 0:
        return 0.0
    values, _ = torch.sort(values)
    return values[values.numel() // 2].item()


def max_distance(distances) -> float:
    """Largest entry of a distance matrix (0.0 when empty)."""
    D = validate_square_matrix(distances, allow_empty=True)
    if D.numel() == 0:
        return 0.0
    return D.max().item()


def nth_neighbor_distances(distances: Tensor, n: int) -> Tensor:
    """Distance from each element to its ``n``-th nearest other element.

    Elements with fewer than ``n`` others use their farthest one.

    Args:
        distances: (N, N) distance matrix
        n: 1-based neighbor rank

    Returns:
        (N,) tensor of distances
    """
    N = distances.shape[0]
    if N < 2:
        return torch.zeros(N, dtype=distances.dtype, device=distances.device)
    others = off_diagonal(distances).reshape(N, N - 1)
    others, _ = torch.sort(others, dim=1)
    rank = min(n, N - 1) - 1
    return others[:, rank]
