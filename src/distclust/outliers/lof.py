"""
Density based outlier scores.

Local Outlier Factor (Breunig et al., 2000) and Local Outlier Probability
(Kriegel et al., 2009) computed from a distance matrix. Both rely on the k
nearest *other* elements of each element.

The scoring helpers work on padded neighbor tables so that the incremental
k-NN structure, whose lists may hold fewer than k entries, shares them.
"""

import math
from typing import List, Tuple

import torch
from torch import Tensor

from ..exceptions import DimensionError, DomainError
from ..utils.validation import MatrixLike, check_neighborhood, validate_square_matrix


def knn_table(distances: Tensor, k: int) -> Tuple[Tensor, Tensor]:
    """Distances and indices of the k nearest other elements of each element.

    Ties keep index order.

    Args:
        distances: (n, n) distance matrix
        k: Neighborhood size, smaller than n

    Returns:
        (n, k) distances and (n, k) indices, ascending per row
    """
    D = distances.clone()
    D.fill_diagonal_(float('inf'))
    sorted_d, order = torch.sort(D, dim=1, stable=True)
    return sorted_d[:, :k], order[:, :k]


def _safe_ratio(num: Tensor, den: Tensor) -> Tensor:
    """``num / den`` where 0/0 and inf/inf count as 1."""
    ratio = num / den
    undefined = ((num == 0) & (den == 0)) | (torch.isinf(num) & torch.isinf(den))
    return torch.where(undefined, torch.ones_like(ratio), ratio)


def _lof_scores(dist: Tensor, idx: Tensor, mask: Tensor) -> Tensor:
    """LOF from a padded neighbor table.

    Args:
        dist: (n, k) neighbor distances
        idx: (n, k) neighbor indices
        mask: (n, k) validity of each entry

    Returns:
        (n,) tensor of scores
    """
    counts = mask.sum(dim=1)
    last = (counts - 1).clamp(min=0).unsqueeze(1)
    k_dist = torch.where(counts > 0, dist.gather(1, last).squeeze(1),
                         torch.full_like(counts, float('inf'), dtype=dist.dtype))

    # reachdist(i, j) = max(d(i, j), kdist(j))
    reach = torch.maximum(dist, k_dist[idx])
    reach_sum = torch.where(mask, reach, torch.zeros_like(reach)).sum(dim=1)
    lrd = torch.where(counts > 0, counts.to(dist.dtype) / reach_sum,
                      torch.full_like(reach_sum, float('inf')))

    ratios = _safe_ratio(lrd[idx], lrd.unsqueeze(1).expand_as(dist))
    ratio_sum = torch.where(mask, ratios, torch.zeros_like(ratios)).sum(dim=1)
    return torch.where(counts > 0, ratio_sum / counts.clamp(min=1), torch.ones_like(ratio_sum))


def _loop_scores(dist: Tensor, idx: Tensor, mask: Tensor, lambda_: float) -> Tensor:
    """LoOP from a padded neighbor table (see :func:`_lof_scores`)."""
    n = dist.shape[0]
    counts = mask.sum(dim=1).to(dist.dtype)
    safe_counts = counts.clamp(min=1.0)

    squared = torch.where(mask, dist ** 2, torch.zeros_like(dist)).sum(dim=1)
    pdist = lambda_ * torch.sqrt(squared / safe_counts)

    neigh_pdist = torch.where(mask, pdist[idx], torch.zeros_like(dist)).sum(dim=1)
    plof = _safe_ratio(counts * pdist, neigh_pdist) + 1.0

    nplof = math.sqrt(2.0) * lambda_ * n / plof.sum()
    return torch.erf(plof / nplof).clamp(min=0.0)


def _validated(distances: MatrixLike) -> Tensor:
    return validate_square_matrix(distances, error=DimensionError, allow_empty=True)


def compute_lof(distances: MatrixLike, k: int) -> List[float]:
    """Local Outlier Factor of each element.

    A score close to 1 means the element is as dense as its neighbors,
    higher scores flag outliers. Groups of identical elements score 1.

    Args:
        distances: (n, n) distance matrix
        k: Neighborhood size

    Returns:
        List of n scores

    Raises:
        DimensionError: If the distance matrix is not square
        DomainError: If k <= 1
        LogicError: If k >= n
    """
    D = _validated(distances)
    check_neighborhood(k, D.shape[0], 'compute_lof')

    dist, idx = knn_table(D, k)
    mask = torch.ones_like(dist, dtype=torch.bool)
    return _lof_scores(dist, idx, mask).tolist()


def compute_loop(distances: MatrixLike, k: int, lambda_: float) -> List[float]:
    """Local Outlier Probability of each element, in [0, 1].

    Args:
        distances: (n, n) distance matrix
        k: Neighborhood size
        lambda_: Precision of the density estimation (1 -> 68%, 2 -> 95%,
            3 -> 99.7%)

    Returns:
        List of n probabilities

    Raises:
        DimensionError: If the distance matrix is not square
        DomainError: If k <= 1 or lambda_ <= 0
        LogicError: If k >= n
    """
    D = _validated(distances)
    if k <= 1:
        raise DomainError(f"compute_loop: the neighborhood must be > 1, got {k}.")
    if lambda_ <= 0:
        raise DomainError(f"compute_loop: lambda must be > 0, got {lambda_}.")
    check_neighborhood(k, D.shape[0], 'compute_loop')

    dist, idx = knn_table(D, k)
    mask = torch.ones_like(dist, dtype=torch.bool)
    return _loop_scores(dist, idx, mask, lambda_).tolist()
