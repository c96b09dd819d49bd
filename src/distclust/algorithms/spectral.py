"""
Spectral clustering.

Spectral embedding following Ng, Jordan & Weiss: the affinity matrix ``W``
is normalised as ``L = D^-1/2 W D^-1/2`` and its eigenvectors provide a
low-dimensional representation in which clusters are easy to separate.
The eigenvalue spectrum also gives an estimate of the number of clusters.

The affinity is built from a distance matrix with a Gaussian kernel whose
scale is either fixed or estimated from the data (local or global scale).
"""

from typing import List, Optional, Tuple
import math

import torch
from torch import Tensor

from ..distances.matrix import nth_neighbor_distances
from ..exceptions import DimensionError, DomainError, InvalidArgumentError
from ..utils.linalg import safe_eigh
from ..utils.validation import MatrixLike, validate_square_matrix


def _validate_distances(distances: MatrixLike, device: Optional[torch.device]) -> Tensor:
    D = validate_square_matrix(distances, allow_empty=True, device=device)
    if D.shape[0] == 0:
        raise DimensionError("Empty distance matrix.")
    return D


def gaussian_affinity(distances: Tensor, denominators: Tensor,
                      epsilon: float = math.inf) -> Tensor:
    """``w = exp(-d² / denom)`` with zero diagonal and zero beyond epsilon.

    A zero denominator is treated as the limit of the kernel: 1 for a zero
    distance, 0 otherwise.

    Args:
        distances: (n, n) distance matrix
        denominators: Scalar or (n, n) tensor of kernel denominators
        epsilon: Distances above this value get a zero affinity

    Returns:
        (n, n) affinity matrix
    """
    denominators = torch.as_tensor(denominators, dtype=distances.dtype,
                                   device=distances.device).expand_as(distances)
    squared = distances ** 2

    safe = torch.where(denominators > 0, denominators, torch.ones_like(denominators))
    w = torch.exp(-squared / safe)
    w = torch.where(denominators > 0, w, (squared == 0).to(distances.dtype))

    w = torch.where(distances > epsilon, torch.zeros_like(w), w)
    w.fill_diagonal_(0.0)
    return w


class SpectralClustering:
    """Spectral decomposition of a normalised affinity matrix.

    Use one of the factory class methods to build the affinity from a
    distance matrix, or pass an affinity matrix directly.

    Parameters
    ----------
    affinity : array-like of shape (n_samples, n_samples)
        Symmetric, non-negative affinity matrix
    max_iter : int, default=1000
        Iteration bound of the eigen-solver
    device : torch.device, optional
        Device for computation

    Attributes
    ----------
    affinity_ : Tensor of shape (n_samples, n_samples)
    laplacian_ : Tensor of shape (n_samples, n_samples)
        The normalised matrix ``D W D`` with ``D = diag(1/sqrt(row sums))``

    Examples
    --------
    >>> sc = SpectralClustering.from_local_scale(D, sigma_neighborhood=7)
    >>> k = sc.estimate_cluster_number(0.99)
    >>> X = sc.project_data(k, normalize=True)
    """

    def __init__(self, affinity: MatrixLike, max_iter: int = 1000,
                 device: Optional[torch.device] = None):
        w = validate_square_matrix(affinity, allow_empty=True, name='affinity matrix',
                                   device=device)
        self.max_iter = max_iter
        self.affinity_ = w

        row_sums = w.sum(dim=1)
        safe = torch.where(row_sums != 0, row_sums, torch.ones_like(row_sums))
        d = torch.where(row_sums != 0, 1.0 / torch.sqrt(safe), torch.zeros_like(row_sums))

        # D W D with D diagonal
        self.laplacian_ = d.unsqueeze(1) * w * d.unsqueeze(0)

        eigenvalues, eigenvectors = safe_eigh(self.laplacian_, max_iter=max_iter)
        # Ascending order, as returned by the solver
        self._eigenvalues = eigenvalues
        self._eigenvectors = eigenvectors

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def from_local_scale(cls, distances: MatrixLike, sigma_neighborhood: int = 7,
                         epsilon: float = math.inf, **kwargs) -> 'SpectralClustering':
        """Clustering with a local automatic scale.

        ``w(i,j) = exp(-d(i,j)² / (2 σ_i σ_j))`` where ``σ_i`` is the distance
        from i to its ``sigma_neighborhood``-th nearest other element.

        Raises:
            InvalidArgumentError: If sigma_neighborhood < 1
            DimensionError: If the distance matrix is empty
        """
        if sigma_neighborhood < 1:
            raise InvalidArgumentError("Neighborhood to compute sigma must be >= 1.")
        D = _validate_distances(distances, kwargs.get('device'))

        sigmas = nth_neighbor_distances(D, sigma_neighborhood)
        denominators = 2.0 * torch.outer(sigmas, sigmas)
        return cls(gaussian_affinity(D, denominators, epsilon), **kwargs)

    @classmethod
    def from_global_scale_nn(cls, distances: MatrixLike, sigma_neighborhood: int = 1,
                             epsilon: float = math.inf, **kwargs) -> 'SpectralClustering':
        """Clustering with a global scale: the mean distance of the elements
        to their ``sigma_neighborhood``-th nearest other element.

        Raises:
            InvalidArgumentError: If sigma_neighborhood < 1
            DimensionError: If the distance matrix is empty
        """
        if sigma_neighborhood < 1:
            raise InvalidArgumentError("Neighborhood to compute sigma must be >= 1.")
        D = _validate_distances(distances, kwargs.get('device'))

        sigma = nth_neighbor_distances(D, sigma_neighborhood).mean().item()
        return cls.from_fixed_scale(D, sigma, epsilon, **kwargs)

    @classmethod
    def from_global_scale_dimension(cls, distances: MatrixLike, dimension: int,
                                    epsilon: float = math.inf, **kwargs) -> 'SpectralClustering':
        """Clustering with a global scale derived from the data dimension:
        ``σ = max distance / (2 n^(1/dimension))``.

        Raises:
            InvalidArgumentError: If dimension < 1
            DimensionError: If the distance matrix is empty
        """
        if dimension < 1:
            raise InvalidArgumentError("Dimension must be >= 1.")
        D = _validate_distances(distances, kwargs.get('device'))

        n = D.shape[0]
        sigma = torch.triu(D).max().item()
        sigma /= 2.0 * math.pow(n, 1.0 / dimension)
        return cls.from_fixed_scale(D, sigma, epsilon, **kwargs)

    @classmethod
    def from_fixed_scale(cls, distances: MatrixLike, sigma: float,
                         epsilon: float = math.inf, **kwargs) -> 'SpectralClustering':
        """Clustering with a fixed global scale: ``w = exp(-d² / (2 σ²))``.

        Raises:
            InvalidArgumentError: If sigma < 0
            DimensionError: If the distance matrix is empty
        """
        if sigma < 0.0:
            raise InvalidArgumentError(f"Sigma must be positive, got {sigma}.")
        D = _validate_distances(distances, kwargs.get('device'))

        return cls(gaussian_affinity(D, 2.0 * sigma * sigma, epsilon), **kwargs)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def n_samples(self) -> int:
        return self._eigenvalues.shape[0]

    @property
    def eigenpairs(self) -> List[Tuple[float, Tensor]]:
        """``(eigenvalue, eigenvector)`` pairs, highest eigenvalue first."""
        order = torch.flip(torch.arange(self.n_samples), dims=[0])
        return [(self._eigenvalues[i].item(), self._eigenvectors[:, i].clone())
                for i in order.tolist()]

    def eigenvalues(self) -> List[float]:
        """The eigenvalues, sorted from highest to lowest."""
        return torch.flip(self._eigenvalues, dims=[0]).tolist()

    def estimate_cluster_number(self, limit: float = 1.0) -> int:
        """Estimate the number of clusters.

        Counts the leading eigenvalues that are >= ``limit``, plus one.

        Raises:
            DomainError: If limit is not in [0, 1]
        """
        if limit < 0.0 or limit > 1.0:
            raise DomainError(f"Eigenvalues should be in [0, 1], got limit={limit}.")
        n = 1
        for value in self.eigenvalues():
            if value < limit:
                break
            n += 1
        return n

    def project_data(self, n_coordinates: int, normalize: bool = False) -> Tensor:
        """Project the elements on the eigenvectors of highest eigenvalue.

        Args:
            n_coordinates: Number of coordinates per element; columns beyond
                the number of elements are left at zero
            normalize: Scale each projected element to unit norm (zero
                vectors are left unchanged)

        Returns:
            (n_samples, n_coordinates) tensor

        Raises:
            DimensionError: If n_coordinates < 1
        """
        if n_coordinates < 1:
            raise DimensionError("Cannot project on less than one coordinate.")

        n = self.n_samples
        data = torch.zeros(n, n_coordinates, dtype=self._eigenvectors.dtype,
                           device=self._eigenvectors.device)
        used = min(n_coordinates, n)
        if used > 0:
            top = torch.flip(self._eigenvectors, dims=[1])[:, :used]
            data[:, :used] = top

        if normalize:
            norms = torch.norm(data, dim=1, keepdim=True)
            data = torch.where(norms > 0, data / torch.where(norms > 0, norms, torch.ones_like(norms)), data)

        return data
