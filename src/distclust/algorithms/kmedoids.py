"""
k-medoids clustering.

Partitions the elements of a distance matrix around k of its elements, the
medoids. Two initialisations are available: the k most central elements
(Park & Jun, 2009) and the greedy build phase of PAM. Medoids are then
refined either inside each cluster or by the best single PAM swap per
iteration, until the total distance to the medoids stops changing.
"""

from typing import Any, Dict, Optional, Sequence, Tuple, Union
import time
import warnings

import torch
from torch import Tensor

from ..base.data_structures import KMedoidsResult
from ..exceptions import DimensionError, DomainError, InvalidArgumentError
from ..utils.validation import MatrixLike, as_tensor, validate_square_matrix


def central_init(distances: Tensor, n_clusters: int) -> Tensor:
    """The ``n_clusters`` most central elements.

    Element j scores ``sum_i d(i, j) / sum_l d(i, l)``. The lowest scores
    are picked, lowest first. Rows summing to zero contribute nothing.
    """
    row_sums = distances.sum(dim=1, keepdim=True)
    ratios = torch.where(row_sums > 0, distances / row_sums, torch.zeros_like(distances))
    scores = ratios.sum(dim=0)
    return torch.sort(scores, stable=True).indices[:n_clusters]


def pam_init(distances: Tensor, n_clusters: int) -> Tensor:
    """Greedy build phase of PAM.

    Starts from the element with the lowest total distance, then repeatedly
    adds the element that most reduces the distances of the others to their
    nearest medoid.
    """
    medoids = [int(torch.argmin(distances.sum(dim=1)).item())]
    nearest = distances[:, medoids[0]].clone()
    for _ in range(1, n_clusters):
        # gains[i] = sum_j max(nearest_j - d(j, i), 0)
        gains = (nearest.unsqueeze(1) - distances).clamp(min=0.0).sum(dim=0)
        gains[medoids] = float('-inf')
        m = int(torch.argmax(gains).item())
        medoids.append(m)
        nearest = torch.minimum(nearest, distances[:, m])
    return torch.tensor(medoids, dtype=torch.long, device=distances.device)


def nearest_medoid(distances: Tensor, medoids: Tensor) -> Tuple[Tensor, Tensor]:
    """Cluster number of every element (first medoid on ties) and its distance."""
    to_medoids = distances[:, medoids]
    labels = torch.argmin(to_medoids, dim=1)
    return labels, to_medoids.gather(1, labels.unsqueeze(1)).squeeze(1)


def _sorted_members(labels: Tensor, dist: Tensor, cluster: int) -> Tensor:
    members = torch.nonzero(labels == cluster).flatten()
    order = torch.sort(dist[members], stable=True).indices
    return members[order]


def local_update(distances: Tensor, medoids: Tensor, labels: Tensor, dist: Tensor) -> Tensor:
    """Move each medoid to the member of its cluster with the lowest total
    distance to the other members.

    Members are scanned by increasing distance to the current medoid, so the
    medoid stays in place unless another member is strictly better. An empty
    cluster keeps its medoid.
    """
    updated = medoids.clone()
    for c in range(medoids.shape[0]):
        members = _sorted_members(labels, dist, c)
        if members.numel() == 0:
            continue
        totals = distances[members][:, members].sum(dim=0)
        updated[c] = members[torch.argmin(totals)]
    return updated


def pam_update(distances: Tensor, medoids: Tensor, labels: Tensor, dist: Tensor) -> Tensor:
    """Apply the medoid/non-medoid swap that lowers the total distance most.

    The cost of replacing medoid i by element h sums, over every element j,
    the change of its distance to the nearest medoid. Nothing changes when no
    swap has a negative cost.
    """
    n = distances.shape[0]
    k = medoids.shape[0]
    if k == n:
        return medoids

    own = torch.nn.functional.one_hot(labels, num_classes=k).bool()
    # Distance to the nearest other medoid, inf with a single medoid
    second = distances[:, medoids].masked_fill(own, float('inf')).min(dim=1).values

    dj = dist.unsqueeze(1)
    # j keeps its medoid unless h is closer
    outside = (distances - dj).clamp(max=0.0)
    # j loses its medoid and moves to h or to its second medoid
    inside = torch.minimum(distances, second.unsqueeze(1)) - dj

    cost = outside.sum(dim=0).unsqueeze(0) + own.t().to(distances.dtype) @ (inside - outside)
    cost[:, medoids] = float('inf')

    i, h = divmod(int(torch.argmin(cost).item()), n)
    updated = medoids.clone()
    if cost[i, h] < 0:
        updated[i] = h
    return updated


_UPDATES = {
    'local': local_update,
    'pam': pam_update,
}


class KMedoids:
    """k-medoids clustering on a distance matrix.

    Parameters
    ----------
    n_clusters : int
        Number of clusters
    init : str or array-like, default='central'
        Initialization method:
        - 'central' : the n_clusters most central elements
        - 'pam' : greedy PAM build
        - array of shape (n_clusters,) : indices of the initial medoids
    update : str, default='local'
        Medoid update:
        - 'local' : each medoid moves to the most central member of its cluster
        - 'pam' : one swap per iteration, the one lowering the total distance most
    max_iter : int, default=300
        Maximum number of iterations
    verbose : int, default=0
        Verbosity level
    device : torch.device, optional
        Device for computation

    Attributes
    ----------
    medoid_indices_ : Tensor of shape (n_clusters,)
        Index of the medoid of each cluster
    labels_ : Tensor of shape (n_samples,)
        Cluster number of each element
    clusters_ : list of lists of (distance, index)
        Members of each cluster by increasing distance to the medoid
    inertia_ : float
        Sum of the distances of the elements to their medoid
    n_iter_ : int
        Number of iterations run
    converged_ : bool
        Whether the total distance stabilised before max_iter
    """

    def __init__(self,
                 n_clusters: int,
                 init: Union[str, Sequence[int], Tensor] = 'central',
                 update: str = 'local',
                 max_iter: int = 300,
                 verbose: int = 0,
                 device: Optional[torch.device] = None):
        self.n_clusters = n_clusters
        self.init = init
        self.update = update
        self.max_iter = max_iter
        self.verbose = verbose
        self.device = device if device is not None else torch.device('cpu')

        self.fitted_ = False
        self.n_iter_ = 0
        self.converged_ = False
        self.medoid_indices_ = None
        self.labels_ = None

    def _check_params(self, n_samples: int) -> None:
        if self.n_clusters < 1:
            raise DomainError(f"n_clusters must be >= 1, got {self.n_clusters}")
        if self.n_clusters > n_samples:
            raise DimensionError(f"n_clusters ({self.n_clusters}) is larger than the "
                                 f"number of elements ({n_samples}).")
        if self.max_iter < 1:
            raise DomainError(f"max_iter must be >= 1, got {self.max_iter}")
        if self.update not in _UPDATES:
            raise InvalidArgumentError(f"Unknown update method: {self.update}")

    def _initial_medoids(self, D: Tensor) -> Tensor:
        if isinstance(self.init, str):
            if self.init == 'central':
                return central_init(D, self.n_clusters)
            elif self.init == 'pam':
                return pam_init(D, self.n_clusters)
            raise InvalidArgumentError(f"Unknown init method: {self.init}")

        medoids = as_tensor(self.init, dtype=torch.long, device=D.device).reshape(-1)
        if medoids.numel() != self.n_clusters:
            raise DimensionError(f"{medoids.numel()} initial medoids given for "
                                 f"{self.n_clusters} clusters.")
        if ((medoids < 0) | (medoids >= D.shape[0])).any():
            raise InvalidArgumentError("Initial medoid index out of range.")
        if torch.unique(medoids).numel() != medoids.numel():
            raise InvalidArgumentError("Initial medoids must be distinct.")
        return medoids

    def fit(self, distances: MatrixLike, y=None) -> 'KMedoids':
        """Cluster the elements of a distance matrix.

        Parameters
        ----------
        distances : array-like of shape (n_samples, n_samples)
            Distance matrix
        y : Ignored

        Returns
        -------
        self : KMedoids
        """
        D = validate_square_matrix(distances, error=DimensionError, device=self.device)
        self._check_params(D.shape[0])
        update = _UPDATES[self.update]
        medoids = self._initial_medoids(D)
        start_time = time.time()

        self.converged_ = False
        previous = None
        for iteration in range(self.max_iter):
            labels, dist = nearest_medoid(D, medoids)
            inertia = float(dist.sum().item())
            self.n_iter_ = iteration + 1

            if self.verbose >= 2 or (self.verbose >= 1 and iteration % 10 == 0):
                print(f"Iteration {iteration:3d}: total distance {inertia:.6f}")

            if inertia == previous:
                self.converged_ = True
                if self.verbose:
                    print(f"Converged at iteration {iteration}")
                break
            previous = inertia

            if iteration + 1 < self.max_iter:
                medoids = update(D, medoids, labels, dist)

        if self.verbose:
            if not self.converged_:
                warnings.warn(f"Failed to converge after {self.max_iter} iterations")
            print(f"Total fitting time: {time.time() - start_time:.3f}s")

        self.medoid_indices_ = medoids
        self.labels_ = labels
        self.inertia_ = inertia
        self.clusters_ = []
        for c in range(medoids.shape[0]):
            members = _sorted_members(labels, dist, c)
            self.clusters_.append(list(zip(dist[members].tolist(), members.tolist())))
        self.fitted_ = True
        return self

    def fit_predict(self, distances: MatrixLike, y=None) -> Tensor:
        """Fit and return the cluster number of each element."""
        self.fit(distances)
        return self.labels_

    def get_params(self, deep: bool = True) -> Dict[str, Any]:
        """Get parameters (sklearn compatibility)."""
        return {
            'n_clusters': self.n_clusters,
            'init': self.init,
            'update': self.update,
            'max_iter': self.max_iter,
            'verbose': self.verbose,
            'device': self.device
        }

    def set_params(self, **params) -> 'KMedoids':
        """Set parameters (sklearn compatibility)."""
        for key, value in params.items():
            setattr(self, key, value)
        return self


def kmedoids(distances: MatrixLike,
             n_clusters: int,
             init: Union[str, Sequence[int], Tensor] = 'central',
             update: str = 'local',
             max_iter: int = 300,
             verbose: int = 0) -> KMedoidsResult:
    """Cluster a distance matrix with k-medoids.

    Args:
        distances: (n, n) distance matrix
        n_clusters: Number of clusters
        init: 'central', 'pam' or the indices of the initial medoids
        update: 'local' or 'pam'
        max_iter: Maximum number of iterations
        verbose: Verbosity level

    Returns:
        KMedoidsResult(labels, clusters, medoids)

    Raises:
        DimensionError: If the matrix is empty or not square, or has fewer
            elements than n_clusters
        DomainError: If n_clusters or max_iter is < 1
        InvalidArgumentError: If init or update is unknown or invalid
    """
    model = KMedoids(
        n_clusters=n_clusters,
        init=init,
        update=update,
        max_iter=max_iter,
        verbose=verbose
    ).fit(distances)
    return KMedoidsResult(
        labels=model.labels_.tolist(),
        clusters=model.clusters_,
        medoids=model.medoid_indices_.tolist()
    )
