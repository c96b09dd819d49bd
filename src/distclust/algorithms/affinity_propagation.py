"""
Affinity Propagation clustering.

Message-passing clustering (Frey & Dueck, 2007) that selects exemplars among
the input elements. Works directly on a distance matrix: the similarity
between two elements is the negated distance, and the diagonal is replaced
by a preference that controls how many exemplars emerge.
"""

from enum import Enum
from numbers import Real
from typing import Optional, Union, Sequence, Dict, Any
import time
import warnings

import numpy as np
import torch
from torch import Tensor

from ..base.data_structures import AffinityPropagationResult
from ..distances.matrix import off_diagonal_median
from ..exceptions import DomainError, DimensionError, InvalidArgumentError
from ..utils.convergence import IdenticalAssignments
from ..utils.validation import MatrixLike, as_tensor, validate_square_matrix


class Preference(Enum):
    """Qualitative preference policies.

    LOW uses the largest distance as self-dissimilarity (few clusters),
    MEDIUM uses the median off-diagonal distance.
    """
    LOW = 'low'
    MEDIUM = 'medium'


PreferenceLike = Union[Preference, str, float, Sequence[float], np.ndarray, Tensor]


def resolve_preference(distances: Tensor, preference: PreferenceLike) -> Tensor:
    """Per-element self-distance written on the diagonal before negation.

    Args:
        distances: (n, n) validated distance matrix
        preference: Policy, scalar or per-element values

    Returns:
        (n,) tensor

    Raises:
        DimensionError: If a per-element preference does not have n values
        InvalidArgumentError: If the policy name is unknown
    """
    n = distances.shape[0]

    if isinstance(preference, str):
        try:
            preference = Preference(preference.lower())
        except ValueError:
            raise InvalidArgumentError(f"Unknown preference policy: '{preference}'") from None

    if isinstance(preference, Preference):
        if preference is Preference.MEDIUM:
            value = off_diagonal_median(distances)
        else:
            value = distances.max().item()
        return torch.full((n,), value, dtype=distances.dtype, device=distances.device)

    if isinstance(preference, Real):
        return torch.full((n,), float(preference), dtype=distances.dtype, device=distances.device)

    values = as_tensor(preference, dtype=distances.dtype, device=distances.device)
    if values.dim() == 0:
        return values.expand(n).clone()
    values = values.reshape(-1)
    if values.shape[0] != n:
        raise DimensionError(f"The preference has {values.shape[0]} values but the "
                             f"distance matrix has {n} rows.")
    return values


def similarity_matrix(distances: Tensor, preference: PreferenceLike) -> Tensor:
    """Negated distances with the preference on the diagonal."""
    s = distances.clone()
    s.diagonal().copy_(resolve_preference(distances, preference))
    return -s


class AffinityPropagation:
    """Affinity Propagation clustering on a distance matrix.

    Parameters
    ----------
    preference : Preference, str, float or array-like, default='medium'
        Self-distance of each element:
        - 'low' / Preference.LOW : the largest distance (fewer clusters)
        - 'medium' / Preference.MEDIUM : the median off-diagonal distance
        - float : the same value for all elements
        - array of shape (n_samples,) : one value per element
    damping : float, default=0.5
        Damping factor in [0, 1)
    stable_iters_to_stop : int, default=10
        Number of consecutive identical labellings that stops the loop (> 1)
    max_iter : int, default=100
        Maximum number of iterations (> 1)
    verbose : int, default=0
        Verbosity level
    device : torch.device, optional
        Device for computation

    Attributes
    ----------
    cluster_centers_indices_ : Tensor of shape (n_clusters,)
        Indices of the prototype elements, ascending
    labels_ : Tensor of shape (n_samples,)
        Index of the prototype of each element
    responsibility_ : Tensor of shape (n_samples, n_samples)
    availability_ : Tensor of shape (n_samples, n_samples)
    n_iter_ : int
        Number of iterations run
    converged_ : bool
        Whether the labelling stabilised before max_iter
    """

    def __init__(self,
                 preference: PreferenceLike = Preference.MEDIUM,
                 damping: float = 0.5,
                 stable_iters_to_stop: int = 10,
                 max_iter: int = 100,
                 verbose: int = 0,
                 device: Optional[torch.device] = None):
        self.preference = preference
        self.damping = damping
        self.stable_iters_to_stop = stable_iters_to_stop
        self.max_iter = max_iter
        self.verbose = verbose
        self.device = device if device is not None else torch.device('cpu')

        self.fitted_ = False
        self.n_iter_ = 0
        self.converged_ = False
        self.cluster_centers_indices_ = None
        self.labels_ = None

    def _check_params(self) -> None:
        if not (0.0 <= self.damping < 1.0):
            raise DomainError(f"damping must be in [0, 1), got {self.damping}")
        if self.stable_iters_to_stop <= 1:
            raise DomainError(f"The number of stable iterations to stop must be > 1, "
                              f"got {self.stable_iters_to_stop}")
        if self.max_iter <= 1:
            raise DomainError(f"The maximal number of iterations must be > 1, got {self.max_iter}")

    def fit(self, distances: MatrixLike, y=None) -> 'AffinityPropagation':
        """Cluster the elements of a distance matrix.

        Parameters
        ----------
        distances : array-like of shape (n_samples, n_samples)
            Distance matrix
        y : Ignored

        Returns
        -------
        self : AffinityPropagation
        """
        self._check_params()
        D = validate_square_matrix(distances, device=self.device)
        s = similarity_matrix(D, self.preference)
        self._fit_similarity(s)
        return self

    def fit_predict(self, distances: MatrixLike, y=None) -> Tensor:
        """Fit and return the prototype index of each element."""
        self.fit(distances)
        return self.labels_

    def _fit_similarity(self, s: Tensor) -> None:
        n = s.shape[0]
        damping = self.damping
        start_time = time.time()

        r = torch.zeros_like(s)
        a = torch.zeros_like(s)
        labels = torch.zeros(n, dtype=torch.long, device=s.device)

        criterion = IdenticalAssignments(patience=self.stable_iters_to_stop)
        self.converged_ = False
        self.n_iter_ = 0

        if n == 1:
            self.history_ = []
            self._store(r, a, labels)
            self.converged_ = True
            return

        rows = torch.arange(n, device=s.device)

        for iteration in range(self.max_iter):
            # Responsibility: s(i,k) - max_{k' != k} (a(i,k') + s(i,k'))
            as_ = a + s
            top2 = torch.topk(as_, 2, dim=1)
            first, second = top2.values[:, 0], top2.values[:, 1]
            max_excl = first.unsqueeze(1).expand(n, n).clone()
            max_excl[rows, top2.indices[:, 0]] = second
            r = damping * r + (1.0 - damping) * (s - max_excl)

            # Availability
            rp = r.clamp(min=0.0)
            col_sum = rp.sum(dim=0)
            r_diag = r.diagonal()
            rp_diag = rp.diagonal()
            a_new = ((r_diag + col_sum - rp_diag).unsqueeze(0) - rp).clamp(max=0.0)
            a_new.diagonal().copy_(col_sum - rp_diag)
            a = damping * a + (1.0 - damping) * a_new

            labels = torch.argmax(r + a, dim=1)

            converged = criterion.check({'iteration': iteration, 'assignments': labels})
            self.n_iter_ = iteration + 1

            if self.verbose >= 2 or (self.verbose >= 1 and iteration % 10 == 0):
                n_protos = int((labels == rows).sum().item())
                print(f"Iteration {iteration:3d}: {n_protos} prototypes, "
                      f"stable for {criterion.stable_count} iterations")

            if converged:
                self.converged_ = True
                if self.verbose:
                    print(f"Converged at iteration {iteration}")
                break

        if self.verbose:
            if not self.converged_:
                warnings.warn(f"Failed to converge after {self.max_iter} iterations")
            print(f"Total fitting time: {time.time() - start_time:.3f}s")

        self.history_ = criterion.history
        self._store(r, a, self._consistent_labels(s, r, a, labels))

    @staticmethod
    def _consistent_labels(s: Tensor, r: Tensor, a: Tensor, labels: Tensor) -> Tensor:
        """Make every label point at a self-assigned element.

        With no self-assigned element, the one with the largest
        ``r(k,k) + a(k,k)`` becomes the only prototype. Elements whose label
        is not a prototype move to their most similar prototype.
        """
        n = labels.shape[0]
        labels = labels.clone()
        rows = torch.arange(n, device=labels.device)
        is_proto = labels == rows

        if not is_proto.any():
            k = int(torch.argmax(r.diagonal() + a.diagonal()).item())
            labels[k] = k
            is_proto[k] = True

        protos = rows[is_proto]
        dangling = ~is_proto[labels]
        if dangling.any():
            closest = torch.argmax(s[dangling][:, protos], dim=1)
            labels[dangling] = protos[closest]
        return labels

    def _store(self, r: Tensor, a: Tensor, labels: Tensor) -> None:
        self.responsibility_ = r
        self.availability_ = a
        self.labels_ = labels
        rows = torch.arange(labels.shape[0], device=labels.device)
        self.cluster_centers_indices_ = rows[labels == rows]
        self.fitted_ = True

    @property
    def n_clusters_(self) -> int:
        if not self.fitted_:
            raise RuntimeError("Model must be fitted first")
        return int(self.cluster_centers_indices_.numel())

    def get_params(self, deep: bool = True) -> Dict[str, Any]:
        """Get parameters (sklearn compatibility)."""
        return {
            'preference': self.preference,
            'damping': self.damping,
            'stable_iters_to_stop': self.stable_iters_to_stop,
            'max_iter': self.max_iter,
            'verbose': self.verbose,
            'device': self.device
        }

    def set_params(self, **params) -> 'AffinityPropagation':
        """Set parameters (sklearn compatibility)."""
        for key, value in params.items():
            setattr(self, key, value)
        return self


def affinity_propagation(distances: MatrixLike,
                         preference: PreferenceLike = Preference.MEDIUM,
                         damping: float = 0.5,
                         stable_iters_to_stop: int = 10,
                         max_iter: int = 100,
                         verbose: int = 0) -> AffinityPropagationResult:
    """Cluster a distance matrix with Affinity Propagation.

    Args:
        distances: (n, n) distance matrix
        preference: Preference policy, scalar or per-element values
        damping: Damping factor in [0, 1)
        stable_iters_to_stop: Consecutive identical labellings that stop the loop
        max_iter: Maximum number of iterations
        verbose: Verbosity level

    Returns:
        AffinityPropagationResult(prototypes, labels) as lists of indices

    Raises:
        DomainError: If damping, stable_iters_to_stop or max_iter is out of range
        DimensionError: If a per-element preference has the wrong length
        InvalidArgumentError: If the matrix is empty or not square
    """
    model = AffinityPropagation(
        preference=preference,
        damping=damping,
        stable_iters_to_stop=stable_iters_to_stop,
        max_iter=max_iter,
        verbose=verbose
    ).fit(distances)
    return AffinityPropagationResult(
        prototypes=model.cluster_centers_indices_.tolist(),
        labels=model.labels_.tolist()
    )
