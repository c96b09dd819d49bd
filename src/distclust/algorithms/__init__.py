"""Assignment and clustering solvers."""

from .hungarian import HungarianSolver, hungarian
from .affinity_propagation import (
    AffinityPropagation,
    Preference,
    affinity_propagation,
    resolve_preference,
    similarity_matrix
)
from .kmedoids import (
    KMedoids,
    kmedoids,
    central_init,
    pam_init,
    local_update,
    pam_update
)
from .spectral import SpectralClustering, gaussian_affinity

__all__ = [
    'HungarianSolver',
    'hungarian',
    'AffinityPropagation',
    'Preference',
    'affinity_propagation',
    'resolve_preference',
    'similarity_matrix',
    'KMedoids',
    'kmedoids',
    'central_init',
    'pam_init',
    'local_update',
    'pam_update',
    'SpectralClustering',
    'gaussian_affinity'
]
