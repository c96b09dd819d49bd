"""Utility functions for distclust algorithms."""

from .linalg import (
    symmetrize,
    safe_eigh,
    power_iteration_eigh
)

from .convergence import (
    IdenticalAssignments
)

from .validation import (
    as_tensor,
    validate_square_matrix,
    check_neighborhood,
    check_random_state
)

__all__ = [
    # Linear algebra
    'symmetrize',
    'safe_eigh',
    'power_iteration_eigh',

    # Convergence criteria
    'IdenticalAssignments',

    # Validation
    'as_tensor',
    'validate_square_matrix',
    'check_neighborhood',
    'check_random_state'
]
