"""
Input validation utilities.

Every solver in distclust consumes square matrices (distances, costs,
similarities or affinities). These helpers convert the accepted input forms
to float64 tensors and perform the eager checks shared by the solvers.
"""

from typing import Optional, Sequence, Type, Union
import torch
from torch import Tensor
import numpy as np

from ..exceptions import DistClustError, InvalidArgumentError, DomainError, LogicError


MatrixLike = Union[Tensor, np.ndarray, Sequence[Sequence[float]]]


def as_tensor(X, dtype: torch.dtype = torch.float64,
              device: Optional[torch.device] = None) -> Tensor:
    """Convert a tensor, numpy array, lazy matrix or (nested) list to a tensor.

    Args:
        X: Input data
        dtype: Target data type
        device: Target device

    Returns:
        Tensor of the requested dtype
    """
    if hasattr(X, 'to_tensor'):
        # LazyDistanceMatrix and friends
        X = X.to_tensor()

    if isinstance(X, Tensor):
        return X.to(dtype=dtype, device=device)
    elif isinstance(X, np.ndarray):
        return torch.from_numpy(X).to(dtype=dtype, device=device)
    elif isinstance(X, (list, tuple)):
        return torch.tensor(X, dtype=dtype, device=device)
    else:
        raise TypeError(f"Cannot convert {type(X)} to tensor")


def validate_square_matrix(matrix: MatrixLike,
                           error: Type[DistClustError] = InvalidArgumentError,
                           allow_empty: bool = False,
                           name: str = 'distance matrix',
                           dtype: torch.dtype = torch.float64,
                           device: Optional[torch.device] = None) -> Tensor:
    """Validate a square matrix and convert it to a tensor.

    Args:
        matrix: Tensor, numpy array, lazy matrix or nested sequence
        error: Exception class raised for a non-square (or empty) input
        allow_empty: Whether a 0x0 matrix is acceptable
        name: Name used in error messages
        dtype: Target data type
        device: Target device

    Returns:
        (n, n) tensor

    Raises:
        error: If the matrix is not square, a nested sequence has non-sequence
            rows, or the matrix is empty when not allowed
    """
    if isinstance(matrix, (list, tuple)):
        # Ragged rows would make torch.tensor fail with an unrelated message
        n = len(matrix)
        for row in matrix:
            if isinstance(row, np.ndarray):
                is_row = row.ndim == 1
            else:
                is_row = isinstance(row, Sequence) and not isinstance(row, (str, bytes))
            if not is_row:
                raise error(f"The {name} must be a sequence of rows, got a "
                            f"{type(row).__name__} entry.")
            if len(row) != n:
                raise error(f"The {name} is not square.")
        if n == 0:
            if not allow_empty:
                raise error(f"Empty {name}.")
            return torch.zeros(0, 0, dtype=dtype, device=device)

    M = as_tensor(matrix, dtype=dtype, device=device)

    if M.dim() != 2 or M.shape[0] != M.shape[1]:
        raise error(f"The {name} is not square, got shape {tuple(M.shape)}.")

    if M.shape[0] == 0 and not allow_empty:
        raise error(f"Empty {name}.")

    return M


def check_neighborhood(k: int, n_samples: int, context: str) -> None:
    """Validate the neighborhood size of a k-NN based score.

    Args:
        k: Neighborhood size
        n_samples: Number of elements
        context: Caller name used in messages

    Raises:
        DomainError: If k <= 1
        LogicError: If k >= n_samples
    """
    if k <= 1:
        raise DomainError(f"{context}: the neighborhood must be > 1, got {k}.")
    if n_samples <= k:
        raise LogicError(f"{context}: the neighborhood ({k}) must be smaller than "
                         f"the number of elements ({n_samples}).")


def check_random_state(random_state: Optional[Union[int, torch.Generator]]) -> Optional[torch.Generator]:
    """Create generator from random state.

    Args:
        random_state: Seed or generator

    Returns:
        Generator or None
    """
    if random_state is None:
        return None
    elif isinstance(random_state, torch.Generator):
        return random_state
    elif isinstance(random_state, (int, np.integer)):
        generator = torch.Generator()
        generator.manual_seed(int(random_state))
        return generator
    else:
        raise TypeError(f"random_state must be int or Generator, got {type(random_state)}")
