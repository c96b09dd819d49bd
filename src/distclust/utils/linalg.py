"""
Linear algebra utilities for distclust.

Symmetric eigendecomposition with an explicit iteration bound, used by the
spectral clustering solver.
"""

from typing import Tuple, Optional
import torch
from torch import Tensor
import warnings

from ..exceptions import ConvergenceError


def symmetrize(matrix: Tensor, tol: float = 1e-10) -> Tensor:
    """Return ``(M + M^T) / 2``, warning when ``M`` was not symmetric."""
    matrix_sym = 0.5 * (matrix + matrix.t())

    if matrix.numel() > 0 and torch.max(torch.abs(matrix - matrix_sym)) > tol:
        warnings.warn("Input matrix is not symmetric; symmetrizing.")

    return matrix_sym


def safe_eigh(matrix: Tensor, max_iter: int = 1000,
              tol: float = 1e-10) -> Tuple[Tensor, Tensor]:
    """Full eigendecomposition of a symmetric matrix.

    Uses the LAPACK driver and falls back to deflated power iteration
    (bounded by ``max_iter`` iterations per eigenpair) if it fails.

    Args:
        matrix: (n, n) symmetric matrix
        max_iter: Iteration bound of the fallback solver
        tol: Tolerance for the symmetry check

    Returns:
        (n,) eigenvalues in ascending order, (n, n) eigenvectors as columns

    Raises:
        ConvergenceError: If no solver converges within the bound
    """
    matrix_sym = symmetrize(matrix, tol)

    try:
        return torch.linalg.eigh(matrix_sym)
    except RuntimeError as e:
        # torch.linalg.LinAlgError derives from RuntimeError
        warnings.warn(f"Standard eigendecomposition failed: {e}. Using power iteration.")

    eigenvalues, eigenvectors = power_iteration_eigh(
        matrix_sym, k=matrix_sym.shape[0], max_iter=max_iter
    )
    order = torch.argsort(eigenvalues)
    return eigenvalues[order], eigenvectors[:, order]


def power_iteration_eigh(matrix: Tensor, k: int, max_iter: int = 1000,
                         tol: float = 1e-9,
                         generator: Optional[torch.Generator] = None) -> Tuple[Tensor, Tensor]:
    """Compute the k eigenpairs of largest magnitude by power iteration.

    Args:
        matrix: Symmetric matrix
        k: Number of eigenpairs to compute
        max_iter: Maximum iterations per eigenpair
        tol: Convergence tolerance on the (sign-invariant) vector change
        generator: Random generator for the starting vectors

    Returns:
        (k,) eigenvalues, (n, k) eigenvectors

    Raises:
        ConvergenceError: If an eigenpair does not converge within max_iter
    """
    n = matrix.shape[0]
    k = min(k, n)

    eigenvalues = torch.zeros(k, dtype=matrix.dtype, device=matrix.device)
    eigenvectors = torch.zeros(n, k, dtype=matrix.dtype, device=matrix.device)

    remaining_matrix = matrix.clone()

    for i in range(k):
        v = None
        while v is None:
            v = torch.randn(n, dtype=matrix.dtype, device=matrix.device, generator=generator)
            v = _orthonormalize_against(v, eigenvectors[:, :i])
        eigenvalue = torch.dot(v, remaining_matrix @ v)

        converged = False
        for _ in range(max_iter):
            v_new = remaining_matrix @ v
            eigenvalue = torch.dot(v, v_new)
            v_new = _orthonormalize_against(v_new, eigenvectors[:, :i])

            if v_new is None:
                # v lies in the null space of the deflated matrix
                eigenvalue = torch.zeros((), dtype=matrix.dtype, device=matrix.device)
                converged = True
                break

            # Negative eigenvalues flip the sign at every step
            change = min(torch.norm(v_new - v).item(), torch.norm(v_new + v).item())
            v = v_new
            if change < tol:
                converged = True
                break

        if not converged:
            raise ConvergenceError(f"Eigenpair {i} did not converge within {max_iter} iterations.")

        eigenvalues[i] = eigenvalue
        eigenvectors[:, i] = v

        # Deflate matrix
        remaining_matrix = remaining_matrix - eigenvalue * torch.outer(v, v)

    return eigenvalues, eigenvectors


def _orthonormalize_against(v: Tensor, basis: Tensor, eps: float = 1e-12) -> Optional[Tensor]:
    """Remove the components of ``v`` along the orthonormal columns of ``basis``."""
    if basis.shape[1] > 0:
        v = v - basis @ (basis.t() @ v)
    norm = torch.norm(v)
    if norm < eps:
        return None
    return v / norm
