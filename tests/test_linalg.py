# tests/test_linalg.py
"""
Symmetric eigendecomposition: power iteration and the LAPACK fallback.
"""

from __future__ import annotations

import pytest

try:
    import torch
except Exception:  # pragma: no cover
    torch = None  # type: ignore

from distclust.exceptions import ConvergenceError
from distclust.utils.linalg import power_iteration_eigh, safe_eigh, symmetrize


pytestmark = pytest.mark.skipif(torch is None, reason="PyTorch is required for these tests")


def _symmetric_with_spectrum(values, seed=0):
    g = torch.Generator().manual_seed(seed)
    n = len(values)
    Q, _ = torch.linalg.qr(torch.randn(n, n, generator=g, dtype=torch.float64))
    M = Q @ torch.diag(torch.tensor(values, dtype=torch.float64)) @ Q.t()
    return 0.5 * (M + M.t())


SPECTRUM = [6.0, -4.0, 3.0, 2.0, -1.0, 0.5]


def test_power_iteration_matches_eigvalsh():
    M = _symmetric_with_spectrum(SPECTRUM)
    values, vectors = power_iteration_eigh(M, k=6, generator=torch.Generator().manual_seed(1))

    # Largest magnitude first
    assert values.tolist() == pytest.approx(SPECTRUM, abs=1e-6)
    assert torch.sort(values).values.tolist() == pytest.approx(
        torch.linalg.eigvalsh(M).tolist(), abs=1e-6)
    assert torch.allclose(M @ vectors, vectors * values, atol=1e-6)


def test_power_iteration_partial():
    M = _symmetric_with_spectrum(SPECTRUM)
    values, vectors = power_iteration_eigh(M, k=2, generator=torch.Generator().manual_seed(2))
    assert values.tolist() == pytest.approx([6.0, -4.0], abs=1e-6)
    assert vectors.shape == (6, 2)


def test_power_iteration_raises_on_opposite_eigenvalues():
    # +1 and -1 have the same magnitude: the iterate keeps oscillating
    M = torch.diag(torch.tensor([1.0, -1.0, 0.5], dtype=torch.float64))
    with pytest.raises(ConvergenceError):
        power_iteration_eigh(M, k=3, max_iter=100, generator=torch.Generator().manual_seed(3))


def test_safe_eigh_uses_lapack_when_it_works():
    M = _symmetric_with_spectrum(SPECTRUM)
    values, vectors = safe_eigh(M)
    assert values.tolist() == pytest.approx(sorted(SPECTRUM), abs=1e-10)
    assert vectors.shape == (6, 6)


def test_safe_eigh_falls_back_to_power_iteration(monkeypatch):
    M = _symmetric_with_spectrum(SPECTRUM)
    expected = torch.linalg.eigvalsh(M)

    def failing_eigh(matrix):
        raise RuntimeError("simulated LAPACK failure")

    monkeypatch.setattr(torch.linalg, "eigh", failing_eigh)
    with pytest.warns(UserWarning, match="power iteration"):
        values, vectors = safe_eigh(M)

    # Ascending, like torch.linalg.eigh
    assert values.tolist() == pytest.approx(expected.tolist(), abs=1e-6)
    assert torch.allclose(M @ vectors, vectors * values, atol=1e-6)


def test_safe_eigh_fallback_reports_non_convergence(monkeypatch):
    def failing_eigh(matrix):
        raise RuntimeError("simulated LAPACK failure")

    monkeypatch.setattr(torch.linalg, "eigh", failing_eigh)
    M = torch.diag(torch.tensor([1.0, -1.0, 0.5], dtype=torch.float64))
    with pytest.warns(UserWarning):
        with pytest.raises(ConvergenceError):
            safe_eigh(M, max_iter=100)


def test_symmetrize_warns_on_asymmetric_input():
    M = torch.tensor([[0.0, 1.0], [0.0, 0.0]], dtype=torch.float64)
    with pytest.warns(UserWarning, match="not symmetric"):
        S = symmetrize(M)
    assert S.tolist() == [[0.0, 0.5], [0.5, 0.0]]
