"""Tests for the symmetric tridiagonal eigensolver."""

import math

import pytest
import torch

from torchschur.linear_algebra.decomposition import (
    NonConvergenceError,
    SymmetricEigenvalueResult,
    SymmetricTridiagonalEigenvalueResult,
    TridiagonalSymmetric,
    symmetric_eigenvalue,
    symmetric_tridiagonal_eigenvalue,
    symmetric_tridiagonal_reduction,
)


def _laplacian(n):
    return TridiagonalSymmetric.from_diagonals(
        torch.full((n,), 2.0, dtype=torch.float64),
        torch.full((n - 1,), -1.0, dtype=torch.float64),
    )


def _random_symmetric(n, seed):
    torch.manual_seed(seed)
    b = torch.randn(n, n, dtype=torch.float64)
    return b + b.T


class TestSymmetricTridiagonalReduction:
    """Tests for symmetric_tridiagonal_reduction."""

    def test_reconstruction(self):
        a = _random_symmetric(6, 0)

        tridiagonal, Q = symmetric_tridiagonal_reduction(a)

        assert isinstance(tridiagonal, TridiagonalSymmetric)
        assert tridiagonal.get_size() == 6
        torch.testing.assert_close(
            Q @ tridiagonal.to_dense() @ Q.T, a, rtol=1e-10, atol=1e-10
        )

    def test_already_tridiagonal(self):
        a = _laplacian(4).to_dense()

        tridiagonal, Q = symmetric_tridiagonal_reduction(a)

        assert torch.equal(tridiagonal.to_dense(), a)
        assert torch.equal(Q, torch.eye(4, dtype=torch.float64))

    def test_not_symmetric(self):
        a = torch.tensor([[1.0, 2.0], [3.0, 4.0]], dtype=torch.float64)
        with pytest.raises(ValueError, match="must be symmetric"):
            symmetric_tridiagonal_reduction(a)

    def test_small_scale_asymmetry_detected(self):
        """Asymmetry is judged relative to the size of the entries."""
        a = torch.tensor(
            [[0.0, 2e-9, 0.0], [0.0, 0.0, 3e-9], [1e-9, 0.0, 0.0]],
            dtype=torch.float64,
        )
        with pytest.raises(ValueError, match="must be symmetric"):
            symmetric_tridiagonal_reduction(a)

    def test_small_scale_symmetric_accepted(self):
        a = _random_symmetric(4, 6) * 1e-12

        tridiagonal, Q = symmetric_tridiagonal_reduction(a)

        torch.testing.assert_close(
            Q @ tridiagonal.to_dense() @ Q.T, a, rtol=1e-10, atol=1e-22
        )

    def test_batched_rejected(self):
        with pytest.raises(ValueError, match="must be 2D"):
            symmetric_tridiagonal_reduction(torch.zeros(2, 3, 3))

    def test_too_small(self):
        with pytest.raises(ValueError, match="at least 2x2"):
            symmetric_tridiagonal_reduction(torch.ones(1, 1))


class TestSymmetricTridiagonalEigenvalue:
    """Tests for symmetric_tridiagonal_eigenvalue."""

    def test_two_by_two(self):
        t = TridiagonalSymmetric.from_diagonals(
            torch.tensor([2.0, 2.0], dtype=torch.float64),
            torch.tensor([1.0], dtype=torch.float64),
        )

        result = symmetric_tridiagonal_eigenvalue(t)

        assert isinstance(result, SymmetricTridiagonalEigenvalueResult)
        torch.testing.assert_close(
            result.eigenvalues,
            torch.tensor([1.0, 3.0], dtype=torch.float64),
        )
        assert result.info.item() == 0

    def test_laplacian_closed_form(self):
        """The 1D Laplacian has eigenvalues 2 - 2 cos(k pi / (n + 1))."""
        n = 8
        t = _laplacian(n)

        result = symmetric_tridiagonal_eigenvalue(t)

        expected = torch.tensor(
            [2.0 - 2.0 * math.cos(k * math.pi / (n + 1)) for k in range(1, n + 1)],
            dtype=torch.float64,
        )
        torch.testing.assert_close(
            result.eigenvalues, expected, rtol=1e-12, atol=1e-12
        )

    def test_eigenvectors(self):
        """T @ V = V @ diag(w) with orthonormal V."""
        torch.manual_seed(1)
        n = 7
        t = TridiagonalSymmetric.from_diagonals(
            torch.randn(n, dtype=torch.float64),
            torch.randn(n - 1, dtype=torch.float64),
        )

        result = symmetric_tridiagonal_eigenvalue(t)
        V = result.eigenvectors

        torch.testing.assert_close(
            t.to_dense() @ V,
            V * result.eigenvalues,
            rtol=1e-10,
            atol=1e-10,
        )
        torch.testing.assert_close(
            V.T @ V, torch.eye(n, dtype=torch.float64), rtol=1e-12, atol=1e-12
        )

    def test_matches_eigh(self):
        torch.manual_seed(2)
        n = 9
        t = TridiagonalSymmetric.from_diagonals(
            torch.randn(n, dtype=torch.float64),
            torch.randn(n - 1, dtype=torch.float64),
        )

        result = symmetric_tridiagonal_eigenvalue(t, eigenvectors=False)

        assert result.eigenvectors is None
        torch.testing.assert_close(
            result.eigenvalues,
            torch.linalg.eigvalsh(t.to_dense()),
            rtol=1e-10,
            atol=1e-10,
        )

    def test_diagonal_input(self):
        """A zero side diagonal needs no sweep; eigenvalues come out sorted."""
        t = TridiagonalSymmetric.from_diagonals(
            torch.tensor([3.0, -1.0, 2.0], dtype=torch.float64),
            torch.zeros(2, dtype=torch.float64),
        )

        result = symmetric_tridiagonal_eigenvalue(t)

        assert result.eigenvalues.tolist() == [-1.0, 2.0, 3.0]
        expected = torch.eye(3, dtype=torch.float64)[:, [1, 2, 0]]
        assert torch.equal(result.eigenvectors, expected)

    def test_unitary_accumulation(self):
        """Passing the reduction's Q gives eigenvectors of the original."""
        a = _random_symmetric(5, 3)
        tridiagonal, Q = symmetric_tridiagonal_reduction(a)

        result = symmetric_tridiagonal_eigenvalue(tridiagonal, unitary=Q)
        V = result.eigenvectors

        torch.testing.assert_close(
            a @ V, V * result.eigenvalues, rtol=1e-10, atol=1e-10
        )

    def test_does_not_modify_input(self):
        t = _laplacian(5)
        Q = torch.eye(5, dtype=torch.float64)
        major = t.get_major_diagonal().clone()
        side = t.get_side_diagonal().clone()

        symmetric_tridiagonal_eigenvalue(t, unitary=Q)

        assert torch.equal(t.get_major_diagonal(), major)
        assert torch.equal(t.get_side_diagonal(), side)
        assert torch.equal(Q, torch.eye(5, dtype=torch.float64))

    def test_non_convergence(self):
        """With zero precision only exact zeros deflate."""
        with pytest.raises(NonConvergenceError) as info:
            symmetric_tridiagonal_eigenvalue(
                _laplacian(6), precision=0.0, max_sweeps=1
            )

        assert info.value.active_size == 5
        assert info.value.sweeps == 1
        assert info.value.matrix.shape == (6, 6)

    def test_invalid_unitary(self):
        with pytest.raises(ValueError, match="unitary must have shape"):
            symmetric_tridiagonal_eigenvalue(
                _laplacian(3), unitary=torch.eye(4, dtype=torch.float64)
            )

    def test_invalid_precision(self):
        with pytest.raises(ValueError, match="non-negative"):
            symmetric_tridiagonal_eigenvalue(_laplacian(3), precision=-1.0)

    def test_invalid_max_sweeps(self):
        with pytest.raises(ValueError, match="max_sweeps must be positive"):
            symmetric_tridiagonal_eigenvalue(_laplacian(3), max_sweeps=0)


class TestSymmetricEigenvalue:
    """Tests for symmetric_eigenvalue."""

    def test_basic(self):
        a = torch.tensor([[2.0, 1.0], [1.0, 2.0]], dtype=torch.float64)

        result = symmetric_eigenvalue(a)

        assert isinstance(result, SymmetricEigenvalueResult)
        torch.testing.assert_close(
            result.eigenvalues, torch.tensor([1.0, 3.0], dtype=torch.float64)
        )
        assert result.eigenvectors.shape == (2, 2)
        assert result.info.shape == ()
        assert result.info.item() == 0

    @pytest.mark.parametrize("n", [3, 5, 8])
    def test_matches_eigh(self, n):
        a = _random_symmetric(n, n)

        result = symmetric_eigenvalue(a)

        torch.testing.assert_close(
            result.eigenvalues,
            torch.linalg.eigvalsh(a),
            rtol=1e-10,
            atol=1e-10,
        )

    def test_reconstruction(self):
        """V @ diag(w) @ V.T reproduces the input."""
        a = _random_symmetric(6, 4)

        result = symmetric_eigenvalue(a)
        V = result.eigenvectors

        torch.testing.assert_close(
            V @ torch.diag(result.eigenvalues) @ V.T, a, rtol=1e-10, atol=1e-10
        )
        torch.testing.assert_close(
            V.T @ V, torch.eye(6, dtype=torch.float64), rtol=1e-12, atol=1e-12
        )

    def test_repeated_eigenvalues(self):
        a = torch.eye(3, dtype=torch.float64) * 4.0

        result = symmetric_eigenvalue(a)

        assert result.eigenvalues.tolist() == [4.0, 4.0, 4.0]
        assert torch.equal(result.eigenvectors, torch.eye(3, dtype=torch.float64))

    def test_batched(self):
        torch.manual_seed(5)
        b = torch.randn(2, 3, 4, 4, dtype=torch.float64)
        a = b + b.mT

        result = symmetric_eigenvalue(a)

        assert result.eigenvalues.shape == (2, 3, 4)
        assert result.eigenvectors.shape == (2, 3, 4, 4)
        assert result.info.shape == (2, 3)
        torch.testing.assert_close(
            result.eigenvalues, torch.linalg.eigvalsh(a), rtol=1e-10, atol=1e-10
        )

    def test_one_by_one(self):
        result = symmetric_eigenvalue(torch.tensor([[5.0]], dtype=torch.float64))

        assert result.eigenvalues.tolist() == [5.0]
        assert result.eigenvectors.tolist() == [[1.0]]

    def test_integer_input_promoted(self):
        result = symmetric_eigenvalue(torch.tensor([[2, 1], [1, 2]]))

        assert result.eigenvalues.dtype == torch.float64

    def test_non_convergence_sets_info(self):
        a = _laplacian(6).to_dense()

        result = symmetric_eigenvalue(a, precision=0.0, max_sweeps=1)

        assert result.info.item() == 6
        assert torch.isnan(result.eigenvalues).all()
        assert torch.isnan(result.eigenvectors).all()

    def test_not_symmetric(self):
        with pytest.raises(ValueError, match="must be symmetric"):
            symmetric_eigenvalue(torch.tensor([[1.0, 2.0], [0.0, 1.0]]))

    @pytest.mark.parametrize("scale", [1e-9, 1.0, 1e9])
    def test_asymmetry_detected_at_any_scale(self, scale):
        a = scale * torch.tensor(
            [[0.0, 2.0, 0.0], [0.0, 0.0, 3.0], [1.0, 0.0, 0.0]],
            dtype=torch.float64,
        )
        with pytest.raises(ValueError, match="must be symmetric"):
            symmetric_eigenvalue(a)

    def test_asymmetric_batch_member_detected(self):
        a = torch.stack(
            [
                torch.eye(2, dtype=torch.float64),
                torch.tensor([[1.0, 1e-6], [0.0, 1.0]], dtype=torch.float64),
            ]
        )
        with pytest.raises(ValueError, match="must be symmetric"):
            symmetric_eigenvalue(a)

    def test_rounding_level_asymmetry_accepted(self):
        """A @ A.T computed in floating point counts as symmetric."""
        torch.manual_seed(7)
        b = torch.randn(5, 5, dtype=torch.float64)
        a = b @ b.T
        a[0, 1] += 4 * torch.finfo(torch.float64).eps * a.abs().max()

        result = symmetric_eigenvalue(a)

        assert result.info.item() == 0

    def test_invalid_input_non_square(self):
        with pytest.raises(ValueError, match="must be square"):
            symmetric_eigenvalue(torch.zeros(2, 3))
