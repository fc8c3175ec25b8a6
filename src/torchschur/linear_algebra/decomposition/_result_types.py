from typing import NamedTuple

from torch import Tensor


class HessenbergResult(NamedTuple):
    """Result of Hessenberg decomposition A = QHQ^T.

    H is upper Hessenberg (zeros below the first subdiagonal) and Q is
    orthogonal.
    """

    H: Tensor
    Q: Tensor
    info: Tensor


class SchurDecompositionResult(NamedTuple):
    """Result of real Schur decomposition A = QTQ^T.

    T is upper quasi-triangular: 1x1 diagonal blocks hold real eigenvalues,
    2x2 diagonal blocks hold complex conjugate pairs.
    """

    T: Tensor  # (..., n, n) - quasi-triangular Schur form
    Q: Tensor  # (..., n, n) - orthogonal Schur vectors
    eigenvalues: Tensor  # (..., n) - complex, read from the diagonal blocks
    info: Tensor  # (...) - int, 0 on success, k > 0 if rows 0..k-1 unreduced


class SchurRunStatistics(NamedTuple):
    """Bookkeeping of one SchurDecomposition.run call."""

    sweeps: int
    deflations: tuple[int, ...]  # block sizes deflated from the bottom


class SymmetricTridiagonalEigenvalueResult(NamedTuple):
    """Result of the symmetric tridiagonal QR iteration."""

    eigenvalues: Tensor  # (n,) - ascending
    eigenvectors: Tensor | None  # (m, n) - Z @ V, or None if not requested
    info: Tensor


class SymmetricEigenvalueResult(NamedTuple):
    """Result of symmetric eigendecomposition A = V diag(w) V^T."""

    eigenvalues: Tensor  # (..., n) - ascending
    eigenvectors: Tensor  # (..., n, n) - orthonormal columns
    info: Tensor  # (...) - int, 0 on success
