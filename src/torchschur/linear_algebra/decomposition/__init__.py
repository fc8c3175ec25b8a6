"""Real Schur decomposition and its building blocks.

The matrix collaborator is ``torch.Tensor``: every operation works in place
on caller-owned tensors through aliasing views, so no copies are made inside
the iterations.

Classes
-------
HouseholderReflector
    Elementary reflector H = I - beta v v^T mapping a vector onto the first
    coordinate axis. Built from a zero vector it acts as the identity.

GivensRotator
    2x2 plane rotation zeroing the second element of a pair.

HessenbergReduction
    In-place reduction of a square matrix to upper Hessenberg form,
    accumulating the orthogonal transform.

SchurDecomposition
    Hessenberg reduction followed by the implicit double-shift (Francis) QR
    iteration with deflation, producing A = U T U^T with T upper
    quasi-triangular.

TridiagonalSymmetric
    Compact storage (major and side diagonal) for symmetric tridiagonal
    matrices.

Functions
---------
block
    Bounds-checked writable view of a rectangular sub-matrix.

hessenberg
    Computes the Hessenberg decomposition A = QHQ^T.

schur_decomposition
    Computes the real Schur decomposition A = QTQ^T and the eigenvalues read
    from the 1x1 and 2x2 diagonal blocks of T.

symmetric_tridiagonal_reduction
    Reduces a symmetric matrix to a TridiagonalSymmetric and its orthogonal
    factor.

symmetric_tridiagonal_eigenvalue
    Eigenvalues and eigenvectors of a TridiagonalSymmetric by implicit
    Givens-rotation QR sweeps.

symmetric_eigenvalue
    Computes A = V diag(w) V^T for symmetric A.

Result Types
------------
HessenbergResult
    Named tuple with H, Q, info.

SchurDecompositionResult
    Named tuple with T, Q, eigenvalues, info.

SchurRunStatistics
    Named tuple with sweeps, deflations.

SymmetricTridiagonalEigenvalueResult
    Named tuple with eigenvalues, eigenvectors, info.

SymmetricEigenvalueResult
    Named tuple with eigenvalues, eigenvectors, info.

Exceptions
----------
SchurDecompositionError
    Base class of iteration failures.

NonConvergenceError
    Sweep limit exceeded; carries the partial matrix and active size.

NumericalError
    NaN or Inf appeared during the iteration.

AbsoluteDeflationWarning
    The legacy absolute deflation criterion was selected.
"""

from torchschur.linear_algebra.decomposition._block import block
from torchschur.linear_algebra.decomposition._exceptions import (
    AbsoluteDeflationWarning,
    NonConvergenceError,
    NumericalError,
    SchurDecompositionError,
)
from torchschur.linear_algebra.decomposition._givens_rotator import (
    GivensRotator,
)
from torchschur.linear_algebra.decomposition._hessenberg import (
    HessenbergReduction,
    hessenberg,
)
from torchschur.linear_algebra.decomposition._householder_reflector import (
    HouseholderReflector,
)
from torchschur.linear_algebra.decomposition._result_types import (
    HessenbergResult,
    SchurDecompositionResult,
    SchurRunStatistics,
    SymmetricEigenvalueResult,
    SymmetricTridiagonalEigenvalueResult,
)
from torchschur.linear_algebra.decomposition._schur_decomposition import (
    SchurDecomposition,
    schur_decomposition,
)
from torchschur.linear_algebra.decomposition._symmetric_eigenvalue import (
    symmetric_eigenvalue,
    symmetric_tridiagonal_eigenvalue,
    symmetric_tridiagonal_reduction,
)
from torchschur.linear_algebra.decomposition._tridiagonal_symmetric import (
    TridiagonalSymmetric,
)

__all__ = [
    "AbsoluteDeflationWarning",
    "GivensRotator",
    "HessenbergReduction",
    "HessenbergResult",
    "HouseholderReflector",
    "NonConvergenceError",
    "NumericalError",
    "SchurDecomposition",
    "SchurDecompositionError",
    "SchurDecompositionResult",
    "SchurRunStatistics",
    "SymmetricEigenvalueResult",
    "SymmetricTridiagonalEigenvalueResult",
    "TridiagonalSymmetric",
    "block",
    "hessenberg",
    "schur_decomposition",
    "symmetric_eigenvalue",
    "symmetric_tridiagonal_eigenvalue",
    "symmetric_tridiagonal_reduction",
]
