"""Symmetric eigendecomposition through tridiagonal QR iteration."""

import math

import torch
from torch import Tensor

from torchschur.linear_algebra.decomposition._block import block
from torchschur.linear_algebra.decomposition._checks import (
    as_real_floating,
    check_precision,
    check_square,
    check_symmetric,
)
from torchschur.linear_algebra.decomposition._exceptions import (
    NonConvergenceError,
    NumericalError,
)
from torchschur.linear_algebra.decomposition._givens_rotator import (
    GivensRotator,
)
from torchschur.linear_algebra.decomposition._hessenberg import (
    HessenbergReduction,
)
from torchschur.linear_algebra.decomposition._result_types import (
    SymmetricEigenvalueResult,
    SymmetricTridiagonalEigenvalueResult,
)
from torchschur.linear_algebra.decomposition._schur_decomposition import (
    default_max_sweeps,
)
from torchschur.linear_algebra.decomposition._tridiagonal_symmetric import (
    TridiagonalSymmetric,
)


def symmetric_tridiagonal_reduction(
    a: Tensor,
) -> tuple[TridiagonalSymmetric, Tensor]:
    r"""
    Reduce a symmetric matrix to tridiagonal form.

    Computes :math:`A = Q \, \mathrm{tridiag}(d, e) \, Q^T` with the
    Hessenberg reduction, whose output is tridiagonal for symmetric input.

    Parameters
    ----------
    a : Tensor
        Symmetric matrix of shape (n, n) with n >= 2.

    Returns
    -------
    tuple[TridiagonalSymmetric, Tensor]
        The tridiagonal form and the orthogonal matrix Q.

    Raises
    ------
    ValueError
        If ``a`` is not a square 2D matrix of order at least 2, or is not
        symmetric.
    """
    check_square(a)
    if a.dim() != 2:
        raise ValueError(f"a must be 2D, got {a.dim()}D")
    a = as_real_floating(a)
    if a.shape[-1] < 2:
        raise ValueError(f"a must be at least 2x2, got shape {a.shape}")
    check_symmetric(a)

    H = a.clone()
    Q = torch.empty_like(H)
    HessenbergReduction().run(H, Q)

    tridiagonal = TridiagonalSymmetric.from_diagonals(
        H.diagonal(), H.diagonal(-1)
    )
    return tridiagonal, Q


class _TridiagonalQRIteration:
    """Implicit Wilkinson-shift QR on the compact diagonals d and e."""

    def __init__(
        self,
        major: Tensor,
        side: Tensor,
        vectors: Tensor | None,
        *,
        precision: float,
        max_sweeps: int,
    ):
        self.d = major
        self.e = side
        self.vectors = vectors
        self.precision = precision
        self.max_sweeps = max_sweeps
        self.sweeps = 0

    def _negligible(self, index: int) -> bool:
        sub = abs(self.e[index - 1].item())
        if sub == 0.0:
            return True
        return sub < self.precision * (
            abs(self.d[index].item()) + abs(self.d[index - 1].item())
        )

    def run(self) -> None:
        end = self.d.shape[0] - 1
        stalled = 0
        while end > 0:
            if self._negligible(end):
                self.e[end - 1] = 0.0
                end -= 1
                stalled = 0
                continue
            if stalled >= self.max_sweeps:
                raise NonConvergenceError(
                    TridiagonalSymmetric.from_diagonals(self.d, self.e).to_dense(),
                    end,
                    self.sweeps,
                )
            start = end - 1
            while start > 0 and not self._negligible(start):
                start -= 1
            if start > 0:
                self.e[start - 1] = 0.0
            self._make_qr_sweep(start, end)
            self.sweeps += 1
            stalled += 1
            if not (torch.isfinite(self.d).all() and torch.isfinite(self.e).all()):
                raise NumericalError(
                    f"non-finite diagonal entries after {self.sweeps} sweeps"
                )

    def _make_qr_sweep(self, start: int, end: int) -> None:
        d, e = self.d, self.e

        # Wilkinson shift: eigenvalue of the trailing 2x2 block closer to d[end].
        half_gap = 0.5 * (d[end - 1].item() - d[end].item())
        coupling = e[end - 1].item()
        shift = d[end].item() - coupling * coupling / (
            half_gap + math.copysign(math.hypot(half_gap, coupling), half_gap)
        )

        x = d[start].item() - shift
        z = e[start].item()
        for k in range(start, end):
            rotator = GivensRotator(x, z)
            c, s = rotator.cosine, rotator.sine
            if k > start:
                e[k - 1] = rotator.radius

            a, b, f = d[k].item(), e[k].item(), d[k + 1].item()
            d[k] = c * c * a + 2.0 * c * s * b + s * s * f
            d[k + 1] = s * s * a - 2.0 * c * s * b + c * c * f
            e[k] = c * s * (f - a) + (c * c - s * s) * b

            if k < end - 1:
                # The rotation pushes the bulge to (k + 2, k).
                x = e[k].item()
                z = s * e[k + 1].item()
                e[k + 1] = c * e[k + 1].item()

            if self.vectors is not None:
                rows = self.vectors.shape[0]
                rotator.apply(block(self.vectors, 0, k, rows, 2).T)


def symmetric_tridiagonal_eigenvalue(
    tridiagonal: TridiagonalSymmetric,
    *,
    precision: float | None = None,
    unitary: Tensor | None = None,
    eigenvectors: bool = True,
    max_sweeps: int | None = None,
) -> SymmetricTridiagonalEigenvalueResult:
    r"""
    Eigenvalues of a symmetric tridiagonal matrix by implicit QR.

    Each sweep applies a sequence of Givens rotations chasing a single
    scalar bulge down the band, with the Wilkinson shift taken from the
    trailing 2x2 block. Plane rotations keep the matrix tridiagonal, so the
    whole iteration runs on the compact diagonals. Converged eigenvalues are
    deflated from the bottom with the relative test

    .. math::

        |e_{i-1}| < \text{precision} \cdot (|d_i| + |d_{i-1}|).

    Parameters
    ----------
    tridiagonal : TridiagonalSymmetric
        Matrix to diagonalize. Not modified.
    precision : float, optional
        Deflation tolerance. Default: ``torch.finfo(dtype).eps``.
    unitary : Tensor, optional
        Matrix Z of shape (m, n) that the rotations are accumulated into,
        so that the returned eigenvectors are ``Z @ V``. Pass the Q of
        :func:`symmetric_tridiagonal_reduction` to obtain eigenvectors of
        the original matrix. Default: the identity. Not modified.
    eigenvectors : bool
        If False, rotations are not accumulated and ``eigenvectors`` in the
        result is None.
    max_sweeps : int, optional
        Sweeps allowed without a deflation. Default: ``30 * max(10, n)``.

    Returns
    -------
    SymmetricTridiagonalEigenvalueResult
        eigenvalues : Tensor of shape (n,), ascending
        eigenvectors : Tensor of shape (m, n) or None, columns matching
            ``eigenvalues``
        info : Tensor, int, always 0 on return

    Raises
    ------
    ValueError
        If ``precision`` is negative or ``unitary`` has the wrong number of
        columns.
    NonConvergenceError
        If the sweep limit is exceeded.

    Examples
    --------
    >>> t = TridiagonalSymmetric.from_diagonals(
    ...     torch.tensor([2.0, 2.0], dtype=torch.float64),
    ...     torch.tensor([1.0], dtype=torch.float64),
    ... )
    >>> symmetric_tridiagonal_eigenvalue(t).eigenvalues.tolist()
    [1.0, 3.0]
    """
    major = tridiagonal.get_major_diagonal().clone()
    side = tridiagonal.get_side_diagonal().clone()
    n = tridiagonal.get_size()

    if precision is None:
        precision = torch.finfo(major.dtype).eps
    check_precision(precision)
    if max_sweeps is None:
        max_sweeps = default_max_sweeps(n)
    if max_sweeps < 1:
        raise ValueError(f"max_sweeps must be positive, got {max_sweeps}")

    vectors = None
    if eigenvectors:
        if unitary is None:
            vectors = torch.eye(n, dtype=major.dtype, device=major.device)
        else:
            if unitary.dim() != 2 or unitary.shape[-1] != n:
                raise ValueError(
                    f"unitary must have shape (m, {n}), got {tuple(unitary.shape)}"
                )
            vectors = unitary.to(major.dtype).clone()

    _TridiagonalQRIteration(
        major, side, vectors, precision=precision, max_sweeps=max_sweeps
    ).run()

    order = torch.argsort(major, stable=True)
    if vectors is not None:
        vectors = vectors[:, order]

    return SymmetricTridiagonalEigenvalueResult(
        eigenvalues=major[order],
        eigenvectors=vectors,
        info=torch.tensor(0, dtype=torch.int32, device=major.device),
    )


def symmetric_eigenvalue(
    a: Tensor,
    *,
    precision: float | None = None,
    max_sweeps: int | None = None,
) -> SymmetricEigenvalueResult:
    r"""
    Symmetric eigendecomposition.

    Computes :math:`A = V \operatorname{diag}(w) V^T` for symmetric
    :math:`A` by reducing it to tridiagonal form with Householder reflections
    and diagonalizing the tridiagonal matrix with Givens-rotation QR sweeps.

    Parameters
    ----------
    a : Tensor
        Symmetric matrix of shape (..., n, n).
    precision : float, optional
        Deflation tolerance. Default: ``torch.finfo(dtype).eps``.
    max_sweeps : int, optional
        Sweeps allowed without a deflation. Default: ``30 * max(10, n)``.

    Returns
    -------
    SymmetricEigenvalueResult
        eigenvalues : Tensor of shape (..., n), ascending
        eigenvectors : Tensor of shape (..., n, n), orthonormal columns
        info : Tensor of shape (...), int. 0 indicates success; k > 0 means
            the iteration stopped with rows 0..k-1 unreduced, in which case
            eigenvalues and eigenvectors are NaN.

    Raises
    ------
    ValueError
        If input is not at least 2D, not square, complex, or not symmetric.

    Examples
    --------
    >>> a = torch.tensor([[2.0, 1.0], [1.0, 2.0]], dtype=torch.float64)
    >>> result = symmetric_eigenvalue(a)
    >>> torch.allclose(
    ...     result.eigenvalues, torch.tensor([1.0, 3.0], dtype=torch.float64)
    ... )
    True
    """
    check_square(a)
    a = as_real_floating(a)
    check_symmetric(a)

    batch_shape = a.shape[:-2]
    n = a.shape[-1]
    a_flat = a.reshape(-1, n, n)
    batch_size = a_flat.shape[0]

    eigenvalues = torch.empty(batch_size, n, dtype=a.dtype, device=a.device)
    vectors = torch.empty(batch_size, n, n, dtype=a.dtype, device=a.device)
    info_list = []

    for i in range(batch_size):
        if n < 2:
            eigenvalues[i] = a_flat[i].diagonal()
            vectors[i] = torch.eye(n, dtype=a.dtype, device=a.device)
            info_list.append(0)
            continue
        tridiagonal, Q = symmetric_tridiagonal_reduction(a_flat[i])
        try:
            result = symmetric_tridiagonal_eigenvalue(
                tridiagonal,
                precision=precision,
                unitary=Q,
                max_sweeps=max_sweeps,
            )
        except NonConvergenceError as error:
            eigenvalues[i] = float("nan")
            vectors[i] = float("nan")
            info_list.append(error.active_size + 1)
            continue
        eigenvalues[i] = result.eigenvalues
        vectors[i] = result.eigenvectors
        info_list.append(0)

    info = torch.tensor(info_list, dtype=torch.int32, device=a.device)

    return SymmetricEigenvalueResult(
        eigenvalues=eigenvalues.reshape(*batch_shape, n),
        eigenvectors=vectors.reshape(*batch_shape, n, n),
        info=info.reshape(batch_shape),
    )
