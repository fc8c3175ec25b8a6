"""Hessenberg decomposition."""

import torch
from torch import Tensor

from torchschur.linear_algebra.decomposition._block import block
from torchschur.linear_algebra.decomposition._checks import (
    as_real_floating,
    check_square,
)
from torchschur.linear_algebra.decomposition._householder_reflector import (
    HouseholderReflector,
)
from torchschur.linear_algebra.decomposition._result_types import (
    HessenbergResult,
)


class HessenbergReduction:
    """In-place reduction of a square matrix to upper Hessenberg form.

    One Householder reflector per column, left to right: the reflector for
    column k is built from ``matrix[k+1:, k]`` and eliminates everything
    below the first subdiagonal using rows k+1..n-1 only. Each reflector is
    applied from the left to the trailing columns, from the right to the
    trailing columns of the whole matrix, and from the right to the
    accumulator, so that after every step

        accumulator @ matrix @ accumulator.T == original matrix.

    The instance holds no state; ``run`` may be called any number of times.
    """

    def run(self, matrix: Tensor, unitary: Tensor) -> None:
        """Reduce ``matrix`` in place and write the transform into ``unitary``.

        Parameters
        ----------
        matrix : Tensor
            Square matrix of shape (n, n), overwritten with its Hessenberg
            form.
        unitary : Tensor
            Buffer of shape (n, n), overwritten with the orthogonal factor.

        Raises
        ------
        ValueError
            If either argument is missing, not square, not floating point, or
            the shapes differ.
        """
        if matrix is None or unitary is None:
            raise ValueError("matrix and unitary must not be None")
        if matrix.dim() != 2 or matrix.shape[0] != matrix.shape[1]:
            raise ValueError(
                f"matrix must be a square 2D tensor, got shape {tuple(matrix.shape)}"
            )
        if unitary.shape != matrix.shape:
            raise ValueError(
                f"unitary must have shape {tuple(matrix.shape)}, "
                f"got {tuple(unitary.shape)}"
            )
        if not matrix.is_floating_point() or not unitary.is_floating_point():
            raise ValueError("matrix and unitary must be real floating point")

        n = matrix.shape[0]
        unitary.copy_(torch.eye(n, dtype=unitary.dtype, device=unitary.device))

        for k in range(n - 2):
            reflector = HouseholderReflector(matrix[k + 1 :, k])
            reflector.reflect_left(block(matrix, k + 1, k, n - k - 1, n - k))
            reflector.reflect_right(block(matrix, 0, k + 1, n, n - k - 1))
            reflector.reflect_right(block(unitary, 0, k + 1, n, n - k - 1))
            matrix[k + 2 :, k] = 0.0


def hessenberg(a: Tensor) -> HessenbergResult:
    r"""
    Hessenberg decomposition.

    Computes the Hessenberg decomposition :math:`A = QHQ^T` where :math:`H` is
    upper Hessenberg (has zeros below the first subdiagonal) and :math:`Q` is
    orthogonal.

    Parameters
    ----------
    a : Tensor
        Input matrix of shape (..., n, n). Real dtypes other than float32 and
        float64 are promoted to float64.

    Returns
    -------
    HessenbergResult
        A named tuple containing:

        - **H** (*Tensor*) - Upper Hessenberg matrix of shape (..., n, n).
          Entries below the first subdiagonal are exactly zero.
        - **Q** (*Tensor*) - Orthogonal matrix of shape (..., n, n).
        - **info** (*Tensor*) - Integer tensor of shape (...). Always 0; the
          reduction is direct and cannot fail.

    Raises
    ------
    ValueError
        If input is not at least 2D, not square, or complex.

    Notes
    -----
    For an :math:`n \times n` matrix the reduction applies :math:`n - 2`
    Householder reflections. A symmetric input yields a tridiagonal
    :math:`H` (up to rounding above the first superdiagonal).

    Examples
    --------
    >>> a = torch.tensor([[1., 2., 3.], [4., 5., 6.], [7., 8., 9.]])
    >>> result = hessenberg(a)
    >>> torch.allclose(result.Q @ result.H @ result.Q.mT, a, atol=1e-5)
    True
    """
    check_square(a)
    a = as_real_floating(a)

    batch_shape = a.shape[:-2]
    n = a.shape[-1]
    a_flat = a.reshape(-1, n, n)

    H = a_flat.clone()
    Q = torch.empty_like(H)
    reduction = HessenbergReduction()
    for i in range(a_flat.shape[0]):
        reduction.run(H[i], Q[i])

    info = torch.zeros(batch_shape, dtype=torch.int32, device=a.device)

    return HessenbergResult(
        H=H.reshape(*batch_shape, n, n),
        Q=Q.reshape(*batch_shape, n, n),
        info=info,
    )
