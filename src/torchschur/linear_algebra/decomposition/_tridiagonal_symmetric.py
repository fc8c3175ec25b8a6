"""Compact storage for symmetric tridiagonal matrices."""

import torch
from torch import Tensor


class TridiagonalSymmetric:
    """Symmetric tridiagonal matrix stored as its two distinct diagonals.

    Parameters
    ----------
    size : int
        Order n of the matrix. Must be at least 2 and cannot change later.
    dtype : torch.dtype, optional
        Floating dtype of the diagonals. Default: ``torch.get_default_dtype()``.
    device : torch.device, optional
        Device of the diagonals.

    Notes
    -----
    The diagonals are returned by reference, so writes through
    ``get_major_diagonal()[i] = ...`` update the matrix. Both start zeroed.

    Examples
    --------
    >>> t = TridiagonalSymmetric(3, dtype=torch.float64)
    >>> t.get_major_diagonal()[:] = torch.tensor([2.0, 2.0, 2.0])
    >>> t.get_side_diagonal()[:] = torch.tensor([-1.0, -1.0])
    >>> t.to_dense()
    tensor([[ 2., -1.,  0.],
            [-1.,  2., -1.],
            [ 0., -1.,  2.]], dtype=torch.float64)
    """

    def __init__(
        self,
        size: int,
        *,
        dtype: torch.dtype | None = None,
        device: torch.device | str | None = None,
    ):
        if size < 2:
            raise ValueError(f"size must be at least 2, got {size}")
        self._size = int(size)
        self._major_diagonal = torch.zeros(size, dtype=dtype, device=device)
        self._side_diagonal = torch.zeros(size - 1, dtype=dtype, device=device)

    @classmethod
    def from_diagonals(
        cls, major_diagonal: Tensor, side_diagonal: Tensor
    ) -> "TridiagonalSymmetric":
        """Build from copies of the given diagonals.

        Raises
        ------
        ValueError
            If the diagonals are not 1D or their lengths are not n and n - 1.
        """
        if major_diagonal.dim() != 1 or side_diagonal.dim() != 1:
            raise ValueError("diagonals must be 1D tensors")
        if side_diagonal.shape[0] != major_diagonal.shape[0] - 1:
            raise ValueError(
                f"side diagonal must have length {major_diagonal.shape[0] - 1}, "
                f"got {side_diagonal.shape[0]}"
            )
        result = cls(
            major_diagonal.shape[0],
            dtype=major_diagonal.dtype,
            device=major_diagonal.device,
        )
        result._major_diagonal.copy_(major_diagonal)
        result._side_diagonal.copy_(side_diagonal)
        return result

    def get_major_diagonal(self) -> Tensor:
        return self._major_diagonal

    def get_side_diagonal(self) -> Tensor:
        return self._side_diagonal

    def get_size(self) -> int:
        return self._size

    def to_dense(self) -> Tensor:
        """Return the full (n, n) matrix."""
        return (
            torch.diag(self._major_diagonal)
            + torch.diag(self._side_diagonal, 1)
            + torch.diag(self._side_diagonal, -1)
        )

    def __repr__(self) -> str:
        return (
            f"TridiagonalSymmetric(size={self._size}, "
            f"major_diagonal={self._major_diagonal}, "
            f"side_diagonal={self._side_diagonal})"
        )
