"""Householder reflector."""

import math

import torch
from torch import Tensor


class HouseholderReflector:
    r"""Elementary reflector mapping a vector onto the first coordinate axis.

    Builds :math:`H = I - \beta v v^T` such that

    .. math::

        H x = -\operatorname{sign}(x_0) \lVert x \rVert e_1

    with :math:`\operatorname{sign}(0) = +1`. The sign choice keeps
    :math:`v_0 = x_0 + \operatorname{sign}(x_0) \lVert x \rVert` free of
    cancellation.

    Parameters
    ----------
    vector : Tensor
        Vector :math:`x` of shape (k,). It is copied, so the reflector stays
        valid when the source is modified afterwards.

    Notes
    -----
    The vector is scaled by its largest magnitude before :math:`v` and
    :math:`\beta` are formed, so neither overflows nor underflows. If the
    vector is zero, or is already a multiple of :math:`e_1`, the reflector is
    the identity and both ``reflect_*`` methods leave their block untouched.

    Examples
    --------
    >>> x = torch.tensor([3.0, 4.0], dtype=torch.float64)
    >>> reflector = HouseholderReflector(x)
    >>> block = x.reshape(2, 1).clone()
    >>> reflector.reflect_left(block)
    >>> block.flatten().tolist()
    [-5.0, 0.0]
    """

    def __init__(self, vector: Tensor):
        if vector.dim() != 1:
            raise ValueError(
                f"vector must be 1D, got {vector.dim()}D tensor"
            )
        self._length = vector.shape[0]

        v = vector.detach().clone()
        scale = float(v.abs().max()) if self._length > 0 else 0.0

        self._v = None
        self._beta = 0.0

        if scale == 0.0:
            return

        v = v / scale
        tail = float(torch.linalg.vector_norm(v[1:])) if self._length > 1 else 0.0
        if tail == 0.0:
            return

        head = float(v[0])
        norm = math.hypot(head, tail)
        v[0] = head + math.copysign(norm, head)

        self._v = v
        self._beta = 2.0 / float(v @ v)

    @property
    def length(self) -> int:
        """Length k of the vectors the reflector acts on."""
        return self._length

    @property
    def is_identity(self) -> bool:
        """True when the reflector was built from a degenerate vector."""
        return self._v is None

    @property
    def vector(self) -> Tensor | None:
        """Reflection vector v, or None for the identity reflector."""
        return self._v

    @property
    def beta(self) -> float:
        """Scaling factor beta; zero for the identity reflector."""
        return self._beta

    def reflect_left(self, block: Tensor) -> None:
        """Overwrite ``block`` (k x m) with ``H @ block``."""
        if block.dim() != 2 or block.shape[0] != self._length:
            raise ValueError(
                f"reflect_left expects a block with {self._length} rows, "
                f"got shape {tuple(block.shape)}"
            )
        if self._v is None:
            return
        v = self._v.to(block.dtype)
        block.addr_(v, v @ block, alpha=-self._beta)

    def reflect_right(self, block: Tensor) -> None:
        """Overwrite ``block`` (m x k) with ``block @ H``."""
        if block.dim() != 2 or block.shape[1] != self._length:
            raise ValueError(
                f"reflect_right expects a block with {self._length} columns, "
                f"got shape {tuple(block.shape)}"
            )
        if self._v is None:
            return
        v = self._v.to(block.dtype)
        block.addr_(block @ v, v, alpha=-self._beta)
