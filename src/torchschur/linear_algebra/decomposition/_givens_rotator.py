"""Givens rotation."""

import math

from torch import Tensor


class GivensRotator:
    r"""Plane rotation zeroing the second element of a pair.

    For a pair :math:`(a, b)` computes :math:`c = a / r`, :math:`s = b / r`
    with :math:`r = \sqrt{a^2 + b^2}` so that

    .. math::

        G = \begin{pmatrix} c & s \\ -s & c \end{pmatrix}, \qquad
        G \begin{pmatrix} a \\ b \end{pmatrix}
        = \begin{pmatrix} r \\ 0 \end{pmatrix}.

    When :math:`b = 0` the rotation is the identity and :math:`r = a`.

    Parameters
    ----------
    a, b : float
        Pivot pair. Zero-dimensional tensors are accepted.
    """

    def __init__(self, a: float, b: float):
        a = float(a)
        b = float(b)
        if b == 0.0:
            self._c, self._s, self._r = 1.0, 0.0, a
        else:
            r = math.hypot(a, b)
            self._c, self._s, self._r = a / r, b / r, r

    @property
    def cosine(self) -> float:
        return self._c

    @property
    def sine(self) -> float:
        return self._s

    @property
    def radius(self) -> float:
        """Value left in the first slot after rotating the pivot pair."""
        return self._r

    def apply(self, pair: Tensor) -> None:
        """Replace the two rows of ``pair`` (2 x m) with ``G @ pair``.

        To rotate two columns, pass the transposed view: ``apply(cols.T)``
        overwrites ``cols`` (m x 2) with ``cols @ G.T``.
        """
        if pair.dim() != 2 or pair.shape[0] != 2:
            raise ValueError(
                f"apply expects a pair of shape (2, m), got {tuple(pair.shape)}"
            )
        if self._s == 0.0 and self._c == 1.0:
            return
        first = pair[0].clone()
        pair[0].mul_(self._c).add_(pair[1], alpha=self._s)
        pair[1].mul_(self._c).add_(first, alpha=-self._s)
