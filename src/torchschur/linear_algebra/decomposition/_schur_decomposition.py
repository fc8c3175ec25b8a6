"""Real Schur decomposition by the implicit double-shift QR iteration."""

import math
import warnings

import torch
from torch import Tensor

from torchschur.linear_algebra.decomposition._block import block
from torchschur.linear_algebra.decomposition._checks import (
    as_real_floating,
    check_precision,
    check_square,
)
from torchschur.linear_algebra.decomposition._exceptions import (
    AbsoluteDeflationWarning,
    NonConvergenceError,
    NumericalError,
)
from torchschur.linear_algebra.decomposition._givens_rotator import (
    GivensRotator,
)
from torchschur.linear_algebra.decomposition._hessenberg import (
    HessenbergReduction,
)
from torchschur.linear_algebra.decomposition._householder_reflector import (
    HouseholderReflector,
)
from torchschur.linear_algebra.decomposition._result_types import (
    SchurDecompositionResult,
    SchurRunStatistics,
)

# Sweeps without a deflation after which an ad hoc shift is used.
_EXCEPTIONAL_SHIFT_INTERVAL = 10

_CRITERIA = ("relative", "absolute")


def default_max_sweeps(n: int) -> int:
    """Sweep limit per deflation used when none is given (LAPACK's ITMAX)."""
    return 30 * max(10, n)


class SchurDecomposition:
    r"""Real Schur decomposition :math:`A = U T U^T`.

    :math:`U` is orthogonal and :math:`T` is upper quasi-triangular: entries
    two or more rows below the diagonal are exactly zero, and each nonzero
    subdiagonal entry marks a 2x2 diagonal block holding a complex conjugate
    pair of eigenvalues.

    The matrix is first reduced to Hessenberg form, then driven to
    quasi-triangular form by Francis double-shift QR sweeps. Each sweep
    introduces a bulge with a 3-element Householder reflector built from the
    first column of :math:`M^2 - \operatorname{tr}(B) M + \det(B) I`, where
    :math:`B` is the trailing 2x2 block of the active window and :math:`M`
    its leading 3x3 block, and chases it off the bottom one column at a
    time. Reflections only touch a fixed-width band, so a sweep costs
    :math:`O(n^2)` and convergence :math:`O(n^3)`.

    Parameters
    ----------
    precision : float
        Relative tolerance of the deflation test. A subdiagonal entry
        :math:`T_{i,i-1}` is treated as zero when it is exactly zero or

        .. math::

            |T_{i,i-1}| < \text{precision} \cdot (|T_{i,i}| + |T_{i-1,i-1}|).

    criterion : str
        ``'relative'`` (default) for the test above. ``'absolute'`` compares
        :math:`|T_{i,i-1}|` against ``precision`` alone; it only exists to
        reproduce legacy output and emits :class:`AbsoluteDeflationWarning`.
    max_sweeps : int, optional
        Maximum number of consecutive sweeps without a deflation before
        :class:`NonConvergenceError` is raised. Defaults to
        ``30 * max(10, n)``.

    Examples
    --------
    >>> a = torch.tensor([[2.0, 1.0], [1.0, 2.0]], dtype=torch.float64)
    >>> T = torch.empty_like(a)
    >>> U = torch.empty_like(a)
    >>> SchurDecomposition(1e-15).run(a, T, U)
    SchurRunStatistics(sweeps=0, deflations=())
    >>> T
    tensor([[3., 0.],
            [0., 1.]], dtype=torch.float64)
    """

    def __init__(
        self,
        precision: float,
        *,
        criterion: str = "relative",
        max_sweeps: int | None = None,
    ):
        check_precision(precision)
        if criterion not in _CRITERIA:
            raise ValueError(
                f"criterion must be 'relative' or 'absolute', got {criterion!r}"
            )
        if max_sweeps is not None and max_sweeps < 1:
            raise ValueError(f"max_sweeps must be positive, got {max_sweeps}")
        if criterion == "absolute":
            warnings.warn(
                "The absolute deflation criterion ignores the magnitude of "
                "the neighbouring diagonal entries and may deflate too early "
                "or never. Use criterion='relative' unless legacy output "
                "must be reproduced.",
                AbsoluteDeflationWarning,
                stacklevel=2,
            )
        self._precision = float(precision)
        self._criterion = criterion
        self._max_sweeps = max_sweeps

    def set_precision(self, precision: float) -> None:
        check_precision(precision)
        self._precision = float(precision)

    def get_precision(self) -> float:
        return self._precision

    @property
    def criterion(self) -> str:
        return self._criterion

    @property
    def max_sweeps(self) -> int | None:
        return self._max_sweeps

    def run(
        self, data: Tensor, schur_form: Tensor, unitary: Tensor
    ) -> SchurRunStatistics:
        """Decompose ``data`` into the caller-owned output buffers.

        Parameters
        ----------
        data : Tensor
            Square matrix of shape (n, n). Not modified.
        schur_form : Tensor
            Buffer of shape (n, n), overwritten with T.
        unitary : Tensor
            Buffer of shape (n, n) with the same dtype as ``schur_form``,
            overwritten with U.

        Returns
        -------
        SchurRunStatistics
            Number of sweeps and the sizes of the blocks deflated from the
            bottom of the active block, in order.

        Raises
        ------
        ValueError
            If ``data`` is not square or a buffer is missing or mismatched.
        NonConvergenceError
            If the sweep limit is exceeded. The buffers hold the partial
            result.
        NumericalError
            If NaN or Inf appears in the Schur form.
        """
        if data is None or data.dim() != 2 or data.shape[0] != data.shape[1]:
            raise ValueError(
                f"data must be a square 2D tensor, got "
                f"{None if data is None else tuple(data.shape)}"
            )
        if schur_form is None or unitary is None:
            raise ValueError("schur_form and unitary must not be None")
        if schur_form.shape != data.shape or unitary.shape != data.shape:
            raise ValueError(
                f"schur_form and unitary must have shape {tuple(data.shape)}, "
                f"got {tuple(schur_form.shape)} and {tuple(unitary.shape)}"
            )
        if not schur_form.is_floating_point() or unitary.dtype != schur_form.dtype:
            raise ValueError(
                "schur_form and unitary must share one real floating dtype, "
                f"got {schur_form.dtype} and {unitary.dtype}"
            )

        schur_form.copy_(data)
        HessenbergReduction().run(schur_form, unitary)

        n = data.shape[0]
        max_sweeps = self._max_sweeps
        if max_sweeps is None:
            max_sweeps = default_max_sweeps(n)

        iteration = _FrancisIteration(
            schur_form,
            unitary,
            precision=self._precision,
            criterion=self._criterion,
            max_sweeps=max_sweeps,
        )
        return iteration.run()


class _FrancisIteration:
    """State of one QR run; built fresh by every SchurDecomposition.run."""

    def __init__(
        self,
        schur_form: Tensor,
        unitary: Tensor,
        *,
        precision: float,
        criterion: str,
        max_sweeps: int,
    ):
        self.schur_form = schur_form
        self.unitary = unitary
        self.size = schur_form.shape[0]
        self.precision = precision
        self.criterion = criterion
        self.max_sweeps = max_sweeps
        self.active_size = self.size - 1
        self.sweeps = 0
        self.deflations = []

    def run(self) -> SchurRunStatistics:
        self._check_finite()

        if self.active_size >= 2:
            self._try_to_deflate()

        stalled = 0
        while self.active_size >= 2:
            if stalled >= self.max_sweeps:
                raise NonConvergenceError(
                    self.schur_form.clone(), self.active_size, self.sweeps
                )
            start = self._find_window_start()
            exceptional = (
                stalled > 0 and stalled % _EXCEPTIONAL_SHIFT_INTERVAL == 0
            )
            self._make_qr_sweep(start, exceptional)
            self.sweeps += 1
            stalled += 1
            self._check_finite()
            if self._try_to_deflate():
                stalled = 0

        self._split_real_blocks()

        return SchurRunStatistics(
            sweeps=self.sweeps, deflations=tuple(self.deflations)
        )

    def _entry(self, row: int, column: int) -> float:
        return self.schur_form[row, column].item()

    def _negligible(self, index: int) -> bool:
        sub = abs(self._entry(index, index - 1))
        if sub == 0.0:
            return True
        if self.criterion == "absolute":
            return sub < self.precision
        return sub < self.precision * (
            abs(self._entry(index, index))
            + abs(self._entry(index - 1, index - 1))
        )

    def _try_to_deflate(self) -> bool:
        deflated = False
        while self.active_size >= 2:
            if self._negligible(self.active_size):
                self._deflate(1)
            elif self._negligible(self.active_size - 1):
                self._deflate(2)
            else:
                break
            deflated = True
        return deflated

    def _deflate(self, decrement: int) -> None:
        row = self.active_size + 1 - decrement
        self.schur_form[row, row - 1] = 0.0
        self.active_size -= decrement
        self.deflations.append(decrement)

    def _find_window_start(self) -> int:
        # The two trailing subdiagonal entries are known to be non-negligible.
        for index in range(self.active_size - 2, 0, -1):
            if self._negligible(index):
                self.schur_form[index, index - 1] = 0.0
                return index
        return 0

    def _make_qr_sweep(self, start: int, exceptional: bool) -> None:
        end = self.active_size
        T = self.schur_form

        if exceptional:
            trace, det = self._exceptional_shift()
        else:
            corner = block(T, end - 1, end - 1, 2, 2)
            trace = corner.trace().item()
            det = torch.linalg.det(corner).item()

        # First column of M @ M - trace * M + det * I.
        leading = block(T, start, start, 3, 3)
        column = leading[:, 0]
        starter = leading @ column - trace * column
        starter[0] += det

        self._reflect(HouseholderReflector(starter), start - 1, 3, start)

        for step in range(start, end - 2):
            reflector = HouseholderReflector(T[step + 1 : step + 4, step])
            self._reflect(reflector, step, 3, start)
            T[step + 2 : step + 4, step] = 0.0

        step = end - 2
        reflector = HouseholderReflector(T[step + 1 : step + 3, step])
        self._reflect(reflector, step, 2, start)
        T[end, step] = 0.0

    def _reflect(
        self,
        reflector: HouseholderReflector,
        step: int,
        length: int,
        start: int,
    ) -> None:
        column = max(step, start)
        reflector.reflect_left(
            block(self.schur_form, step + 1, column, length, self.size - column)
        )
        reflector.reflect_right(
            block(
                self.schur_form,
                0,
                step + 1,
                min(self.active_size, step + 4) + 1,
                length,
            )
        )
        reflector.reflect_right(block(self.unitary, 0, step + 1, self.size, length))

    def _exceptional_shift(self) -> tuple[float, float]:
        end = self.active_size
        s = abs(self._entry(end, end - 1)) + abs(self._entry(end - 1, end - 2))
        diagonal = 0.75 * s + self._entry(end, end)
        off_upper = -0.4375 * s
        trace = 2.0 * diagonal
        det = diagonal * diagonal - off_upper * s
        return trace, det

    def _check_finite(self) -> None:
        if not torch.isfinite(self.schur_form).all():
            raise NumericalError(
                f"non-finite entries in Schur form after {self.sweeps} sweeps"
            )

    def _split_real_blocks(self) -> None:
        """Split every 2x2 diagonal block with real eigenvalues in two."""
        T, U, n = self.schur_form, self.unitary, self.size
        i = 0
        while i < n - 1:
            if self._negligible(i + 1):
                T[i + 1, i] = 0.0
                i += 1
                continue

            a, b = self._entry(i, i), self._entry(i, i + 1)
            c, d = self._entry(i + 1, i), self._entry(i + 1, i + 1)
            p = 0.5 * (a - d)
            discriminant = p * p + b * c
            if discriminant < 0.0:
                i += 2
                continue

            # (p + root, c) is an eigenvector of the block shifted by its
            # mean; the rotation taking it to e1 triangularizes the block.
            root = math.copysign(math.sqrt(discriminant), p)
            rotator = GivensRotator(p + root, c)
            rotator.apply(block(T, i, i, 2, n - i))
            rotator.apply(block(T, 0, i, i + 2, 2).T)
            rotator.apply(block(U, 0, i, n, 2).T)

            # A rotation preserves the trace and b - c, so the triangular
            # block is known exactly.
            mean = 0.5 * (a + d)
            T[i, i] = mean + root
            T[i, i + 1] = b - c
            T[i + 1, i] = 0.0
            T[i + 1, i + 1] = mean - root
            i += 2


def _extract_eigenvalues_from_real_schur(T: Tensor) -> Tensor:
    """Extract eigenvalues from real Schur form (quasi-triangular)."""
    complex_dtype = (
        torch.complex64 if T.dtype == torch.float32 else torch.complex128
    )
    n = T.shape[-1]
    eigenvalues = torch.empty(n, dtype=complex_dtype, device=T.device)
    i = 0
    while i < n:
        if i == n - 1 or T[i + 1, i] == 0:
            eigenvalues[i] = T[i, i].item()
            i += 1
        else:
            # Eigenvalues of [[a, b], [c, d]] are (a+d)/2 +/- sqrt((a-d)^2/4 + bc)
            a = T[i, i].item()
            b = T[i, i + 1].item()
            c = T[i + 1, i].item()
            d = T[i + 1, i + 1].item()
            mean = (a + d) / 2
            disc = ((a - d) / 2) ** 2 + b * c
            if disc < 0:
                half_width = complex(0.0, math.sqrt(-disc))
            else:
                half_width = complex(math.sqrt(disc), 0.0)
            eigenvalues[i] = mean + half_width
            eigenvalues[i + 1] = mean - half_width
            i += 2
    return eigenvalues


def schur_decomposition(
    a: Tensor,
    *,
    precision: float | None = None,
    criterion: str = "relative",
    max_sweeps: int | None = None,
) -> SchurDecompositionResult:
    r"""
    Real Schur decomposition.

    Computes :math:`A = QTQ^T` where :math:`Q` is orthogonal and :math:`T` is
    upper quasi-triangular, using Hessenberg reduction followed by the
    implicit double-shift QR iteration.

    Parameters
    ----------
    a : Tensor
        Input matrix of shape (..., n, n). Real dtypes other than float32 and
        float64 are promoted to float64.
    precision : float, optional
        Deflation tolerance. Default: ``torch.finfo(dtype).eps``.
    criterion : str
        ``'relative'`` (default) or the legacy ``'absolute'`` deflation test.
        See :class:`SchurDecomposition`.
    max_sweeps : int, optional
        Sweeps allowed without a deflation. Default: ``30 * max(10, n)``.

    Returns
    -------
    SchurDecompositionResult
        T : Tensor of shape (..., n, n), quasi-triangular Schur form
        Q : Tensor of shape (..., n, n), orthogonal matrix
        eigenvalues : Tensor of shape (..., n), eigenvalues (complex), in the
            order they appear on the diagonal of T
        info : Tensor of shape (...), int. 0 indicates success; k > 0 means
            the iteration did not converge and rows 0..k-1 of T are still
            unreduced (T and Q hold the partial result).

    Raises
    ------
    ValueError
        If input is not at least 2D, not square, or complex.
    NumericalError
        If the input or an intermediate result contains NaN or Inf.

    Examples
    --------
    >>> a = torch.tensor([[0.0, -1.0], [1.0, 0.0]], dtype=torch.float64)
    >>> result = schur_decomposition(a)
    >>> torch.allclose(
    ...     result.eigenvalues, torch.tensor([1j, -1j], dtype=torch.complex128)
    ... )
    True
    """
    check_square(a)
    a = as_real_floating(a)

    dtype = a.dtype
    if precision is None:
        precision = torch.finfo(dtype).eps

    decomposition = SchurDecomposition(
        precision, criterion=criterion, max_sweeps=max_sweeps
    )

    batch_shape = a.shape[:-2]
    n = a.shape[-1]

    # Flatten batch dimensions for processing
    a_flat = a.reshape(-1, n, n)
    batch_size = a_flat.shape[0]

    T = torch.empty_like(a_flat)
    Q = torch.empty_like(a_flat)
    eigenvalues_list = []
    info_list = []

    for i in range(batch_size):
        try:
            decomposition.run(a_flat[i], T[i], Q[i])
            info_i = 0
        except NonConvergenceError as error:
            info_i = error.active_size + 1
        eigenvalues_list.append(_extract_eigenvalues_from_real_schur(T[i]))
        info_list.append(info_i)

    if eigenvalues_list:
        eigenvalues = torch.stack(eigenvalues_list)
    else:
        eigenvalues = torch.empty(
            0,
            n,
            dtype=torch.complex64 if dtype == torch.float32 else torch.complex128,
            device=a.device,
        )
    info = torch.tensor(info_list, dtype=torch.int32, device=a.device)

    return SchurDecompositionResult(
        T=T.reshape(*batch_shape, n, n),
        Q=Q.reshape(*batch_shape, n, n),
        eigenvalues=eigenvalues.reshape(*batch_shape, n),
        info=info.reshape(batch_shape),
    )
