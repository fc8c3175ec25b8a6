"""Exceptions and warnings for eigenvalue iterations."""

from torch import Tensor


class SchurDecompositionError(Exception):
    """Base exception for QR iteration failures."""

    pass


class NonConvergenceError(SchurDecompositionError):
    """Raised when the QR iteration exceeds its sweep limit.

    Attributes
    ----------
    matrix : Tensor
        Copy of the partially reduced matrix at the time of failure.
    active_size : int
        Index of the last row of the block that had not yet converged.
    sweeps : int
        Number of sweeps performed before giving up.
    """

    def __init__(self, matrix: Tensor, active_size: int, sweeps: int):
        super().__init__(
            f"QR iteration did not converge after {sweeps} sweeps; "
            f"rows 0..{active_size} are unreduced. "
            f"Consider a larger precision or max_sweeps."
        )
        self.matrix = matrix
        self.active_size = active_size
        self.sweeps = sweeps


class NumericalError(SchurDecompositionError):
    """Raised when the iteration produces NaN or Inf entries."""

    pass


class AbsoluteDeflationWarning(UserWarning):
    """Warning when the legacy absolute deflation criterion is selected."""

    pass
