"""Hypothesis strategies for matrix decomposition testing."""

from ._quasi_triangular_matrices import quasi_triangular_matrices
from ._real_numbers import real_numbers
from ._square_matrices import square_matrices

__all__ = [
    # Numeric strategies
    "real_numbers",
    # Matrix strategies
    "square_matrices",
    "quasi_triangular_matrices",
]
