"""Linear algebra operations on PyTorch tensors.

Submodules
----------
decomposition
    Real Schur decomposition, Hessenberg reduction, and the symmetric
    tridiagonal eigenproblem.
"""

from torchschur.linear_algebra import decomposition

__all__ = ["decomposition"]
