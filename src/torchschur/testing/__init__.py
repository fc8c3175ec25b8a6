"""Test helpers for torchschur.

Example usage:

    import hypothesis

    from torchschur.testing.strategies import square_matrices

    @hypothesis.given(square_matrices(min_side=2, max_side=6))
    def test_reconstruction(a):
        ...
"""

from . import strategies

__all__ = ["strategies"]
