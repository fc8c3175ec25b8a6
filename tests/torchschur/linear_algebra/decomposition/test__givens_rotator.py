"""Tests for the Givens rotator."""

import math

import pytest
import torch

from torchschur.linear_algebra.decomposition import GivensRotator


class TestGivensRotator:
    """Tests for GivensRotator."""

    @pytest.mark.parametrize(
        "a, b",
        [(3.0, 4.0), (-3.0, 4.0), (0.0, 2.0), (1e-300, 1e-300), (5.0, -1e-12)],
    )
    def test_zeroes_second_element(self, a, b):
        """Rotating the pivot pair leaves (r, 0)."""
        rotator = GivensRotator(a, b)
        pair = torch.tensor([[a], [b]], dtype=torch.float64)

        rotator.apply(pair)

        assert rotator.cosine**2 + rotator.sine**2 == pytest.approx(1.0)
        assert pair[0, 0].item() == pytest.approx(rotator.radius, rel=1e-14)
        assert abs(pair[1, 0].item()) <= 1e-15 * math.hypot(a, b)
        assert rotator.radius == pytest.approx(math.hypot(a, b), rel=1e-14)

    def test_zero_b_is_identity(self):
        """b = 0 needs no rotation."""
        rotator = GivensRotator(-2.0, 0.0)

        assert rotator.cosine == 1.0
        assert rotator.sine == 0.0
        assert rotator.radius == -2.0

        pair = torch.tensor([[1.0, 2.0], [3.0, 4.0]], dtype=torch.float64)
        before = pair.clone()
        rotator.apply(pair)
        assert torch.equal(pair, before)

    def test_apply_matches_dense(self):
        """apply computes G @ pair."""
        torch.manual_seed(0)
        rotator = GivensRotator(0.3, -1.7)
        c, s = rotator.cosine, rotator.sine
        g = torch.tensor([[c, s], [-s, c]], dtype=torch.float64)
        pair = torch.randn(2, 5, dtype=torch.float64)
        expected = g @ pair

        rotator.apply(pair)

        torch.testing.assert_close(pair, expected, rtol=1e-14, atol=1e-14)

    def test_apply_to_columns(self):
        """Passing a transposed view rotates columns: cols @ G.T."""
        torch.manual_seed(1)
        rotator = GivensRotator(1.0, 2.0)
        c, s = rotator.cosine, rotator.sine
        g = torch.tensor([[c, s], [-s, c]], dtype=torch.float64)
        a = torch.randn(4, 4, dtype=torch.float64)
        expected = a.clone()
        expected[:, 1:3] = a[:, 1:3] @ g.T

        rotator.apply(a[:, 1:3].T)

        torch.testing.assert_close(a, expected, rtol=1e-14, atol=1e-14)

    def test_rows_of_matrix_in_place(self):
        """Rotating two rows of a matrix zeroes the pivot entry."""
        a = torch.tensor(
            [[4.0, 1.0, 2.0], [3.0, 5.0, 6.0], [7.0, 8.0, 9.0]],
            dtype=torch.float64,
        )
        rotator = GivensRotator(a[0, 0], a[1, 0])

        rotator.apply(a[0:2])

        assert a[0, 0].item() == pytest.approx(5.0)
        assert abs(a[1, 0].item()) < 1e-15
        torch.testing.assert_close(
            a[2], torch.tensor([7.0, 8.0, 9.0], dtype=torch.float64)
        )

    def test_preserves_norm(self):
        """Rotations are orthogonal."""
        torch.manual_seed(2)
        pair = torch.randn(2, 6, dtype=torch.float64)
        before = torch.linalg.matrix_norm(pair)

        GivensRotator(0.7, 0.2).apply(pair)

        torch.testing.assert_close(torch.linalg.matrix_norm(pair), before)

    def test_invalid_pair(self):
        """Only 2 x m pairs are accepted."""
        with pytest.raises(ValueError, match=r"shape \(2, m\)"):
            GivensRotator(1.0, 1.0).apply(torch.zeros(3, 2))
