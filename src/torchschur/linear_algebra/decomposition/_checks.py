import torch
from torch import Tensor


def check_square(a: Tensor) -> None:
    if a.dim() < 2:
        raise ValueError(f"a must be at least 2D, got {a.dim()}D")
    if a.shape[-2] != a.shape[-1]:
        raise ValueError(f"a must be square, got shape {a.shape}")


def as_real_floating(a: Tensor) -> Tensor:
    """Cast ``a`` to float64 unless it is already float32 or float64."""
    if a.is_complex():
        raise ValueError(
            f"a must be real, got complex tensor of dtype {a.dtype}"
        )
    if a.dtype not in (torch.float32, torch.float64):
        a = a.to(torch.float64)
    return a


def check_precision(precision: float) -> None:
    # NaN fails both comparisons
    if not precision >= 0:
        raise ValueError(f"precision must be non-negative, got {precision}")


def check_symmetric(a: Tensor) -> None:
    """Reject matrices whose asymmetry exceeds rounding relative to their scale."""
    if a.numel() == 0:
        return
    n = a.shape[-1]
    scale = a.abs().amax(dim=(-2, -1))
    asymmetry = (a - a.mT).abs().amax(dim=(-2, -1))
    tolerance = 100 * n * torch.finfo(a.dtype).eps * scale
    if (asymmetry > tolerance).any():
        raise ValueError(
            f"a must be symmetric, got asymmetry {asymmetry.max().item():.3e} "
            f"for entries of magnitude up to {scale.max().item():.3e}"
        )
