"""
Gaussian kernel generation.

Kernels are indexed with an offset of ``radius`` so the center cell sits at
relative coordinate (0, 0). Both builders normalize so the weights sum to 1.
The 2D kernel is the outer product of two 1D kernels, which is what makes the
separable convolution path produce the same output as the direct one.
"""
from __future__ import annotations

import math
import numbers

import numpy as np

from blur_errors import InvalidParameter


def validate_kernel_parameters(sigma: float, radius: int) -> None:
    """
    Check sigma and radius before any weights are computed.

    Raises:
        InvalidParameter: If sigma is not a finite number > 0 or radius is
            not an integer >= 0
    """
    if isinstance(sigma, bool) or not isinstance(sigma, numbers.Real):
        raise InvalidParameter(f"sigma must be a number, got {sigma!r}")
    if not math.isfinite(sigma) or sigma <= 0:
        raise InvalidParameter(f"sigma must be a finite value > 0, got {sigma}")
    if isinstance(radius, bool) or not isinstance(radius, numbers.Integral):
        raise InvalidParameter(f"radius must be an integer, got {radius!r}")
    if radius < 0:
        raise InvalidParameter(f"radius must be >= 0, got {radius}")


def gaussian_kernel_1d(sigma: float, radius: int) -> np.ndarray:
    """
    Generate a 1D Gaussian kernel.

    Args:
        sigma: Standard deviation, > 0
        radius: Half-width excluding the center, >= 0

    Returns:
        Read-only float64 array of length 2 * radius + 1 summing to 1
    """
    validate_kernel_parameters(sigma, radius)
    sigma = float(sigma)
    radius = int(radius)

    c = 1.0 / (sigma * math.sqrt(2.0 * math.pi))
    x = np.arange(-radius, radius + 1, dtype=np.float64)
    kernel = c * np.exp(-(x ** 2) / (2.0 * sigma * sigma))
    kernel /= kernel.sum()

    kernel.flags.writeable = False
    return kernel


def gaussian_kernel_2d(sigma: float, radius: int) -> np.ndarray:
    """
    Generate a 2D Gaussian kernel.

    Args:
        sigma: Standard deviation, > 0
        radius: Half-width excluding the center, >= 0

    Returns:
        Read-only float64 array of shape (2r+1, 2r+1), stored as
        ``kernel[y + radius, x + radius]``, summing to 1
    """
    validate_kernel_parameters(sigma, radius)
    sigma = float(sigma)
    radius = int(radius)

    c = 1.0 / (2.0 * math.pi * sigma * sigma)
    ax = np.arange(-radius, radius + 1, dtype=np.float64)
    xx, yy = np.meshgrid(ax, ax)
    kernel = c * np.exp(-(xx ** 2 + yy ** 2) / (2.0 * sigma * sigma))
    kernel /= kernel.sum()

    kernel.flags.writeable = False
    return kernel


def build_kernel(sigma: float, radius: int) -> np.ndarray:
    """Kernel used by the convolution engine."""
    return gaussian_kernel_2d(sigma, radius)


# Convenience function for the usual three-sigma support
def radius_for_sigma(sigma: float) -> int:
    """Calculate a kernel radius covering +/- 3 sigma."""
    validate_kernel_parameters(sigma, 0)
    return int(math.ceil(3.0 * float(sigma)))
