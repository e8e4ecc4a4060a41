"""
Spatial convolution of BGRA pixel buffers with a Gaussian kernel.

Border policy: kernel cells that would sample outside the image are skipped
and the remaining weights are NOT renormalized. Pixels within ``radius`` of an
edge therefore receive less than the full kernel mass and come out darker.
Edge replication or reflection would change
those pixel values and must not be substituted.

Two methods produce the same values within floating-point tolerance:

* ``direct``: 2D kernel, O(W * H * (2r+1)^2)
* ``separable``: horizontal then vertical 1D pass, O(W * H * (2r+1))
"""
from __future__ import annotations

from typing import Tuple

import numpy as np

from blur_errors import InvalidParameter
from gaussian import build_kernel, gaussian_kernel_1d, validate_kernel_parameters
from pixel_buffer import (
    ALPHA,
    BYTES_PER_PIXEL,
    PixelBuffer,
    check_pixel_array,
    validate_geometry,
)

METHODS = ("direct", "separable")

# Absorbs accumulated rounding below an integer before truncating to a byte
_TRUNCATION_EPS = 1e-9


def validate_request(sigma: float, radius: int, method: str) -> None:
    """Raise InvalidParameter unless sigma, radius and method are usable."""
    validate_kernel_parameters(sigma, radius)
    if method not in METHODS:
        raise InvalidParameter(f"unknown method {method!r}, expected one of {METHODS}")


def _valid_span(offset: int, size: int) -> Tuple[int, int]:
    """Destination range [start, stop) whose samples at ``i + offset`` stay inside [0, size)."""
    return max(0, -offset), min(size, size - offset)


def _convolve_direct(channels: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Accumulate every kernel cell as a shifted, weighted copy of the source."""
    height, width = channels.shape[:2]
    radius = kernel.shape[0] // 2
    acc = np.zeros_like(channels)

    for ky in range(-radius, radius + 1):
        y0, y1 = _valid_span(ky, height)
        if y0 >= y1:
            continue
        for kx in range(-radius, radius + 1):
            x0, x1 = _valid_span(kx, width)
            if x0 >= x1:
                continue
            weight = kernel[ky + radius, kx + radius]
            acc[y0:y1, x0:x1] += weight * channels[y0 + ky : y1 + ky, x0 + kx : x1 + kx]

    return acc


def _convolve1d_horizontal(channels: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Apply 1D convolution along the horizontal axis, truncating at the edges."""
    width = channels.shape[1]
    radius = len(kernel) // 2
    acc = np.zeros_like(channels)
    for k in range(-radius, radius + 1):
        x0, x1 = _valid_span(k, width)
        if x0 < x1:
            acc[:, x0:x1] += kernel[k + radius] * channels[:, x0 + k : x1 + k]
    return acc


def _convolve1d_vertical(channels: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Apply 1D convolution along the vertical axis, truncating at the edges."""
    height = channels.shape[0]
    radius = len(kernel) // 2
    acc = np.zeros_like(channels)
    for k in range(-radius, radius + 1):
        y0, y1 = _valid_span(k, height)
        if y0 < y1:
            acc[y0:y1] += kernel[k + radius] * channels[y0 + k : y1 + k]
    return acc


def _to_bytes(acc: np.ndarray) -> np.ndarray:
    """Clamp channel sums to [0, 255] and truncate toward zero."""
    clamped = np.clip(acc, 0.0, 255.0)
    return np.floor(clamped + _TRUNCATION_EPS).astype(np.uint8)


def _blur_channels(pixels: np.ndarray, sigma: float, radius: int, method: str) -> np.ndarray:
    """Blur B, G, R of an (H, W, 4) array; returns (H, W, 3) uint8."""
    channels = pixels[..., :ALPHA].astype(np.float64)

    if method == "separable":
        kernel_1d = gaussian_kernel_1d(sigma, radius)
        acc = _convolve1d_horizontal(channels, kernel_1d)
        acc = _convolve1d_vertical(acc, kernel_1d)
    else:
        acc = _convolve_direct(channels, build_kernel(sigma, radius))

    return _to_bytes(acc)


def convolve_array(
    pixels: np.ndarray,
    sigma: float,
    radius: int,
    method: str = "direct",
) -> np.ndarray:
    """
    Blur an (H, W, 4) BGRA uint8 array.

    Returns:
        New (H, W, 4) uint8 array with alpha set to 255; input is untouched

    Raises:
        InvalidParameter: If sigma, radius, or method is invalid
        InvalidBuffer: If the array is not (H, W, 4) uint8 with H, W > 0
    """
    validate_request(sigma, radius, method)
    check_pixel_array(pixels)

    out = np.empty_like(pixels)
    out[..., :ALPHA] = _blur_channels(pixels, sigma, radius, method)
    out[..., ALPHA] = 255
    return out


def convolve_buffer(
    buffer: PixelBuffer,
    sigma: float,
    radius: int,
    method: str = "direct",
) -> PixelBuffer:
    """
    Blur a PixelBuffer into a new buffer with the same width, height and stride.

    Row padding in the result is zero-filled.
    """
    validate_request(sigma, radius, method)
    buffer.validate()

    rows = np.zeros((buffer.height, buffer.stride), dtype=np.uint8)
    used = buffer.width * BYTES_PER_PIXEL
    out = rows[:, :used].reshape(buffer.height, buffer.width, BYTES_PER_PIXEL)
    out[..., :ALPHA] = _blur_channels(buffer.pixels(), sigma, radius, method)
    out[..., ALPHA] = 255

    return PixelBuffer(rows.tobytes(), buffer.width, buffer.height, buffer.stride)


def convolve(
    source_pixels: bytes,
    width: int,
    height: int,
    stride: int,
    sigma: float,
    radius: int,
    method: str = "direct",
) -> bytes:
    """
    Blur a flat BGRA byte buffer.

    Args:
        source_pixels: ``stride * height`` bytes, B,G,R,A per pixel
        width: Image width in pixels
        height: Image height in pixels
        stride: Bytes per row, >= width * 4
        sigma: Gaussian standard deviation, > 0
        radius: Kernel half-width, >= 0 (0 copies B, G, R unchanged)
        method: ``"direct"`` or ``"separable"``

    Returns:
        New buffer of the same length, alpha forced to 255

    Raises:
        InvalidParameter: If sigma, radius, or method is invalid
        InvalidBuffer: If the length or stride does not fit the dimensions
    """
    validate_request(sigma, radius, method)
    validate_geometry(len(source_pixels), width, height, stride)

    source = PixelBuffer(bytes(source_pixels), width, height, stride)
    return convolve_buffer(source, sigma, radius, method).data
