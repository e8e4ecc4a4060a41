"""
Flat B,G,R,A pixel buffers with row stride.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from blur_errors import InvalidBuffer

BYTES_PER_PIXEL = 4

# Channel offsets within a pixel
BLUE, GREEN, RED, ALPHA = 0, 1, 2, 3


def validate_geometry(data_length: int, width: int, height: int, stride: int) -> None:
    """
    Check that a buffer of ``data_length`` bytes can hold the described image.

    Raises:
        InvalidBuffer: On non-positive dimensions, short stride, or a length
            other than ``stride * height``
    """
    if width <= 0 or height <= 0:
        raise InvalidBuffer(f"image dimensions must be positive, got {width}x{height}")
    if stride < width * BYTES_PER_PIXEL:
        raise InvalidBuffer(
            f"stride {stride} is smaller than width * {BYTES_PER_PIXEL} = {width * BYTES_PER_PIXEL}"
        )
    if data_length != stride * height:
        raise InvalidBuffer(
            f"buffer length {data_length} does not match stride * height = {stride * height}"
        )


def check_pixel_array(pixels: np.ndarray) -> None:
    """Raise InvalidBuffer unless ``pixels`` is a non-empty (H, W, 4) uint8 array."""
    if pixels.ndim != 3 or pixels.shape[2] != BYTES_PER_PIXEL:
        raise InvalidBuffer(f"expected an (H, W, 4) array, got shape {pixels.shape}")
    if pixels.dtype != np.uint8:
        raise InvalidBuffer(f"expected uint8 pixels, got {pixels.dtype}")
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise InvalidBuffer(f"image dimensions must be positive, got shape {pixels.shape}")


@dataclass(frozen=True)
class PixelBuffer:
    """Rectangular grid of 8-bit BGRA pixels stored row by row."""
    data: bytes
    width: int
    height: int
    stride: int

    def validate(self) -> None:
        validate_geometry(len(self.data), self.width, self.height, self.stride)

    def rows(self) -> np.ndarray:
        """Read-only (height, stride) view of the raw bytes, padding included."""
        self.validate()
        return np.frombuffer(self.data, dtype=np.uint8).reshape(self.height, self.stride)

    def pixels(self) -> np.ndarray:
        """Read-only (height, width, 4) view with row padding dropped."""
        used = self.width * BYTES_PER_PIXEL
        return self.rows()[:, :used].reshape(self.height, self.width, BYTES_PER_PIXEL)

    @classmethod
    def from_array(cls, pixels: np.ndarray, stride: Optional[int] = None) -> "PixelBuffer":
        """
        Build a buffer from an (H, W, 4) uint8 array.

        Args:
            pixels: BGRA image
            stride: Row length in bytes; defaults to W * 4. Padding is zero-filled.

        Raises:
            InvalidBuffer: If the array is not (H, W, 4) uint8 or stride is too small
        """
        check_pixel_array(pixels)
        height, width = pixels.shape[:2]
        if stride is None:
            stride = width * BYTES_PER_PIXEL
        validate_geometry(stride * height, width, height, stride)

        rows = np.zeros((height, stride), dtype=np.uint8)
        rows[:, : width * BYTES_PER_PIXEL] = pixels.reshape(height, width * BYTES_PER_PIXEL)
        return cls(rows.tobytes(), width, height, stride)
