"""
Image file decoding and encoding with OpenCV.

OpenCV stores color images as B,G,R(,A), which is the byte order the
convolution engine expects, so no channel reordering is needed beyond
adding an alpha channel.
"""
from __future__ import annotations

import os

import cv2
import numpy as np

from pixel_buffer import PixelBuffer

# Encoders that take 1 or 3 channels only
_NO_ALPHA_EXTS = {".jpg", ".jpeg", ".jpe", ".bmp", ".ppm", ".pgm"}


def to_bgra(image: np.ndarray) -> np.ndarray:
    """
    Expand a decoded image to 4-channel BGRA.

    Args:
        image: Grayscale (H, W), (H, W, 1), BGR (H, W, 3) or BGRA (H, W, 4)

    Returns:
        (H, W, 4) uint8 array

    Raises:
        ValueError: If the image is not 8-bit or has an unsupported channel count
    """
    if image.dtype != np.uint8:
        raise ValueError(f"only 8-bit images are supported, got {image.dtype}")

    if image.ndim == 2 or (image.ndim == 3 and image.shape[2] == 1):
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
    if image.ndim == 3 and image.shape[2] == 4:
        return image
    raise ValueError(f"unsupported image shape {image.shape}")


def load_image(path: str) -> PixelBuffer:
    """
    Decode an image file into a BGRA pixel buffer with stride width * 4.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If OpenCV cannot decode it or it is not 8-bit
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Image file not found: {path}")

    image = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if image is None:
        raise ValueError(f"Unable to decode image: {path}")

    return PixelBuffer.from_array(np.ascontiguousarray(to_bgra(image)))


def save_image(path: str, buffer: PixelBuffer) -> None:
    """
    Encode a BGRA buffer to ``path``; the extension selects the format.

    Raises:
        IOError: If OpenCV fails to write the file
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    image = np.ascontiguousarray(buffer.pixels())
    if os.path.splitext(path)[1].lower() in _NO_ALPHA_EXTS:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)

    try:
        written = cv2.imwrite(path, image)
    except cv2.error as exc:
        raise IOError(f"Unable to write image: {path}") from exc
    if not written:
        raise IOError(f"Unable to write image: {path}")
