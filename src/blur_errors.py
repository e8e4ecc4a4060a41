"""
Exception types raised by the kernel builder and the convolution engine.
"""
from __future__ import annotations


class ConvolveError(ValueError):
    """Base class for invalid input to the blur core."""


class InvalidParameter(ConvolveError):
    """Sigma or radius is out of range."""


class InvalidBuffer(ConvolveError):
    """Pixel buffer geometry does not match its length or stride."""
