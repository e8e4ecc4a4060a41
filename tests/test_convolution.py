import math

import numpy as np
import pytest

from blur_errors import InvalidBuffer, InvalidParameter
from convolution import convolve, convolve_array, convolve_buffer
from gaussian import build_kernel
from pixel_buffer import PixelBuffer


def make_image(height, width, bgr=(0, 0, 0), alpha=255):
    image = np.empty((height, width, 4), dtype=np.uint8)
    image[..., :3] = bgr
    image[..., 3] = alpha
    return image


def reference_convolve(pixels, sigma, radius):
    """Per-pixel loop with truncated kernel support."""
    height, width = pixels.shape[:2]
    kernel = build_kernel(sigma, radius)
    out = np.zeros_like(pixels)
    for img_y in range(height):
        for img_x in range(width):
            y_start = -img_y if img_y < radius else -radius
            x_start = -img_x if img_x < radius else -radius
            y_limit = height - (img_y + 1) if img_y + radius + 1 > height else radius
            x_limit = width - (img_x + 1) if img_x + radius + 1 > width else radius
            sums = [0.0, 0.0, 0.0]
            for ky in range(y_start, y_limit + 1):
                for kx in range(x_start, x_limit + 1):
                    weight = kernel[ky + radius, kx + radius]
                    for c in range(3):
                        sums[c] += pixels[img_y + ky, img_x + kx, c] * weight
            for c in range(3):
                out[img_y, img_x, c] = math.floor(min(255.0, max(0.0, sums[c])) + 1e-9)
            out[img_y, img_x, 3] = 255
    return out


def test_single_white_pixel_spreads_to_neighbours():
    image = make_image(3, 3, alpha=0)
    image[1, 1, :3] = 255
    source = image.tobytes()

    result = np.frombuffer(convolve(source, 3, 3, 12, 1.0, 1), dtype=np.uint8).reshape(3, 3, 4)

    kernel = build_kernel(1.0, 1)
    assert np.all(result[1, 1, :3] < 255)
    for y in range(3):
        for x in range(3):
            expected = math.floor(255 * kernel[y, x] + 1e-9)
            assert np.all(result[y, x, :3] == expected)
            assert np.all(result[y, x, :3] > 0)
    assert np.all(result[..., 3] == 255)


def test_uniform_image_interior_is_unchanged():
    radius = 2
    image = make_image(10, 12, bgr=(200, 100, 50))
    result = convolve_array(image, 1.5, radius)
    interior = result[radius:-radius, radius:-radius]
    np.testing.assert_array_equal(interior, image[radius:-radius, radius:-radius])


@pytest.mark.parametrize("value", [1, 128, 255])
def test_uniform_image_interior_exact_for_many_kernels(value):
    image = make_image(9, 9, bgr=(value, value, value))
    for sigma in (0.4, 1.0, 3.3):
        result = convolve_array(image, sigma, 3)
        assert np.all(result[3:-3, 3:-3, :3] == value)


def test_borders_are_darkened_by_truncation():
    image = make_image(7, 7, bgr=(200, 200, 200))
    result = convolve_array(image, 1.0, 1)
    kernel = build_kernel(1.0, 1)

    corner_mass = kernel[1:, 1:].sum()
    edge_mass = kernel[:, 1:].sum()
    assert result[0, 0, 0] == math.floor(200 * corner_mass)
    assert result[3, 0, 0] == math.floor(200 * edge_mass)
    assert result[0, 0, 0] < result[3, 0, 0] < 200


def test_radius_zero_only_forces_alpha():
    rng = np.random.default_rng(7)
    image = rng.integers(0, 256, size=(5, 6, 4), dtype=np.uint8)
    result = convolve_array(image, 2.0, 0)
    np.testing.assert_array_equal(result[..., :3], image[..., :3])
    assert np.all(result[..., 3] == 255)


def test_matches_per_pixel_reference():
    rng = np.random.default_rng(3)
    image = rng.integers(0, 256, size=(6, 7, 4), dtype=np.uint8)
    expected = reference_convolve(image, 1.2, 2)
    result = convolve_array(image, 1.2, 2)
    assert np.array_equal(result, expected)


def test_padded_non_square_matches_per_pixel_reference():
    width, height, stride, radius = 11, 9, 48, 3
    rng = np.random.default_rng(17)
    image = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    source = PixelBuffer.from_array(image, stride=stride).data

    result = convolve(source, width, height, stride, 1.3, radius)

    rows = np.frombuffer(result, dtype=np.uint8).reshape(height, stride)
    pixels = rows[:, : width * 4].reshape(height, width, 4)
    assert np.array_equal(pixels, reference_convolve(image, 1.3, radius))
    assert np.all(rows[:, width * 4 :] == 0)


def test_separable_matches_direct():
    rng = np.random.default_rng(11)
    image = rng.integers(0, 256, size=(20, 17, 4), dtype=np.uint8)
    direct = convolve_array(image, 2.0, 4, method="direct")
    separable = convolve_array(image, 2.0, 4, method="separable")
    diff = np.abs(direct.astype(int) - separable.astype(int))
    assert diff.max() <= 1
    assert np.all(separable[..., 3] == 255)


def test_radius_larger_than_image():
    image = make_image(2, 3, bgr=(90, 90, 90))
    for method in ("direct", "separable"):
        result = convolve_array(image, 5.0, 10, method=method)
        assert result.shape == image.shape
        assert np.all(result[..., :3] <= 90)
        assert np.all(result[..., :3] > 0)


def test_stride_padding_is_preserved_and_zeroed():
    width, height, stride = 3, 4, 16
    source = bytearray(np.full(stride * height, 77, dtype=np.uint8).tobytes())
    before = bytes(source)

    result = convolve(source, width, height, stride, 1.0, 1)

    assert len(result) == len(source)
    rows = np.frombuffer(result, dtype=np.uint8).reshape(height, stride)
    assert np.all(rows[:, width * 4:] == 0)
    assert np.all(rows[:, 3:width * 4:4] == 255)
    assert bytes(source) == before


def test_convolve_buffer_keeps_geometry():
    buffer = PixelBuffer.from_array(make_image(5, 5, bgr=(10, 20, 30), alpha=3), stride=24)
    result = convolve_buffer(buffer, 1.0, 1)
    assert (result.width, result.height, result.stride) == (5, 5, 24)
    assert len(result.data) == len(buffer.data)
    assert result.pixels()[2, 2].tolist() == [10, 20, 30, 255]


def test_source_array_is_not_modified():
    image = make_image(4, 4, bgr=(1, 2, 3), alpha=9)
    image[0, 0, :3] = 250
    copy = image.copy()
    convolve_array(image, 1.0, 2)
    np.testing.assert_array_equal(image, copy)


@pytest.mark.parametrize("sigma, radius", [(0.0, 1), (-1.0, 1), (1.0, -1), (float("nan"), 1)])
def test_invalid_parameters(sigma, radius):
    source = make_image(2, 2).tobytes()
    with pytest.raises(InvalidParameter):
        convolve(source, 2, 2, 8, sigma, radius)


def test_unknown_method():
    with pytest.raises(InvalidParameter):
        convolve_array(make_image(2, 2), 1.0, 1, method="fft")


def test_parameters_are_checked_before_buffer():
    with pytest.raises(InvalidParameter):
        convolve(b"\x00" * 3, 2, 2, 8, 0.0, 1)


@pytest.mark.parametrize(
    "length, width, height, stride",
    [
        (15, 2, 2, 8),  # short buffer
        (17, 2, 2, 8),  # long buffer
        (12, 2, 2, 6),  # stride below width * 4
        (0, 0, 0, 0),   # empty image
    ],
)
def test_invalid_buffers(length, width, height, stride):
    with pytest.raises(InvalidBuffer):
        convolve(b"\x00" * length, width, height, stride, 1.0, 1)


def test_invalid_array_shapes():
    with pytest.raises(InvalidBuffer):
        convolve_array(np.zeros((3, 3, 3), dtype=np.uint8), 1.0, 1)
    with pytest.raises(InvalidBuffer):
        convolve_array(np.zeros((3, 3, 4), dtype=np.float32), 1.0, 1)


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        convolve(b"", 1, 1, 4, 1.0, 1)
