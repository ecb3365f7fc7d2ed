"""
Tests for composition.stitcher

Test Coverage:
- horizontal_stitch(): Tallest-height scaling, ceil width, input order
- Single input unscaled, empty input None
"""
import numpy as np
import pytest
from PIL import Image

from conftest import png_bytes
from stitch_toolkit.composition.stitcher import horizontal_stitch, stitch_images
from stitch_toolkit.core.errors import DecodeFailure


def test_stitch_same_height_no_scaling():
    """800x600 + 400x600 -> 1200x600."""
    # Arrange
    sources = [png_bytes((800, 600), "red"), png_bytes((400, 600), "blue")]

    # Act
    result = horizontal_stitch(sources)

    # Assert
    assert result.size == (1200, 600)
    assert result.getpixel((799, 300)) == (255, 0, 0, 255)
    assert result.getpixel((800, 300)) == (0, 0, 255, 255)


def test_stitch_scales_to_tallest():
    """Shorter inputs are scaled up with aspect preserved."""
    result = horizontal_stitch([png_bytes((100, 50), "red"), png_bytes((30, 100), "blue")])

    # 100x50 -> 200x100, 30x100 stays
    assert result.size == (230, 100)


def test_stitch_width_is_ceiling_of_scaled_sum():
    """Fractional scaled widths round the canvas up."""
    result = horizontal_stitch([png_bytes((10, 3), "red"), png_bytes((10, 7), "blue")])

    # 10/3*7 = 23.33 + 10 = 33.33 -> 34
    assert result.size == (34, 7)


def test_stitch_swapped_order_same_size_mirrored_content():
    """[A, B] and [B, A] share dimensions but not pixel order."""
    a, b = png_bytes((40, 20), "red"), png_bytes((20, 20), "blue")

    ab = horizontal_stitch([a, b])
    ba = horizontal_stitch([b, a])

    assert ab.size == ba.size
    assert ab.getpixel((0, 0)) == (255, 0, 0, 255)
    assert ba.getpixel((0, 0)) == (0, 0, 255, 255)
    assert not np.array_equal(np.asarray(ab), np.asarray(ba))


def test_stitch_single_image_unscaled():
    """One input comes back at its own size and pixels."""
    img = Image.new("RGBA", (37, 19), (10, 20, 30, 255))

    result = stitch_images([img])

    assert result.size == (37, 19)
    assert np.array_equal(np.asarray(result), np.asarray(img))


def test_stitch_empty_is_none():
    """Nothing to stitch gives None."""
    assert horizontal_stitch([]) is None


def test_stitch_decode_failure_aborts():
    """One bad source fails the call."""
    with pytest.raises(DecodeFailure):
        horizontal_stitch([png_bytes((10, 10)), b"broken"])
