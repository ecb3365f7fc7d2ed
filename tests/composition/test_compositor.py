"""
Tests for composition.compositor

Test Coverage:
- composite_layer(): Base at full size, replacements stretched into regions
- Paint order for overlapping regions
- Decode failures abort the whole call
"""
from dataclasses import replace

import numpy as np
import pytest
from PIL import Image

from conftest import make_layer, png_bytes
from stitch_toolkit.composition.compositor import composite_layer
from stitch_toolkit.core.errors import DecodeFailure
from stitch_toolkit.core.models import Region


def with_regions(layer, *regions):
    return replace(layer, regions=tuple(regions))


def test_composite_without_replacements_is_base_copy():
    """No replacements: output equals the base raster."""
    layer = make_layer((40, 20), "red")

    result = composite_layer(layer)

    assert result.size == (40, 20)
    assert (np.asarray(result)[..., :3] == [255, 0, 0]).all()


def test_replacement_is_stretched_into_region():
    """A 1x1 replacement fills the whole region rectangle."""
    # Arrange
    layer = with_regions(
        make_layer((100, 100), "white"),
        Region("r", 20, 20, 50, 30, replacement_src=png_bytes((1, 1), "blue")),
    )

    # Act
    result = np.asarray(composite_layer(layer))

    # Assert
    assert (result[20:50, 20:70, :3] == [0, 0, 255]).all()
    assert (result[:20, :, :3] == [255, 255, 255]).all()
    assert (result[50:, :, :3] == [255, 255, 255]).all()


def test_later_regions_paint_over_earlier():
    """Overlaps show the later region's replacement."""
    layer = with_regions(
        make_layer((100, 100), "white"),
        Region("under", 0, 0, 60, 60, replacement_src=png_bytes((3, 3), "red")),
        Region("over", 40, 40, 60, 60, replacement_src=png_bytes((3, 3), "lime")),
    )

    result = composite_layer(layer)

    assert result.getpixel((50, 50)) == (0, 255, 0, 255)
    assert result.getpixel((10, 10)) == (255, 0, 0, 255)


def test_regions_without_replacement_are_ignored():
    """Only regions with a replacement affect pixels."""
    layer = with_regions(make_layer((10, 10), "red"), Region("r", 0, 0, 50, 50))

    assert composite_layer(layer).getpixel((1, 1)) == (255, 0, 0, 255)


def test_transparent_replacement_shows_base():
    """Replacement alpha composes over the base."""
    clear = Image.new("RGBA", (5, 5), (0, 0, 0, 0))
    layer = with_regions(make_layer((10, 10), "red"), Region("r", 0, 0, 100, 100, replacement_src=clear))

    assert composite_layer(layer).getpixel((5, 5)) == (255, 0, 0, 255)


def test_bad_replacement_aborts():
    """Any undecodable replacement fails the whole composite."""
    layer = with_regions(
        make_layer((10, 10), "red"),
        Region("r", 0, 0, 50, 50, replacement_src=b"garbage"),
    )

    with pytest.raises(DecodeFailure):
        composite_layer(layer)
