import io

import pytest
import sys
from pathlib import Path
from PIL import Image

# Add src to sys.path so we can import stitch_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from stitch_toolkit.core.models import Layer, new_id
from stitch_toolkit.graph import AssetGraph


def png_bytes(size, color="white") -> bytes:
    """Encode a solid-colour image as PNG bytes."""
    buf = io.BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


def make_layer(size=(200, 100), color="white", name=None) -> Layer:
    """Ungrouped layer with a solid PNG raster and no regions."""
    return Layer(
        id=new_id(),
        name=name or f"{color}.png",
        raster_src=png_bytes(size, color),
        original_width=size[0],
        original_height=size[1],
    )


# Common test fixtures
@pytest.fixture
def graph():
    """Empty asset graph."""
    return AssetGraph()


@pytest.fixture
def two_layers(graph):
    """Graph holding an 800x600 red layer and a 400x600 blue layer."""
    a = graph.add_layer(make_layer((800, 600), "red"))
    b = graph.add_layer(make_layer((400, 600), "blue"))
    return a, b


@pytest.fixture
def sample_image(tmp_path: Path):
    """Create a simple test image."""
    img = Image.new("RGB", (200, 100), color="white")
    img_path = tmp_path / "sample.png"
    img.save(img_path)
    return img_path


@pytest.fixture
def quadrant_image():
    """
    100x100 RGBA image with four coloured quadrants.

    Top-left red, top-right green, bottom-left blue, bottom-right white.
    """
    img = Image.new("RGBA", (100, 100), "white")
    img.paste((255, 0, 0, 255), (0, 0, 50, 50))
    img.paste((0, 255, 0, 255), (50, 0, 100, 50))
    img.paste((0, 0, 255, 255), (0, 50, 50, 100))
    return img
