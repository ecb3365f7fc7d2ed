"""
Tests for the stitch-toolkit command line.
"""
import pytest
from PIL import Image

from stitch_toolkit.cli import main


@pytest.fixture
def images(tmp_path):
    """Two same-height PNG files on disk."""
    paths = []
    for name, size, color in (("a.png", (80, 60), "red"), ("b.png", (40, 60), "blue")):
        path = tmp_path / name
        Image.new("RGB", size, color).save(path)
        paths.append(path)
    return paths


def test_cli_stitch_writes_joined_image(tmp_path, images):
    """stitch joins inputs left to right."""
    # Arrange
    out = tmp_path / "out" / "stitched.png"

    # Act
    code = main(["stitch", *map(str, images), "-o", str(out)])

    # Assert
    assert code == 0
    with Image.open(out) as img:
        assert img.size == (120, 60)


def test_cli_justify_uses_layout_options(tmp_path, images):
    """justify canvas width follows --width."""
    out = tmp_path / "grid.png"

    code = main([
        "justify", *map(str, images), "-o", str(out),
        "--width", "400", "--row-height", "100", "--spacing", "4",
    ])

    assert code == 0
    with Image.open(out) as img:
        assert img.width == 400


def test_cli_crop_percentage_rect(tmp_path, images):
    """crop cuts a percentage rectangle."""
    out = tmp_path / "crop.png"

    code = main(["crop", str(images[0]), "--rect", "0", "0", "50", "50", "-o", str(out)])

    assert code == 0
    with Image.open(out) as img:
        assert img.size == (40, 30)


def test_cli_unreadable_input_returns_error_code(tmp_path):
    """A file that is not an image fails with exit code 1."""
    bogus = tmp_path / "notes.png"
    bogus.write_text("hello")

    code = main(["stitch", str(bogus), "-o", str(tmp_path / "x.png")])

    assert code == 1
    assert not (tmp_path / "x.png").exists()


def test_cli_bad_settings_return_usage_code(tmp_path, images):
    """Invalid layout settings exit with code 2."""
    code = main([
        "justify", *map(str, images), "-o", str(tmp_path / "x.png"),
        "--background", "not-a-colour",
    ])

    assert code == 2
