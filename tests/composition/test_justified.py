"""
Unit Tests for composition.justified

Tests for greedy row packing, width justification, the sparse last-row
exemption and drawing.
"""

import pytest

from conftest import png_bytes
from stitch_toolkit.composition.config import JustifiedLayoutConfig
from stitch_toolkit.composition.justified import justified_layout, plan_justified_layout
from stitch_toolkit.core.errors import DecodeFailure


CONFIG = JustifiedLayoutConfig(container_width=1200, target_row_height=300, spacing=12)


def row_fill(layout, row: int, spacing: int) -> float:
    """spacing + sum(width + spacing) across a row."""
    return spacing + sum(p.width + spacing for p in layout.row(row))


class TestPlanning:
    """Tests for plan_justified_layout()."""

    def test_plan_when_three_images_fill_row_then_height_256(self):
        # Aspects 2.0, 1.0, 1.5: provisional 600 + 300 + 450 closes the row
        layout = plan_justified_layout([(600, 300), (300, 300), (450, 300)], CONFIG)

        assert layout.row_heights == (pytest.approx(256.0),)
        assert [p.width for p in layout.placements] == pytest.approx([512.0, 256.0, 384.0])
        assert layout.exempt_last_row is False

    def test_plan_when_full_row_then_fills_container_width(self):
        layout = plan_justified_layout([(600, 300), (300, 300), (450, 300)], CONFIG)
        assert row_fill(layout, 0, CONFIG.spacing) == pytest.approx(CONFIG.container_width)

    def test_plan_when_positions_then_start_at_spacing(self):
        layout = plan_justified_layout([(600, 300), (300, 300), (450, 300)], CONFIG)

        xs = [p.x for p in layout.placements]
        assert xs == pytest.approx([12.0, 12.0 + 512 + 12, 12.0 + 512 + 12 + 256 + 12])
        assert all(p.y == 12.0 for p in layout.placements)

    def test_plan_when_sparse_last_row_then_kept_at_target_height(self):
        sizes = [(600, 300), (300, 300), (450, 300), (300, 300)]

        layout = plan_justified_layout(sizes, CONFIG)

        assert len(layout.row_heights) == 2
        assert layout.row_heights[1] == 300.0
        assert layout.exempt_last_row is True
        assert layout.row(1)[0].width == pytest.approx(300.0)

    def test_plan_when_dense_last_row_then_stretched(self):
        # Last row aspect 3.0 >= 0.6 * (1164 / 300) = 2.328
        sizes = [(600, 300), (300, 300), (450, 300), (600, 300), (300, 300)]

        layout = plan_justified_layout(sizes, CONFIG)

        assert layout.exempt_last_row is False
        for row in range(len(layout.row_heights)):
            assert row_fill(layout, row, CONFIG.spacing) == pytest.approx(CONFIG.container_width)

    def test_plan_when_many_rows_then_height_is_rows_plus_gaps(self):
        sizes = [(400 + 37 * i, 300 + 11 * i) for i in range(17)]

        layout = plan_justified_layout(sizes, CONFIG)

        expected = sum(layout.row_heights) + CONFIG.spacing * (len(layout.row_heights) + 1)
        assert layout.height == pytest.approx(expected, abs=1.0)
        assert layout.height >= expected
        rows = len(layout.row_heights)
        last_exempt = 1 if layout.exempt_last_row else 0
        for row in range(rows - last_exempt):
            assert row_fill(layout, row, CONFIG.spacing) == pytest.approx(CONFIG.container_width)

    def test_plan_when_ratio_tuned_then_threshold_moves(self):
        sizes = [(600, 300), (300, 300), (450, 300), (300, 300)]
        never_exempt = JustifiedLayoutConfig(sparse_row_ratio=0.0)

        layout = plan_justified_layout(sizes, never_exempt)

        assert layout.exempt_last_row is False

    def test_plan_when_empty_then_empty_layout(self):
        layout = plan_justified_layout([], CONFIG)
        assert layout.is_empty
        assert layout.height == 0


class TestConfig:
    """Tests for JustifiedLayoutConfig validation."""

    def test_defaults(self):
        config = JustifiedLayoutConfig()
        assert (config.container_width, config.target_row_height, config.spacing) == (1200, 300, 12)
        assert config.background_color == "#ffffff"

    def test_init_when_unknown_colour_then_raises_error(self):
        with pytest.raises(ValueError):
            JustifiedLayoutConfig(background_color="not-a-colour")

    def test_init_when_spacing_swallows_width_then_raises_error(self):
        with pytest.raises(ValueError, match="Spacing exceeds"):
            JustifiedLayoutConfig(container_width=20, spacing=10)


class TestDrawing:
    """Tests for justified_layout()."""

    def test_draw_when_images_then_canvas_and_background(self):
        config = JustifiedLayoutConfig(background_color="#000000")
        sources = [png_bytes((600, 300), "red"), png_bytes((300, 300), "lime"), png_bytes((450, 300), "blue")]

        result = justified_layout(sources, config)

        assert result.size == (1200, 256 + 2 * 12)
        assert result.getpixel((5, 5)) == (0, 0, 0, 255)
        assert result.getpixel((100, 100)) == (255, 0, 0, 255)
        assert result.getpixel((12 + 512 + 12 + 100, 100)) == (0, 255, 0, 255)

    def test_draw_when_empty_then_none(self):
        assert justified_layout([], CONFIG) is None

    def test_draw_when_bad_source_then_aborts(self):
        with pytest.raises(DecodeFailure):
            justified_layout([png_bytes((10, 10)), b"nope"], CONFIG)
