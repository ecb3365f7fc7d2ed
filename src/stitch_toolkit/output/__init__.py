"""
Output Package

Export boundary: regions, layer composites and the stitch queue as PNG.
"""

from .exporter import (
    cut_group_regions,
    export_layer_composite,
    export_region,
    export_stitch_queue,
    render_region,
    render_stitch_queue,
)

__all__ = [
    "cut_group_regions",
    "export_layer_composite",
    "export_region",
    "export_stitch_queue",
    "render_region",
    "render_stitch_queue",
]
