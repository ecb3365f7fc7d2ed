"""
Composition Package

Pure pixel functions over Pillow images: region crop, replacement
overlay, horizontal stitch and justified row layout.
"""

from .config import JustifiedLayoutConfig
from .raster import decode_all, encode_png, load_image, source_digest, to_data_url
from .cropper import crop_to_raster
from .compositor import composite_layer, composite_regions
from .stitcher import horizontal_stitch, stitch_images
from .justified import (
    JustifiedLayout,
    TilePlacement,
    justified_layout,
    plan_justified_layout,
    render_justified_layout,
)

__all__ = [
    "JustifiedLayoutConfig",
    "decode_all",
    "encode_png",
    "load_image",
    "source_digest",
    "to_data_url",
    "crop_to_raster",
    "composite_layer",
    "composite_regions",
    "horizontal_stitch",
    "stitch_images",
    "JustifiedLayout",
    "TilePlacement",
    "justified_layout",
    "plan_justified_layout",
    "render_justified_layout",
]
