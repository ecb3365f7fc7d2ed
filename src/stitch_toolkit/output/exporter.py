"""
Module: output.exporter

Purpose:
    Export boundary. Turns regions, composited layers and the stitch
    queue into encoded PNG rasters, and cuts a group's regions out into
    new layers ("stitch selections").

Key Functions:
    - render_region(): Pixels of one region (replacement or crop)
    - export_region(): render_region() as PNG bytes
    - export_layer_composite(): Layer with replacements flattened, as PNG
    - render_stitch_queue() / export_stitch_queue(): Queue stitched left to right
    - cut_group_regions(): Group regions to layers in a new subgroup

Dependencies:
    - PIL.Image: Rasters
    - composition: Crop, composite, stitch, PNG encoding
    - cache.composite_cache: Group editing surfaces

Used By:
    - cli
    - UI consumers: Download boundary
"""

from __future__ import annotations

import logging
from typing import Optional

from PIL import Image

from ..cache.composite_cache import GroupCompositeCache
from ..composition.compositor import composite_layer
from ..composition.cropper import crop_to_raster
from ..composition.raster import encode_png, load_image
from ..composition.stitcher import stitch_images
from ..config import ToolkitConfig
from ..core.errors import GraphInvariantViolation
from ..core.models import Group, Layer, new_id
from ..graph.asset_graph import AssetGraph

logger = logging.getLogger(__name__)


def render_region(
    graph: AssetGraph,
    owner_id: str,
    region_id: str,
    cache: GroupCompositeCache,
) -> Image.Image:
    """
    Current pixels of a region, locked or not.

    A replacement, when set, is returned as stored. Otherwise the region
    is cropped from the owner's editing surface: the raw raster for a
    layer, the virtual image for a group.

    Raises:
        OwnerNotFound / RegionNotFound: Stale ids
        GraphInvariantViolation: Group with no members
        DecodeFailure: Unreadable raster
    """
    region = graph.get_region(owner_id, region_id)
    if region.has_replacement:
        return load_image(region.replacement_src)

    surface = cache.surface_for(owner_id)
    if surface is None:
        raise GraphInvariantViolation(f"Group {owner_id} has no members to crop from")
    return crop_to_raster(surface.image, region.rect, surface.width, surface.height)


def export_region(
    graph: AssetGraph,
    owner_id: str,
    region_id: str,
    cache: GroupCompositeCache,
    config: Optional[ToolkitConfig] = None,
) -> bytes:
    """Region pixels as PNG bytes."""
    config = config or ToolkitConfig()
    image = render_region(graph, owner_id, region_id, cache)
    logger.info(f"Exported region {region_id} of {owner_id} ({image.width}x{image.height})")
    return encode_png(image, config.png_compress_level)


def export_layer_composite(
    graph: AssetGraph,
    layer_id: str,
    config: Optional[ToolkitConfig] = None,
) -> bytes:
    """
    Layer at full size with every replacement painted on, as PNG bytes.

    Raises:
        OwnerNotFound: Unknown layer
        DecodeFailure: Unreadable raster
    """
    config = config or ToolkitConfig()
    layer = graph.get_layer(layer_id)
    image = composite_layer(layer, config.decode_workers)
    logger.info(f"Exported composite of layer {layer.name!r}")
    return encode_png(image, config.png_compress_level)


def render_stitch_queue(graph: AssetGraph, cache: GroupCompositeCache) -> Optional[Image.Image]:
    """
    Stitch every queued region left to right, in queue order.

    Returns:
        RGBA image, or None for an empty queue
    """
    queue = graph.stitch_queue
    if not queue:
        return None
    tiles = [render_region(graph, item.owner_id, item.region_id, cache) for item in queue]
    return stitch_images(tiles)


def export_stitch_queue(
    graph: AssetGraph,
    cache: GroupCompositeCache,
    config: Optional[ToolkitConfig] = None,
) -> Optional[bytes]:
    """Stitched queue as PNG bytes, or None for an empty queue."""
    config = config or ToolkitConfig()
    image = render_stitch_queue(graph, cache)
    if image is None:
        logger.info("Stitch queue is empty; nothing to export")
        return None
    logger.info(f"Exported stitch of {len(graph.stitch_queue)} regions ({image.width}x{image.height})")
    return encode_png(image, config.png_compress_level)


def cut_group_regions(
    graph: AssetGraph,
    group_id: str,
    cache: GroupCompositeCache,
    config: Optional[ToolkitConfig] = None,
) -> Optional[Group]:
    """
    Turn each region of a group into a new layer, gathered in a subgroup.

    Each layer holds the region's current pixels (replacement or crop of
    the virtual image) encoded as PNG, named "Cut <id prefix>".

    Returns:
        The new subgroup, or None if the group has no regions

    Raises:
        DecodeFailure: If any region cannot be rendered (nothing is added)
    """
    config = config or ToolkitConfig()
    group = graph.get_group(group_id)
    if not group.regions:
        return None

    layers = []
    for region in group.regions:
        image = render_region(graph, group_id, region.id, cache)
        layers.append(Layer(
            id=new_id(),
            name=f"Cut {region.id[:4]}",
            raster_src=encode_png(image, config.png_compress_level),
            original_width=image.width,
            original_height=image.height,
        ))
    return graph.create_subgroup(group_id, layers)
