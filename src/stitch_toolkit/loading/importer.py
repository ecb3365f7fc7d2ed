"""
Module: loading.importer

Purpose:
    Import boundary: decode a raw raster source just far enough to learn
    its pixel size, then add it to the graph as a new layer with no
    regions.

Key Functions:
    - probe_size(): Pixel size of a raster source
    - import_image(): Source to Layer, added to the graph
    - import_images(): Several sources, decoded in parallel

Dependencies:
    - PIL.Image: Header decoding
    - composition.raster: Source handling and error mapping

Used By:
    - cli: Input files
    - UI consumers: Upload boundary
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..composition.raster import RasterSource, describe_source, load_image
from ..core.models import Layer, new_id
from ..graph.asset_graph import AssetGraph

logger = logging.getLogger(__name__)

DEFAULT_LAYER_NAME = "Untitled"


def probe_size(source: RasterSource) -> Tuple[int, int]:
    """
    Decode a source and return its (width, height).

    Raises:
        DecodeFailure: Unreadable or malformed input
    """
    return load_image(source).size


def default_name(source: RasterSource) -> str:
    """File name for path sources, a placeholder otherwise."""
    if isinstance(source, Path):
        return source.name
    if isinstance(source, str) and not source.startswith("data:"):
        return Path(source).name
    return DEFAULT_LAYER_NAME


def import_image(
    graph: AssetGraph,
    source: RasterSource,
    name: Optional[str] = None,
    *,
    select: bool = True,
) -> Layer:
    """
    Decode a source and add it to the graph as a new, ungrouped layer.

    The source is stored verbatim as the layer's raster.

    Args:
        graph: Target graph
        source: Encoded bytes, path, data: URL or PIL image
        name: Display name (defaults to the file name)
        select: Make the new layer the active asset

    Returns:
        The added Layer

    Raises:
        DecodeFailure: Undecodable input (graph untouched)
    """
    width, height = probe_size(source)
    layer = Layer(
        id=new_id(),
        name=name or default_name(source),
        raster_src=source,
        original_width=width,
        original_height=height,
    )
    return graph.add_layer(layer, select=select)


def import_images(
    graph: AssetGraph,
    sources: Sequence[RasterSource],
    max_workers: int = 4,
) -> List[Layer]:
    """
    Import several sources; sizes are probed in parallel.

    Nothing is added unless every source decodes.

    Raises:
        DecodeFailure: If any source fails
    """
    if not sources:
        return []
    with ThreadPoolExecutor(max_workers=min(max_workers, len(sources))) as pool:
        sizes = list(pool.map(probe_size, sources))

    layers = []
    for source, (width, height) in zip(sources, sizes):
        layer = Layer(new_id(), default_name(source), source, width, height)
        layers.append(graph.add_layer(layer))
    logger.info(f"Imported {len(layers)} images")
    logger.debug(f"Sources: {[describe_source(s) for s in sources]}")
    return layers
