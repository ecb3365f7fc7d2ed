"""
Module: composition.raster

Purpose:
    Decoding and encoding of raster sources. A raster source is stored
    verbatim on layers and regions and may be encoded bytes, a file path,
    a data: URL or an already decoded PIL image; this module turns any
    of them into an RGBA image, in parallel when there are several.

Key Functions:
    - load_image(): Decode one source to RGBA
    - decode_all(): Decode many sources concurrently (all-or-nothing)
    - encode_png(): PIL image to PNG bytes
    - to_data_url(): PNG bytes to a data: URL
    - source_digest(): Stable identity of a source for cache fingerprints

Dependencies:
    - PIL.Image: Decoding and encoding
    - concurrent.futures: Parallel decode

Used By:
    - composition.cropper / compositor / stitcher / justified
    - cache.composite_cache: Fingerprints
    - loading.importer: Size probing
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import io
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, List, Sequence, Union

from PIL import Image, UnidentifiedImageError

from ..core.errors import DecodeFailure

logger = logging.getLogger(__name__)

RasterSource = Union[bytes, str, Path, Image.Image]

DATA_URL_PREFIX = "data:"
PNG_DATA_URL_PREFIX = "data:image/png;base64,"


def describe_source(source: Any) -> str:
    """Short human-readable description of a source for log and error messages."""
    if isinstance(source, Image.Image):
        return f"<image {source.width}x{source.height}>"
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    if isinstance(source, str) and source.startswith(DATA_URL_PREFIX):
        return f"<data url, {len(source)} chars>"
    return str(source)


def _decode_data_url(url: str) -> bytes:
    header, sep, payload = url.partition(",")
    if not sep:
        raise ValueError("Malformed data URL (no comma)")
    if header.endswith(";base64"):
        return base64.b64decode(payload, validate=True)
    raise ValueError(f"Unsupported data URL encoding: {header}")


def load_image(source: RasterSource) -> Image.Image:
    """
    Decode a raster source into a new RGBA image.

    The result is always a fresh copy, so callers may draw on it.

    Args:
        source: Encoded bytes, path, data: URL or PIL image

    Returns:
        RGBA PIL image

    Raises:
        DecodeFailure: If the source cannot be read or decoded
    """
    hint = describe_source(source)
    if isinstance(source, Image.Image):
        return source.convert("RGBA")

    try:
        if isinstance(source, (bytes, bytearray)):
            stream: Any = io.BytesIO(source)
        elif isinstance(source, str) and source.startswith(DATA_URL_PREFIX):
            stream = io.BytesIO(_decode_data_url(source))
        elif isinstance(source, (str, Path)):
            stream = Path(source)
        else:
            raise DecodeFailure(f"Unsupported raster source type: {type(source).__name__}", hint)

        with Image.open(stream) as img:
            img.load()
            return img.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError, binascii.Error) as e:
        logger.warning(f"Failed to decode {hint}: {e}")
        raise DecodeFailure(f"Cannot decode raster {hint}: {e}", hint) from e


def decode_all(sources: Sequence[RasterSource], max_workers: int = 4) -> List[Image.Image]:
    """
    Decode several sources concurrently.

    All decodes are submitted at once and the call returns only when every
    one has finished. Output order matches input order.

    Raises:
        DecodeFailure: If any source fails (no partial result)
    """
    if not sources:
        return []
    if len(sources) == 1:
        return [load_image(sources[0])]
    with ThreadPoolExecutor(max_workers=min(max_workers, len(sources))) as pool:
        futures = [pool.submit(load_image, s) for s in sources]
        return [f.result() for f in futures]


def encode_png(image: Image.Image, compress_level: int = 6) -> bytes:
    """Encode an image as PNG bytes."""
    buf = io.BytesIO()
    image.save(buf, format="PNG", compress_level=compress_level)
    return buf.getvalue()


def to_data_url(png: bytes) -> str:
    """Wrap PNG bytes in a data: URL."""
    return PNG_DATA_URL_PREFIX + base64.b64encode(png).decode("ascii")


def source_digest(source: Any) -> str:
    """
    Stable identity of a raster source for cache fingerprints.

    Byte and string sources hash their content; decoded images are
    identified by object identity since they are stored verbatim and
    never mutated in place.
    """
    if isinstance(source, (bytes, bytearray)):
        return "bytes:" + hashlib.sha1(source).hexdigest()
    if isinstance(source, str):
        return "str:" + hashlib.sha1(source.encode("utf-8")).hexdigest()
    if isinstance(source, Path):
        return f"path:{source}"
    if isinstance(source, Image.Image):
        return f"image:{id(source)}"
    return f"obj:{id(source)}"
