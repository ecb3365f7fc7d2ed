"""
Cache Package

Pull-based group composites keyed by dependency fingerprint.
"""

from .composite_cache import (
    EditingSurface,
    GroupCompositeCache,
    VirtualImage,
    build_virtual_image,
    layer_fingerprint,
)

__all__ = [
    "EditingSurface",
    "GroupCompositeCache",
    "VirtualImage",
    "build_virtual_image",
    "layer_fingerprint",
]
