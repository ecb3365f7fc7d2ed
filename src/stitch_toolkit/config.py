"""
Module: config

Purpose:
    Toolkit-wide settings: decode parallelism, PNG encoding, pointer
    handle grab distance and the minimum region size.

Key Classes:
    - ToolkitConfig: Immutable toolkit configuration

Dependencies:
    - dataclasses (std)

Used By:
    - interaction.editor: Handle radius, minimum size
    - cache.composite_cache: Worker pool size
    - output.exporter: PNG compression
    - cli: Worker count flag
"""

from __future__ import annotations

from dataclasses import dataclass

from .core.geometry import MIN_REGION_SIZE


DEFAULT_DECODE_WORKERS = 4
DEFAULT_PNG_COMPRESS_LEVEL = 6


@dataclass(frozen=True)
class ToolkitConfig:
    """
    Toolkit configuration (immutable).

    Attributes:
        decode_workers: Thread pool size for parallel decode / recompute
        png_compress_level: zlib level for encoded PNG output (0-9)
        handle_hit_radius: Corner grab distance in percent
        min_region_size: Minimum region width/height in percent

    Example:
        >>> ToolkitConfig(decode_workers=2).png_compress_level
        6
    """

    decode_workers: int = DEFAULT_DECODE_WORKERS
    png_compress_level: int = DEFAULT_PNG_COMPRESS_LEVEL
    handle_hit_radius: float = 1.5
    min_region_size: float = MIN_REGION_SIZE

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.decode_workers < 1:
            raise ValueError(f"decode_workers must be >= 1: {self.decode_workers}")
        if not 0 <= self.png_compress_level <= 9:
            raise ValueError(f"png_compress_level must be 0-9: {self.png_compress_level}")
        if self.handle_hit_radius < 0:
            raise ValueError(f"handle_hit_radius must be non-negative: {self.handle_hit_radius}")
        if not 0 < self.min_region_size <= 100:
            raise ValueError(f"min_region_size must be in (0, 100]: {self.min_region_size}")
