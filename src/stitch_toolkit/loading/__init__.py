"""
Loading Package

Import boundary: raster sources in, layers out.
"""

from .importer import import_image, import_images, probe_size

__all__ = ["import_image", "import_images", "probe_size"]
