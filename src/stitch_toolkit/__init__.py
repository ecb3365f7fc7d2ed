"""Top-level package for the Stitch Toolkit.

Provides subpackages:
- stitch_toolkit.core – geometry, data models and error kinds
- stitch_toolkit.interaction – pointer-driven region editing
- stitch_toolkit.graph – the asset graph (layers, groups, stitch queue)
- stitch_toolkit.composition – cropping, overlay, stitching and layout
- stitch_toolkit.cache – derived group composites
- stitch_toolkit.loading / stitch_toolkit.output – import and export boundaries
"""

def _get_version() -> str:
    """Version from pyproject.toml in a checkout, importlib.metadata when installed."""
    from importlib.metadata import PackageNotFoundError, version as pkg_version
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        try:
            for line in pyproject.read_text().splitlines():
                if line.strip().startswith("version"):
                    # version = "0.3.1"
                    return line.split("=")[1].strip().strip('"').strip("'")
        except OSError:
            pass

    try:
        return pkg_version("stitch_toolkit")
    except PackageNotFoundError:
        return "0.0.0"

__version__ = _get_version()
__all__: list[str] = ["__version__"]
