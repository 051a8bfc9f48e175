"""Top-level package for the alphasim Monte Carlo reliability study."""

from importlib import metadata as _metadata

from . import analysis, core, io

try:
    __version__ = _metadata.version("alphasim")
except _metadata.PackageNotFoundError:  # pragma: no cover - during local usage
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "analysis",
    "core",
    "io",
]
