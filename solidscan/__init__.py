"""Static design-pattern analyzer over language-neutral structural models."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("solidscan")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0-dev"

__all__ = ["__version__"]
