"""WikiView — page views for a revisioned wiki."""

from wikiview._version import __version__

__all__ = ["__version__"]
