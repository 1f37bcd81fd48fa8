"""Size-bounded XML sitemap sets with an index and gzip copies."""

from .builder import BuildResult, BuildStage, LocationProvider, SitemapBuilder
from .config import BuildSettings
from .files import compress_files, delete_existing_files
from .index import SitemapIndexBuilder
from .location import ChangeFrequency, Location, MalformedLocationError
from .writer import MAX_BYTES, SITEMAP_NS, SitemapPart, SitemapWriter

__all__ = [
    "BuildResult",
    "BuildSettings",
    "BuildStage",
    "ChangeFrequency",
    "Location",
    "LocationProvider",
    "MAX_BYTES",
    "MalformedLocationError",
    "SITEMAP_NS",
    "SitemapBuilder",
    "SitemapIndexBuilder",
    "SitemapPart",
    "SitemapWriter",
    "compress_files",
    "delete_existing_files",
]
