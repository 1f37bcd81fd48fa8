"""
Build orchestration: cleanup, writing, index creation, compression.

Stages run one after another on the caller's thread. A failure in any stage
propagates immediately and the remaining stages are skipped; files already
finalized stay on disk, so callers retry by simply running another build
(which starts with cleanup).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from .config import DEFAULT_NAME, DEFAULT_SITEMAPS_PATH, BuildSettings
from .files import compress_files, delete_existing_files
from .index import SitemapIndexBuilder
from .location import Location
from .writer import MAX_BYTES, SitemapWriter

logger = logging.getLogger(__name__)


class BuildStage(str, Enum):
    IDLE = "idle"
    CLEANING = "cleaning"
    WRITING = "writing"
    INDEXING = "indexing"
    COMPRESSING = "compressing"
    DONE = "done"


@runtime_checkable
class LocationProvider(Protocol):
    def produce_locations(self) -> Iterable[Location] | AsyncIterable[Location]:
        ...


LocationSource = (
    LocationProvider
    | Iterable[Location]
    | AsyncIterable[Location]
    | Callable[[], Iterable[Location] | AsyncIterable[Location]]
)


@dataclass
class BuildResult:
    parts: list[str]
    index_path: Path
    index_urls: list[str]
    location_count: int
    compressed: list[Path] = field(default_factory=list)


def resolve_locations(source: Any) -> Iterable[Location] | AsyncIterable[Location]:
    if isinstance(source, LocationProvider):
        return source.produce_locations()
    if hasattr(source, "__iter__") or hasattr(source, "__aiter__"):
        return source
    if callable(source):
        return source()
    raise TypeError(f"Unsupported location source: {type(source).__name__}")


class SitemapBuilder:
    def __init__(
        self,
        folder_path: str | Path,
        name: str = DEFAULT_NAME,
        sitemaps_path: str = DEFAULT_SITEMAPS_PATH,
        indented: bool = False,
        gzip: bool = True,
        max_bytes: int = MAX_BYTES,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.folder = Path(folder_path)
        self.name = name
        self.sitemaps_path = sitemaps_path
        self.indented = indented
        self.gzip = gzip
        self.max_bytes = max_bytes
        self.index_builder = SitemapIndexBuilder(self.folder, name, indented=indented, clock=clock)
        self._stage = BuildStage.IDLE

    @classmethod
    def from_settings(cls, settings: BuildSettings, clock: Callable[[], datetime] | None = None) -> SitemapBuilder:
        return cls(
            settings.output_dir,
            name=settings.name,
            sitemaps_path=settings.sitemaps_path,
            indented=settings.indented,
            gzip=settings.gzip,
            max_bytes=settings.max_bytes,
            clock=clock,
        )

    @property
    def stage(self) -> BuildStage:
        return self._stage

    def build(self, root_url: str, source: LocationSource) -> BuildResult:
        """Run every stage for ``source`` and return what was produced.

        Async sources are drained through :meth:`build_async` on a fresh
        event loop; from inside a running loop, await ``build_async`` instead.
        """
        locations = resolve_locations(source)
        if hasattr(locations, "__aiter__"):
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                return asyncio.run(self.build_async(root_url, locations))
            raise RuntimeError("build() cannot drain an async source inside a running event loop; await build_async()")

        self._clean()
        self._enter(BuildStage.WRITING)
        count = 0
        with self._open_writer() as writer:
            for location in locations:
                writer.add_location(location)
                count += 1
            files = writer.sitemap_files
        return self._finish(root_url, files, count)

    async def build_async(self, root_url: str, source: LocationSource) -> BuildResult:
        locations = resolve_locations(source)
        self._clean()
        self._enter(BuildStage.WRITING)
        count = 0
        with self._open_writer() as writer:
            if hasattr(locations, "__aiter__"):
                async for location in locations:
                    writer.add_location(location)
                    count += 1
            else:
                for location in locations:
                    writer.add_location(location)
                    count += 1
            files = writer.sitemap_files
        return self._finish(root_url, files, count)

    def rebuild_index(self, website_path: str) -> list[str]:
        """Rewrite the index from the compressed files already on disk."""
        return self.index_builder.build_from_existing_gzips(website_path)

    def _enter(self, stage: BuildStage) -> None:
        self._stage = stage
        logger.info("Sitemap build %s: %s", self.name, stage.value)

    def _clean(self) -> None:
        self._enter(BuildStage.CLEANING)
        delete_existing_files(self.folder, self.name)

    def _open_writer(self) -> SitemapWriter:
        return SitemapWriter(self.folder, self.name, indented=self.indented, max_bytes=self.max_bytes)

    def _finish(self, root_url: str, files: list[str], count: int) -> BuildResult:
        logger.info("Wrote %d locations into %d sitemap files", count, len(files))

        self._enter(BuildStage.INDEXING)
        urls = self.index_builder.build(root_url, self.sitemaps_path, files, gzip_enabled=self.gzip)

        compressed: list[Path] = []
        if self.gzip:
            self._enter(BuildStage.COMPRESSING)
            compressed = compress_files(self.folder)

        self._enter(BuildStage.DONE)
        return BuildResult(
            parts=files,
            index_path=self.index_builder.index_path,
            index_urls=urls,
            location_count=count,
            compressed=compressed,
        )
