"""
Size-bounded sitemap writer.

Locations are streamed into ``{name}{n}.xml`` part files. Before each
``<url>`` entry is written, the open part is checked against ``max_bytes``;
once it has reached the limit the part is finalized and the next one is
opened. A part can therefore overshoot the limit by at most one entry, and
every part is a complete ``urlset`` document on its own. A part is never
rotated out before it holds at least one entry.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from .location import Location, MalformedLocationError

logger = logging.getLogger(__name__)

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
SITEMAP_FILE_EXTENSION = ".xml"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
# Protocol limit is 50MB uncompressed; parts are kept far below it.
MAX_BYTES = 500_000


@dataclass
class SitemapPart:
    sequence_number: int
    file_name: str
    path: Path
    byte_size: int = 0
    url_count: int = 0
    closed: bool = False


def render_url(location: Location, indented: bool = False) -> str:
    url_node = ET.Element("url")
    ET.SubElement(url_node, "loc").text = location.url
    lastmod = location.lastmod_text
    if lastmod:
        ET.SubElement(url_node, "lastmod").text = lastmod
    if location.change_frequency is not None:
        ET.SubElement(url_node, "changefreq").text = location.change_frequency.value
    priority = location.priority_text
    if priority is not None:
        ET.SubElement(url_node, "priority").text = priority
    if indented:
        ET.indent(url_node, space="  ", level=1)
        return "\n  " + ET.tostring(url_node, encoding="unicode")
    return ET.tostring(url_node, encoding="unicode")


class SitemapWriter:
    """Writes locations into one or more part files under ``folder_path``.

    Part #1 is opened on construction, so a writer that never receives a
    location still leaves one empty, well-formed ``urlset`` behind. Use it as
    a context manager (or call :meth:`close`) so the open part is always
    finalized, including when an exception escapes the ``with`` block.
    """

    def __init__(
        self,
        folder_path: str | Path,
        file_name: str,
        indented: bool = False,
        max_bytes: int = MAX_BYTES,
    ) -> None:
        if max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got {max_bytes}")
        self._folder = Path(folder_path)
        self._file_name = file_name
        self._indented = indented
        self._max_bytes = max_bytes
        self._parts: list[SitemapPart] = []
        self._stream: BinaryIO | None = None
        self._begin_file()

    def __enter__(self) -> SitemapWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def sitemap_files(self) -> list[str]:
        """Part names without extension, in creation order."""
        return [part.file_name for part in self._parts]

    @property
    def parts(self) -> tuple[SitemapPart, ...]:
        return tuple(self._parts)

    @property
    def current_size(self) -> int:
        return self._parts[-1].byte_size

    @property
    def closed(self) -> bool:
        return self._stream is None

    def add_location(self, location: Location) -> None:
        if self._stream is None:
            raise ValueError("Sitemap writer is closed")
        if not isinstance(location, Location):
            raise MalformedLocationError(f"Expected a Location, got {type(location).__name__}")

        part = self._parts[-1]
        # a part always takes at least one entry, however small the limit
        if part.url_count and part.byte_size >= self._max_bytes:
            self._end_file()
            self._begin_file()

        self._write(render_url(location, self._indented))
        self._parts[-1].url_count += 1

    def close(self) -> None:
        if self._stream is None:
            return
        self._end_file()

    def _begin_file(self) -> None:
        sequence_number = len(self._parts) + 1
        file_name = f"{self._file_name}{sequence_number}"
        path = self._folder / f"{file_name}{SITEMAP_FILE_EXTENSION}"
        self._stream = path.open("wb")
        self._parts.append(SitemapPart(sequence_number=sequence_number, file_name=file_name, path=path))
        try:
            self._write(f'{XML_DECLARATION}\n<urlset xmlns="{SITEMAP_NS}">')
        except BaseException:
            self._stream.close()
            self._stream = None
            self._parts[-1].closed = True
            raise
        logger.debug("Opened sitemap part %s", path)

    def _end_file(self) -> None:
        part = self._parts[-1]
        stream = self._stream
        self._stream = None
        try:
            closing = "\n</urlset>\n" if self._indented else "</urlset>\n"
            data = closing.encode("utf-8")
            stream.write(data)
            part.byte_size += len(data)
            stream.flush()
        finally:
            stream.close()
            part.closed = True
        logger.info("Finalized %s (%d URLs, %d bytes)", part.path.name, part.url_count, part.byte_size)

    def _write(self, text: str) -> None:
        data = text.encode("utf-8")
        self._stream.write(data)
        self._parts[-1].byte_size += len(data)
