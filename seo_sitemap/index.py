"""Sitemap index documents pointing at the generated part files."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from pathlib import Path

from .files import GZIP_EXTENSION, visible_files
from .writer import SITEMAP_FILE_EXTENSION, SITEMAP_NS, XML_DECLARATION

logger = logging.getLogger(__name__)


def trim_with(value: str, separator: str = "/") -> str:
    """Normalize ``value`` to end in exactly one ``separator``."""
    return value.rstrip(separator) + separator


def index_file_name(name: str) -> str:
    return name.replace(" ", "") + SITEMAP_FILE_EXTENSION


def timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.isoformat(timespec="seconds")


def write_xml(path: Path, root: ET.Element, indented: bool = False) -> None:
    if indented:
        ET.indent(root, space="  ")
    body = ET.tostring(root, encoding="unicode")
    with path.open("w", encoding="utf-8") as handle:
        handle.write(f"{XML_DECLARATION}\n{body}\n")


class SitemapIndexBuilder:
    """Writes index documents into the sitemap folder.

    ``clock`` returns the generation time stamped into index ``lastmod``
    values; it defaults to the current UTC time.
    """

    def __init__(
        self,
        folder_path: str | Path,
        name: str = "sitemap",
        indented: bool = False,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.folder = Path(folder_path)
        self.name = name
        self.indented = indented
        self._clock = clock or (lambda: datetime.now(UTC))

    @property
    def index_path(self) -> Path:
        return self.folder / index_file_name(self.name)

    def part_urls(self, root_url: str, sitemaps_path: str, files: Iterable[str], gzip_enabled: bool) -> list[str]:
        prefix = trim_with(root_url)
        segment = sitemaps_path.strip("/")
        if segment:
            prefix += trim_with(segment)
        suffix = SITEMAP_FILE_EXTENSION + (GZIP_EXTENSION if gzip_enabled else "")
        return [f"{prefix}{file_name}{suffix}" for file_name in files]

    def build(
        self,
        root_url: str,
        sitemaps_path: str,
        files: Iterable[str],
        gzip_enabled: bool = True,
    ) -> list[str]:
        """Write a ``sitemapindex`` listing each part, in the order given.

        Returns the part URLs written into the index.
        """
        lastmod = timestamp(self._clock())
        urls = self.part_urls(root_url, sitemaps_path, files, gzip_enabled)

        root = ET.Element("sitemapindex", xmlns=SITEMAP_NS)
        for url in urls:
            sitemap_node = ET.SubElement(root, "sitemap")
            ET.SubElement(sitemap_node, "loc").text = url
            ET.SubElement(sitemap_node, "lastmod").text = lastmod
        write_xml(self.index_path, root, self.indented)
        logger.info("Wrote sitemap index %s with %d entries", self.index_path, len(urls))
        return urls

    def build_from_existing_gzips(self, website_path: str) -> list[str]:
        """Write a flat ``urlset`` listing every visible ``.gz`` in the folder.

        Each entry uses the compressed file's own modification time, so the
        index can be rebuilt without regenerating the parts.
        """
        prefix = trim_with(website_path)
        root = ET.Element("urlset", xmlns=SITEMAP_NS)
        urls: list[str] = []
        for entry in visible_files(self.folder):
            if entry.suffix.lower() != GZIP_EXTENSION:
                continue
            # the compressed copy of this index is not a sitemap of its own
            if entry.name == self.index_path.name + GZIP_EXTENSION:
                continue
            modified = datetime.fromtimestamp(entry.stat().st_mtime, tz=UTC)
            url = prefix + entry.name
            url_node = ET.SubElement(root, "url")
            ET.SubElement(url_node, "loc").text = url
            ET.SubElement(url_node, "lastmod").text = timestamp(modified)
            urls.append(url)
        write_xml(self.index_path, root, self.indented)
        logger.info("Rebuilt %s from %d compressed files", self.index_path, len(urls))
        return urls
