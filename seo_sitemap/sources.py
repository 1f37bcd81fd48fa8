"""Ready-made location sources: URL lists, record files, existing sitemaps."""

from __future__ import annotations

import csv
import gzip
import ipaddress
import json
import logging
import socket
import xml.etree.ElementTree as ET
from datetime import date, datetime
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import requests

from .location import Location, MalformedLocationError

logger = logging.getLogger(__name__)

HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; SeoSitemap/1.0)",
    "Accept": "application/xml,text/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.8",
}
GZIP_MAGIC = b"\x1f\x8b"

URL_KEYS = ("loc", "url")
LASTMOD_KEYS = ("lastmod", "last_modified")
CHANGEFREQ_KEYS = ("changefreq", "change_frequency")
PRIORITY_KEYS = ("priority",)


def is_public_target(url: str) -> bool:
    host = urlparse(url).hostname
    if not host:
        return False
    try:
        info = socket.getaddrinfo(host, None)
    except socket.gaierror:
        return False
    for _, _, _, _, sockaddr in info:
        ip_text = sockaddr[0]
        try:
            ip = ipaddress.ip_address(ip_text)
        except ValueError:
            continue
        if ip.is_private or ip.is_loopback or ip.is_reserved or ip.is_link_local or ip.is_multicast:
            continue
        return True
    return False


def localname(tag: str) -> str:
    if "}" in tag:
        return tag.rsplit("}", 1)[-1]
    return tag


def child_text(node: ET.Element, name: str) -> str | None:
    for child in node:
        if localname(child.tag) == name and child.text:
            return child.text.strip()
    return None


def parse_lastmod(raw: Any) -> date | None:
    if raw is None or isinstance(raw, date):
        return raw
    value = str(raw).strip()
    if not value:
        return None
    try:
        if len(value) == 10:
            return date.fromisoformat(value)
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError as exc:
        raise MalformedLocationError(f"Invalid lastmod value: {raw}") from exc


def parse_priority(raw: Any) -> float | None:
    if raw is None or isinstance(raw, float):
        return raw
    value = str(raw).strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise MalformedLocationError(f"Invalid priority value: {raw}") from exc


def pick_field(record: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


def location_from_record(record: dict[str, Any]) -> Location:
    normalized = {str(key).strip().lower(): value for key, value in record.items() if key is not None}
    url = pick_field(normalized, URL_KEYS)
    return Location(
        url=str(url or ""),
        change_frequency=pick_field(normalized, CHANGEFREQ_KEYS),
        last_modified=parse_lastmod(pick_field(normalized, LASTMOD_KEYS)),
        priority=parse_priority(pick_field(normalized, PRIORITY_KEYS)),
    )


def collect_locations(records: list[dict[str, Any]], source: str) -> tuple[list[Location], int]:
    locations: list[Location] = []
    skipped = 0
    for record in records:
        try:
            locations.append(location_from_record(record))
        except MalformedLocationError as exc:
            skipped += 1
            logger.warning("Skipped malformed location in %s: %s", source, exc)
    return locations, skipped


def load_url_list(path_value: str | Path) -> tuple[list[Location], int]:
    path = Path(path_value).resolve()
    if not path.exists():
        raise ValueError(f"URL list not found: {path}")
    records = []
    for raw in path.read_text(encoding="utf-8").splitlines():
        value = raw.strip()
        if not value or value.startswith("#"):
            continue
        records.append({"loc": value})
    return collect_locations(records, str(path))


def load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc


def read_records(path: Path) -> list[dict[str, Any]]:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        with path.open("r", encoding="utf-8", newline="") as handle:
            reader = csv.DictReader(handle)
            return [dict(row) for row in reader]
    if suffix == ".json":
        payload = load_json(path)
        if isinstance(payload, list):
            return [dict(item) for item in payload if isinstance(item, dict)]
        if isinstance(payload, dict):
            for key in ("locations", "urls", "records", "items", "pages"):
                maybe = payload.get(key)
                if isinstance(maybe, list):
                    return [dict(item) for item in maybe if isinstance(item, dict)]
        raise ValueError(f"Unsupported JSON structure in {path}")
    raise ValueError("Supported record file types: .csv, .json")


def read_location_records(path_value: str | Path) -> tuple[list[Location], int]:
    path = Path(path_value).resolve()
    if not path.exists():
        raise ValueError(f"Record file not found: {path}")
    return collect_locations(read_records(path), str(path))


def parse_sitemap_locations(payload: str | bytes, source: str) -> tuple[list[Location], int]:
    """Turn a ``urlset`` document back into locations, in document order."""
    if isinstance(payload, bytes) and payload.startswith(GZIP_MAGIC):
        try:
            payload = gzip.decompress(payload)
        except OSError as exc:
            raise ValueError(f"Invalid gzip sitemap: {source}") from exc
    try:
        root = ET.fromstring(payload)
    except ET.ParseError as exc:
        raise ValueError(f"Invalid XML in {source}: {exc}") from exc

    root_name = localname(root.tag)
    if root_name == "sitemapindex":
        raise ValueError(f"{source} is a sitemap index; pass one of its child sitemaps instead")
    if root_name != "urlset":
        raise ValueError(f"Unsupported sitemap root element in {source}: {root_name}")

    records = []
    for url_node in root:
        if localname(url_node.tag) != "url":
            continue
        records.append(
            {
                "loc": child_text(url_node, "loc"),
                "lastmod": child_text(url_node, "lastmod"),
                "changefreq": child_text(url_node, "changefreq"),
                "priority": child_text(url_node, "priority"),
            }
        )
    return collect_locations(records, source)


def fetch_sitemap_locations(url: str, timeout: int = 20) -> tuple[list[Location], int]:
    if urlparse(url).scheme not in ("http", "https"):
        raise ValueError(f"Unsupported URL scheme: {url}")
    if not is_public_target(url):
        raise ValueError(f"Sitemap URL resolves to non-public or invalid host: {url}")
    response = requests.get(url, headers=HEADERS, timeout=timeout, allow_redirects=True)
    response.raise_for_status()
    return parse_sitemap_locations(response.content, url)
