"""
Command line entry point for building and re-indexing sitemap sets.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import urlparse, urlunparse

import requests

from .builder import SitemapBuilder
from .config import DEFAULT_NAME, DEFAULT_OUTPUT_DIR, DEFAULT_SITEMAPS_PATH, BuildSettings
from .location import Location
from .sources import fetch_sitemap_locations, load_url_list, read_location_records
from .writer import MAX_BYTES


def normalize_url(raw: str) -> str:
    value = raw.strip()
    parsed = urlparse(value)
    if not parsed.scheme:
        value = f"https://{value}"
        parsed = urlparse(value)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Unsupported URL scheme: {parsed.scheme}")
    if not parsed.netloc:
        raise ValueError("URL is missing host")
    path = parsed.path or "/"
    return urlunparse((parsed.scheme, parsed.netloc, path, "", parsed.query, ""))


def load_locations(args: argparse.Namespace) -> tuple[list[Location], int, str]:
    if args.urls_file:
        locations, skipped = load_url_list(args.urls_file)
        return locations, skipped, args.urls_file
    if args.records_file:
        locations, skipped = read_location_records(args.records_file)
        return locations, skipped, args.records_file
    sitemap_url = normalize_url(args.sitemap_url)
    locations, skipped = fetch_sitemap_locations(sitemap_url, args.timeout)
    return locations, skipped, sitemap_url


def write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def run_generate(args: argparse.Namespace) -> int:
    try:
        base_url = normalize_url(args.base_url)
        settings = BuildSettings.from_args(args)
        locations, skipped, source = load_locations(args)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 2
    except requests.exceptions.RequestException as exc:
        print(f"Error: could not fetch sitemap: {exc}")
        return 2

    builder = SitemapBuilder.from_settings(settings)
    try:
        result = builder.build(base_url, locations)
    except OSError as exc:
        print(f"Error: sitemap build failed during {builder.stage.value}: {exc}")
        return 1

    summary = {
        "base_url": base_url,
        "source": source,
        "location_count": result.location_count,
        "skipped_malformed": skipped,
        "max_bytes": settings.max_bytes,
        "gzip": settings.gzip,
        "sitemap_files": result.parts,
        "index_file": str(result.index_path),
        "index_urls": result.index_urls,
        "compressed_files": [str(path) for path in result.compressed],
    }
    print(f"Base URL: {base_url}")
    print(f"Locations written: {result.location_count}")
    if skipped:
        print(f"Skipped malformed entries: {skipped}")
    print(f"Sitemap files: {len(result.parts)}")
    print(f"Sitemap index: {result.index_path}")
    # kept out of the sitemap folder, where every file gets compressed
    if args.summary_file:
        summary_path = Path(args.summary_file).resolve()
        write_json(summary_path, summary)
        print(f"Summary: {summary_path}")
    return 0


def run_reindex(args: argparse.Namespace) -> int:
    try:
        website_path = normalize_url(args.website_path)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 2
    output_dir = Path(args.output_dir).resolve()
    if not output_dir.is_dir():
        print(f"Error: sitemap folder not found: {output_dir}")
        return 2

    builder = SitemapBuilder(output_dir, name=args.name)
    try:
        urls = builder.rebuild_index(website_path)
    except OSError as exc:
        print(f"Error: could not rebuild index: {exc}")
        return 1

    print(f"Compressed sitemaps listed: {len(urls)}")
    print(f"Sitemap index: {builder.index_builder.index_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate size-bounded XML sitemap sets.")
    parser.add_argument("--verbose", action="store_true", help="Log build stages and file operations")
    sub = parser.add_subparsers(dest="command", required=True)

    p_generate = sub.add_parser("generate", help="Write sitemap parts, an index and gzip copies")
    p_generate.add_argument("--base-url", required=True, help="Public root URL of the site")
    source = p_generate.add_mutually_exclusive_group(required=True)
    source.add_argument("--urls-file", default="", help="Newline-delimited URLs to include")
    source.add_argument("--records-file", default="", help="CSV or JSON with loc/lastmod/changefreq/priority")
    source.add_argument("--sitemap-url", default="", help="Existing sitemap to split into parts")
    p_generate.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR)
    p_generate.add_argument("--name", default=DEFAULT_NAME, help="Base file name for parts and index")
    p_generate.add_argument(
        "--sitemaps-path",
        default=DEFAULT_SITEMAPS_PATH,
        help="URL path segment the parts are served under",
    )
    p_generate.add_argument("--indented", action="store_true", help="Pretty-print the XML output")
    p_generate.add_argument("--no-gzip", action="store_true", help="Skip .gz copies and link plain .xml parts")
    p_generate.add_argument("--max-bytes", type=int, default=MAX_BYTES, help="Rotate parts once they reach this size")
    p_generate.add_argument("--timeout", type=int, default=20)
    p_generate.add_argument("--summary-file", default="", help="Optional path for a JSON build summary")
    p_generate.set_defaults(func=run_generate)

    p_reindex = sub.add_parser("reindex", help="Rebuild the index from existing .gz files")
    p_reindex.add_argument("--website-path", required=True, help="Public URL the .gz files are served under")
    p_reindex.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR)
    p_reindex.add_argument("--name", default=DEFAULT_NAME)
    p_reindex.set_defaults(func=run_reindex)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
