import os
import sys
from datetime import UTC, datetime

import pytest

from helpers import NS, read_root
from seo_sitemap import SITEMAP_NS, SitemapIndexBuilder
from seo_sitemap.index import trim_with

FIXED = datetime(2024, 3, 1, 8, 30, tzinfo=UTC)


def make_builder(folder, **kwargs):
    return SitemapIndexBuilder(folder, clock=lambda: FIXED, **kwargs)


def index_entries(path, entry="sitemap"):
    root = read_root(path)
    return [
        (node.findtext("sm:loc", namespaces=NS), node.findtext("sm:lastmod", namespaces=NS))
        for node in root.findall(f"sm:{entry}", NS)
    ]


@pytest.mark.parametrize("value", ["https://example.com", "https://example.com/", "https://example.com///"])
def test_trim_with_leaves_exactly_one_separator(value):
    assert trim_with(value) == "https://example.com/"
    assert trim_with(trim_with(value)) == "https://example.com/"


def test_index_lists_compressed_parts_in_order(tmp_path):
    urls = make_builder(tmp_path).build("https://example.com", "sitemaps", ["sitemap1", "sitemap2", "sitemap3"])

    assert urls == [
        "https://example.com/sitemaps/sitemap1.xml.gz",
        "https://example.com/sitemaps/sitemap2.xml.gz",
        "https://example.com/sitemaps/sitemap3.xml.gz",
    ]
    root = read_root(tmp_path / "sitemap.xml")
    assert root.tag == f"{{{SITEMAP_NS}}}sitemapindex"
    assert index_entries(tmp_path / "sitemap.xml") == [(url, "2024-03-01T08:30:00+00:00") for url in urls]


def test_index_links_plain_xml_without_gzip(tmp_path):
    urls = make_builder(tmp_path).build("https://example.com/", "/sitemaps/", ["sitemap1"], gzip_enabled=False)

    assert urls == ["https://example.com/sitemaps/sitemap1.xml"]


def test_separator_normalization_is_idempotent(tmp_path):
    builder = make_builder(tmp_path)
    plain = builder.part_urls("https://example.com", "sitemaps", ["sitemap1"], True)
    slashed = builder.part_urls("https://example.com/", "sitemaps/", ["sitemap1"], True)

    assert plain == slashed


def test_empty_path_segment_links_from_the_root(tmp_path):
    urls = make_builder(tmp_path).build("https://example.com", "", ["sitemap1"])

    assert urls == ["https://example.com/sitemap1.xml.gz"]


def test_index_name_drops_spaces(tmp_path):
    builder = make_builder(tmp_path, name="product pages")
    builder.build("https://example.com", "sitemaps", ["product pages1"])

    assert builder.index_path == tmp_path / "productpages.xml"
    assert builder.index_path.exists()


def test_index_into_missing_folder_raises(tmp_path):
    with pytest.raises(OSError):
        make_builder(tmp_path / "missing").build("https://example.com", "sitemaps", ["sitemap1"])


def test_naive_clock_is_treated_as_utc(tmp_path):
    builder = SitemapIndexBuilder(tmp_path, clock=lambda: datetime(2024, 3, 1, 8, 30))
    builder.build("https://example.com", "sitemaps", ["sitemap1"])

    assert index_entries(tmp_path / "sitemap.xml")[0][1] == "2024-03-01T08:30:00+00:00"


def test_rebuild_lists_existing_gzips_with_their_own_mtime(tmp_path):
    for name in ("sitemap1.xml.gz", "sitemap2.xml.gz", "sitemap1.xml", "sitemap.xml.gz"):
        (tmp_path / name).write_bytes(b"x")
    stamp = datetime(2023, 7, 4, 12, 0, tzinfo=UTC).timestamp()
    os.utime(tmp_path / "sitemap1.xml.gz", (stamp, stamp))
    os.utime(tmp_path / "sitemap2.xml.gz", (stamp, stamp))

    urls = make_builder(tmp_path).build_from_existing_gzips("https://example.com/sitemaps")

    assert urls == [
        "https://example.com/sitemaps/sitemap1.xml.gz",
        "https://example.com/sitemaps/sitemap2.xml.gz",
    ]
    root = read_root(tmp_path / "sitemap.xml")
    assert root.tag == f"{{{SITEMAP_NS}}}urlset"
    assert index_entries(tmp_path / "sitemap.xml", entry="url") == [
        (url, "2023-07-04T12:00:00+00:00") for url in urls
    ]


@pytest.mark.skipif(sys.platform == "win32", reason="dot prefix is not the hidden marker on Windows")
def test_rebuild_skips_hidden_gzips(tmp_path):
    (tmp_path / ".old.xml.gz").write_bytes(b"x")
    (tmp_path / "sitemap1.xml.gz").write_bytes(b"x")

    urls = make_builder(tmp_path).build_from_existing_gzips("https://example.com/sitemaps/")

    assert urls == ["https://example.com/sitemaps/sitemap1.xml.gz"]


def test_indented_index_is_well_formed(tmp_path):
    make_builder(tmp_path, indented=True).build("https://example.com", "sitemaps", ["sitemap1", "sitemap2"])

    text = (tmp_path / "sitemap.xml").read_text(encoding="utf-8")
    assert "\n  <sitemap>\n    <loc>" in text
    assert len(index_entries(tmp_path / "sitemap.xml")) == 2
