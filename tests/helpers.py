from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

from seo_sitemap.writer import SITEMAP_NS

NS = {"sm": SITEMAP_NS}


def read_root(path: Path) -> ET.Element:
    return ET.parse(path).getroot()


def part_locs(path: Path) -> list[str]:
    root = read_root(path)
    assert root.tag == f"{{{SITEMAP_NS}}}urlset"
    return [node.findtext("sm:loc", namespaces=NS) for node in root.findall("sm:url", NS)]
