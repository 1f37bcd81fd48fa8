from __future__ import annotations

import pytest

from seo_sitemap import Location


@pytest.fixture
def make_locations():
    def factory(count: int, prefix: str = "https://example.com/page-") -> list[Location]:
        return [Location(f"{prefix}{idx:04d}") for idx in range(count)]

    return factory
