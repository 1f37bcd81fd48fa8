"""URL entries written into sitemap part files."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from urllib.parse import urlparse

# characters XML 1.0 cannot carry, escaped or not
ILLEGAL_XML_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


class MalformedLocationError(ValueError):
    """Raised when a location cannot be written as a valid <url> entry."""


class ChangeFrequency(str, Enum):
    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"

    @classmethod
    def parse(cls, raw: str | ChangeFrequency | None) -> ChangeFrequency | None:
        if raw is None or isinstance(raw, ChangeFrequency):
            return raw
        value = raw.strip().lower()
        if not value:
            return None
        try:
            return cls(value)
        except ValueError as exc:
            raise MalformedLocationError(f"Unsupported changefreq value: {raw}") from exc


@dataclass(frozen=True)
class Location:
    url: str
    change_frequency: ChangeFrequency | None = None
    last_modified: date | None = None
    priority: float | None = None

    def __post_init__(self) -> None:
        url = (self.url or "").strip()
        if not url:
            raise MalformedLocationError("Location URL is empty")
        if ILLEGAL_XML_CHARS_RE.search(url):
            raise MalformedLocationError(f"Location URL contains characters not allowed in XML: {url!r}")
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise MalformedLocationError(f"Location URL must be absolute http(s): {self.url}")
        object.__setattr__(self, "url", url)
        object.__setattr__(self, "change_frequency", ChangeFrequency.parse(self.change_frequency))
        if self.last_modified is not None and not isinstance(self.last_modified, date):
            raise MalformedLocationError(f"last_modified must be a date, got {type(self.last_modified).__name__}")
        if self.priority is not None:
            try:
                priority = float(self.priority)
            except (TypeError, ValueError) as exc:
                raise MalformedLocationError(f"Priority must be numeric: {self.priority!r}") from exc
            if math.isnan(priority) or not 0.0 <= priority <= 1.0:
                raise MalformedLocationError(f"Priority must be between 0.0 and 1.0: {self.priority}")
            object.__setattr__(self, "priority", priority)

    @property
    def lastmod_text(self) -> str | None:
        if self.last_modified is None:
            return None
        value = self.last_modified
        if isinstance(value, datetime):
            value = value.date()
        return value.strftime("%Y-%m-%d")

    @property
    def priority_text(self) -> str | None:
        if self.priority is None:
            return None
        return f"{self.priority:.15g}"
