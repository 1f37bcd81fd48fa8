from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path

from .writer import MAX_BYTES

DEFAULT_NAME = "sitemap"
DEFAULT_SITEMAPS_PATH = "sitemaps"
DEFAULT_OUTPUT_DIR = "seo-sitemap-output"


@dataclass(frozen=True)
class BuildSettings:
    """Everything one build needs; fixed before the build starts."""

    output_dir: Path
    name: str = DEFAULT_NAME
    sitemaps_path: str = DEFAULT_SITEMAPS_PATH
    indented: bool = False
    gzip: bool = True
    max_bytes: int = MAX_BYTES

    def __post_init__(self) -> None:
        object.__setattr__(self, "output_dir", Path(self.output_dir))
        if not self.name.strip():
            raise ValueError("name must not be empty")
        if self.max_bytes <= 0:
            raise ValueError(f"max-bytes must be positive, got {self.max_bytes}")

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> BuildSettings:
        return cls(
            output_dir=Path(args.output_dir).resolve(),
            name=args.name,
            sitemaps_path=getattr(args, "sitemaps_path", DEFAULT_SITEMAPS_PATH),
            indented=getattr(args, "indented", False),
            gzip=not getattr(args, "no_gzip", False),
            max_bytes=getattr(args, "max_bytes", MAX_BYTES),
        )
