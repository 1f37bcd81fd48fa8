"""Output directory housekeeping: cleanup before a build, gzip after it."""

from __future__ import annotations

import gzip
import logging
import shutil
import stat
from pathlib import Path

logger = logging.getLogger(__name__)

GZIP_EXTENSION = ".gz"
CLEANUP_EXTENSIONS = {".xml", GZIP_EXTENSION}


def is_hidden(path: Path) -> bool:
    info = path.stat()
    attributes = getattr(info, "st_file_attributes", None)
    if attributes is not None:
        return bool(attributes & stat.FILE_ATTRIBUTE_HIDDEN)
    flags = getattr(info, "st_flags", None)
    if flags is not None and flags & stat.UF_HIDDEN:
        return True
    # No hidden attribute on Linux and friends; the dot prefix is the convention there.
    return path.name.startswith(".")


def visible_files(folder: Path) -> list[Path]:
    return sorted(entry for entry in folder.iterdir() if entry.is_file() and not is_hidden(entry))


def delete_existing_files(folder_path: str | Path, name: str) -> list[Path]:
    """Remove ``{name}*.xml`` / ``{name}*.gz`` left by an earlier build.

    A missing folder is created instead of being treated as an error.
    """
    folder = Path(folder_path)
    if not folder.exists():
        folder.mkdir(parents=True, exist_ok=True)
        logger.info("Created sitemap folder %s", folder)
        return []

    deleted: list[Path] = []
    for entry in visible_files(folder):
        if not entry.name.startswith(name) or entry.suffix.lower() not in CLEANUP_EXTENSIONS:
            continue
        entry.unlink()
        deleted.append(entry)
    if deleted:
        logger.info("Deleted %d existing sitemap files from %s", len(deleted), folder)
    return deleted


def compress_file(path: Path) -> Path:
    target = path.with_name(path.name + GZIP_EXTENSION)
    with path.open("rb") as source, gzip.open(target, "wb") as compressed:
        shutil.copyfileobj(source, compressed)
    return target


def compress_files(folder_path: str | Path) -> list[Path]:
    """Write a ``.gz`` sibling for every visible, not yet compressed file.

    Existing ``.gz`` siblings are overwritten; originals stay in place.
    """
    folder = Path(folder_path)
    written: list[Path] = []
    for entry in visible_files(folder):
        if entry.suffix.lower() == GZIP_EXTENSION:
            continue
        written.append(compress_file(entry))
        logger.debug("Compressed %s", entry.name)
    logger.info("Compressed %d files in %s", len(written), folder)
    return written
