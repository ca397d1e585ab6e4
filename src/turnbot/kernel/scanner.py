"""
Directory scanner for the watched save folder.

Lists the top level of one directory and reports (name, size) for every
regular file whose extension is allowed. Nothing below the top level is
visited and file contents are never read.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List


class ScanError(OSError):
    """The watched directory could not be listed this tick."""


@dataclass(frozen=True)
class FileEntry:
    name: str
    size: int


def has_allowed_extension(filename: str, allowed_extensions: Iterable[str]) -> bool:
    exts = [str(e).lower().lstrip(".") for e in allowed_extensions]
    if not exts:
        return True
    lower = filename.lower()
    return any(lower.endswith("." + e) for e in exts if e)


def scan_directory(path: Path, allowed_extensions: Iterable[str]) -> List[FileEntry]:
    """
    List candidate save files in `path`, sorted by name.

    Raises:
        ScanError: if the directory is missing or unreadable. Callers must
        treat this as "no information", never as "every file was deleted".
    """
    exts = tuple(allowed_extensions)
    entries: List[FileEntry] = []
    try:
        with os.scandir(path) as it:
            for item in it:
                try:
                    if not item.is_file():
                        continue
                    size = item.stat().st_size
                except OSError:
                    # Vanished or became unreadable between listing and stat.
                    continue
                if not has_allowed_extension(item.name, exts):
                    continue
                entries.append(FileEntry(name=item.name, size=int(size)))
    except OSError as e:
        raise ScanError(f"cannot read directory {path}: {e}") from e

    entries.sort(key=lambda e: e.name)
    return entries
