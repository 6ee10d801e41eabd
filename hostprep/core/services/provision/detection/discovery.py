"""
L3 Detection — Discovery of installed binary copies.

Walks the filesystem for executable regular files with a given name.
Pseudo and temporary filesystems are pruned, symlinks are neither
followed nor reported, and unreadable directories are skipped.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


def _is_excluded(path: Path, exclude: tuple[Path, ...]) -> bool:
    return any(path == ex or ex in path.parents for ex in exclude)


def find_binaries(
    name: str,
    roots: Iterable[Path],
    exclude: Iterable[Path] = (),
) -> list[Path]:
    """Find every executable file called ``name`` under ``roots``.

    Args:
        name: Exact file name to match.
        roots: Directories to walk.
        exclude: Directory trees to skip entirely.

    Returns:
        Sorted, de-duplicated absolute paths.
    """
    excluded = tuple(Path(p) for p in exclude)
    found: set[Path] = set()

    for root in roots:
        root = Path(root)
        if not root.is_dir() or _is_excluded(root, excluded):
            continue

        for dirpath, dirnames, filenames in os.walk(root, onerror=None, followlinks=False):
            current = Path(dirpath)
            dirnames[:] = [d for d in dirnames if not _is_excluded(current / d, excluded)]

            if name not in filenames:
                continue

            candidate = current / name
            if candidate.is_symlink() or not candidate.is_file():
                continue
            if os.access(candidate, os.X_OK):
                found.add(candidate)

    result = sorted(found)
    logger.debug("Discovered %d copies of %s: %s", len(result), name, result)
    return result
