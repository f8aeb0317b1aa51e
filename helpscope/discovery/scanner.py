"""Search-path enumeration."""

import logging
import os
import stat

from helpscope.discovery.types import Candidate

logger = logging.getLogger(__name__)

EXECUTE_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def _is_executable(path: str) -> bool:
    try:
        mode = os.stat(path).st_mode
    except OSError:
        # Permission denied or a dangling symlink
        return False
    return stat.S_ISREG(mode) and bool(mode & EXECUTE_BITS)


def scan_path_directories(search_path: str) -> list[Candidate]:
    """List executables on `search_path`, deduplicated by base name.

    Directories are read in search-path order and the first occurrence of
    a name wins, mirroring shell lookup. Dotfiles, directories and files
    without any execute bit are skipped; unreadable directories are
    ignored.
    """
    candidates: list[Candidate] = []
    seen: set[str] = set()

    for directory in filter(None, search_path.split(os.pathsep)):
        try:
            entries = sorted(os.scandir(directory), key=lambda e: e.name)
        except OSError as exc:
            logger.debug("Skipping search path entry %s: %s", directory, exc)
            continue

        for entry in entries:
            if entry.name.startswith(".") or entry.name in seen:
                continue
            if not (entry.is_file() or entry.is_symlink()):
                continue
            if not _is_executable(entry.path):
                continue
            seen.add(entry.name)
            candidates.append(Candidate(name=entry.name, path=entry.path))

    return candidates
