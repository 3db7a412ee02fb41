"""Source tree discovery and dispatch by file extension."""

from __future__ import annotations

import logging
from pathlib import Path

from gsd_opencode.constants import PACKAGE_JSON_FILENAME, SOURCE_IGNORED_DIRS
from gsd_opencode.parsing.models import SourceFormat

logger = logging.getLogger(__name__)

_FORMAT_BY_SUFFIX: dict[str, SourceFormat] = {
    ".xml": SourceFormat.TAGGED,
    ".md": SourceFormat.FRONTMATTER,
    ".json": SourceFormat.STRUCTURED,
    ".yaml": SourceFormat.STRUCTURED,
    ".yml": SourceFormat.STRUCTURED,
}


def is_ignored_name(name: str) -> bool:
    return name.startswith(".") or name in SOURCE_IGNORED_DIRS


def discover_files(root: Path, unreadable: dict[str, str] | None = None) -> list[str]:
    """Return relative POSIX paths of every candidate file, sorted lexicographically.

    Subdirectories that cannot be listed are skipped and recorded in
    ``unreadable``; an unlistable root raises ``OSError``.
    """
    found: list[str] = []
    _walk(root, root, found, {} if unreadable is None else unreadable)
    found.sort()
    return found


def _walk(root: Path, current: Path, found: list[str], unreadable: dict[str, str]) -> None:
    try:
        children = sorted(current.iterdir())
    except OSError as exc:
        if current == root:
            raise
        relative = current.relative_to(root).as_posix()
        logger.warning("Skipping unreadable directory %s: %s", relative, exc)
        unreadable[relative] = str(exc)
        return
    for child in children:
        if is_ignored_name(child.name):
            continue
        if child.is_symlink() and child.is_dir():
            logger.debug("Skipping symlinked directory %s", child)
            continue
        if child.is_dir():
            _walk(root, child, found, unreadable)
        elif child.is_file():
            found.append(child.relative_to(root).as_posix())


def classify(relative_path: str) -> SourceFormat:
    if relative_path == PACKAGE_JSON_FILENAME:
        return SourceFormat.IGNORED
    suffix = Path(relative_path).suffix.lower()
    return _FORMAT_BY_SUFFIX.get(suffix, SourceFormat.IGNORED)
