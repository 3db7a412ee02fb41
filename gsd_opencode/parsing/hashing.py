import hashlib
from pathlib import Path

from gsd_opencode.parsing.discovery import discover_files
from gsd_opencode.parsing.models import SourceScan

UNREADABLE_MARKER = b"<unreadable>"


def content_hash(
    root: Path, relative_paths: list[str], unreadable: dict[str, str] | None = None
) -> str:
    """SHA-256 over every file's relative path and raw bytes, in sorted path order.

    Enumeration order and OS path separators do not affect the result. A path
    that cannot be read contributes a fixed marker instead of its bytes and is
    recorded in ``unreadable`` with the reason.
    """
    if unreadable is None:
        unreadable = {}
    digest = hashlib.sha256()
    for relative in sorted(set(relative_paths) | set(unreadable)):
        data = UNREADABLE_MARKER
        if relative not in unreadable:
            try:
                data = (root / relative).read_bytes()
            except OSError as exc:
                unreadable[relative] = str(exc)
        digest.update(relative.encode("utf-8"))
        digest.update(b"\0")
        digest.update(data)
        digest.update(b"\0")
    return digest.hexdigest()


def scan_source(root: Path) -> SourceScan:
    """Discover and hash the source tree. Raises ``OSError`` only for the root."""
    unreadable: dict[str, str] = {}
    files = discover_files(root, unreadable)
    source_hash = content_hash(root, files, unreadable)
    return SourceScan(files=files, hash=source_hash, unreadable=unreadable)


def hash_source_tree(root: Path) -> str:
    return scan_source(root).hash
