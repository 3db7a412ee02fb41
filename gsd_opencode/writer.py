"""Atomic artifact writes that can be undone.

Each file is written to a temporary sibling and moved over the destination
with ``os.replace``. Before the first overwrite of a path its previous bytes
and mode are kept in memory, and every file or directory the writer creates
is recorded, so a failed run can put the target tree back as it was.
"""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path

from gsd_opencode.errors import WriteError
from gsd_opencode.utils import now_stamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreImage:
    content: bytes
    mode: int


def _replace_atomically(path: Path, data: bytes, mode: int | None = None) -> None:
    temp = path.with_name(f".{path.name}.tmp-{now_stamp()}")
    try:
        with temp.open("wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        if mode is not None:
            os.chmod(temp, mode)
        os.replace(temp, path)
    except OSError:
        temp.unlink(missing_ok=True)
        raise


class ArtifactWriter:
    def __init__(self) -> None:
        self.written: list[Path] = []
        self.created_files: list[Path] = []
        self.created_dirs: list[Path] = []
        self.pre_images: dict[Path, PreImage] = {}

    def _ensure_parent(self, path: Path) -> None:
        missing: list[Path] = []
        parent = path.parent
        while not parent.exists():
            missing.append(parent)
            parent = parent.parent
        for directory in reversed(missing):
            directory.mkdir()
            self.created_dirs.append(directory)

    def write_text(self, path: Path, content: str) -> Path:
        path = Path(path)
        try:
            self._ensure_parent(path)
            if path.is_file():
                if path not in self.pre_images:
                    self.pre_images[path] = PreImage(
                        content=path.read_bytes(),
                        mode=stat.S_IMODE(path.stat().st_mode),
                    )
                mode = self.pre_images[path].mode
            else:
                mode = None
                if path not in self.created_files:
                    self.created_files.append(path)
            _replace_atomically(path, content.encode("utf-8"), mode)
        except OSError as exc:
            raise WriteError(path, str(exc)) from exc
        self.written.append(path)
        logger.debug("Wrote %s", path)
        return path

    def remove_created(self) -> list[str]:
        """Delete files and directories created by this writer; return failures."""
        failures: list[str] = []
        for path in reversed(self.created_files):
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                failures.append(f"Failed to remove {path}: {exc}")
        for directory in reversed(self.created_dirs):
            try:
                if directory.is_dir() and not any(directory.iterdir()):
                    directory.rmdir()
            except OSError as exc:
                failures.append(f"Failed to remove {directory}: {exc}")
        return failures

    def restore_pre_images(self) -> list[str]:
        failures: list[str] = []
        for path, image in self.pre_images.items():
            try:
                _replace_atomically(path, image.content, image.mode)
            except OSError as exc:
                failures.append(f"Failed to restore {path}: {exc}")
        return failures
