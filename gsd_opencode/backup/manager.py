"""Timestamped snapshots of the target files a run is about to overwrite.

A snapshot becomes visible only once it is complete: files are copied into a
staging directory next to the final location, the manifest is written last
and the directory is renamed into place in one step.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
from pathlib import Path
from typing import Iterable

from jsonschema import Draft202012Validator

from gsd_opencode.backup.models import BackupEntry, BackupManifest, SnapshotInfo
from gsd_opencode.constants import BACKUP_MANIFEST_FILENAME
from gsd_opencode.errors import BackupError, BackupIntegrityError
from gsd_opencode.utils import (
    first_schema_error,
    iso_now,
    now_stamp,
    read_json,
    read_json_safe,
    sha256_file,
    write_json,
)

logger = logging.getLogger(__name__)

BACKUP_SCHEMA_PATH = Path(__file__).resolve().parent / "schema.json"
FILES_DIRNAME = "files"
STAGING_PREFIX = ".staging-"


class BackupManager:
    def __init__(self, target_root: Path, backups_dir: Path) -> None:
        self.target_root = Path(target_root)
        self.backups_dir = Path(backups_dir)
        self._validator = Draft202012Validator(read_json(BACKUP_SCHEMA_PATH))

    def _relative(self, path: Path) -> str:
        try:
            return Path(path).relative_to(self.target_root).as_posix()
        except ValueError as exc:
            raise BackupError(path, "path is outside the target directory") from exc

    def create_snapshot(self, paths: Iterable[Path], source: str) -> Path:
        """Copy every existing file in ``paths`` and return the snapshot directory."""
        stamp = now_stamp()
        final_dir = self.backups_dir / stamp
        staging_dir = self.backups_dir / f"{STAGING_PREFIX}{stamp}"
        try:
            if final_dir.exists():
                raise BackupError(final_dir, "snapshot already exists")
            staging_dir.mkdir(parents=True)
            entries: list[BackupEntry] = []
            for path in sorted({Path(item) for item in paths}):
                if not path.is_file():
                    logger.debug("Nothing to back up at %s", path)
                    continue
                relative = self._relative(path)
                copy = staging_dir / FILES_DIRNAME / relative
                copy.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(path, copy)
                info = path.stat()
                entries.append(
                    BackupEntry(
                        path=relative,
                        sha256=sha256_file(path),
                        size=info.st_size,
                        mode=stat.S_IMODE(info.st_mode),
                    )
                )
            manifest = BackupManifest(timestamp=iso_now(), source=source, entries=entries)
            write_json(staging_dir / BACKUP_MANIFEST_FILENAME, manifest.as_dict())
            os.replace(staging_dir, final_dir)
        except BackupError:
            shutil.rmtree(staging_dir, ignore_errors=True)
            raise
        except OSError as exc:
            shutil.rmtree(staging_dir, ignore_errors=True)
            raise BackupError(staging_dir, str(exc)) from exc

        logger.info("Backed up %d files to %s", len(entries), final_dir)
        return final_dir

    def load_manifest(self, snapshot_dir: Path) -> BackupManifest:
        manifest_path = Path(snapshot_dir) / BACKUP_MANIFEST_FILENAME
        payload, error = read_json_safe(manifest_path)
        if error is not None:
            raise BackupError(manifest_path, error)
        if payload is None:
            raise BackupError(manifest_path, "manifest is missing")
        schema_error = first_schema_error(self._validator, payload)
        if schema_error is not None:
            raise BackupError(manifest_path, schema_error)
        return BackupManifest.from_dict(payload)

    def verify(self, snapshot_dir: Path) -> BackupManifest:
        """Check every copy against the manifest without touching the target."""
        manifest = self.load_manifest(snapshot_dir)
        for entry in manifest.entries:
            copy = Path(snapshot_dir) / FILES_DIRNAME / entry.path
            if not copy.is_file():
                raise BackupError(copy, "backup copy is missing")
            actual = sha256_file(copy)
            if actual != entry.sha256:
                raise BackupIntegrityError(copy, expected=entry.sha256, actual=actual)
        return manifest

    def restore(self, snapshot_dir: Path) -> list[Path]:
        manifest = self.verify(snapshot_dir)
        restored: list[Path] = []
        for entry in manifest.entries:
            copy = Path(snapshot_dir) / FILES_DIRNAME / entry.path
            destination = self.target_root / entry.path
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                temp = destination.with_name(f".{destination.name}.restore-{now_stamp()}")
                shutil.copyfile(copy, temp)
                os.chmod(temp, entry.mode)
                os.replace(temp, destination)
            except OSError as exc:
                raise BackupError(destination, f"restore failed: {exc}") from exc
            restored.append(destination)
        logger.info("Restored %d files from %s", len(restored), snapshot_dir)
        return restored

    def remove_snapshot(self, snapshot_dir: Path) -> None:
        shutil.rmtree(snapshot_dir)
        logger.debug("Removed snapshot %s", snapshot_dir)

    def list_snapshots(self) -> list[SnapshotInfo]:
        if not self.backups_dir.is_dir():
            return []
        snapshots: list[SnapshotInfo] = []
        for path in sorted(self.backups_dir.iterdir(), reverse=True):
            if not path.is_dir() or path.name.startswith(STAGING_PREFIX):
                continue
            try:
                snapshots.append(SnapshotInfo(path=path, manifest=self.load_manifest(path)))
            except BackupError as exc:
                snapshots.append(SnapshotInfo(path=path, manifest=None, error=exc.detail))
        return snapshots

    def latest_snapshot(self) -> Path | None:
        for snapshot in self.list_snapshots():
            if snapshot.manifest is not None:
                return snapshot.path
        return None
