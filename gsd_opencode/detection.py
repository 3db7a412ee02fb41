"""Locate and validate the GSD source and the OpenCode target directories.

Detection never raises: every outcome is described by the returned record.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from gsd_opencode.constants import (
    PACKAGE_JSON_FILENAME,
    SOURCE_REQUIRED_DIRS,
    SOURCE_REQUIRED_FILES,
)
from gsd_opencode.paths import default_source_root, default_target_root, run_manifest_path
from gsd_opencode.utils import read_json_safe


@dataclass(frozen=True)
class SourceDetection:
    path: Path
    found: bool
    missing_files: list[str] = field(default_factory=list)
    missing_dirs: list[str] = field(default_factory=list)
    version: str | None = None

    @property
    def valid(self) -> bool:
        return self.found and not self.missing_files and not self.missing_dirs

    @property
    def reason(self) -> str:
        if not self.found:
            return f"GSD not found at {self.path}"
        missing = self.missing_files + self.missing_dirs
        if missing:
            return "Incomplete installation: missing " + ", ".join(missing)
        return "ok"


@dataclass(frozen=True)
class TargetDetection:
    path: Path
    exists: bool
    writable: bool
    has_previous_run: bool


def detect_source(path: Path | None = None) -> SourceDetection:
    root = Path(path) if path is not None else default_source_root()
    if not root.is_dir():
        return SourceDetection(path=root, found=False)

    missing_files: list[str] = []
    for name in SOURCE_REQUIRED_FILES:
        candidate = root / name
        if not candidate.exists():
            missing_files.append(name)
        elif not candidate.is_file():
            missing_files.append(f"{name} (exists but not a file)")

    missing_dirs: list[str] = []
    for name in SOURCE_REQUIRED_DIRS:
        candidate = root / name
        if not candidate.exists():
            missing_dirs.append(name)
        elif not candidate.is_dir():
            missing_dirs.append(f"{name} (exists but not a directory)")

    payload, _ = read_json_safe(root / PACKAGE_JSON_FILENAME)
    version = payload.get("version") if isinstance(payload, dict) else None
    return SourceDetection(
        path=root,
        found=True,
        missing_files=missing_files,
        missing_dirs=missing_dirs,
        version=version if isinstance(version, str) else None,
    )


def detect_target(path: Path | None = None) -> TargetDetection:
    root = Path(path) if path is not None else default_target_root()
    exists = root.is_dir()
    # A missing target is created on write, so writability is judged on the nearest parent.
    probe = root
    while not probe.exists() and probe != probe.parent:
        probe = probe.parent
    return TargetDetection(
        path=root,
        exists=exists,
        writable=probe.is_dir() and os.access(probe, os.W_OK),
        has_previous_run=run_manifest_path(root).is_file(),
    )
