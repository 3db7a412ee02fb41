from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class BackupEntry:
    path: str
    sha256: str
    size: int
    mode: int

    def as_dict(self) -> dict[str, Any]:
        return {"path": self.path, "sha256": self.sha256, "size": self.size, "mode": self.mode}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "BackupEntry":
        return cls(
            path=raw["path"],
            sha256=raw["sha256"],
            size=int(raw["size"]),
            mode=int(raw["mode"]),
        )


@dataclass(frozen=True)
class BackupManifest:
    timestamp: str
    source: str
    entries: list[BackupEntry] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "source": self.source,
            "entries": [entry.as_dict() for entry in self.entries],
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "BackupManifest":
        return cls(
            timestamp=raw["timestamp"],
            source=raw["source"],
            entries=[BackupEntry.from_dict(item) for item in raw.get("entries") or []],
        )


@dataclass(frozen=True)
class SnapshotInfo:
    path: Path
    manifest: BackupManifest | None
    error: str | None = None

    @property
    def name(self) -> str:
        return self.path.name

    def as_row(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "timestamp": self.manifest.timestamp if self.manifest else "-",
            "files": len(self.manifest.entries) if self.manifest else 0,
            "error": self.error,
        }
