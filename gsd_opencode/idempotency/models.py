from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from gsd_opencode.constants import RUN_MANIFEST_SCHEMA_VERSION


@dataclass(frozen=True)
class ArtifactMapping:
    source: str
    target: str

    def as_dict(self) -> dict[str, str]:
        return {"source": self.source, "target": self.target}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ArtifactMapping":
        return cls(source=raw["source"], target=raw["target"])


@dataclass(frozen=True)
class RunManifest:
    last_run: str
    source_hash: str
    output_hash: str
    backup: str | None = None
    mappings: list[ArtifactMapping] = field(default_factory=list)
    schema_version: str = RUN_MANIFEST_SCHEMA_VERSION

    def as_dict(self) -> dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "last_run": self.last_run,
            "source_hash": self.source_hash,
            "output_hash": self.output_hash,
            "backup": self.backup,
            "mappings": [item.as_dict() for item in self.mappings],
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "RunManifest":
        return cls(
            schema_version=raw["schema_version"],
            last_run=raw["last_run"],
            source_hash=raw["source_hash"],
            output_hash=raw["output_hash"],
            backup=raw.get("backup"),
            mappings=[ArtifactMapping.from_dict(item) for item in raw.get("mappings") or []],
        )


@dataclass(frozen=True)
class IdempotencyDecision:
    should_regenerate: bool
    reason: str
