"""Target (OpenCode) schema produced by the transformer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from gsd_opencode.ir.models import Gaps


@dataclass(frozen=True)
class OpenCodeConfig:
    agents: list[dict[str, Any]] = field(default_factory=list)
    commands: list[dict[str, Any]] = field(default_factory=list)
    models: list[dict[str, Any]] = field(default_factory=list)
    settings: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "agents": self.agents,
            "commands": self.commands,
            "models": self.models,
            "settings": self.settings,
        }


@dataclass(frozen=True)
class TransformIssue:
    file: str
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.file or '<unknown>'}: {self.field}: {self.message}"


@dataclass
class TransformResult:
    config: OpenCodeConfig | None
    gaps: Gaps
    errors: list[TransformIssue] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.config is not None and not self.errors
