"""Parser data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from gsd_opencode.ir.models import Agent, Command, Config, Intermediate, Model


class SourceFormat(str, Enum):
    TAGGED = "tagged"
    FRONTMATTER = "frontmatter"
    STRUCTURED = "structured"
    IGNORED = "ignored"


class EntityKind(str, Enum):
    AGENT = "agent"
    COMMAND = "command"
    MODEL = "model"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ParseError:
    file: str
    message: str
    line: int | None = None

    def __str__(self) -> str:
        location = f"{self.file}:{self.line}" if self.line is not None else self.file
        return f"{location}: {self.message}"

    def as_dict(self) -> dict[str, Any]:
        return {"file": self.file, "message": self.message, "line": self.line}


@dataclass
class Extraction:
    """Entities pulled out of a single source file."""

    agents: list[Agent] = field(default_factory=list)
    commands: list[Command] = field(default_factory=list)
    models: list[Model] = field(default_factory=list)
    config: Config | None = None
    errors: list[ParseError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.agents
            or self.commands
            or self.models
            or (self.config is not None and not self.config.is_empty())
        )


@dataclass
class ParseResult:
    ir: Intermediate | None
    errors: list[ParseError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.ir is not None and not self.errors


@dataclass(frozen=True)
class SourceScan:
    """Discovered files and the content hash of one source tree."""

    files: list[str]
    hash: str
    unreadable: dict[str, str] = field(default_factory=dict)
