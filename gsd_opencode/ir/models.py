"""Intermediate representation for parsed GSD context.

The IR is the platform-neutral bridge between the source files and the target
schema. Every type here is plain data: no cycles, no shared identity, and a
lossless ``as_dict``/``from_dict`` round trip so an IR can be persisted and
diffed on its own.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from gsd_opencode.constants import IR_VERSION


class GapCategory(str, Enum):
    UNSUPPORTED = "unsupported"
    PLATFORM_DIFFERENCE = "platform-difference"
    MISSING_DEPENDENCY = "missing-dependency"


class VariableType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    CHOICE = "choice"


@dataclass(frozen=True)
class SourceMetadata:
    path: str
    hash: str
    timestamp: str
    version: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "hash": self.hash,
            "timestamp": self.timestamp,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "SourceMetadata":
        return cls(
            path=raw["path"],
            hash=raw["hash"],
            timestamp=raw["timestamp"],
            version=raw.get("version"),
        )


@dataclass(frozen=True)
class Agent:
    name: str
    source_file: str
    description: str | None = None
    model: str | None = None
    temperature: float | None = None
    system_prompt: str | None = None
    tools: list[str] = field(default_factory=list)
    max_tokens: int | None = None
    extensions: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "source_file": self.source_file,
            "description": self.description,
            "model": self.model,
            "temperature": self.temperature,
            "system_prompt": self.system_prompt,
            "tools": list(self.tools),
            "max_tokens": self.max_tokens,
            "extensions": dict(self.extensions),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Agent":
        return cls(
            name=raw["name"],
            source_file=raw.get("source_file", ""),
            description=raw.get("description"),
            model=raw.get("model"),
            temperature=raw.get("temperature"),
            system_prompt=raw.get("system_prompt"),
            tools=list(raw.get("tools") or []),
            max_tokens=raw.get("max_tokens"),
            extensions=dict(raw.get("extensions") or {}),
        )


@dataclass(frozen=True)
class CommandVariable:
    name: str
    type: VariableType | None = None
    description: str | None = None
    default: str | int | float | bool | None = None
    required: bool | None = None
    choices: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value if self.type is not None else None,
            "description": self.description,
            "default": self.default,
            "required": self.required,
            "choices": list(self.choices),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "CommandVariable":
        kind = raw.get("type")
        return cls(
            name=raw["name"],
            type=VariableType(kind) if kind else None,
            description=raw.get("description"),
            default=raw.get("default"),
            required=raw.get("required"),
            choices=list(raw.get("choices") or []),
        )


@dataclass(frozen=True)
class Command:
    name: str
    source_file: str
    description: str | None = None
    template: str | None = None
    variables: list[CommandVariable] = field(default_factory=list)
    agent: str | None = None
    extensions: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "source_file": self.source_file,
            "description": self.description,
            "template": self.template,
            "variables": [item.as_dict() for item in self.variables],
            "agent": self.agent,
            "extensions": dict(self.extensions),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Command":
        return cls(
            name=raw["name"],
            source_file=raw.get("source_file", ""),
            description=raw.get("description"),
            template=raw.get("template"),
            variables=[
                CommandVariable.from_dict(item) for item in raw.get("variables") or []
            ],
            agent=raw.get("agent"),
            extensions=dict(raw.get("extensions") or {}),
        )


@dataclass(frozen=True)
class Model:
    name: str
    provider: str
    source_file: str
    endpoint: str | None = None
    extensions: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "provider": self.provider,
            "source_file": self.source_file,
            "endpoint": self.endpoint,
            "extensions": dict(self.extensions),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Model":
        return cls(
            name=raw["name"],
            provider=raw.get("provider", ""),
            source_file=raw.get("source_file", ""),
            endpoint=raw.get("endpoint"),
            extensions=dict(raw.get("extensions") or {}),
        )


@dataclass
class Config:
    theme: dict[str, Any] = field(default_factory=dict)
    keybindings: dict[str, str] = field(default_factory=dict)
    permissions: dict[str, Any] = field(default_factory=dict)
    custom: dict[str, Any] = field(default_factory=dict)
    # "theme", "keybindings", "permissions.<key>", "custom.<key>" -> relative file
    sources: dict[str, str] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.theme or self.keybindings or self.permissions or self.custom)

    def source_of(self, key: str) -> str:
        if key in self.sources:
            return self.sources[key]
        section = key.split(".", 1)[0]
        return self.sources.get(section, "")

    def as_dict(self) -> dict[str, Any]:
        return {
            "theme": dict(self.theme),
            "keybindings": dict(self.keybindings),
            "permissions": dict(self.permissions),
            "custom": dict(self.custom),
            "sources": dict(self.sources),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Config":
        return cls(
            theme=dict(raw.get("theme") or {}),
            keybindings=dict(raw.get("keybindings") or {}),
            permissions=dict(raw.get("permissions") or {}),
            custom=dict(raw.get("custom") or {}),
            sources=dict(raw.get("sources") or {}),
        )


@dataclass(frozen=True)
class UnmappedField:
    file: str
    field: str
    value: Any
    reason: str
    category: GapCategory = GapCategory.UNSUPPORTED
    suggestion: str = ""

    def as_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "field": self.field,
            "value": self.value,
            "reason": self.reason,
            "category": self.category.value,
            "suggestion": self.suggestion,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "UnmappedField":
        return cls(
            file=raw["file"],
            field=raw["field"],
            value=raw.get("value"),
            reason=raw["reason"],
            category=GapCategory(raw.get("category", GapCategory.UNSUPPORTED.value)),
            suggestion=raw.get("suggestion", ""),
        )


@dataclass(frozen=True)
class Approximation:
    file: str
    field: str
    original_value: Any
    approximated_value: Any
    reason: str
    category: GapCategory = GapCategory.PLATFORM_DIFFERENCE

    def as_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "field": self.field,
            "original_value": self.original_value,
            "approximated_value": self.approximated_value,
            "reason": self.reason,
            "category": self.category.value,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Approximation":
        return cls(
            file=raw["file"],
            field=raw["field"],
            original_value=raw.get("original_value"),
            approximated_value=raw.get("approximated_value"),
            reason=raw["reason"],
            category=GapCategory(
                raw.get("category", GapCategory.PLATFORM_DIFFERENCE.value)
            ),
        )


class Gaps:
    """Append-only collection of unmapped fields and approximations."""

    def __init__(
        self,
        unmapped_fields: list[UnmappedField] | None = None,
        approximations: list[Approximation] | None = None,
    ) -> None:
        self._unmapped: list[UnmappedField] = list(unmapped_fields or [])
        self._approximations: list[Approximation] = list(approximations or [])

    @property
    def unmapped_fields(self) -> tuple[UnmappedField, ...]:
        return tuple(self._unmapped)

    @property
    def approximations(self) -> tuple[Approximation, ...]:
        return tuple(self._approximations)

    def add_unmapped(self, gap: UnmappedField) -> None:
        self._unmapped.append(gap)

    def add_approximation(self, gap: Approximation) -> None:
        self._approximations.append(gap)

    def copy(self) -> "Gaps":
        return Gaps(self._unmapped, self._approximations)

    def files(self) -> set[str]:
        return {gap.file for gap in self._unmapped} | {
            gap.file for gap in self._approximations
        }

    def __len__(self) -> int:
        return len(self._unmapped) + len(self._approximations)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Gaps):
            return NotImplemented
        return (
            self.unmapped_fields == other.unmapped_fields
            and self.approximations == other.approximations
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "unmapped_fields": [gap.as_dict() for gap in self._unmapped],
            "approximations": [gap.as_dict() for gap in self._approximations],
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Gaps":
        return cls(
            unmapped_fields=[
                UnmappedField.from_dict(item)
                for item in raw.get("unmapped_fields") or []
            ],
            approximations=[
                Approximation.from_dict(item) for item in raw.get("approximations") or []
            ],
        )


@dataclass(frozen=True)
class Intermediate:
    source: SourceMetadata
    agents: list[Agent] = field(default_factory=list)
    commands: list[Command] = field(default_factory=list)
    models: list[Model] = field(default_factory=list)
    config: Config = field(default_factory=Config)
    gaps: Gaps = field(default_factory=Gaps)
    version: str = IR_VERSION

    def entity_count(self) -> int:
        return len(self.agents) + len(self.commands) + len(self.models)

    def as_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "source": self.source.as_dict(),
            "agents": [item.as_dict() for item in self.agents],
            "commands": [item.as_dict() for item in self.commands],
            "models": [item.as_dict() for item in self.models],
            "config": self.config.as_dict(),
            "gaps": self.gaps.as_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.as_dict(), indent=2, sort_keys=True) + "\n"

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Intermediate":
        if raw.get("version") != IR_VERSION:
            raise ValueError(f"Unsupported IR version: {raw.get('version')!r}")
        return cls(
            version=raw["version"],
            source=SourceMetadata.from_dict(raw["source"]),
            agents=[Agent.from_dict(item) for item in raw.get("agents") or []],
            commands=[Command.from_dict(item) for item in raw.get("commands") or []],
            models=[Model.from_dict(item) for item in raw.get("models") or []],
            config=Config.from_dict(raw.get("config") or {}),
            gaps=Gaps.from_dict(raw.get("gaps") or {}),
        )

    @classmethod
    def from_json(cls, text: str) -> "Intermediate":
        return cls.from_dict(json.loads(text))
