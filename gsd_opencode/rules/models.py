"""Resolved, read-only transform rules."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from gsd_opencode.ir.models import GapCategory

SECTION_NAMES: tuple[str, ...] = ("agents", "commands", "models", "config")


def _frozen(raw: Any) -> Mapping[str, Any]:
    return MappingProxyType(dict(deepcopy(raw or {})))


@dataclass(frozen=True)
class SectionRules:
    field_mappings: Mapping[str, str]
    defaults: Mapping[str, Any]
    approximations: Mapping[str, str]
    unmapped: Mapping[str, str]
    suggestions: Mapping[str, str]
    categories: Mapping[str, str]
    options: Mapping[str, Any]

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SectionRules":
        return cls(
            field_mappings=_frozen(raw.get("fieldMappings")),
            defaults=_frozen(raw.get("defaults")),
            approximations=_frozen(raw.get("approximations")),
            unmapped=_frozen(raw.get("unmapped")),
            suggestions=_frozen(raw.get("suggestions")),
            categories=_frozen(raw.get("categories")),
            options=_frozen(raw.get("options")),
        )

    def target(self, source_field: str) -> str:
        return self.field_mappings.get(source_field, source_field)

    def has_default(self, source_field: str) -> bool:
        return source_field in self.defaults

    def default(self, source_field: str, fallback: Any = None) -> Any:
        if source_field not in self.defaults:
            return fallback
        return deepcopy(self.defaults[source_field])

    def approximation_reason(self, source_field: str, fallback: str) -> str:
        return self.approximations.get(source_field) or fallback

    def unmapped_reason(self, source_field: str, fallback: str) -> str:
        return self.unmapped.get(source_field) or fallback

    def suggestion(self, source_field: str) -> str:
        return self.suggestions.get(source_field, "")

    def category(self, source_field: str, fallback: GapCategory) -> GapCategory:
        raw = self.categories.get(source_field)
        return GapCategory(raw) if raw else fallback

    def option(self, name: str, fallback: Any = None) -> Any:
        return self.options.get(name, fallback)


@dataclass(frozen=True)
class TransformRules:
    version: str
    description: str
    agents: SectionRules
    commands: SectionRules
    models: SectionRules
    config: SectionRules

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "TransformRules":
        return cls(
            version=str(raw.get("version", "")),
            description=str(raw.get("description", "")),
            **{name: SectionRules.from_dict(raw.get(name) or {}) for name in SECTION_NAMES},
        )
