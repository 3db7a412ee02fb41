from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

from gsd_opencode.ir.models import GapCategory


class ExitCode(IntEnum):
    SUCCESS = 0
    WARNING = 1
    ERROR = 2
    FATAL = 3


class EntityStatus(str, Enum):
    SUCCESSFUL = "successful"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True)
class EntityRow:
    kind: str
    name: str
    source_file: str
    status: EntityStatus
    gaps: int = 0


@dataclass
class ReportSummary:
    """Entity-level completeness of a run, kept apart from write atomicity."""

    entities: list[EntityRow] = field(default_factory=list)
    shortfalls_by_category: dict[GapCategory, int] = field(
        default_factory=lambda: {category: 0 for category in GapCategory}
    )
    unmapped: int = 0
    approximated: int = 0
    parse_errors: int = 0
    files: int = 0

    @property
    def total_entities(self) -> int:
        return len(self.entities)

    def count(self, status: EntityStatus) -> int:
        return sum(1 for row in self.entities if row.status == status)

    @property
    def successful(self) -> int:
        return self.count(EntityStatus.SUCCESSFUL)

    @property
    def partial(self) -> int:
        return self.count(EntityStatus.PARTIAL)

    @property
    def failed(self) -> int:
        return self.count(EntityStatus.FAILED)

    @property
    def shortfall_count(self) -> int:
        return self.unmapped + self.approximated

    def percent(self, value: int) -> int:
        if not self.entities:
            return 0
        return round(value * 100 / len(self.entities))

    def as_dict(self) -> dict[str, Any]:
        return {
            "total_entities": self.total_entities,
            "successful": self.successful,
            "partial": self.partial,
            "failed": self.failed,
            "shortfall_count": self.shortfall_count,
            "shortfalls_by_category": {
                category.value: count
                for category, count in self.shortfalls_by_category.items()
            },
            "parse_errors": self.parse_errors,
            "files": self.files,
        }
