from __future__ import annotations

from gsd_opencode.ir.models import GapCategory, Gaps, Intermediate
from gsd_opencode.orchestrator import TranspileResult
from gsd_opencode.reporting.models import EntityRow, EntityStatus, ExitCode, ReportSummary

CATEGORY_TITLES: dict[GapCategory, str] = {
    GapCategory.UNSUPPORTED: "Unsupported",
    GapCategory.PLATFORM_DIFFERENCE: "Platform Differences",
    GapCategory.MISSING_DEPENDENCY: "Missing Dependencies",
}


def _entity_keys(ir: Intermediate) -> list[tuple[str, str, str]]:
    return (
        [("agent", item.name, item.source_file) for item in ir.agents]
        + [("command", item.name, item.source_file) for item in ir.commands]
        + [("model", item.name, item.source_file) for item in ir.models]
    )


def _entity_status(kind: str, name: str, gaps: Gaps) -> tuple[EntityStatus, int]:
    prefix = f"{kind}.{name}."
    unmapped = sum(1 for gap in gaps.unmapped_fields if gap.field.startswith(prefix))
    approximated = sum(1 for gap in gaps.approximations if gap.field.startswith(prefix))
    if unmapped:
        return EntityStatus.FAILED, unmapped + approximated
    if approximated:
        return EntityStatus.PARTIAL, approximated
    return EntityStatus.SUCCESSFUL, 0


def build_summary(result: TranspileResult) -> ReportSummary:
    summary = ReportSummary(
        unmapped=len(result.gaps.unmapped_fields),
        approximated=len(result.gaps.approximations),
        parse_errors=len(result.parse_errors),
        files=len(result.files),
    )
    for gap in result.gaps.unmapped_fields:
        summary.shortfalls_by_category[gap.category] += 1
    for gap in result.gaps.approximations:
        summary.shortfalls_by_category[gap.category] += 1

    if result.ir is not None:
        for kind, name, source_file in _entity_keys(result.ir):
            status, count = _entity_status(kind, name, result.gaps)
            summary.entities.append(
                EntityRow(
                    kind=kind, name=name, source_file=source_file, status=status, gaps=count
                )
            )
    return summary


def exit_code_for(result: TranspileResult) -> ExitCode:
    if not result.success:
        return ExitCode.ERROR
    if result.skipped:
        return ExitCode.SUCCESS
    if result.has_warnings:
        return ExitCode.WARNING
    return ExitCode.SUCCESS
