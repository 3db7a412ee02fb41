"""Render a transpile result as a standalone markdown report."""

from __future__ import annotations

from pathlib import Path

from gsd_opencode.ir.models import GapCategory
from gsd_opencode.orchestrator import TranspileResult
from gsd_opencode.reporting.summary import CATEGORY_TITLES, build_summary
from gsd_opencode.utils import compact_home_path

REPORT_FILENAME = "transpilation-report.md"


def _cell(value: object) -> str:
    return str(value).replace("|", "\\|").replace("\n", " ")


def render_markdown(result: TranspileResult, generated_at: str) -> str:
    summary = build_summary(result)
    lines = ["# GSD to OpenCode transpilation report", "", f"Generated: {generated_at}", ""]

    if result.skipped:
        status = f"Skipped ({result.reason})"
    elif result.success:
        status = "Dry run" if result.dry_run else "Success"
    else:
        status = "Failed"
    lines += ["## Summary", "", "| Metric | Value |", "| --- | --- |"]
    lines.append(f"| Status | {_cell(status)} |")
    if result.ir is not None:
        lines.append(f"| Source | {_cell(compact_home_path(result.ir.source.path))} |")
        lines.append(f"| Source hash | `{result.ir.source.hash[:12]}` |")
    lines += [
        f"| Entities | {summary.total_entities} |",
        f"| Successful | {summary.successful} ({summary.percent(summary.successful)}%) |",
        f"| Partial | {summary.partial} ({summary.percent(summary.partial)}%) |",
        f"| Failed | {summary.failed} ({summary.percent(summary.failed)}%) |",
        f"| Shortfalls | {summary.shortfall_count} |",
        f"| Parse errors | {summary.parse_errors} |",
        "",
    ]

    if result.error:
        lines += ["## Error", "", result.error, ""]

    if summary.entities:
        lines += ["## Entities", "", "| Kind | Name | Source | Status |", "| --- | --- | --- | --- |"]
        for row in summary.entities:
            lines.append(
                f"| {row.kind} | {_cell(row.name)} | {_cell(row.source_file)} | {row.status.value} |"
            )
        lines.append("")

    if summary.shortfall_count:
        lines += ["## Shortfalls", ""]
        for category in GapCategory:
            unmapped = [gap for gap in result.gaps.unmapped_fields if gap.category == category]
            approximations = [
                gap for gap in result.gaps.approximations if gap.category == category
            ]
            if not unmapped and not approximations:
                continue
            lines += [f"### {CATEGORY_TITLES[category]} ({len(unmapped) + len(approximations)})", ""]
            for gap in unmapped:
                lines.append(f"- **{gap.field}** (dropped): {gap.reason}")
                lines.append(f"  - Source: {gap.file or 'unknown'}")
                if gap.suggestion:
                    lines.append(f"  - Suggestion: {gap.suggestion}")
            for gap in approximations:
                lines.append(f"- **{gap.field}** (approximated): {gap.reason}")
                lines.append(f"  - Source: {gap.file or 'unknown'}")
            lines.append("")

    if result.parse_errors:
        lines += ["## Parse errors", ""]
        lines += [f"- {error}" for error in result.parse_errors]
        lines.append("")

    if result.warnings:
        lines += ["## Warnings", ""]
        lines += [f"- {warning}" for warning in result.warnings]
        lines.append("")

    if result.files:
        lines += ["## Artifacts", ""]
        lines += [f"- `{name}`" for name in sorted(result.files)]
        lines.append("")

    return "\n".join(lines).rstrip("\n") + "\n"


def write_markdown(result: TranspileResult, path: Path, generated_at: str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_markdown(result, generated_at), encoding="utf-8")
    return path
