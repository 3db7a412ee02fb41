from rich.markup import escape
from rich.table import Column, Table

from gsd_opencode.backup.models import SnapshotInfo
from gsd_opencode.detection import SourceDetection, TargetDetection
from gsd_opencode.ir.models import Gaps
from gsd_opencode.orchestrator import TranspileResult
from gsd_opencode.reporting.models import ReportSummary
from gsd_opencode.reporting.summary import CATEGORY_TITLES
from gsd_opencode.tui.enums import ENTITY_STATUS_STYLE, GAP_CATEGORY_STYLE, UIStyle
from gsd_opencode.utils import compact_home_path


def _styled(value: str, style: str) -> str:
    return f"[{style}]{value}[/{style}]"


class SummaryTable:
    @staticmethod
    def summary_block(result: TranspileResult, summary: ReportSummary, mode: str):
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Mode", mode)
        table.add_row("Stages", " > ".join(stage.value for stage in result.stages))
        if result.reason:
            table.add_row("Decision", result.reason)
        table.add_row("Entities", str(summary.total_entities))
        table.add_row(
            "Successful",
            f"{summary.successful} ({summary.percent(summary.successful)}%)",
        )
        table.add_row("Partial", f"{summary.partial} ({summary.percent(summary.partial)}%)")
        table.add_row("Failed", f"{summary.failed} ({summary.percent(summary.failed)}%)")
        chips = [
            f"{CATEGORY_TITLES[category].lower()}={count}"
            for category, count in summary.shortfalls_by_category.items()
            if count > 0
        ]
        table.add_row("Shortfalls", f"{summary.shortfall_count}  " + "  ".join(chips))
        table.add_row("Parse errors", str(summary.parse_errors))
        return table

    @staticmethod
    def entities_table(summary: ReportSummary) -> Table:
        table = Table(
            Column(header="Kind", width=8),
            Column(header="Name", overflow="ellipsis", max_width=40),
            Column(header="Status", width=11),
            Column(header="Gaps", width=5, justify="right"),
            Column(header="Source", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for row in summary.entities:
            style = ENTITY_STATUS_STYLE.get(row.status, UIStyle.WHITE.value)
            table.add_row(
                row.kind,
                row.name,
                _styled(row.status.value, style),
                str(row.gaps),
                row.source_file,
            )
        return table


class GapTable:
    @staticmethod
    def gaps_table(gaps: Gaps, verbose: bool = False) -> Table:
        table = Table(
            Column(header="Category", width=20),
            Column(header="Kind", width=12),
            Column(header="Field", overflow="fold", max_width=48),
            Column(header="Source", overflow="ellipsis", max_width=36),
            Column(header="Reason", overflow="fold"),
            expand=True,
            header_style="bold",
        )
        for gap in gaps.unmapped_fields:
            reason = gap.reason
            if gap.suggestion:
                reason = f"{reason}\nSuggestion: {gap.suggestion}"
            table.add_row(
                _styled(gap.category.value, GAP_CATEGORY_STYLE[gap.category]),
                "dropped",
                gap.field,
                gap.file,
                reason,
            )
        for gap in gaps.approximations:
            reason = gap.reason
            if verbose:
                reason = f"{reason}\nAs: {escape(repr(gap.approximated_value))}"
            table.add_row(
                _styled(gap.category.value, GAP_CATEGORY_STYLE[gap.category]),
                "approximated",
                gap.field,
                gap.file,
                reason,
            )
        return table


class FilesTable:
    @staticmethod
    def files_table(result: TranspileResult, target: str) -> Table:
        table = Table(
            Column(header="Artifact", width=18),
            Column(header="Bytes", width=8, justify="right"),
            Column(header="Path", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for name in sorted(result.files):
            table.add_row(
                name,
                str(len(result.files[name].encode("utf-8"))),
                compact_home_path(f"{target}/{name}"),
            )
        return table


class DetectionTable:
    @staticmethod
    def detection_table(source: SourceDetection, target: TargetDetection) -> Table:
        table = Table(
            Column(header="Root", width=8),
            Column(header="Status", width=12),
            Column(header="Path", overflow="ellipsis"),
            Column(header="Detail", overflow="fold"),
            expand=True,
            header_style="bold",
        )
        source_style = UIStyle.GREEN.value if source.valid else UIStyle.RED.value
        source_label = "valid" if source.valid else ("incomplete" if source.found else "missing")
        source_detail = source.reason
        if source.version:
            source_detail = f"version {source.version}" if source.valid else source_detail
        table.add_row(
            "source",
            _styled(source_label, source_style),
            compact_home_path(source.path),
            source_detail,
        )

        if target.exists:
            target_style, target_label = UIStyle.GREEN.value, "exists"
        elif target.writable:
            target_style, target_label = UIStyle.YELLOW.value, "will create"
        else:
            target_style, target_label = UIStyle.RED.value, "unwritable"
        target_detail = "previous run recorded" if target.has_previous_run else "no previous run"
        table.add_row(
            "target",
            _styled(target_label, target_style),
            compact_home_path(target.path),
            target_detail,
        )
        return table


class BackupTable:
    @staticmethod
    def snapshots_table(items: list[SnapshotInfo]) -> Table:
        table = Table(
            Column(header="Snapshot", width=26),
            Column(header="Created", width=26),
            Column(header="Files", width=6, justify="right"),
            Column(header="Detail", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for item in items:
            row = item.as_row()
            detail = _styled(row["error"], UIStyle.RED.value) if row["error"] else ""
            table.add_row(row["name"], row["timestamp"], str(row["files"]), detail)
        return table
