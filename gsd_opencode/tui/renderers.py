from pathlib import Path

from rich.console import Console

from gsd_opencode.backup.models import SnapshotInfo
from gsd_opencode.detection import SourceDetection, TargetDetection
from gsd_opencode.orchestrator import TranspileResult
from gsd_opencode.reporting.summary import build_summary
from gsd_opencode.tui.enums import UIStyle
from gsd_opencode.tui.sections import UISection
from gsd_opencode.tui.tables import (
    BackupTable,
    DetectionTable,
    FilesTable,
    GapTable,
    SummaryTable,
)
from gsd_opencode.utils import compact_home_path



class TranspileConsoleUI:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_result(
        self, result: TranspileResult, target: Path, quiet: bool = False, verbose: bool = False
    ) -> None:
        summary = build_summary(result)
        mode = "dry-run" if result.dry_run else "write"

        if result.skipped:
            self.console.print(
                UISection.note(
                    "transpile",
                    f"Nothing to do: {result.reason}.\nUse --force to regenerate.",
                    style=UIStyle.GREEN.value,
                )
            )
            return

        style = UIStyle.GREEN.value
        if not result.success:
            style = UIStyle.RED.value
        elif result.has_warnings:
            style = UIStyle.YELLOW.value
        self.console.print(
            UISection.wrap(
                "transpile summary",
                SummaryTable.summary_block(result, summary, mode=mode),
                style=style,
            )
        )

        if result.error:
            self.console.print(
                UISection.bullets("errors", result.errors, style=UIStyle.RED.value)
            )
            if result.rolled_back:
                self.console.print(
                    UISection.note(
                        "rollback",
                        "Target directory restored to its pre-run state.",
                        style=UIStyle.YELLOW.value,
                    )
                )

        if quiet:
            return

        if summary.entities:
            self.console.print(
                UISection.wrap(
                    "entities", SummaryTable.entities_table(summary), style=UIStyle.BLUE.value
                )
            )
        if len(result.gaps):
            self.console.print(
                UISection.wrap(
                    f"shortfalls ({summary.shortfall_count} issues)",
                    GapTable.gaps_table(result.gaps, verbose=verbose),
                    style=UIStyle.YELLOW.value,
                )
            )
        else:
            self.console.print(
                UISection.note(
                    "shortfalls",
                    "All features transpiled successfully. No shortfalls.",
                    style=UIStyle.DIM.value,
                )
            )
        if result.parse_errors:
            self.console.print(
                UISection.bullets(
                    "parse errors", result.parse_errors, style=UIStyle.YELLOW.value
                )
            )
        if result.warnings:
            self.console.print(
                UISection.bullets("warnings", result.warnings, style=UIStyle.YELLOW.value)
            )
        if result.files:
            self.console.print(
                UISection.wrap(
                    "artifacts",
                    FilesTable.files_table(result, str(target)),
                    style=UIStyle.CYAN.value,
                )
            )
        if result.dry_run:
            self.console.print(
                UISection.note(
                    "dry run",
                    "No files were written.",
                    style=UIStyle.DIM.value,
                )
            )
        elif result.backup_dir is not None:
            self.console.print(
                UISection.note(
                    "backup",
                    f"Previous files saved to {compact_home_path(result.backup_dir)}",
                    style=UIStyle.DIM.value,
                )
            )

    def render_detection(self, source: SourceDetection, target: TargetDetection) -> None:
        style = UIStyle.GREEN.value if source.valid else UIStyle.RED.value
        self.console.print(
            UISection.wrap(
                "detection", DetectionTable.detection_table(source, target), style=style
            )
        )

    def render_snapshots(self, items: list[SnapshotInfo]) -> None:
        if not items:
            self.console.print(
                UISection.note("backups", "No backups found.", style=UIStyle.YELLOW.value)
            )
            return
        self.console.print(
            UISection.wrap(
                "backups", BackupTable.snapshots_table(items), style=UIStyle.BLUE.value
            )
        )

    def render_restored(self, snapshot: Path, restored: list[Path]) -> None:
        header = f"Restored {len(restored)} files from {compact_home_path(snapshot)}"
        self.console.print(
            UISection.bullets("restore", restored, style=UIStyle.GREEN.value, header=header)
        )

    def render_report_saved(self, path: Path) -> None:
        self.console.print(
            UISection.note(
                "report", f"Report saved to {compact_home_path(path)}", style=UIStyle.DIM.value
            )
        )
