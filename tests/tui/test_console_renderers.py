from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console

from gsd_opencode.backup.models import BackupManifest, SnapshotInfo
from gsd_opencode.detection import detect_source, detect_target
from gsd_opencode.orchestrator import TranspileOptions, TranspileResult, run_transpile
from gsd_opencode.tui import TranspileConsoleUI


@pytest.fixture
def console() -> Console:
    return Console(file=StringIO(), record=True, width=200, color_system=None)


@pytest.fixture
def ui(console: Console) -> TranspileConsoleUI:
    return TranspileConsoleUI(console)


def test_render_full_result(ui, console, gsd_tree: Path, target_root: Path) -> None:
    result = run_transpile(TranspileOptions(source_root=gsd_tree, target_root=target_root))

    ui.render_result(result, target_root, verbose=True)

    text = console.export_text()
    assert "transpile summary" in text
    assert "shortfalls (10 issues)" in text
    assert "config.permissions.bash" in text
    assert "Suggestion: Configure tool permissions manually" in text
    assert "As: " in text
    assert "~/.config/opencode/agents.json" in text
    assert "Previous files saved to ~/.config/opencode/.gsd-opencode/backups/" in text


def test_quiet_render_shows_only_summary(ui, console, gsd_tree, target_root) -> None:
    result = run_transpile(TranspileOptions(source_root=gsd_tree, target_root=target_root))

    ui.render_result(result, target_root, quiet=True)

    text = console.export_text()
    assert "transpile summary" in text
    assert "entities" not in text
    assert "artifacts" not in text


def test_render_skipped(ui, console, target_root) -> None:
    result = TranspileResult(success=True, skipped=True, reason="already up to date")

    ui.render_result(result, target_root)

    assert "Nothing to do: already up to date." in console.export_text()


def test_render_clean_dry_run(ui, console, target_root) -> None:
    result = TranspileResult(success=True, dry_run=True, files={"settings.json": "{}\n"})

    ui.render_result(result, target_root)

    text = console.export_text()
    assert "dry-run" in text
    assert "All features transpiled successfully. No shortfalls." in text
    assert "No files were written." in text


def test_render_failure_with_rollback(ui, console, target_root) -> None:
    result = TranspileResult(
        success=False,
        rolled_back=True,
        error="Write failed (disk full)",
        errors=["Write failed (disk full)"],
        warnings=["variable [phase] unused"],
    )

    ui.render_result(result, target_root)

    text = console.export_text()
    assert "- Write failed (disk full)" in text
    assert "Target directory restored to its pre-run state." in text
    assert "variable [phase] unused" in text


def test_render_detection(ui, console, gsd_tree: Path, tmp_path: Path) -> None:
    ui.render_detection(detect_source(gsd_tree), detect_target(tmp_path / "new-target"))

    text = console.export_text()
    assert "valid" in text
    assert "version 1.4.0" in text
    assert "will create" in text
    assert "no previous run" in text


def test_render_snapshots(ui, console, tmp_path: Path) -> None:
    ui.render_snapshots([])
    assert "No backups found." in console.export_text()

    items = [
        SnapshotInfo(
            path=tmp_path / "20260101-000000-000000",
            manifest=BackupManifest(timestamp="2026-01-01T00:00:00+00:00", source="/src"),
        ),
        SnapshotInfo(path=tmp_path / "broken", manifest=None, error="manifest is missing"),
    ]
    ui.render_snapshots(items)

    text = console.export_text()
    assert "20260101-000000-000000" in text
    assert "manifest is missing" in text


def test_render_restored(ui, console, tmp_path: Path) -> None:
    ui.render_restored(tmp_path / "snap", [tmp_path / ".config" / "opencode" / "agents.json"])

    text = console.export_text()
    assert "Restored 1 files from ~/snap" in text
    assert "- ~/.config/opencode/agents.json" in text
