from pathlib import Path

from gsd_opencode.__main__ import cli
from gsd_opencode.paths import backups_dir


def _run_twice(cli_runner, gsd_tree: Path, write_text) -> None:
    cli_runner.invoke(cli, ["transpile"])
    write_text(gsd_tree / "agents" / "planner.md", "---\nname: planner\n---\nChanged.\n")
    cli_runner.invoke(cli, ["transpile"])


def test_backups_lists_snapshots(cli_runner, gsd_tree, target_root, write_text) -> None:
    _run_twice(cli_runner, gsd_tree, write_text)

    result = cli_runner.invoke(cli, ["backups"])

    assert result.exit_code == 0, result.output
    names = sorted(path.name for path in backups_dir(target_root).iterdir())
    assert len(names) == 2
    assert names[-1] in result.output


def test_backups_without_snapshots(cli_runner) -> None:
    result = cli_runner.invoke(cli, ["backups"])

    assert result.exit_code == 0
    assert "No backups found." in result.output


def test_restore_latest_snapshot(cli_runner, gsd_tree, target_root, write_text) -> None:
    cli_runner.invoke(cli, ["transpile"])
    first_agents = (target_root / "agents.json").read_text(encoding="utf-8")
    write_text(gsd_tree / "agents" / "planner.md", "---\nname: planner\n---\nChanged.\n")
    cli_runner.invoke(cli, ["transpile"])
    assert (target_root / "agents.json").read_text(encoding="utf-8") != first_agents

    result = cli_runner.invoke(cli, ["restore"])

    assert result.exit_code == 0, result.output
    assert "Restored" in result.output
    assert (target_root / "agents.json").read_text(encoding="utf-8") == first_agents


def test_restore_named_snapshot(cli_runner, gsd_tree, target_root, write_text) -> None:
    _run_twice(cli_runner, gsd_tree, write_text)
    oldest = sorted(backups_dir(target_root).iterdir())[0]

    result = cli_runner.invoke(cli, ["restore", oldest.name])

    assert result.exit_code == 0, result.output
    assert "Restored 0 files" in result.output


def test_restore_without_backups(cli_runner) -> None:
    result = cli_runner.invoke(cli, ["restore"])

    assert result.exit_code == 1
    assert "No backups found." in result.output


def test_restore_unknown_snapshot(cli_runner) -> None:
    result = cli_runner.invoke(cli, ["restore", "nope"])

    assert result.exit_code == 1
    assert "Backup not found: nope" in result.output


def test_restore_refuses_tampered_snapshot(cli_runner, gsd_tree, target_root, write_text) -> None:
    _run_twice(cli_runner, gsd_tree, write_text)
    latest = sorted(backups_dir(target_root).iterdir())[-1]
    (latest / "files" / "agents.json").write_text("tampered", encoding="utf-8")

    result = cli_runner.invoke(cli, ["restore"])

    assert result.exit_code == 1
    assert "hash mismatch" in result.output


def test_detect_valid_source(cli_runner, gsd_tree) -> None:
    result = cli_runner.invoke(cli, ["detect"])

    assert result.exit_code == 0, result.output
    assert "version 1.4.0" in result.output


def test_detect_missing_source(cli_runner, tmp_path) -> None:
    result = cli_runner.invoke(cli, ["detect", "--source", str(tmp_path / "missing")])

    assert result.exit_code == 2
    assert "missing" in result.output
