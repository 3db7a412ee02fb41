import json
import sys
from pathlib import Path

from gsd_opencode import __main__ as cli_module
from gsd_opencode.__main__ import cli, main
from gsd_opencode.paths import run_manifest_path


def _invoke(cli_runner, *args: str):
    return cli_runner.invoke(cli, ["transpile", *args])


def test_transpile_with_shortfalls_exits_with_warning(cli_runner, gsd_tree, target_root) -> None:
    result = _invoke(cli_runner)

    assert result.exit_code == 1, result.output
    assert "transpile summary" in result.output
    assert (target_root / "agents.json").is_file()
    assert run_manifest_path(target_root).is_file()


def test_second_transpile_is_a_clean_no_op(cli_runner, gsd_tree, target_root) -> None:
    _invoke(cli_runner)
    before = (target_root / "agents.json").stat().st_mtime_ns

    result = _invoke(cli_runner)

    assert result.exit_code == 0, result.output
    assert "Nothing to do" in result.output
    assert (target_root / "agents.json").stat().st_mtime_ns == before


def test_clean_source_exits_zero(cli_runner, source_root, target_root, write_text, write_json) -> None:
    write_json(source_root / "package.json", {"version": "1.0.0"})
    write_json(source_root / "config.json", {"theme": {"name": "light"}})

    result = _invoke(cli_runner, "--source", str(source_root), "--target", str(target_root))

    assert result.exit_code == 0, result.output
    settings = json.loads((target_root / "settings.json").read_text(encoding="utf-8"))
    assert settings == {"theme": {"name": "light"}}


def test_missing_source_exits_with_error(cli_runner, tmp_path, target_root) -> None:
    result = _invoke(cli_runner, "--source", str(tmp_path / "missing"))

    assert result.exit_code == 2
    assert "Cannot read source root" in result.output
    assert not target_root.exists()


def test_dry_run_writes_nothing(cli_runner, gsd_tree, target_root) -> None:
    result = _invoke(cli_runner, "--dry-run")

    assert result.exit_code == 1, result.output
    assert "No files were written." in result.output
    assert not target_root.exists()


def test_single_file_and_report(cli_runner, gsd_tree, target_root, tmp_path) -> None:
    report = tmp_path / "reports" / "run.md"

    result = _invoke(cli_runner, "--single-file", "--no-backup", "--report", str(report))

    assert result.exit_code == 1, result.output
    assert sorted(path.name for path in target_root.iterdir()) == [".gsd-opencode", "opencode.json"]
    assert "## Shortfalls" in report.read_text(encoding="utf-8")
    assert "Report saved to" in result.output


def test_rules_override_changes_output(cli_runner, gsd_tree, target_root, write_json, tmp_path) -> None:
    rules = tmp_path / "rules.json"
    write_json(rules, {"agents": {"defaults": {"temperature": 0.1}}})

    _invoke(cli_runner, "--rules", str(rules))

    agents = json.loads((target_root / "agents.json").read_text(encoding="utf-8"))
    qa = next(agent for agent in agents if agent["name"] == "qa-agent")
    assert qa["temperature"] == 0.1


def test_invalid_rules_override_fails(cli_runner, gsd_tree, target_root, write_text, tmp_path) -> None:
    rules = write_text(tmp_path / "rules.json", '{"agents": {"defaults": []}}')

    result = _invoke(cli_runner, "--rules", str(rules))

    assert result.exit_code == 2
    assert "Invalid transform rules" in result.output
    assert not target_root.exists()


def test_verbose_and_quiet_conflict(cli_runner, gsd_tree) -> None:
    result = _invoke(cli_runner, "-v", "-q")

    assert result.exit_code == 2
    assert "mutually exclusive" in result.output


def test_env_selects_source_and_target(cli_runner, gsd_tree, tmp_path) -> None:
    target = tmp_path / "elsewhere"

    result = cli_runner.invoke(
        cli,
        ["transpile"],
        env={"GSD_OPENCODE_SOURCE": str(gsd_tree), "GSD_OPENCODE_TARGET": str(target)},
    )

    assert result.exit_code == 1, result.output
    assert (target / "commands.json").is_file()


def test_main_returns_command_exit_code(monkeypatch, gsd_tree) -> None:
    monkeypatch.setattr(sys, "argv", ["gsd-opencode", "transpile", "-q"])

    assert main() == 1


def test_main_maps_unexpected_errors_to_fatal(monkeypatch, gsd_tree) -> None:
    class Exploding:
        def __init__(self, options) -> None:
            pass

        def run(self):
            raise RuntimeError("boom")

    monkeypatch.setattr(cli_module, "TranspileOrchestrator", Exploding)
    monkeypatch.setattr(sys, "argv", ["gsd-opencode", "transpile"])

    assert main() == 3


def test_main_maps_usage_errors_to_error(monkeypatch) -> None:
    monkeypatch.setattr(sys, "argv", ["gsd-opencode", "transpile", "--bogus"])

    assert main() == 2
