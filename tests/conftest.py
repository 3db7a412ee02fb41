import sys
import json
from pathlib import Path
from typing import Any

from click.testing import CliRunner
import pytest


def _ensure_repo_on_path() -> None:
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


_ensure_repo_on_path()


QA_AGENT_XML = """<?xml version="1.0" encoding="UTF-8"?>
<!-- quality gate -->
<agent>
  <name>qa-agent</name>
  <description>Quality assurance reviewer</description>
  <model>sonnet</model>
  <tools>
    <tool>bash</tool>
    <tool>read</tool>
  </tools>
  <system-prompt>You review code.</system-prompt>
</agent>
"""

PLANNER_MD = """---
name: planner
description: Plans phases
tools: read, write
temperature: 0.2
color: blue
---
You plan work.
"""

PLAN_PHASE_MD = """---
name: gsd:plan-phase
description: Plan a phase
type: command
agent: planner
variables:
  - name: phase
    type: number
    description: Phase number
    required: true
---
Plan phase {{phase}} now.
"""


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / ".config"))
    monkeypatch.delenv("GSD_OPENCODE_SOURCE", raising=False)
    monkeypatch.delenv("GSD_OPENCODE_TARGET", raising=False)
    monkeypatch.delenv("GSD_OPENCODE_RULES", raising=False)
    monkeypatch.setattr(Path, "home", lambda: tmp_path)


@pytest.fixture
def write_json():
    def _write(path: Path, payload: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")

    return _write


@pytest.fixture
def write_text():
    def _write(path: Path, content: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def source_root(tmp_path: Path) -> Path:
    return tmp_path / ".claude" / "get-shit-done"


@pytest.fixture
def target_root(tmp_path: Path) -> Path:
    return tmp_path / ".config" / "opencode"


@pytest.fixture
def gsd_tree(source_root: Path, write_json, write_text) -> Path:
    write_json(source_root / "package.json", {"name": "get-shit-done", "version": "1.4.0"})
    write_text(source_root / "README.md", "# GSD\n\nDocumentation only.\n")
    write_text(source_root / "agents" / "qa-agent.xml", QA_AGENT_XML)
    write_text(source_root / "agents" / "planner.md", PLANNER_MD)
    write_text(source_root / "commands" / "gsd" / "plan-phase.md", PLAN_PHASE_MD)
    write_json(
        source_root / "models.json",
        {
            "models": [
                {
                    "name": "claude-sonnet",
                    "provider": "anthropic",
                    "endpoint": "https://api.anthropic.com",
                    "maxTokens": 8192,
                }
            ]
        },
    )
    write_json(
        source_root / "config.json",
        {
            "theme": {"name": "dark"},
            "keybindings": {"submit": "ctrl+enter"},
            "permissions": {"bash": "ask", "write": True},
            "telemetry": False,
        },
    )
    return source_root


@pytest.fixture
def cli_runner(tmp_path: Path) -> CliRunner:
    class HomeCliRunner(CliRunner):
        def invoke(self, cli: Any, args: Any = None, **kwargs: Any):  # type: ignore[override]
            env = dict(kwargs.pop("env", {}) or {})
            env.setdefault("HOME", str(tmp_path))
            env.setdefault("XDG_CONFIG_HOME", str(tmp_path / ".config"))
            kwargs["env"] = env
            return super().invoke(cli, args=args, **kwargs)

    return HomeCliRunner()
