"""Tests for the IR to OpenCode transformer."""

from pathlib import Path

import pytest

from gsd_opencode.ir.models import (
    Agent,
    Command,
    CommandVariable,
    Config,
    GapCategory,
    Intermediate,
    Model,
    SourceMetadata,
)
from gsd_opencode.parsing.parser import parse_source
from gsd_opencode.rules.loader import merge_rules, load_default_rules, resolve_rules
from gsd_opencode.transform.transformer import (
    Transformer,
    document_variables,
    normalize_command_name,
    transform_ir,
)


def _ir(**sections) -> Intermediate:
    return Intermediate(
        source=SourceMetadata(path="/src", hash="0" * 64, timestamp="2026-01-01T00:00:00+00:00"),
        **sections,
    )


@pytest.fixture
def rules():
    return resolve_rules()


def _fields(gaps) -> set[str]:
    return {gap.field for gap in gaps.unmapped_fields} | {
        gap.field for gap in gaps.approximations
    }


def test_agent_mapping_and_defaults(rules) -> None:
    ir = _ir(agents=[Agent(name="qa", source_file="agents/qa.xml", model="sonnet")])
    result = transform_ir(ir, rules)

    assert result.success
    assert result.config.agents == [
        {"name": "qa", "model": "sonnet", "temperature": 0.7, "systemMessage": ""}
    ]
    assert len(result.gaps) == 0


def test_agent_tools_are_approximated_not_dropped(rules) -> None:
    ir = _ir(agents=[Agent(name="qa", source_file="agents/qa.xml", tools=["bash", "read"])])
    result = transform_ir(ir, rules)

    assert result.config.agents[0]["tools"] == ["bash", "read"]
    (gap,) = result.gaps.approximations
    assert gap.field == "agent.qa.tools"
    assert gap.file == "agents/qa.xml"
    assert gap.category == GapCategory.PLATFORM_DIFFERENCE


def test_agent_extensions_fold_into_config(rules) -> None:
    ir = _ir(agents=[Agent(name="qa", source_file="qa.md", extensions={"color": "red"})])
    result = transform_ir(ir, rules)

    assert result.config.agents[0]["config"] == {"color": "red"}
    assert _fields(result.gaps) == {"agent.qa.extensions"}


def test_command_name_is_normalized(rules) -> None:
    ir = _ir(commands=[Command(name="/gsd:plan-phase", source_file="commands/plan.md", template="Go")])
    result = transform_ir(ir, rules)

    assert result.config.commands == [
        {"name": "gsd-plan-phase", "description": "", "promptTemplate": "Go"}
    ]
    (gap,) = result.gaps.approximations
    assert gap.field == "command./gsd:plan-phase.name"
    assert gap.approximated_value == "gsd-plan-phase"


def test_normalize_command_name() -> None:
    assert normalize_command_name("gsd:new-project") == "gsd-new-project"
    assert normalize_command_name("/a:b:c", replacement="_") == "a_b_c"
    assert normalize_command_name("plain") == "plain"


def test_variables_are_documented_in_template(rules) -> None:
    variables = [
        CommandVariable(name="phase", description="Phase number", required=True),
        CommandVariable(name="mode", default="fast", choices=["fast", "slow"]),
    ]
    ir = _ir(
        commands=[
            Command(
                name="plan",
                source_file="commands/plan.md",
                template="Plan {{phase}} in {{ mode }} mode",
                variables=variables,
            )
        ]
    )
    result = transform_ir(ir, rules)

    assert result.config.commands[0]["promptTemplate"] == (
        "# Variables:\n"
        "# {{phase}} - Phase number (required)\n"
        "# {{mode}} - string (default: fast, choices: fast|slow)\n"
        "\n"
        "Plan {{phase}} in {{ mode }} mode"
    )
    assert result.warnings == []
    assert _fields(result.gaps) == {"command.plan.variables"}


def test_unused_variable_is_a_warning_not_a_gap(rules) -> None:
    ir = _ir(
        commands=[
            Command(
                name="plan",
                source_file="commands/plan.md",
                template="Plan now",
                variables=[CommandVariable(name="phase")],
            )
        ]
    )
    result = transform_ir(ir, rules)

    assert result.success
    assert len(result.warnings) == 1
    assert "'phase'" in result.warnings[0]
    assert _fields(result.gaps) == {"command.plan.variables"}


def test_document_variables_without_template() -> None:
    assert document_variables("", [CommandVariable(name="x")]) == "# Variables:\n# {{x}} - string"


def test_command_agent_reference_folds_into_config(rules) -> None:
    ir = _ir(
        commands=[
            Command(
                name="plan",
                source_file="commands/plan.md",
                agent="planner",
                extensions={"argument-hint": "[phase]"},
            )
        ]
    )
    result = transform_ir(ir, rules)

    assert result.config.commands[0]["config"] == {
        "argument-hint": "[phase]",
        "agent": "planner",
    }
    assert _fields(result.gaps) == {"command.plan.agent", "command.plan.extensions"}


def test_model_mapping(rules) -> None:
    ir = _ir(
        models=[
            Model(
                name="sonnet",
                provider="anthropic",
                source_file="models.json",
                endpoint="https://api.anthropic.com",
                extensions={"maxTokens": 100},
            )
        ]
    )
    result = transform_ir(ir, rules)

    assert result.config.models == [
        {
            "modelId": "sonnet",
            "provider": "anthropic",
            "endpoint": "https://api.anthropic.com",
            "config": {"maxTokens": 100},
        }
    ]
    assert _fields(result.gaps) == {"model.sonnet.extensions"}


def test_model_without_provider_is_a_transform_error(rules) -> None:
    ir = _ir(
        agents=[Agent(name="qa", source_file="qa.xml")],
        models=[Model(name="sonnet", provider="", source_file="models.json")],
    )
    result = transform_ir(ir, rules)

    assert not result.success
    assert result.config is None
    (issue,) = result.errors
    assert issue.file == "models.json"
    assert "provider" in issue.message


def test_every_permission_is_an_unmapped_gap(rules) -> None:
    config = Config(
        theme={"name": "dark"},
        keybindings={"submit": "enter"},
        permissions={"bash": "ask", "write": True},
        sources={
            "theme": "config.json",
            "keybindings": "config.json",
            "permissions.bash": "config.json",
            "permissions.write": "perms.yaml",
        },
    )
    result = transform_ir(_ir(config=config), rules)

    assert result.config.settings == {"theme": {"name": "dark"}, "keybindings": {"submit": "enter"}}
    unmapped = {gap.field: gap for gap in result.gaps.unmapped_fields}
    assert set(unmapped) == {"config.permissions.bash", "config.permissions.write"}
    assert unmapped["config.permissions.write"].file == "perms.yaml"
    assert unmapped["config.permissions.bash"].value == "ask"
    assert all(gap.category == GapCategory.UNSUPPORTED for gap in unmapped.values())
    assert all(gap.suggestion for gap in unmapped.values())
    assert "bash, write" in result.warnings[0]


def test_custom_settings_merge_unless_they_collide(rules) -> None:
    config = Config(
        theme={"name": "dark"},
        custom={"telemetry": False, "theme": "light"},
        sources={"theme": "config.json", "custom.telemetry": "a.json", "custom.theme": "b.json"},
    )
    result = transform_ir(_ir(config=config), rules)

    assert result.config.settings == {"theme": {"name": "dark"}, "telemetry": False}
    assert [gap.field for gap in result.gaps.approximations] == ["config.custom.telemetry"]
    (collision,) = result.gaps.unmapped_fields
    assert collision.field == "config.custom.theme"
    assert collision.file == "b.json"


def test_same_named_agents_are_not_deduplicated(rules) -> None:
    ir = _ir(
        agents=[
            Agent(name="qa", source_file="a.xml"),
            Agent(name="qa", source_file="b.xml"),
        ]
    )
    assert len(transform_ir(ir, rules).config.agents) == 2


def test_ir_is_not_mutated(rules) -> None:
    ir = _ir(agents=[Agent(name="qa", source_file="qa.xml", tools=["bash"])])
    before = ir.to_json()
    Transformer(rules).transform(ir)
    assert ir.to_json() == before
    assert len(ir.gaps) == 0


def test_override_changes_one_leaf_for_every_agent() -> None:
    agents = [
        Agent(name="a", source_file="a.xml"),
        Agent(name="b", source_file="b.xml", system_prompt="Be brief."),
    ]
    override = {"agents": {"defaults": {"temperature": 0.1}}}
    base = transform_ir(_ir(agents=agents), resolve_rules())
    changed = transform_ir(
        _ir(agents=agents),
        resolve_rules(defaults=merge_rules(load_default_rules(), override)),
    )

    for before, after in zip(base.config.agents, changed.config.agents):
        assert after["temperature"] == 0.1
        assert {k: v for k, v in after.items() if k != "temperature"} == {
            k: v for k, v in before.items() if k != "temperature"
        }


def test_every_source_field_without_target_has_a_gap(gsd_tree: Path, rules) -> None:
    ir = parse_source(gsd_tree).ir
    result = transform_ir(ir, rules)

    for key in ir.config.permissions:
        assert f"config.permissions.{key}" in {gap.field for gap in result.gaps.unmapped_fields}
    assert result.gaps.files() <= {
        "agents/planner.md",
        "agents/qa-agent.xml",
        "commands/gsd/plan-phase.md",
        "config.json",
        "models.json",
    }
    assert all(gap.file for gap in result.gaps.unmapped_fields)
    assert all(gap.file for gap in result.gaps.approximations)
