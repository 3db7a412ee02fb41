import json

import pytest

from gsd_opencode.emit import emit, emit_single, files_hash
from gsd_opencode.transform import OpenCodeConfig


def _config(**overrides) -> OpenCodeConfig:
    values = {
        "agents": [{"name": "qa", "temperature": 0.7, "model": "sonnet"}],
        "commands": [{"promptTemplate": "Go", "name": "gsd-go"}],
        "models": [],
        "settings": {"theme": {"name": "dark", "accent": "blue"}},
    }
    values.update(overrides)
    return OpenCodeConfig(**values)


def test_emit_writes_one_file_per_non_empty_section() -> None:
    result = emit(_config())

    assert result.success
    assert sorted(result.files) == ["agents.json", "commands.json", "settings.json"]
    assert json.loads(result.files["agents.json"]) == [
        {"name": "qa", "temperature": 0.7, "model": "sonnet"}
    ]


def test_emit_is_canonical() -> None:
    content = emit(_config()).files["settings.json"]

    assert content == '{\n  "theme": {\n    "accent": "blue",\n    "name": "dark"\n  }\n}\n'


def test_emit_is_deterministic_across_key_order() -> None:
    first = emit(_config())
    second = emit(
        _config(
            agents=[{"model": "sonnet", "temperature": 0.7, "name": "qa"}],
            settings={"theme": {"accent": "blue", "name": "dark"}},
        )
    )

    assert first.files == second.files
    assert files_hash(first.files) == files_hash(second.files)


def test_emit_of_empty_config_has_no_files() -> None:
    result = emit(OpenCodeConfig())

    assert result.success
    assert result.files == {}
    assert result.total_bytes() == 0


def test_emit_reports_unserializable_values() -> None:
    result = emit(_config(settings={"theme": {"bad": object()}}))

    assert not result.success
    assert result.files == {}
    assert "settings.json" in result.errors[0]


def test_emit_single_consolidates_sections() -> None:
    result = emit_single(_config())

    assert list(result.files) == ["opencode.json"]
    payload = json.loads(result.files["opencode.json"])
    assert sorted(payload) == ["agents", "commands", "settings"]
    assert payload["commands"] == [{"name": "gsd-go", "promptTemplate": "Go"}]


@pytest.mark.parametrize("number", [float("nan"), float("inf"), float("-inf")])
def test_emit_rejects_non_finite_numbers(number: float) -> None:
    result = emit(_config(settings={"theme": {"opacity": number}}))

    assert not result.success
    assert result.files == {}
    assert "settings.json" in result.errors[0]


def test_emit_single_rejects_non_finite_numbers() -> None:
    result = emit_single(_config(models=[{"name": "m", "ratio": float("nan")}]))

    assert not result.success
    assert "opencode.json" in result.errors[0]


def test_emit_single_of_empty_config_has_no_files() -> None:
    result = emit_single(OpenCodeConfig())

    assert result.success
    assert result.files == {}


def test_files_hash_depends_on_names_and_contents() -> None:
    base = files_hash({"a.json": "{}\n", "b.json": "[]\n"})

    assert base == files_hash({"b.json": "[]\n", "a.json": "{}\n"})
    assert base != files_hash({"a.json": "{}\n", "c.json": "[]\n"})
    assert base != files_hash({"a.json": "{}\n", "b.json": "[1]\n"})
    assert files_hash({"ab": "c"}) != files_hash({"a": "bc"})
    assert len(base) == 64
