"""Parse markdown files with YAML front matter into commands and agents."""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Any

import yaml

from gsd_opencode.ir.models import Agent, Command, CommandVariable, VariableType
from gsd_opencode.parsing.models import EntityKind, Extraction, ParseError
from gsd_opencode.parsing.values import (
    jsonable,
    parse_max_tokens,
    parse_temperature,
    split_tools,
)

_FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|\Z)", re.DOTALL)

_COMMAND_KEYS = frozenset({"name", "description", "type", "variables", "agent"})
_AGENT_KEYS = frozenset(
    {
        "name",
        "description",
        "type",
        "model",
        "temperature",
        "tools",
        "max-tokens",
        "maxTokens",
        "max_tokens",
    }
)


def split_frontmatter(text: str) -> tuple[str | None, str]:
    match = _FRONTMATTER_RE.match(text)
    if match is None:
        return None, text
    return match.group(1), text[match.end() :]


def declared_kind(meta: dict[str, Any], relative_path: str) -> EntityKind:
    declared = meta.get("type")
    if isinstance(declared, str) and declared.strip():
        normalized = declared.strip().lower()
        if "command" in normalized:
            return EntityKind.COMMAND
        if normalized == "agent":
            return EntityKind.AGENT
        return EntityKind.UNKNOWN

    # Untyped files inherit their kind from a commands/ or agents/ directory.
    directories = PurePosixPath(relative_path).parts[:-1]
    if "commands" in directories:
        return EntityKind.COMMAND
    if "agents" in directories:
        return EntityKind.AGENT
    return EntityKind.UNKNOWN


def parse_frontmatter(text: str, relative_path: str) -> Extraction:
    extraction = Extraction()
    block, body = split_frontmatter(text)
    if block is None:
        return extraction

    try:
        raw = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        problem = getattr(exc, "problem", None) or str(exc)
        extraction.errors.append(
            ParseError(
                file=relative_path,
                message=f"Invalid front matter ({problem})",
                # +1 for zero-based marks, +1 for the opening delimiter
                line=mark.line + 2 if mark is not None else 1,
            )
        )
        return extraction

    if raw is None:
        return extraction
    if not isinstance(raw, dict):
        extraction.errors.append(
            ParseError(
                file=relative_path,
                message="Front matter must be a key/value mapping",
                line=1,
            )
        )
        return extraction

    meta = {str(key): jsonable(value) for key, value in raw.items()}
    kind = declared_kind(meta, relative_path)
    if kind == EntityKind.UNKNOWN:
        return extraction

    name = meta.get("name")
    if not isinstance(name, str) or not name.strip():
        extraction.errors.append(
            ParseError(
                file=relative_path,
                message=f"{kind.value.title()} front matter missing required 'name'",
                line=1,
            )
        )
        return extraction

    content = body.strip()
    if kind == EntityKind.COMMAND:
        extraction.commands.append(
            Command(
                name=name.strip(),
                source_file=relative_path,
                description=_optional_str(meta.get("description")),
                template=content or None,
                variables=_variables(meta.get("variables"), relative_path, extraction),
                agent=_optional_str(meta.get("agent")),
                extensions=_extensions(meta, _COMMAND_KEYS),
            )
        )
    elif kind == EntityKind.AGENT:
        extraction.agents.append(
            Agent(
                name=name.strip(),
                source_file=relative_path,
                description=_optional_str(meta.get("description")),
                model=_optional_str(meta.get("model")),
                temperature=_checked(
                    parse_temperature, meta.get("temperature"), relative_path, extraction
                ),
                system_prompt=content or None,
                tools=split_tools(meta.get("tools")),
                max_tokens=_checked(
                    parse_max_tokens,
                    _first_present(meta, "max-tokens", "maxTokens", "max_tokens"),
                    relative_path,
                    extraction,
                ),
                extensions=_extensions(meta, _AGENT_KEYS),
            )
        )
    return extraction


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _first_present(meta: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if meta.get(key) is not None:
            return meta[key]
    return None


def _checked(parse, value: Any, relative_path: str, extraction: Extraction):
    if value is None or value == "":
        return None
    try:
        return parse(value)
    except ValueError as exc:
        extraction.errors.append(
            ParseError(file=relative_path, message=str(exc), line=1)
        )
        return None


def _extensions(meta: dict[str, Any], known: frozenset[str]) -> dict[str, Any]:
    return {key: value for key, value in meta.items() if key not in known}


def _variables(
    raw: Any, relative_path: str, extraction: Extraction
) -> list[CommandVariable]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        extraction.errors.append(
            ParseError(
                file=relative_path,
                message="Front matter 'variables' must be a list",
                line=1,
            )
        )
        return []

    variables: list[CommandVariable] = []
    for index, item in enumerate(raw):
        if isinstance(item, str) and item.strip():
            variables.append(CommandVariable(name=item.strip()))
            continue
        if not isinstance(item, dict) or not _optional_str(item.get("name")):
            extraction.errors.append(
                ParseError(
                    file=relative_path,
                    message=f"Variable #{index} missing required 'name'",
                    line=1,
                )
            )
            continue

        variable_type: VariableType | None = None
        raw_type = _optional_str(item.get("type"))
        if raw_type:
            try:
                variable_type = VariableType(raw_type.lower())
            except ValueError:
                extraction.warnings.append(
                    f"{relative_path}: variable '{item['name']}' has unknown type '{raw_type}'"
                )

        default = item.get("default")
        choices = item.get("choices")
        required = item.get("required")
        variables.append(
            CommandVariable(
                name=str(item["name"]).strip(),
                type=variable_type,
                description=_optional_str(item.get("description")),
                default=default if isinstance(default, (str, int, float, bool)) else None,
                required=required if isinstance(required, bool) else None,
                choices=[str(choice) for choice in choices]
                if isinstance(choices, list)
                else [],
            )
        )
    return variables
