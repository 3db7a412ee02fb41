"""Map the intermediate representation onto the OpenCode schema.

Every decision comes from the resolved ``TransformRules``; the transformer
never reads files. Anything that cannot be carried over exactly is recorded as
a gap on the result instead of being dropped.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from gsd_opencode.ir.models import (
    Agent,
    Approximation,
    Command,
    CommandVariable,
    Config,
    GapCategory,
    Gaps,
    Intermediate,
    Model,
    UnmappedField,
)
from gsd_opencode.rules.models import SectionRules, TransformRules
from gsd_opencode.transform.models import OpenCodeConfig, TransformIssue, TransformResult

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\{\{\s*([^}]+?)\s*\}\}")


def normalize_command_name(name: str, separator: str = ":", replacement: str = "-") -> str:
    normalized = name.strip().lstrip("/")
    if separator:
        normalized = normalized.replace(separator, replacement)
    return normalized


def template_placeholders(template: str | None) -> set[str]:
    if not template:
        return set()
    return {match.group(1) for match in _PLACEHOLDER_RE.finditer(template)}


def describe_variable(variable: CommandVariable) -> str:
    summary = variable.description or (
        variable.type.value if variable.type is not None else "string"
    )
    details: list[str] = []
    if variable.required:
        details.append("required")
    if variable.default is not None:
        details.append(f"default: {variable.default}")
    if variable.choices:
        details.append("choices: " + "|".join(variable.choices))
    if details:
        summary = f"{summary} ({', '.join(details)})"
    return f"{{{{{variable.name}}}}} - {summary}"


def document_variables(template: str, variables: list[CommandVariable]) -> str:
    lines = ["# Variables:"] + [f"# {describe_variable(item)}" for item in variables]
    header = "\n".join(lines)
    return f"{header}\n\n{template}" if template else header


class Transformer:
    def __init__(self, rules: TransformRules) -> None:
        self.rules = rules

    def transform(self, ir: Intermediate) -> TransformResult:
        gaps = ir.gaps.copy()
        errors: list[TransformIssue] = []
        warnings: list[str] = []

        agents = [
            record
            for record in (self._agent(item, gaps, errors) for item in ir.agents)
            if record is not None
        ]
        commands = [
            record
            for record in (
                self._command(item, gaps, errors, warnings) for item in ir.commands
            )
            if record is not None
        ]
        models = [
            record
            for record in (self._model(item, gaps, errors) for item in ir.models)
            if record is not None
        ]
        settings = self._settings(ir.config, gaps, warnings)

        for issue in errors:
            logger.error("Transform error: %s", issue)
        logger.info(
            "Transformed %d agents, %d commands, %d models (%d gaps)",
            len(agents),
            len(commands),
            len(models),
            len(gaps),
        )

        config = None
        if not errors:
            config = OpenCodeConfig(
                agents=agents, commands=commands, models=models, settings=settings
            )
        return TransformResult(config=config, gaps=gaps, errors=errors, warnings=warnings)

    @staticmethod
    def _put(
        record: dict[str, Any], section: SectionRules, source_field: str, value: Any
    ) -> None:
        if value is None and section.has_default(source_field):
            value = section.default(source_field)
        if value is None:
            return
        record[section.target(source_field)] = value

    def _agent(
        self, agent: Agent, gaps: Gaps, errors: list[TransformIssue]
    ) -> dict[str, Any] | None:
        section = self.rules.agents
        if not agent.name:
            errors.append(
                TransformIssue(agent.source_file, "agent.name", "Agent missing required field 'name'")
            )
            return None

        record: dict[str, Any] = {}
        self._put(record, section, "name", agent.name)
        self._put(record, section, "description", agent.description)
        self._put(record, section, "model", agent.model)
        self._put(record, section, "temperature", agent.temperature)
        self._put(record, section, "systemPrompt", agent.system_prompt)
        self._put(record, section, "maxTokens", agent.max_tokens)

        if agent.tools:
            tools = list(agent.tools)
            record[section.target("tools")] = tools
            gaps.add_approximation(
                Approximation(
                    file=agent.source_file,
                    field=f"agent.{agent.name}.tools",
                    original_value=list(agent.tools),
                    approximated_value=tools,
                    reason=section.approximation_reason("tools", "Tools mapped directly"),
                    category=section.category("tools", GapCategory.PLATFORM_DIFFERENCE),
                )
            )

        if agent.extensions:
            extensions = dict(agent.extensions)
            record[section.target("extensions")] = extensions
            gaps.add_approximation(
                Approximation(
                    file=agent.source_file,
                    field=f"agent.{agent.name}.extensions",
                    original_value=dict(agent.extensions),
                    approximated_value=extensions,
                    reason=section.approximation_reason(
                        "extensions", "Extra fields merged into agent config"
                    ),
                    category=section.category("extensions", GapCategory.PLATFORM_DIFFERENCE),
                )
            )
        return record

    def _command(
        self,
        command: Command,
        gaps: Gaps,
        errors: list[TransformIssue],
        warnings: list[str],
    ) -> dict[str, Any] | None:
        section = self.rules.commands
        name = normalize_command_name(
            command.name,
            separator=section.option("namespaceSeparator", ":"),
            replacement=section.option("namespaceReplacement", "-"),
        )
        if not name:
            errors.append(
                TransformIssue(
                    command.source_file, "command.name", "Command missing required field 'name'"
                )
            )
            return None

        if name != command.name:
            gaps.add_approximation(
                Approximation(
                    file=command.source_file,
                    field=f"command.{command.name}.name",
                    original_value=command.name,
                    approximated_value=name,
                    reason=section.approximation_reason("name", "Command name normalized"),
                    category=section.category("name", GapCategory.PLATFORM_DIFFERENCE),
                )
            )

        template = command.template or ""
        if command.variables:
            used = template_placeholders(template)
            for variable in command.variables:
                if variable.name not in used:
                    message = (
                        f"{command.source_file}: variable '{variable.name}' of command "
                        f"'{command.name}' is never used in its template"
                    )
                    logger.warning("%s", message)
                    warnings.append(message)
            documented = document_variables(template, command.variables)
            gaps.add_approximation(
                Approximation(
                    file=command.source_file,
                    field=f"command.{command.name}.variables",
                    original_value=[item.as_dict() for item in command.variables],
                    approximated_value=documented,
                    reason=section.approximation_reason("variables", "Variables inlined"),
                    category=section.category("variables", GapCategory.PLATFORM_DIFFERENCE),
                )
            )
            template = documented

        record: dict[str, Any] = {}
        self._put(record, section, "name", name)
        self._put(record, section, "description", command.description)
        self._put(record, section, "template", template)

        extras: dict[str, Any] = {}
        if command.extensions:
            extras.update(command.extensions)
            gaps.add_approximation(
                Approximation(
                    file=command.source_file,
                    field=f"command.{command.name}.extensions",
                    original_value=dict(command.extensions),
                    approximated_value=dict(command.extensions),
                    reason=section.approximation_reason(
                        "extensions", "Extra fields merged into command config"
                    ),
                    category=section.category("extensions", GapCategory.PLATFORM_DIFFERENCE),
                )
            )
        if command.agent:
            extras["agent"] = command.agent
            gaps.add_approximation(
                Approximation(
                    file=command.source_file,
                    field=f"command.{command.name}.agent",
                    original_value=command.agent,
                    approximated_value={"agent": command.agent},
                    reason=section.approximation_reason("agent", "Agent stored in config"),
                    category=section.category("agent", GapCategory.PLATFORM_DIFFERENCE),
                )
            )
        if extras:
            record[section.target("extensions")] = extras
        return record

    def _model(
        self, model: Model, gaps: Gaps, errors: list[TransformIssue]
    ) -> dict[str, Any] | None:
        section = self.rules.models
        if not model.name:
            errors.append(
                TransformIssue(model.source_file, "model.name", "Model missing required field 'name'")
            )
            return None
        if not model.provider:
            errors.append(
                TransformIssue(
                    model.source_file,
                    f"model.{model.name}.provider",
                    f"Model '{model.name}' missing required field 'provider'",
                )
            )
            return None

        record: dict[str, Any] = {}
        self._put(record, section, "name", model.name)
        self._put(record, section, "provider", model.provider)
        self._put(record, section, "endpoint", model.endpoint)
        if model.extensions:
            extensions = dict(model.extensions)
            record[section.target("extensions")] = extensions
            gaps.add_approximation(
                Approximation(
                    file=model.source_file,
                    field=f"model.{model.name}.extensions",
                    original_value=dict(model.extensions),
                    approximated_value=extensions,
                    reason=section.approximation_reason(
                        "extensions", "Extra fields merged into model config"
                    ),
                    category=section.category("extensions", GapCategory.PLATFORM_DIFFERENCE),
                )
            )
        return record

    def _settings(self, config: Config, gaps: Gaps, warnings: list[str]) -> dict[str, Any]:
        section = self.rules.config
        settings: dict[str, Any] = {}
        if config.theme:
            settings[section.target("theme")] = dict(config.theme)
        if config.keybindings:
            settings[section.target("keybindings")] = dict(config.keybindings)

        for key, value in config.permissions.items():
            gaps.add_unmapped(
                UnmappedField(
                    file=config.source_of(f"permissions.{key}"),
                    field=f"config.permissions.{key}",
                    value=value,
                    reason=section.unmapped_reason(
                        "permissions", "Permissions are not supported by OpenCode"
                    ),
                    category=section.category("permissions", GapCategory.UNSUPPORTED),
                    suggestion=section.suggestion("permissions"),
                )
            )
        if config.permissions:
            warnings.append(
                "GSD permissions not supported by OpenCode: "
                + ", ".join(config.permissions)
            )

        category = section.category("custom", GapCategory.PLATFORM_DIFFERENCE)
        for key, value in config.custom.items():
            source = config.source_of(f"custom.{key}")
            if key in settings:
                gaps.add_unmapped(
                    UnmappedField(
                        file=source,
                        field=f"config.custom.{key}",
                        value=value,
                        reason=section.unmapped_reason(
                            "custom", "Custom setting collides with a mapped setting"
                        ),
                        category=category,
                        suggestion=section.suggestion("custom"),
                    )
                )
                continue
            settings[key] = value
            gaps.add_approximation(
                Approximation(
                    file=source,
                    field=f"config.custom.{key}",
                    original_value=value,
                    approximated_value=value,
                    reason=section.approximation_reason("custom", "Custom config merged"),
                    category=category,
                )
            )
        return settings


def transform_ir(ir: Intermediate, rules: TransformRules) -> TransformResult:
    return Transformer(rules).transform(ir)
