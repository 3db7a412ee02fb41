"""Extract agents, commands and models from lightweight XML-like files.

GSD's tag files are semantic rather than strict XML, so extraction is done
with small patterns. Matches are converted into IR objects right here and
never leave this module as raw text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from xml.sax.saxutils import unescape

from gsd_opencode.ir.models import Agent, Command, CommandVariable, Model, VariableType
from gsd_opencode.parsing.models import EntityKind, Extraction, ParseError
from gsd_opencode.parsing.values import parse_max_tokens, parse_temperature, split_tools
from gsd_opencode.utils import line_of_offset

_PROLOG_RE = re.compile(
    r"\A(?:\s+|<\?xml.*?\?>|<!--.*?-->|<!DOCTYPE[^>]*>)*", re.DOTALL
)
_ROOT_RE = re.compile(r"<([A-Za-z][\w.-]*)(?=[\s/>])")
_ELEMENT_RE = re.compile(
    r"<([A-Za-z][\w.-]*)(\s[^>]*?)?(?:/>|>(.*?)</\1\s*>)", re.DOTALL
)
_ATTR_RE = re.compile(r"([\w.-]+)\s*=\s*\"([^\"]*)\"")
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_CDATA_RE = re.compile(r"\A\s*<!\[CDATA\[(.*?)\]\]>\s*\Z", re.DOTALL)

_ROOT_KINDS: dict[str, EntityKind] = {
    "agent": EntityKind.AGENT,
    "command": EntityKind.COMMAND,
    "model": EntityKind.MODEL,
}

_AGENT_FIELDS: dict[str, str] = {
    "name": "name",
    "description": "description",
    "model": "model",
    "temperature": "temperature",
    "system-prompt": "system_prompt",
    "systemPrompt": "system_prompt",
    "tools": "tools",
    "max-tokens": "max_tokens",
    "maxTokens": "max_tokens",
}
_COMMAND_FIELDS = frozenset({"name", "description", "template", "variables", "agent"})
_MODEL_FIELDS = frozenset({"name", "provider", "endpoint"})


@dataclass(frozen=True)
class _Element:
    tag: str
    raw: str | None
    offset: int
    attrs: dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        if self.raw is None:
            return ""
        match = _CDATA_RE.match(self.raw)
        if match:
            return match.group(1).strip()
        return unescape(self.raw.strip(), {"&quot;": '"', "&apos;": "'"})


def detect_root(text: str) -> tuple[EntityKind, int]:
    """Return the entity kind named by the root tag and the tag's offset."""
    start = _PROLOG_RE.match(text).end()
    match = _ROOT_RE.match(text, start)
    if match is None:
        return EntityKind.UNKNOWN, start
    return _ROOT_KINDS.get(match.group(1), EntityKind.UNKNOWN), start


def parse_tagged(text: str, relative_path: str) -> Extraction:
    extraction = Extraction()
    kind, root_offset = detect_root(text)
    if kind == EntityKind.UNKNOWN:
        return extraction

    root = _root_element(text, kind.value, root_offset)
    if root is None:
        extraction.errors.append(
            ParseError(
                file=relative_path,
                message=f"Unclosed <{kind.value}> root tag",
                line=line_of_offset(text, root_offset),
            )
        )
        return extraction

    children = _children(root.raw or "", root.offset)
    if kind == EntityKind.AGENT:
        _parse_agent(text, relative_path, root, children, extraction)
    elif kind == EntityKind.COMMAND:
        _parse_command(text, relative_path, root, children, extraction)
    elif kind == EntityKind.MODEL:
        _parse_model(text, relative_path, root, children, extraction)
    return extraction


def _root_element(text: str, tag: str, offset: int) -> _Element | None:
    opening = re.compile(rf"<{re.escape(tag)}(\s[^>]*?)?>").match(text, offset)
    if opening is None:
        return None
    closings = list(re.finditer(rf"</{re.escape(tag)}\s*>", text))
    if not closings or closings[-1].start() < opening.end():
        return None
    closing = closings[-1].start()
    return _Element(
        tag=tag,
        raw=text[opening.end() : closing],
        offset=opening.end(),
        attrs=_attrs(opening.group(1)),
    )


def _children(body: str, base_offset: int) -> list[_Element]:
    # Comments are blanked rather than removed so offsets stay valid.
    cleaned = _COMMENT_RE.sub(lambda match: " " * len(match.group(0)), body)
    return [
        _Element(
            tag=match.group(1),
            raw=match.group(3),
            offset=base_offset + match.start(),
            attrs=_attrs(match.group(2)),
        )
        for match in _ELEMENT_RE.finditer(cleaned)
    ]


def _attrs(raw: str | None) -> dict[str, str]:
    if not raw:
        return {}
    return {key: unescape(value) for key, value in _ATTR_RE.findall(raw)}


def _first(children: list[_Element], *tags: str) -> _Element | None:
    for child in children:
        if child.tag in tags:
            return child
    return None


def _collect_extensions(
    children: list[_Element], known: frozenset[str] | set[str]
) -> dict[str, object]:
    extensions: dict[str, object] = {}
    for child in children:
        if child.tag in known:
            continue
        existing = extensions.get(child.tag)
        if existing is None:
            extensions[child.tag] = child.text
        elif isinstance(existing, list):
            existing.append(child.text)
        else:
            extensions[child.tag] = [existing, child.text]
    return extensions


def _optional_text(children: list[_Element], *tags: str) -> str | None:
    element = _first(children, *tags)
    if element is None:
        return None
    return element.text or None


def _parse_agent(
    text: str,
    relative_path: str,
    root: _Element,
    children: list[_Element],
    extraction: Extraction,
) -> None:
    name = _optional_text(children, "name") or root.attrs.get("name")
    if not name:
        extraction.errors.append(
            ParseError(
                file=relative_path,
                message="Agent XML missing required <name> tag",
                line=line_of_offset(text, root.offset),
            )
        )
        return

    temperature: float | None = None
    temperature_element = _first(children, "temperature")
    if temperature_element is not None and temperature_element.text:
        try:
            temperature = parse_temperature(temperature_element.text)
        except ValueError as exc:
            extraction.errors.append(
                ParseError(
                    file=relative_path,
                    message=str(exc),
                    line=line_of_offset(text, temperature_element.offset),
                )
            )

    max_tokens: int | None = None
    max_tokens_element = _first(children, "max-tokens", "maxTokens")
    if max_tokens_element is not None and max_tokens_element.text:
        try:
            max_tokens = parse_max_tokens(max_tokens_element.text)
        except ValueError as exc:
            extraction.errors.append(
                ParseError(
                    file=relative_path,
                    message=str(exc),
                    line=line_of_offset(text, max_tokens_element.offset),
                )
            )

    tools: list[str] = []
    tools_element = _first(children, "tools")
    if tools_element is not None and tools_element.raw:
        tools = [
            child.text
            for child in _children(tools_element.raw, tools_element.offset)
            if child.tag == "tool" and child.text
        ] or split_tools(tools_element.text)

    extraction.agents.append(
        Agent(
            name=name,
            source_file=relative_path,
            description=_optional_text(children, "description"),
            model=_optional_text(children, "model"),
            temperature=temperature,
            system_prompt=_optional_text(children, "system-prompt", "systemPrompt"),
            tools=tools,
            max_tokens=max_tokens,
            extensions=_collect_extensions(children, set(_AGENT_FIELDS)),
        )
    )


def _parse_command(
    text: str,
    relative_path: str,
    root: _Element,
    children: list[_Element],
    extraction: Extraction,
) -> None:
    # <variable> blocks carry their own <name>; only direct children count here.
    name = _optional_text(children, "name") or root.attrs.get("name")
    if not name:
        extraction.errors.append(
            ParseError(
                file=relative_path,
                message="Command XML missing required <name> tag",
                line=line_of_offset(text, root.offset),
            )
        )
        return

    variables: list[CommandVariable] = []
    variables_element = _first(children, "variables")
    if variables_element is not None and variables_element.raw:
        for element in _children(variables_element.raw, variables_element.offset):
            if element.tag != "variable":
                continue
            variable = _parse_variable(text, relative_path, element, extraction)
            if variable is not None:
                variables.append(variable)

    template_element = _first(children, "template")
    extraction.commands.append(
        Command(
            name=name,
            source_file=relative_path,
            description=_optional_text(children, "description"),
            template=template_element.text if template_element is not None else None,
            variables=variables,
            agent=_optional_text(children, "agent"),
            extensions=_collect_extensions(children, _COMMAND_FIELDS),
        )
    )


def _parse_variable(
    text: str, relative_path: str, element: _Element, extraction: Extraction
) -> CommandVariable | None:
    fields = _children(element.raw or "", element.offset)
    name = _optional_text(fields, "name") or element.attrs.get("name")
    if not name:
        extraction.errors.append(
            ParseError(
                file=relative_path,
                message="Command variable missing required <name> tag",
                line=line_of_offset(text, element.offset),
            )
        )
        return None

    raw_type = _optional_text(fields, "type") or element.attrs.get("type")
    variable_type: VariableType | None = None
    if raw_type:
        try:
            variable_type = VariableType(raw_type.lower())
        except ValueError:
            extraction.warnings.append(
                f"{relative_path}: variable '{name}' has unknown type '{raw_type}'"
            )

    raw_required = _optional_text(fields, "required") or element.attrs.get("required")
    choices_element = _first(fields, "choices")
    choices: list[str] = []
    if choices_element is not None and choices_element.raw:
        choices = [
            child.text
            for child in _children(choices_element.raw, choices_element.offset)
            if child.tag == "choice" and child.text
        ] or [item.strip() for item in choices_element.text.split(",") if item.strip()]

    return CommandVariable(
        name=name,
        type=variable_type,
        description=_optional_text(fields, "description"),
        default=_optional_text(fields, "default"),
        required=raw_required.lower() == "true" if raw_required else None,
        choices=choices,
    )


def _parse_model(
    text: str,
    relative_path: str,
    root: _Element,
    children: list[_Element],
    extraction: Extraction,
) -> None:
    name = _optional_text(children, "name") or root.attrs.get("name")
    provider = _optional_text(children, "provider") or root.attrs.get("provider")
    if not name or not provider:
        extraction.errors.append(
            ParseError(
                file=relative_path,
                message="Model XML missing required <name> or <provider> tag",
                line=line_of_offset(text, root.offset),
            )
        )
        return

    extraction.models.append(
        Model(
            name=name,
            provider=provider,
            source_file=relative_path,
            endpoint=_optional_text(children, "endpoint"),
            extensions=_collect_extensions(children, _MODEL_FIELDS),
        )
    )
