"""Parse a GSD source tree into the intermediate representation.

Parsing is best effort: a malformed file is recorded as a ``ParseError`` and
the remaining files are still parsed. Only an unreadable source root aborts.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Callable

from gsd_opencode.constants import PACKAGE_JSON_FILENAME
from gsd_opencode.ir.models import Config, Intermediate, SourceMetadata
from gsd_opencode.parsing.discovery import classify
from gsd_opencode.parsing.frontmatter import parse_frontmatter
from gsd_opencode.parsing.hashing import scan_source
from gsd_opencode.parsing.models import (
    Extraction,
    ParseError,
    ParseResult,
    SourceFormat,
)
from gsd_opencode.parsing.structured import parse_structured
from gsd_opencode.parsing.tags import parse_tagged
from gsd_opencode.utils import iso_now, read_json_safe

logger = logging.getLogger(__name__)

Extractor = Callable[[str, str], Extraction]

_EXTRACTORS: dict[SourceFormat, Extractor] = {
    SourceFormat.TAGGED: parse_tagged,
    SourceFormat.FRONTMATTER: parse_frontmatter,
    SourceFormat.STRUCTURED: parse_structured,
}


class SourceParser:
    def __init__(self, clock: Callable[[], str] = iso_now) -> None:
        self._clock = clock

    def parse(self, source_root: Path) -> ParseResult:
        root = Path(source_root)
        if not root.exists() or not root.is_dir():
            return self._abort(root, "source directory not found")

        try:
            scan = scan_source(root)
        except OSError as exc:
            return self._abort(root, f"failed to scan source directory: {exc}")

        logger.debug("Discovered %d files under %s", len(scan.files), root)

        extractions: list[Extraction] = []
        errors = [
            ParseError(file=relative, message=f"Cannot read ({reason})")
            for relative, reason in sorted(scan.unreadable.items())
        ]
        warnings: list[str] = []
        for relative in scan.files:
            if relative in scan.unreadable:
                continue
            extraction = self._parse_file(root, relative)
            if extraction is None:
                continue
            extractions.append(extraction)
            errors.extend(extraction.errors)
            warnings.extend(extraction.warnings)

        ir = Intermediate(
            source=SourceMetadata(
                path=str(root),
                hash=scan.hash,
                timestamp=self._clock(),
                version=self._detect_version(root),
            ),
            agents=[agent for item in extractions for agent in item.agents],
            commands=[command for item in extractions for command in item.commands],
            models=[model for item in extractions for model in item.models],
            config=self._merge_configs(item.config for item in extractions),
        )
        warnings.extend(_duplicate_warnings(ir))

        for error in errors:
            logger.warning("Parse error: %s", error)
        logger.info(
            "Parsed %d agents, %d commands, %d models (%d errors)",
            len(ir.agents),
            len(ir.commands),
            len(ir.models),
            len(errors),
        )
        return ParseResult(ir=ir, errors=errors, warnings=warnings)

    def _parse_file(self, root: Path, relative: str) -> Extraction | None:
        source_format = classify(relative)
        if source_format == SourceFormat.IGNORED:
            logger.debug("Ignoring %s", relative)
            return None

        extractor = _EXTRACTORS[source_format]
        try:
            text = (root / relative).read_text(encoding="utf-8")
            return extractor(text, relative)
        except (OSError, ValueError) as exc:
            return Extraction(
                errors=[ParseError(file=relative, message=f"Failed to parse file: {exc}")]
            )

    @staticmethod
    def _abort(root: Path, detail: str) -> ParseResult:
        logger.error("Cannot read source root %s: %s", root, detail)
        return ParseResult(
            ir=None,
            errors=[ParseError(file=str(root), message=f"Cannot read source root ({detail})")],
        )

    @staticmethod
    def _detect_version(root: Path) -> str | None:
        payload, _ = read_json_safe(root / PACKAGE_JSON_FILENAME)
        if isinstance(payload, dict) and isinstance(payload.get("version"), str):
            return payload["version"]
        return None

    @staticmethod
    def _merge_configs(fragments) -> Config:
        merged = Config()
        for fragment in fragments:
            if fragment is None:
                continue
            merged.theme.update(fragment.theme)
            merged.keybindings.update(fragment.keybindings)
            merged.permissions.update(fragment.permissions)
            merged.custom.update(fragment.custom)
            merged.sources.update(fragment.sources)
        return merged


def _duplicate_warnings(ir: Intermediate) -> list[str]:
    warnings: list[str] = []
    for section, names in (
        ("agent", [agent.name for agent in ir.agents]),
        ("command", [command.name for command in ir.commands]),
        ("model", [model.name for model in ir.models]),
    ):
        for name, count in sorted(Counter(names).items()):
            if count > 1:
                warnings.append(f"Duplicate {section} name '{name}' ({count} definitions)")
    return warnings


def parse_source(source_root: Path) -> ParseResult:
    return SourceParser().parse(source_root)
