"""Serialize the OpenCode schema into an in-memory file set.

Output is canonical: keys are sorted recursively, indentation is two spaces
and every file ends with a newline, so identical input always gives
byte-identical files.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field

from gsd_opencode.constants import (
    AGENTS_ARTIFACT,
    COMMANDS_ARTIFACT,
    MODELS_ARTIFACT,
    SETTINGS_ARTIFACT,
    SINGLE_ARTIFACT,
)
from gsd_opencode.errors import EmitError
from gsd_opencode.transform.models import OpenCodeConfig
from gsd_opencode.utils import canonical_json

logger = logging.getLogger(__name__)


@dataclass
class EmitResult:
    files: dict[str, str] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def total_bytes(self) -> int:
        return sum(len(content.encode("utf-8")) for content in self.files.values())


def _serialize(name: str, payload: object) -> str:
    try:
        return canonical_json(payload)
    except (TypeError, ValueError) as exc:
        raise EmitError(f"Failed to serialize {name}: {exc}") from exc


def _failed(exc: EmitError) -> EmitResult:
    logger.error("%s", exc)
    return EmitResult(errors=[str(exc)])


def emit(config: OpenCodeConfig) -> EmitResult:
    sections = (
        (AGENTS_ARTIFACT, config.agents),
        (COMMANDS_ARTIFACT, config.commands),
        (MODELS_ARTIFACT, config.models),
        (SETTINGS_ARTIFACT, config.settings),
    )
    files: dict[str, str] = {}
    try:
        for name, payload in sections:
            if not payload:
                continue
            files[name] = _serialize(name, payload)
    except EmitError as exc:
        return _failed(exc)

    logger.debug("Emitted %d files", len(files))
    return EmitResult(files=files)


def emit_single(config: OpenCodeConfig) -> EmitResult:
    """Emit one consolidated ``opencode.json`` instead of a file per section."""
    payload = {key: value for key, value in config.as_dict().items() if value}
    if not payload:
        logger.debug("Nothing to emit")
        return EmitResult()
    try:
        return EmitResult(files={SINGLE_ARTIFACT: _serialize(SINGLE_ARTIFACT, payload)})
    except EmitError as exc:
        return _failed(exc)


def files_hash(files: dict[str, str]) -> str:
    digest = hashlib.sha256()
    for name in sorted(files):
        digest.update(name.encode("utf-8"))
        digest.update(b"\0")
        digest.update(files[name].encode("utf-8"))
        digest.update(b"\0")
    return digest.hexdigest()
