"""Decide whether a run needs to regenerate its output."""

from __future__ import annotations

import logging
from pathlib import Path

from jsonschema import Draft202012Validator

from gsd_opencode.idempotency.models import IdempotencyDecision, RunManifest
from gsd_opencode.utils import (
    canonical_json,
    first_schema_error,
    read_json,
    read_json_safe,
    write_json,
)
from gsd_opencode.writer import ArtifactWriter

logger = logging.getLogger(__name__)

RUN_MANIFEST_SCHEMA_PATH = Path(__file__).resolve().parent / "schema.json"

REASON_FORCED = "forced regeneration"
REASON_UNREADABLE = "previous manifest unreadable"
REASON_NO_PREVIOUS = "no previous run"
REASON_SOURCE_CHANGED = "source changed"
REASON_UP_TO_DATE = "already up to date"


class RunManifestStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._validator = Draft202012Validator(read_json(RUN_MANIFEST_SCHEMA_PATH))

    def load(self) -> tuple[RunManifest | None, str | None]:
        payload, error = read_json_safe(self.path)
        if error is not None:
            return None, f"Invalid JSON in {self.path}: {error}"
        if payload is None:
            return None, None
        schema_error = first_schema_error(self._validator, payload)
        if schema_error is not None:
            return None, f"Invalid run manifest {self.path}: {schema_error}"
        return RunManifest.from_dict(payload), None

    def save(self, manifest: RunManifest, writer: ArtifactWriter | None = None) -> None:
        if writer is not None:
            writer.write_text(self.path, canonical_json(manifest.as_dict()))
        else:
            write_json(self.path, manifest.as_dict())
        logger.debug("Saved run manifest to %s", self.path)


def check_idempotency(
    source_hash: str,
    manifest: RunManifest | None,
    force: bool = False,
    load_error: str | None = None,
) -> IdempotencyDecision:
    if force:
        return IdempotencyDecision(True, REASON_FORCED)
    if load_error is not None:
        logger.warning("%s", load_error)
        return IdempotencyDecision(True, REASON_UNREADABLE)
    if manifest is None:
        return IdempotencyDecision(True, REASON_NO_PREVIOUS)
    if manifest.source_hash != source_hash:
        return IdempotencyDecision(True, REASON_SOURCE_CHANGED)
    return IdempotencyDecision(False, REASON_UP_TO_DATE)
