"""Load the built-in rule set and merge an optional user override on top.

Resolution is a pure function of (defaults, override): it runs once per
pipeline run and the result is immutable.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

from jsonschema import Draft202012Validator

from gsd_opencode.errors import InvalidRulesError
from gsd_opencode.rules.models import TransformRules
from gsd_opencode.utils import first_schema_error, read_json, read_json_safe

logger = logging.getLogger(__name__)

RULES_DIR = Path(__file__).resolve().parent
DEFAULT_RULES_PATH = RULES_DIR / "transform_rules.json"
RULES_SCHEMA_PATH = RULES_DIR / "schema.json"


def rules_validator() -> Draft202012Validator:
    return Draft202012Validator(read_json(RULES_SCHEMA_PATH))


def validate_rules(payload: Any, path: Path, validator: Draft202012Validator) -> None:
    if not isinstance(payload, dict):
        raise InvalidRulesError(path, "must be a JSON object")
    error = first_schema_error(validator, payload)
    if error is not None:
        raise InvalidRulesError(path, error)


def load_default_rules() -> dict[str, Any]:
    return read_json(DEFAULT_RULES_PATH)


def load_override(path: Path | None, validator: Draft202012Validator) -> dict[str, Any] | None:
    if path is None:
        return None
    payload, error = read_json_safe(path)
    if error is not None:
        raise InvalidRulesError(path, error)
    if payload is None:
        logger.debug("No rules override at %s", path)
        return None
    validate_rules(payload, path, validator)
    logger.info("Applying rules override from %s", path)
    return payload


def merge_rules(
    base: Mapping[str, Any], override: Mapping[str, Any] | None
) -> dict[str, Any]:
    """Deep-merge ``override`` onto ``base``; the override wins per leaf key."""
    merged = deepcopy(dict(base))
    if not override:
        return merged
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_rules(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


def resolve_rules(
    override_path: Path | None = None,
    defaults: Mapping[str, Any] | None = None,
) -> TransformRules:
    validator = rules_validator()
    base = dict(defaults) if defaults is not None else load_default_rules()
    validate_rules(base, DEFAULT_RULES_PATH, validator)
    override = load_override(override_path, validator)
    return TransformRules.from_dict(merge_rules(base, override))
