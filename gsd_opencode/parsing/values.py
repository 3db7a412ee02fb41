"""Scalar coercion shared by the extractors."""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any


def jsonable(value: Any) -> Any:
    """Make YAML-loaded values JSON-serializable (dates become ISO strings)."""
    if isinstance(value, dict):
        return {str(key): jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def find_non_finite(value: Any, path: str = "") -> str | None:
    """Dotted path of the first NaN or infinite float in ``value``, if any."""
    if isinstance(value, float) and not math.isfinite(value):
        return path or "<root>"
    if isinstance(value, dict):
        children = [(f"{path}.{key}" if path else str(key), item) for key, item in value.items()]
    elif isinstance(value, list):
        children = [(f"{path}[{index}]", item) for index, item in enumerate(value)]
    else:
        return None
    for child_path, item in children:
        found = find_non_finite(item, child_path)
        if found is not None:
            return found
    return None


def parse_temperature(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"Invalid temperature '{value}'")
    try:
        temperature = float(value)
    except (TypeError, ValueError):
        raise ValueError(
            f"Invalid temperature '{value}' (expected a number between 0.0 and 1.0)"
        ) from None
    if not 0.0 <= temperature <= 1.0:
        raise ValueError(
            f"Invalid temperature '{value}' (expected a number between 0.0 and 1.0)"
        )
    return temperature


def parse_max_tokens(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid max-tokens '{value}'")
    try:
        max_tokens = int(str(value).strip())
    except ValueError:
        raise ValueError(
            f"Invalid max-tokens '{value}' (expected a positive integer)"
        ) from None
    if max_tokens <= 0:
        raise ValueError(f"Invalid max-tokens '{value}' (expected a positive integer)")
    return max_tokens


def split_tools(value: Any) -> list[str]:
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list):
        items = [str(item) for item in value]
    elif isinstance(value, dict):
        # {"read": true, "bash": false} style permission maps
        items = [str(key) for key, enabled in value.items() if enabled]
    else:
        return []
    return [item.strip() for item in items if item.strip()]
