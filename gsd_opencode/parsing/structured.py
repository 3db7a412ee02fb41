"""Shape-sniff JSON and YAML data files into config and model entries."""

from __future__ import annotations

import json
from pathlib import PurePosixPath
from typing import Any

import yaml

from gsd_opencode.ir.models import Config, Model
from gsd_opencode.parsing.models import Extraction, ParseError
from gsd_opencode.parsing.values import find_non_finite, jsonable

CONFIG_KEYS: tuple[str, ...] = ("theme", "keybindings", "permissions")


def load_structured(text: str, relative_path: str) -> tuple[Any, ParseError | None]:
    suffix = PurePosixPath(relative_path).suffix.lower()
    if suffix == ".json":
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            return None, ParseError(
                file=relative_path, message=f"Invalid JSON: {exc.msg}", line=exc.lineno
            )
    else:
        try:
            payload = jsonable(yaml.safe_load(text))
        except yaml.YAMLError as exc:
            mark = getattr(exc, "problem_mark", None)
            problem = getattr(exc, "problem", None) or str(exc)
            return None, ParseError(
                file=relative_path,
                message=f"Invalid YAML: {problem}",
                line=mark.line + 1 if mark is not None else None,
            )

    location = find_non_finite(payload)
    if location is not None:
        return None, ParseError(
            file=relative_path,
            message=f"Non-finite number at '{location}' cannot be represented in JSON",
        )
    return payload, None


def parse_structured(text: str, relative_path: str) -> Extraction:
    extraction = Extraction()
    payload, error = load_structured(text, relative_path)
    if error is not None:
        extraction.errors.append(error)
        return extraction
    if not isinstance(payload, dict):
        return extraction

    has_models = isinstance(payload.get("models"), list)
    if any(key in payload for key in CONFIG_KEYS):
        extraction.config = _config_from(payload, relative_path, has_models, extraction)
    if has_models:
        extraction.models.extend(_models_from(payload["models"], relative_path, extraction))
    return extraction


def _config_from(
    payload: dict[str, Any],
    relative_path: str,
    has_models: bool,
    extraction: Extraction,
) -> Config:
    config = Config()

    theme = payload.get("theme")
    if theme is not None:
        if isinstance(theme, dict):
            config.theme = dict(theme)
            config.sources["theme"] = relative_path
        else:
            extraction.errors.append(
                ParseError(file=relative_path, message="'theme' must be an object")
            )

    keybindings = payload.get("keybindings")
    if keybindings is not None:
        if isinstance(keybindings, dict):
            for key, value in keybindings.items():
                if not isinstance(value, str):
                    extraction.errors.append(
                        ParseError(
                            file=relative_path,
                            message=f"keybinding '{key}' must be a string",
                        )
                    )
                    continue
                config.keybindings[str(key)] = value
            if config.keybindings:
                config.sources["keybindings"] = relative_path
        else:
            extraction.errors.append(
                ParseError(file=relative_path, message="'keybindings' must be an object")
            )

    permissions = payload.get("permissions")
    if permissions is not None:
        if isinstance(permissions, dict):
            for key, value in permissions.items():
                # scalars and nested rule maps pass through with their JSON types
                config.permissions[str(key)] = value
                config.sources[f"permissions.{key}"] = relative_path
        else:
            extraction.errors.append(
                ParseError(file=relative_path, message="'permissions' must be an object")
            )

    for key, value in payload.items():
        if key in CONFIG_KEYS or (key == "models" and has_models):
            continue
        config.custom[key] = value
        config.sources[f"custom.{key}"] = relative_path
    return config


def _models_from(
    entries: list[Any], relative_path: str, extraction: Extraction
) -> list[Model]:
    models: list[Model] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            extraction.errors.append(
                ParseError(
                    file=relative_path, message=f"models[{index}] must be an object"
                )
            )
            continue
        name = entry.get("name")
        provider = entry.get("provider")
        if not isinstance(name, str) or not name or not isinstance(provider, str) or not provider:
            extraction.errors.append(
                ParseError(
                    file=relative_path,
                    message=f"models[{index}] missing required 'name' or 'provider'",
                )
            )
            continue

        extensions: dict[str, Any] = {}
        nested = entry.get("config")
        if isinstance(nested, dict):
            extensions.update(nested)
        for key, value in entry.items():
            if key in ("name", "provider", "endpoint"):
                continue
            if key == "config" and isinstance(nested, dict):
                continue
            extensions[key] = value

        endpoint = entry.get("endpoint")
        models.append(
            Model(
                name=name,
                provider=provider,
                source_file=relative_path,
                endpoint=endpoint if isinstance(endpoint, str) else None,
                extensions=extensions,
            )
        )
    return models
