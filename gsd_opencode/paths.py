import os
from pathlib import Path

from gsd_opencode.constants import (
    BACKUPS_DIRNAME,
    RULES_FILENAME,
    RUN_MANIFEST_FILENAME,
    STATE_DIRNAME,
)


SOURCE_ENV: str = "GSD_OPENCODE_SOURCE"
TARGET_ENV: str = "GSD_OPENCODE_TARGET"
RULES_ENV: str = "GSD_OPENCODE_RULES"


def _from_env(name: str) -> Path | None:
    value = os.environ.get(name)
    if not value:
        return None
    return Path(value).expanduser()


def default_source_root() -> Path:
    return _from_env(SOURCE_ENV) or (Path.home() / ".claude" / "get-shit-done")


def default_target_root() -> Path:
    override = _from_env(TARGET_ENV)
    if override is not None:
        return override
    if os.name == "nt":
        return Path.home() / ".opencode"
    return Path.home() / ".config" / "opencode"


def default_rules_path() -> Path:
    return _from_env(RULES_ENV) or (
        Path.home() / ".config" / "gsd-opencode" / RULES_FILENAME
    )


def state_dir(target_root: Path) -> Path:
    return target_root / STATE_DIRNAME


def backups_dir(target_root: Path) -> Path:
    return state_dir(target_root) / BACKUPS_DIRNAME


def run_manifest_path(target_root: Path) -> Path:
    return state_dir(target_root) / RUN_MANIFEST_FILENAME
