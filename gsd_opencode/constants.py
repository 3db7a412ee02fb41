from typing import Final


IR_VERSION: Final[str] = "1.0"
RUN_MANIFEST_SCHEMA_VERSION: Final[str] = "1"

STATE_DIRNAME: Final[str] = ".gsd-opencode"
BACKUPS_DIRNAME: Final[str] = "backups"
BACKUP_MANIFEST_FILENAME: Final[str] = "manifest.json"
RUN_MANIFEST_FILENAME: Final[str] = "manifest.json"
RULES_FILENAME: Final[str] = "transforms.json"
PACKAGE_JSON_FILENAME: Final[str] = "package.json"

AGENTS_ARTIFACT: Final[str] = "agents.json"
COMMANDS_ARTIFACT: Final[str] = "commands.json"
MODELS_ARTIFACT: Final[str] = "models.json"
SETTINGS_ARTIFACT: Final[str] = "settings.json"
SINGLE_ARTIFACT: Final[str] = "opencode.json"

SOURCE_IGNORED_DIRS: Final[tuple[str, ...]] = (
    "node_modules",
    "__pycache__",
    "dist",
    "build",
)

SOURCE_REQUIRED_DIRS: Final[tuple[str, ...]] = (
    "commands",
    "agents",
)

SOURCE_REQUIRED_FILES: Final[tuple[str, ...]] = (
    "package.json",
    "README.md",
)
