from pathlib import Path


class TranspileError(Exception):
    """Base user-facing application error."""


class TranspileFileError(TranspileError):
    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{message}: {path}")


class SourceRootError(TranspileFileError):
    def __init__(self, path: Path, detail: str = "source directory not found") -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Cannot read source root ({detail})")


class InvalidRulesError(TranspileFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Invalid transform rules ({detail})")


class EmitError(TranspileError):
    """Serialization of the target schema failed."""


class BackupError(TranspileFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Backup failed ({detail})")


class BackupIntegrityError(TranspileFileError):
    def __init__(self, path: Path, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            path=path,
            message=f"Backup copy hash mismatch (expected {expected[:12]}, got {actual[:12]})",
        )


class WriteError(TranspileFileError):
    def __init__(self, path: Path, detail: str) -> None:
        self.detail = detail
        super().__init__(path=path, message=f"Write failed ({detail})")
