"""Run the transpile pipeline as a small state machine.

Idempotency-Check -> Parse -> Transform -> Emit -> Backup -> Write ->
Persist-Manifest. A failure in any of the last three stages enters Rollback,
which returns the target directory to its pre-run state before the original
error is reported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from gsd_opencode.backup.manager import BackupManager
from gsd_opencode.constants import (
    AGENTS_ARTIFACT,
    COMMANDS_ARTIFACT,
    MODELS_ARTIFACT,
    SETTINGS_ARTIFACT,
    SINGLE_ARTIFACT,
)
from gsd_opencode.emit.emitter import emit, emit_single, files_hash
from gsd_opencode.errors import SourceRootError, TranspileError
from gsd_opencode.idempotency.checker import RunManifestStore, check_idempotency
from gsd_opencode.idempotency.models import ArtifactMapping, RunManifest
from gsd_opencode.ir.models import Gaps, Intermediate
from gsd_opencode.parsing.hashing import hash_source_tree
from gsd_opencode.parsing.models import ParseError
from gsd_opencode.parsing.parser import SourceParser
from gsd_opencode.paths import backups_dir, run_manifest_path, state_dir
from gsd_opencode.rules.loader import resolve_rules
from gsd_opencode.rules.models import TransformRules
from gsd_opencode.transform.models import OpenCodeConfig
from gsd_opencode.transform.transformer import Transformer
from gsd_opencode.utils import iso_now
from gsd_opencode.writer import ArtifactWriter

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    IDEMPOTENCY_CHECK = "idempotency-check"
    PARSE = "parse"
    TRANSFORM = "transform"
    EMIT = "emit"
    BACKUP = "backup"
    WRITE = "write"
    PERSIST_MANIFEST = "persist-manifest"
    ROLLBACK = "rollback"
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class TranspileOptions:
    source_root: Path
    target_root: Path
    rules_path: Path | None = None
    force: bool = False
    skip_backup: bool = False
    dry_run: bool = False
    single_file: bool = False


@dataclass
class TranspileResult:
    success: bool = False
    skipped: bool = False
    dry_run: bool = False
    rolled_back: bool = False
    reason: str = ""
    stages: list[PipelineStage] = field(default_factory=list)
    ir: Intermediate | None = None
    config: OpenCodeConfig | None = None
    files: dict[str, str] = field(default_factory=dict)
    written: list[Path] = field(default_factory=list)
    gaps: Gaps = field(default_factory=Gaps)
    parse_errors: list[ParseError] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    backup_dir: Path | None = None
    manifest_path: Path | None = None
    error: str | None = None

    @property
    def stage(self) -> PipelineStage | None:
        return self.stages[-1] if self.stages else None

    @property
    def has_warnings(self) -> bool:
        return bool(self.parse_errors or self.warnings or len(self.gaps))


def artifact_mappings(ir: Intermediate, files: dict[str, str]) -> list[ArtifactMapping]:
    """Pair every contributing source file with the artifact it ended up in."""
    sections = (
        (AGENTS_ARTIFACT, [item.source_file for item in ir.agents]),
        (COMMANDS_ARTIFACT, [item.source_file for item in ir.commands]),
        (MODELS_ARTIFACT, [item.source_file for item in ir.models]),
        (SETTINGS_ARTIFACT, list(ir.config.sources.values())),
    )
    pairs: set[tuple[str, str]] = set()
    for artifact, sources in sections:
        target = SINGLE_ARTIFACT if SINGLE_ARTIFACT in files else artifact
        if target not in files:
            continue
        pairs.update((source, target) for source in sources if source)
    return [ArtifactMapping(source=source, target=target) for source, target in sorted(pairs)]


class TranspileOrchestrator:
    def __init__(
        self,
        options: TranspileOptions,
        parser: SourceParser | None = None,
        backup_manager: BackupManager | None = None,
        writer: ArtifactWriter | None = None,
        manifest_store: RunManifestStore | None = None,
        rules_loader: Callable[[Path | None], TransformRules] = resolve_rules,
    ) -> None:
        self.options = options
        target = Path(options.target_root)
        self.parser = parser or SourceParser()
        self.backup_manager = backup_manager or BackupManager(target, backups_dir(target))
        self.writer = writer or ArtifactWriter()
        self.manifest_store = manifest_store or RunManifestStore(run_manifest_path(target))
        self.rules_loader = rules_loader

    def _enter(self, result: TranspileResult, stage: PipelineStage) -> None:
        result.stages.append(stage)
        logger.debug("Stage: %s", stage.value)

    def _fail(self, result: TranspileResult, message: str) -> TranspileResult:
        self._enter(result, PipelineStage.FAILED)
        result.success = False
        result.error = message
        if message not in result.errors:
            result.errors.append(message)
        logger.error("%s", message)
        return result

    def run(self) -> TranspileResult:
        options = self.options
        source = Path(options.source_root)
        target = Path(options.target_root)
        result = TranspileResult(dry_run=options.dry_run)

        self._enter(result, PipelineStage.IDEMPOTENCY_CHECK)
        if not source.is_dir():
            return self._fail(result, str(SourceRootError(source)))
        try:
            source_hash = hash_source_tree(source)
        except OSError as exc:
            return self._fail(result, str(SourceRootError(source, str(exc))))
        previous, load_error = self.manifest_store.load()
        if load_error is not None:
            result.warnings.append(load_error)
        decision = check_idempotency(source_hash, previous, options.force, load_error)
        result.reason = decision.reason
        if not decision.should_regenerate and not options.dry_run:
            self._enter(result, PipelineStage.SKIPPED)
            result.success = True
            result.skipped = True
            result.manifest_path = self.manifest_store.path
            logger.info("Skipping: %s", decision.reason)
            return result

        self._enter(result, PipelineStage.PARSE)
        parsed = self.parser.parse(source)
        result.parse_errors = list(parsed.errors)
        result.warnings.extend(parsed.warnings)
        if parsed.ir is None:
            return self._fail(result, "; ".join(str(error) for error in parsed.errors))
        result.ir = parsed.ir

        self._enter(result, PipelineStage.TRANSFORM)
        try:
            rules = self.rules_loader(options.rules_path)
        except TranspileError as exc:
            return self._fail(result, str(exc))
        transformed = Transformer(rules).transform(parsed.ir)
        result.gaps = transformed.gaps
        result.warnings.extend(transformed.warnings)
        if not transformed.success:
            result.errors.extend(str(issue) for issue in transformed.errors)
            return self._fail(result, f"Transform failed with {len(transformed.errors)} errors")
        result.config = transformed.config

        self._enter(result, PipelineStage.EMIT)
        emitted = (emit_single if options.single_file else emit)(transformed.config)
        if not emitted.success:
            result.errors.extend(emitted.errors)
            return self._fail(result, emitted.errors[0])
        result.files = emitted.files

        if options.dry_run:
            self._enter(result, PipelineStage.DONE)
            result.success = True
            logger.info("Dry run: %d files would be written to %s", len(result.files), target)
            return result

        existing_dirs = {
            path
            for path in (target, state_dir(target), backups_dir(target))
            if path.exists()
        }
        try:
            self._enter(result, PipelineStage.BACKUP)
            destinations = [target / name for name in sorted(result.files)]
            if not options.skip_backup:
                result.backup_dir = self.backup_manager.create_snapshot(
                    destinations + [self.manifest_store.path], source=str(source)
                )

            self._enter(result, PipelineStage.WRITE)
            for destination in destinations:
                result.written.append(
                    self.writer.write_text(destination, result.files[destination.name])
                )

            self._enter(result, PipelineStage.PERSIST_MANIFEST)
            manifest = RunManifest(
                last_run=iso_now(),
                source_hash=parsed.ir.source.hash,
                output_hash=files_hash(result.files),
                backup=str(result.backup_dir) if result.backup_dir else None,
                mappings=artifact_mappings(parsed.ir, result.files),
            )
            self.manifest_store.save(manifest, writer=self.writer)
            result.manifest_path = self.manifest_store.path
        except (TranspileError, OSError) as exc:
            self._rollback(result, target, existing_dirs)
            return self._fail(result, str(exc))
        except Exception:
            self._rollback(result, target, existing_dirs)
            raise

        self._enter(result, PipelineStage.DONE)
        result.success = True
        logger.info("Wrote %d files to %s", len(result.written), target)
        return result

    def _rollback(
        self, result: TranspileResult, target: Path, existing_dirs: set[Path]
    ) -> None:
        self._enter(result, PipelineStage.ROLLBACK)
        logger.warning("Rolling back changes in %s", target)
        failures: list[str] = []
        restored = False
        if result.backup_dir is not None:
            try:
                self.backup_manager.restore(result.backup_dir)
                restored = True
                self.backup_manager.remove_snapshot(result.backup_dir)
                result.backup_dir = None
            except (TranspileError, OSError) as exc:
                failures.append(f"Rollback from backup failed: {exc}")
        if not restored:
            failures.extend(self.writer.restore_pre_images())
        failures.extend(self.writer.remove_created())

        for directory in (backups_dir(target), state_dir(target), target):
            if directory in existing_dirs or not directory.is_dir():
                continue
            try:
                if not any(directory.iterdir()):
                    directory.rmdir()
            except OSError as exc:
                failures.append(f"Failed to remove {directory}: {exc}")

        result.rolled_back = not failures
        result.written = []
        for failure in failures:
            logger.error("%s", failure)
            result.errors.append(failure)


def run_transpile(options: TranspileOptions) -> TranspileResult:
    return TranspileOrchestrator(options).run()
