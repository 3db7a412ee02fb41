import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from gsd_opencode.backup.manager import BackupManager
from gsd_opencode.detection import detect_source, detect_target
from gsd_opencode.errors import TranspileError
from gsd_opencode.orchestrator import TranspileOptions, TranspileOrchestrator
from gsd_opencode.paths import (
    backups_dir,
    default_rules_path,
    default_source_root,
    default_target_root,
)
from gsd_opencode.reporting.markdown import write_markdown
from gsd_opencode.reporting.models import ExitCode
from gsd_opencode.reporting.summary import exit_code_for
from gsd_opencode.tui import TranspileConsoleUI
from gsd_opencode.utils import iso_now

logger = logging.getLogger(__name__)

_LOG_HANDLER: Optional[logging.Handler] = None


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    global _LOG_HANDLER
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    package_logger = logging.getLogger("gsd_opencode")
    if _LOG_HANDLER is not None:
        package_logger.removeHandler(_LOG_HANDLER)
    _LOG_HANDLER = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=verbose,
    )
    package_logger.addHandler(_LOG_HANDLER)
    package_logger.setLevel(level)


def _path_option(*names: str, help: str):
    return click.option(*names, type=click.Path(path_type=Path), default=None, help=help)


def _source_option():
    return _path_option("--source", "-s", help="GSD source directory.")


def _target_option():
    return _path_option("--target", "-t", help="OpenCode configuration directory.")


def _resolve_target(target: Optional[Path]) -> Path:
    return (target or default_target_root()).expanduser()


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Transpile GSD context into OpenCode configuration."""
    ctx.obj = {}


@cli.command(help="Parse the GSD source and write OpenCode configuration.")
@_source_option()
@_target_option()
@_path_option("--rules", "-r", help="Transform rules override file.")
@click.option("--force", "-f", is_flag=True, help="Regenerate even when the source is unchanged.")
@click.option("--no-backup", "skip_backup", is_flag=True, help="Do not snapshot existing files.")
@click.option("--dry-run", "-n", is_flag=True, help="Run through emit without writing anything.")
@click.option("--single-file", is_flag=True, help="Emit one consolidated opencode.json.")
@_path_option("--report", help="Also save a markdown report to this path.")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging and gap details.")
@click.option("--quiet", "-q", is_flag=True, help="Only print the summary.")
def transpile(
    source: Optional[Path],
    target: Optional[Path],
    rules: Optional[Path],
    force: bool,
    skip_backup: bool,
    dry_run: bool,
    single_file: bool,
    report: Optional[Path],
    verbose: bool,
    quiet: bool,
) -> None:
    if verbose and quiet:
        raise click.UsageError("--verbose and --quiet are mutually exclusive.")
    configure_logging(verbose=verbose, quiet=quiet)
    ui = TranspileConsoleUI(Console())

    target_root = _resolve_target(target)
    options = TranspileOptions(
        source_root=(source or default_source_root()).expanduser(),
        target_root=target_root,
        rules_path=(rules or default_rules_path()).expanduser(),
        force=force,
        skip_backup=skip_backup,
        dry_run=dry_run,
        single_file=single_file,
    )
    result = TranspileOrchestrator(options).run()
    ui.render_result(result, target_root, quiet=quiet, verbose=verbose)

    if report is not None:
        try:
            saved = write_markdown(result, report.expanduser(), generated_at=iso_now())
        except OSError as exc:
            raise click.ClickException(f"Failed to save report: {exc}")
        ui.render_report_saved(saved)

    code = exit_code_for(result)
    if code != ExitCode.SUCCESS:
        raise click.exceptions.Exit(int(code))


@cli.command(help="Check the GSD source and OpenCode target directories.")
@_source_option()
@_target_option()
def detect(source: Optional[Path], target: Optional[Path]) -> None:
    ui = TranspileConsoleUI(Console())
    source_info = detect_source(source.expanduser() if source else None)
    target_info = detect_target(target.expanduser() if target else None)
    ui.render_detection(source_info, target_info)
    if not source_info.valid:
        raise click.exceptions.Exit(int(ExitCode.ERROR))


@cli.command(help="List backup snapshots, newest first.")
@_target_option()
def backups(target: Optional[Path]) -> None:
    ui = TranspileConsoleUI(Console())
    target_root = _resolve_target(target)
    manager = BackupManager(target_root, backups_dir(target_root))
    ui.render_snapshots(manager.list_snapshots())


@cli.command(help="Restore target files from a backup snapshot (default: latest).")
@click.argument("snapshot", required=False)
@_target_option()
def restore(snapshot: Optional[str], target: Optional[Path]) -> None:
    ui = TranspileConsoleUI(Console())
    target_root = _resolve_target(target)
    manager = BackupManager(target_root, backups_dir(target_root))

    if snapshot is None:
        snapshot_dir = manager.latest_snapshot()
        if snapshot_dir is None:
            raise click.ClickException("No backups found.")
    else:
        snapshot_dir = Path(snapshot).expanduser()
        if not snapshot_dir.is_dir():
            snapshot_dir = manager.backups_dir / snapshot
        if not snapshot_dir.is_dir():
            raise click.ClickException(f"Backup not found: {snapshot}")

    try:
        restored = manager.restore(snapshot_dir)
    except TranspileError as exc:
        raise click.ClickException(str(exc))
    ui.render_restored(snapshot_dir, restored)


def main() -> int:
    try:
        code = cli(standalone_mode=False)
    except click.exceptions.Abort:
        return int(ExitCode.ERROR)
    except click.ClickException as exc:
        exc.show()
        return int(ExitCode.ERROR)
    except Exception:
        logger.exception("Unexpected error")
        return int(ExitCode.FATAL)
    # Exit codes raised by commands come back as the return value here.
    return code if isinstance(code, int) else int(ExitCode.SUCCESS)


if __name__ == "__main__":
    raise SystemExit(main())
