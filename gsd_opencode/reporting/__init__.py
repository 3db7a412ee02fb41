from gsd_opencode.reporting.markdown import REPORT_FILENAME, render_markdown, write_markdown
from gsd_opencode.reporting.models import EntityRow, EntityStatus, ExitCode, ReportSummary
from gsd_opencode.reporting.summary import CATEGORY_TITLES, build_summary, exit_code_for

__all__ = [
    "CATEGORY_TITLES",
    "EntityRow",
    "EntityStatus",
    "ExitCode",
    "REPORT_FILENAME",
    "ReportSummary",
    "build_summary",
    "exit_code_for",
    "render_markdown",
    "write_markdown",
]
