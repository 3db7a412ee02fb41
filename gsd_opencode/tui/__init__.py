from gsd_opencode.tui.renderers import TranspileConsoleUI

__all__ = ["TranspileConsoleUI"]
