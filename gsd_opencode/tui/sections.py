from typing import Iterable, Optional

from rich.markup import escape
from rich.panel import Panel

from gsd_opencode.tui.enums import UIStyle
from gsd_opencode.utils import compact_home_paths_in_text


class UISection:
    @staticmethod
    def wrap(title: str, body, style: str = UIStyle.BLUE.value, subtitle: Optional[str] = None) -> Panel:
        return Panel(
            body,
            title=title,
            title_align="left",
            subtitle=subtitle,
            border_style=style,
            padding=(0, 1),
        )

    @staticmethod
    def note(title: str, body: str, style: str = UIStyle.DIM.value) -> Panel:
        return Panel(body, title=title, title_align="left", border_style=style, padding=(0, 1))

    @staticmethod
    def bullets(title: str, items: Iterable[object], style: str, header: Optional[str] = None) -> Panel:
        """One item per line; home paths are shortened and markup is escaped."""
        lines = [header] if header else []
        lines += [f"- {escape(compact_home_paths_in_text(str(item)))}" for item in items]
        return UISection.note(title, "\n".join(lines), style=style)
