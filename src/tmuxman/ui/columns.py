"""Column widgets for the sessions / windows / panes lists."""

from typing import Optional, Sequence

from rich.text import Text
from textual.widgets import Static

from ..models import FocusColumn, Pane, Session, Window
from ..theme import get_colors


def _session_lines(session: Session) -> Text:
    c = get_colors()
    text = Text()
    text.append("● " if session.attached else "  ", style=c.success)
    text.append(session.name, style="bold")
    text.append(f" ({session.window_count}) ")
    text.append(f"[{session.created:%Y-%m-%d %H:%M}]", style=c.text_muted)
    return text


def _window_lines(window: Window) -> Text:
    c = get_colors()
    text = Text()
    text.append("* " if window.active else "  ", style=c.primary)
    text.append(f"{window.index}: {window.name}")
    text.append(f" [{window.pane_count}] ", style=c.text_muted)
    text.append(window.layout, style=c.text_muted)
    return text


def _pane_lines(pane: Pane) -> Text:
    c = get_colors()
    text = Text()
    text.append("* " if pane.active else "  ", style=c.primary)
    text.append(f"{pane.index}: {pane.id}\n")
    text.append(f"   Cmd: {pane.command}\n", style=c.secondary)
    text.append(f"   Path: {pane.cwd}\n", style=c.text_muted)
    text.append(f"   Size: {pane.width}x{pane.height}", style=c.text_muted)
    return text


_RENDERERS = {
    FocusColumn.SESSIONS: _session_lines,
    FocusColumn.WINDOWS: _window_lines,
    FocusColumn.PANES: _pane_lines,
}


class EntityColumn(Static):
    """One bordered list; the selected entry is highlighted."""

    def __init__(self, column: FocusColumn) -> None:
        super().__init__("", id=f"{column.value}-column", classes="entity-column")
        self.column = column
        self.border_title = f" {column.title} "

    def show(self, items: Sequence, index: Optional[int], focused: bool) -> None:
        """Render ``items`` with ``index`` highlighted."""
        self.set_class(focused, "focused")
        if not items:
            self.update(Text("(none)", style=get_colors().text_muted))
            return

        render = _RENDERERS[self.column]
        body = Text()
        for i, item in enumerate(items):
            entry = render(item)
            if i == index:
                entry.stylize("reverse" if focused else f"on {get_colors().selection_bg}")
            if i:
                body.append("\n")
            body.append_text(entry)
        self.update(body)
