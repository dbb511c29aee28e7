"""Prompt bar for the Input and Confirm modes, plus the shortcut hint line."""

from rich.text import Text
from textual.widgets import Static

from ..controller import Confirm, Input, Mode
from ..models import FocusColumn


def shortcut_hint(focus: FocusColumn, mode: Mode) -> str:
    """Key help for the current focus column and mode."""
    if isinstance(mode, Input):
        return "Enter: Confirm | Esc: Cancel | Backspace: Delete"
    if isinstance(mode, Confirm):
        return "y/Enter: Confirm | n/Esc: Cancel"
    common = "NAV: Arrows/jk/Tab | q: Quit | r: Refresh"
    if focus is FocusColumn.SESSIONS:
        return f"{common} | Enter: Attach | n: New | R: Rename | d: Del"
    if focus is FocusColumn.WINDOWS:
        return f"{common} | Enter: Attach | n: New Win | R: Rename | d: Del Win"
    return f"{common} | n: Split Pane | d: Kill Pane"


class PromptBar(Static):
    """Docked prompt, visible only outside Normal mode."""

    def __init__(self) -> None:
        super().__init__("", id="prompt-bar")

    def show(self, mode: Mode) -> None:
        if isinstance(mode, Input):
            text = Text(f" {mode.purpose.title}: ", style="bold")
            text.append(mode.buffer)
            text.append("█", style="blink")
            self.update(text)
            self.set_classes("input")
        elif isinstance(mode, Confirm):
            self.update(Text(f" {mode.action.prompt} (y/n)", style="bold"))
            self.set_classes("confirm")
        else:
            self.update("")
            self.set_classes("")
