"""Data models for the tmux manager."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class FocusColumn(Enum):
    """Which of the three lists receives navigation keys."""
    SESSIONS = "sessions"
    WINDOWS = "windows"
    PANES = "panes"

    def next(self) -> "FocusColumn":
        """Get the next column, wrapping around."""
        columns = list(FocusColumn)
        return columns[(columns.index(self) + 1) % len(columns)]

    def previous(self) -> "FocusColumn":
        """Get the previous column, wrapping around."""
        columns = list(FocusColumn)
        return columns[(columns.index(self) - 1) % len(columns)]

    @property
    def title(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class Session:
    """A tmux session."""
    id: str  # Stable ID like $1
    name: str
    window_count: int
    created_at: int  # Unix timestamp
    attached: bool

    @property
    def created(self) -> datetime:
        return datetime.fromtimestamp(self.created_at)


@dataclass(frozen=True)
class Window:
    """A tmux window, scoped to one session."""
    id: str  # Stable ID like @3
    index: int
    name: str
    layout: str  # Opaque tmux layout string
    active: bool
    pane_count: int


@dataclass(frozen=True)
class Pane:
    """A tmux pane, scoped to one window."""
    id: str  # Stable ID like %5
    index: int
    command: str
    cwd: str
    width: int
    height: int
    active: bool
