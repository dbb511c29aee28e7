"""Entity store with id-stable reconciliation and a reactive pub/sub pattern."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Union

from .errors import ServerUnreachable, TmuxError
from .models import FocusColumn, Pane, Session, Window
from .tmux import ControlPort

logger = logging.getLogger(__name__)

Entity = Union[Session, Window, Pane]


def reconcile(
    old_items: Sequence[Entity],
    old_index: Optional[int],
    new_items: Sequence[Entity],
) -> Optional[int]:
    """Pick the selection for ``new_items`` given the previous selection.

    The previously selected id wins wherever it moved to. Otherwise the old
    position is kept, clamped to the new length.
    """
    if not new_items:
        return None
    if old_index is not None and 0 <= old_index < len(old_items):
        selected_id = old_items[old_index].id
        for i, item in enumerate(new_items):
            if item.id == selected_id:
                return i
    if old_index is None:
        return 0
    return min(max(old_index, 0), len(new_items) - 1)


def _entity_id(entity: Optional[Entity]) -> Optional[str]:
    return entity.id if entity is not None else None


def _clamp(index: int, length: int) -> Optional[int]:
    if length == 0:
        return None
    return min(max(index, 0), length - 1)


@dataclass(frozen=True)
class StoreSnapshot:
    """Read-only view of the store for the renderer."""
    sessions: tuple[Session, ...] = ()
    windows: tuple[Window, ...] = ()
    panes: tuple[Pane, ...] = ()
    session_index: Optional[int] = None
    window_index: Optional[int] = None
    pane_index: Optional[int] = None
    server_reachable: bool = True

    def items(self, column: FocusColumn) -> tuple[Entity, ...]:
        return {
            FocusColumn.SESSIONS: self.sessions,
            FocusColumn.WINDOWS: self.windows,
            FocusColumn.PANES: self.panes,
        }[column]

    def index(self, column: FocusColumn) -> Optional[int]:
        return {
            FocusColumn.SESSIONS: self.session_index,
            FocusColumn.WINDOWS: self.window_index,
            FocusColumn.PANES: self.pane_index,
        }[column]


# Type alias for store change callback
StoreCallback = Callable[[StoreSnapshot], None]


@dataclass
class _Column:
    items: list = field(default_factory=list)
    index: Optional[int] = None

    def selected(self):
        if self.index is None:
            return None
        return self.items[self.index]


class EntityStore:
    """Owns the sessions, windows and panes collections.

    Windows always belong to the selected session and panes to the selected
    window. Each refresh replaces a collection wholesale, in the order tmux
    reports it, and keeps the selection on the same entity when it survived.
    """

    def __init__(self, control: ControlPort):
        self._control = control
        self._columns = {column: _Column() for column in FocusColumn}
        self._subscribers: list[StoreCallback] = []
        self.server_reachable = True

    @property
    def sessions(self) -> list[Session]:
        return list(self._columns[FocusColumn.SESSIONS].items)

    @property
    def windows(self) -> list[Window]:
        return list(self._columns[FocusColumn.WINDOWS].items)

    @property
    def panes(self) -> list[Pane]:
        return list(self._columns[FocusColumn.PANES].items)

    def index(self, column: FocusColumn) -> Optional[int]:
        return self._columns[column].index

    def selected(self, column: FocusColumn) -> Optional[Entity]:
        return self._columns[column].selected()

    @property
    def selected_session(self) -> Optional[Session]:
        return self.selected(FocusColumn.SESSIONS)

    @property
    def selected_window(self) -> Optional[Window]:
        return self.selected(FocusColumn.WINDOWS)

    @property
    def selected_pane(self) -> Optional[Pane]:
        return self.selected(FocusColumn.PANES)

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            sessions=tuple(self._columns[FocusColumn.SESSIONS].items),
            windows=tuple(self._columns[FocusColumn.WINDOWS].items),
            panes=tuple(self._columns[FocusColumn.PANES].items),
            session_index=self.index(FocusColumn.SESSIONS),
            window_index=self.index(FocusColumn.WINDOWS),
            pane_index=self.index(FocusColumn.PANES),
            server_reachable=self.server_reachable,
        )

    def subscribe(self, callback: StoreCallback) -> Callable[[], None]:
        """Subscribe to store changes. Returns unsubscribe function."""
        self._subscribers.append(callback)
        return lambda: self._subscribers.remove(callback)

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("store subscriber failed")

    def _replace(self, column: FocusColumn, new_items: list) -> None:
        col = self._columns[column]
        col.index = reconcile(col.items, col.index, new_items)
        col.items = list(new_items)

    def _clear(self, column: FocusColumn) -> None:
        self._columns[column] = _Column()

    def _invalidate(self, column: FocusColumn) -> None:
        """Empty ``column`` and every column below it, then notify."""
        columns = list(FocusColumn)
        for below in columns[columns.index(column):]:
            self._clear(below)
        self._notify()

    # --- Refresh ---

    def refresh_sessions(self) -> None:
        """Reload sessions, then windows and panes below the selection.

        A missing server is not an error here: it leaves every collection
        empty and ``server_reachable`` False. When the selection lands on a
        different session, its windows start without a selection.
        """
        try:
            sessions = self._control.list_sessions()
        except ServerUnreachable:
            logger.info("no tmux server running")
            self.server_reachable = False
            self._invalidate(FocusColumn.SESSIONS)
            return

        self.server_reachable = True
        previous = _entity_id(self.selected_session)
        self._replace(FocusColumn.SESSIONS, sessions)
        if _entity_id(self.selected_session) != previous:
            self._clear(FocusColumn.WINDOWS)
            self._clear(FocusColumn.PANES)
        self._reload_windows()

    def refresh_windows(self, session_id: str) -> None:
        """Reload the windows of ``session_id``, then panes.

        If tmux fails, windows and panes are left empty rather than showing
        another session's entries.
        """
        try:
            windows = self._control.list_windows(session_id)
        except TmuxError:
            self._invalidate(FocusColumn.WINDOWS)
            raise
        previous = _entity_id(self.selected_window)
        self._replace(FocusColumn.WINDOWS, windows)
        if _entity_id(self.selected_window) != previous:
            self._clear(FocusColumn.PANES)
        self._reload_panes()

    def refresh_panes(self, window_id: str) -> None:
        """Reload the panes of ``window_id``."""
        try:
            panes = self._control.list_panes(window_id)
        except TmuxError:
            self._invalidate(FocusColumn.PANES)
            raise
        self._replace(FocusColumn.PANES, panes)
        self._notify()

    def refresh_all(self) -> None:
        self.refresh_sessions()

    def _reload_windows(self) -> None:
        session = self.selected_session
        if session is None:
            self._invalidate(FocusColumn.WINDOWS)
            return
        self.refresh_windows(session.id)

    def _reload_panes(self) -> None:
        window = self.selected_window
        if window is None:
            self._invalidate(FocusColumn.PANES)
            return
        self.refresh_panes(window.id)

    # --- Selection ---

    def select(self, column: FocusColumn, index: int) -> None:
        """Select ``index`` in ``column`` (clamped) and reload the levels below."""
        col = self._columns[column]
        new_index = _clamp(index, len(col.items))
        if new_index == col.index:
            return
        previous = col.selected()
        col.index = new_index
        current = col.selected()
        if column is FocusColumn.SESSIONS:
            # Fresh session: drop the old window selection entirely
            self._clear(FocusColumn.WINDOWS)
            self._clear(FocusColumn.PANES)
            self._reload_windows()
        elif column is FocusColumn.WINDOWS:
            self._clear(FocusColumn.PANES)
            self._reload_panes()
        else:
            self._notify()
        logger.debug("selected %s: %s -> %s", column.value,
                     getattr(previous, "id", None), getattr(current, "id", None))

    def move(self, column: FocusColumn, delta: int) -> None:
        """Move the selection in ``column`` by ``delta``, without wrapping."""
        col = self._columns[column]
        if not col.items:
            return
        if col.index is None:
            self.select(column, 0)
        else:
            self.select(column, col.index + delta)
