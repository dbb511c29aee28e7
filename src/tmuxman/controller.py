"""Focus and mode state machine.

The controller turns key presses into either local state changes (focus,
selection, mode) or calls on the tmux control port followed by a store
refresh. It is the boundary where tmux failures become status messages:
whatever fails, the mode goes back to Normal and navigation keeps working.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .errors import InvalidState, TmuxError, ToolUnavailable
from .models import FocusColumn
from .store import EntityStore
from .tmux import ControlPort

logger = logging.getLogger(__name__)


class Signal(Enum):
    """What the caller should do after a key was handled."""
    CONTINUE = "continue"
    QUIT = "quit"
    ATTACH = "attach"  # Release the terminal, then call hand_off()


class InputPurpose(Enum):
    """What a committed input buffer is used for."""
    CREATE_SESSION = "create_session"
    RENAME_SESSION = "rename_session"
    CREATE_WINDOW = "create_window"
    RENAME_WINDOW = "rename_window"

    @property
    def title(self) -> str:
        titles = {
            InputPurpose.CREATE_SESSION: "New Session Name",
            InputPurpose.RENAME_SESSION: "Rename Session",
            InputPurpose.CREATE_WINDOW: "New Window Name",
            InputPurpose.RENAME_WINDOW: "Rename Window",
        }
        return titles[self]


class ActionKind(Enum):
    """Destructive actions that must pass through Confirm."""
    DELETE_SESSION = "delete_session"
    DELETE_WINDOW = "delete_window"
    DELETE_PANE = "delete_pane"


@dataclass(frozen=True)
class PendingAction:
    kind: ActionKind
    target_id: str
    label: str  # Shown in the confirmation prompt

    @property
    def prompt(self) -> str:
        noun = self.kind.value.split("_")[1]
        return f"Delete {noun} {self.label}?"


@dataclass(frozen=True)
class Normal:
    """Navigation mode."""


@dataclass
class Input:
    """Text entry for a create or rename.

    ``target_id`` is the entity selected when the mode was entered: the
    session for CREATE_WINDOW and RENAME_SESSION, the window for
    RENAME_WINDOW, unused for CREATE_SESSION.
    """
    purpose: InputPurpose
    buffer: str = ""
    target_id: Optional[str] = None


@dataclass(frozen=True)
class Confirm:
    """Yes/no gate in front of a destructive action."""
    action: PendingAction


Mode = Union[Normal, Input, Confirm]


@dataclass(frozen=True)
class StatusMessage:
    text: str
    error: bool = False


@dataclass(frozen=True)
class _AttachTarget:
    target: str
    window_id: Optional[str] = None
    pane_id: Optional[str] = None


class Controller:
    """Interaction state machine over (focus column, mode)."""

    def __init__(self, store: EntityStore, control: ControlPort):
        self.store = store
        self.control = control
        self.focus = FocusColumn.SESSIONS
        self.mode: Mode = Normal()
        self.status: Optional[StatusMessage] = None
        self._attach: Optional[_AttachTarget] = None

    @property
    def attach_target(self) -> Optional[str]:
        return self._attach.target if self._attach else None

    def _set_status(self, text: str, error: bool = False) -> None:
        self.status = StatusMessage(text, error)

    def pop_status(self) -> Optional[StatusMessage]:
        """Return the pending status message once."""
        status, self.status = self.status, None
        return status

    # --- Entry points ---

    def startup(self) -> None:
        """Initial load of all three collections."""
        self._guarded(self._refresh)

    def auto_refresh(self) -> None:
        """Background refresh; skipped while a prompt is open."""
        if isinstance(self.mode, Normal):
            self._guarded(lambda: self._refresh(report_empty=False))

    def handle_key(self, key: str, character: Optional[str] = None) -> Signal:
        """Process one key press completely.

        Args:
            key: Textual key name (e.g. "tab", "shift+tab", "enter", "R")
            character: printable character for the key, if any

        Raises:
            ToolUnavailable: tmux vanished; there is nothing left to drive
        """
        try:
            if isinstance(self.mode, Input):
                self._handle_input(self.mode, key, character)
            elif isinstance(self.mode, Confirm):
                self._handle_confirm(self.mode, key)
            else:
                return self._handle_normal(key)
        except ToolUnavailable:
            raise
        except TmuxError as e:
            self._fail(e)
        return Signal.CONTINUE

    def hand_off(self) -> None:
        """Give the terminal to tmux for the recorded attach target.

        Window targets first make the selected window and pane current, so
        tmux opens where the user was looking. Call only after the UI has
        released the terminal. Outside tmux this does not return.
        """
        if self._attach is None:
            raise InvalidState("nothing selected to attach to")
        attach, self._attach = self._attach, None
        if attach.window_id:
            self.control.select_window(attach.window_id)
        if attach.pane_id:
            self.control.select_pane(attach.pane_id)
        logger.info("attaching to %s", attach.target)
        self.control.attach(attach.target)

    def _guarded(self, fn) -> None:
        try:
            fn()
        except ToolUnavailable:
            raise
        except TmuxError as e:
            self._fail(e)

    def _fail(self, error: TmuxError) -> None:
        logger.warning("%s: %s", type(error).__name__, error)
        self.mode = Normal()
        self._set_status(str(error), error=True)

    def _refresh(self, report_empty: bool = True) -> None:
        self.store.refresh_all()
        if report_empty and not self.store.sessions:
            if self.store.server_reachable:
                self._set_status("No sessions")
            else:
                self._set_status("No tmux server running")

    # --- Normal mode ---

    def _handle_normal(self, key: str) -> Signal:
        if key in ("tab", "right"):
            self.focus = self.focus.next()
        elif key in ("shift+tab", "left"):
            self.focus = self.focus.previous()
        elif key in ("down", "j"):
            self.store.move(self.focus, 1)
        elif key in ("up", "k"):
            self.store.move(self.focus, -1)
        elif key == "r":
            self._refresh()
        elif key == "q":
            return Signal.QUIT
        elif key == "enter":
            return self._begin_attach()
        elif key == "n":
            self._begin_new()
        elif key in ("R", "shift+r"):
            self._begin_rename()
        elif key == "d":
            self._begin_delete()
        return Signal.CONTINUE

    def _begin_attach(self) -> Signal:
        session = self.store.selected_session
        if session is None:
            return Signal.CONTINUE
        if self.focus is FocusColumn.SESSIONS:
            self._attach = _AttachTarget(session.id)
        elif self.focus is FocusColumn.WINDOWS:
            window = self.store.selected_window
            if window is None:
                return Signal.CONTINUE
            pane = self.store.selected_pane
            self._attach = _AttachTarget(
                f"{session.id}:{window.id}", window.id, pane.id if pane else None)
        else:
            return Signal.CONTINUE
        return Signal.ATTACH

    def _begin_new(self) -> None:
        if self.focus is FocusColumn.SESSIONS:
            self.mode = Input(InputPurpose.CREATE_SESSION)
        elif self.focus is FocusColumn.WINDOWS:
            session = self.store.selected_session
            if session is not None:
                self.mode = Input(InputPurpose.CREATE_WINDOW, target_id=session.id)
        else:
            pane = self.store.selected_pane
            if pane is not None:
                self.control.split_pane(pane.id)
                self.store.refresh_all()
                self._set_status(f"Split pane {pane.id}")

    def _begin_rename(self) -> None:
        if self.focus is FocusColumn.SESSIONS:
            session = self.store.selected_session
            if session is not None:
                self.mode = Input(InputPurpose.RENAME_SESSION, session.name, session.id)
        elif self.focus is FocusColumn.WINDOWS:
            if self.store.selected_session is None:
                return
            window = self.store.selected_window
            if window is not None:
                self.mode = Input(InputPurpose.RENAME_WINDOW, window.name, window.id)

    def _begin_delete(self) -> None:
        if self.focus is FocusColumn.SESSIONS:
            session = self.store.selected_session
            if session is not None:
                self.mode = Confirm(PendingAction(
                    ActionKind.DELETE_SESSION, session.id, f"'{session.name}'"))
        elif self.focus is FocusColumn.WINDOWS:
            if self.store.selected_session is None:
                return
            window = self.store.selected_window
            if window is not None:
                self.mode = Confirm(PendingAction(
                    ActionKind.DELETE_WINDOW, window.id, f"'{window.name}'"))
        else:
            pane = self.store.selected_pane
            if pane is not None:
                self.mode = Confirm(PendingAction(
                    ActionKind.DELETE_PANE, pane.id, f"{pane.id} ({pane.command})"))

    # --- Input mode ---

    def _handle_input(self, mode: Input, key: str, character: Optional[str]) -> None:
        if key == "enter":
            self.mode = Normal()
            self._commit_input(mode)
        elif key == "escape":
            self.mode = Normal()
        elif key == "backspace":
            mode.buffer = mode.buffer[:-1]
        elif character and len(character) == 1 and character.isprintable():
            mode.buffer += character

    def _commit_input(self, mode: Input) -> None:
        name = mode.buffer.strip()
        if not name:
            self._set_status("Name cannot be empty", error=True)
            return

        purpose = mode.purpose
        if purpose is InputPurpose.CREATE_SESSION:
            self.control.create_session(name)
            message = f"Created session '{name}'"
        elif purpose is InputPurpose.RENAME_SESSION:
            self.control.rename_session(self._require(mode.target_id), name)
            message = f"Renamed session to '{name}'"
        elif purpose is InputPurpose.CREATE_WINDOW:
            self.control.create_window(self._require(mode.target_id), name)
            message = f"Created window '{name}'"
        else:
            self.control.rename_window(self._require(mode.target_id), name)
            message = f"Renamed window to '{name}'"
        logger.info(message)

        self._refresh(report_empty=False)
        self._set_status(message)

    @staticmethod
    def _require(target_id: Optional[str]) -> str:
        if target_id is None:
            raise InvalidState("the selection changed before the action ran")
        return target_id

    # --- Confirm mode ---

    def _handle_confirm(self, mode: Confirm, key: str) -> None:
        if key in ("y", "enter"):
            self.mode = Normal()
            self._execute(mode.action)
        elif key in ("n", "escape"):
            self.mode = Normal()

    def _execute(self, action: PendingAction) -> None:
        if action.kind is ActionKind.DELETE_SESSION:
            self.control.kill_session(action.target_id)
            message = f"Killed session {action.label}"
        elif action.kind is ActionKind.DELETE_WINDOW:
            self.control.kill_window(action.target_id)
            message = f"Killed window {action.label}"
        else:
            self.control.kill_pane(action.target_id)
            message = f"Killed pane {action.label}"
        logger.info(message)

        self._refresh(report_empty=False)
        self._set_status(message)
