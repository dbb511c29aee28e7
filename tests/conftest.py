"""Pytest configuration and a recording fake of the tmux control port."""

import pytest

from tmuxman.controller import Controller
from tmuxman.errors import ServerUnreachable
from tmuxman.models import Pane, Session, Window
from tmuxman.store import EntityStore

MUTATIONS = {
    "create_session", "rename_session", "kill_session",
    "create_window", "rename_window", "kill_window",
    "split_pane", "kill_pane", "select_window", "select_pane", "attach",
}


class FakeControl:
    """In-memory tmux server that records every call.

    ``fail[name] = exc`` makes the next call to ``name`` raise ``exc``.
    """

    def __init__(self) -> None:
        self.sessions: list[Session] = []
        self.windows: dict[str, list[Window]] = {}
        self.panes: dict[str, list[Pane]] = {}
        self.server_running = True
        self.calls: list[tuple] = []
        self.fail: dict[str, Exception] = {}
        self._next = 100

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail:
            raise self.fail.pop(name)

    def calls_to(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]

    @property
    def mutations(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in MUTATIONS]

    def _new_id(self, prefix: str) -> str:
        self._next += 1
        return f"{prefix}{self._next}"

    # --- Read operations ---

    def list_sessions(self) -> list[Session]:
        self._record("list_sessions")
        if not self.server_running:
            raise ServerUnreachable("no server running on /tmp/tmux-1000/default")
        return list(self.sessions)

    def list_windows(self, session_id: str) -> list[Window]:
        self._record("list_windows", session_id)
        return list(self.windows.get(session_id, []))

    def list_panes(self, window_id: str) -> list[Pane]:
        self._record("list_panes", window_id)
        return list(self.panes.get(window_id, []))

    # --- Write operations ---

    def create_session(self, name: str) -> None:
        self._record("create_session", name)
        self.sessions.append(Session(self._new_id("$"), name, 1, 1700000000, False))

    def rename_session(self, session_id: str, name: str) -> None:
        self._record("rename_session", session_id, name)
        self.sessions = [
            Session(s.id, name, s.window_count, s.created_at, s.attached)
            if s.id == session_id else s
            for s in self.sessions
        ]

    def kill_session(self, session_id: str) -> None:
        self._record("kill_session", session_id)
        self.sessions = [s for s in self.sessions if s.id != session_id]

    def create_window(self, session_id: str, name: str) -> None:
        self._record("create_window", session_id, name)
        windows = self.windows.setdefault(session_id, [])
        windows.append(Window(self._new_id("@"), len(windows), name, "layout", False, 1))

    def rename_window(self, window_id: str, name: str) -> None:
        self._record("rename_window", window_id, name)
        for session_id, windows in self.windows.items():
            self.windows[session_id] = [
                Window(w.id, w.index, name, w.layout, w.active, w.pane_count)
                if w.id == window_id else w
                for w in windows
            ]

    def kill_window(self, window_id: str) -> None:
        self._record("kill_window", window_id)
        for session_id, windows in self.windows.items():
            self.windows[session_id] = [w for w in windows if w.id != window_id]

    def split_pane(self, pane_id: str) -> None:
        self._record("split_pane", pane_id)
        for window_id, panes in self.panes.items():
            if any(p.id == pane_id for p in panes):
                panes.append(Pane(self._new_id("%"), len(panes), "zsh", "/tmp", 40, 12, False))

    def kill_pane(self, pane_id: str) -> None:
        self._record("kill_pane", pane_id)
        for window_id, panes in self.panes.items():
            self.panes[window_id] = [p for p in panes if p.id != pane_id]

    def select_window(self, window_id: str) -> None:
        self._record("select_window", window_id)

    def select_pane(self, pane_id: str) -> None:
        self._record("select_pane", pane_id)

    def attach(self, target: str) -> None:
        self._record("attach", target)


def make_server() -> FakeControl:
    """Two sessions; "main" has two windows, the first of which has two panes."""
    fake = FakeControl()
    fake.sessions = [
        Session("$1", "main", 2, 1700000000, True),
        Session("$2", "work", 1, 1700000100, False),
    ]
    fake.windows = {
        "$1": [
            Window("@1", 0, "editor", "b25f,80x24,0,0,1", True, 2),
            Window("@2", 1, "logs", "b25f,80x24,0,0,2", False, 1),
        ],
        "$2": [Window("@3", 0, "shell", "b25f,80x24,0,0,3", True, 1)],
    }
    fake.panes = {
        "@1": [
            Pane("%1", 0, "vim", "/home/dev/project", 80, 12, True),
            Pane("%2", 1, "zsh", "/home/dev/project", 80, 11, False),
        ],
        "@2": [Pane("%3", 0, "tail", "/var/log", 80, 24, True)],
        "@3": [Pane("%4", 0, "zsh", "/home/dev", 80, 24, True)],
    }
    return fake


@pytest.fixture
def fake() -> FakeControl:
    return make_server()


@pytest.fixture
def store(fake) -> EntityStore:
    store = EntityStore(fake)
    store.refresh_all()
    return store


@pytest.fixture
def controller(fake) -> Controller:
    controller = Controller(EntityStore(fake), fake)
    controller.startup()
    fake.calls.clear()
    return controller
