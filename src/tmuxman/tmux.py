"""tmux integration module for tmuxman.

Every interaction with tmux goes through :class:`TmuxControl`, which runs a
fixed vocabulary of tmux commands and parses their ``-F`` output into
entities. List output uses ``FIELD_SEP`` between columns, in the orders
given by ``SESSION_FIELDS``, ``WINDOW_FIELDS`` and ``PANE_FIELDS``.
"""

import logging
import os
import shutil
import subprocess
from typing import Optional, Protocol

from .errors import (
    CommandFailed,
    ParseError,
    ServerUnreachable,
    ToolUnavailable,
)
from .models import Pane, Session, Window

logger = logging.getLogger(__name__)

# ASCII unit separator: a control character, so it never shows up in a name
# typed through the UI
FIELD_SEP = "\x1f"

SESSION_FIELDS = [
    "#{session_id}", "#{session_name}", "#{session_windows}",
    "#{session_created}", "#{session_attached}",
]
WINDOW_FIELDS = [
    "#{window_id}", "#{window_index}", "#{window_name}",
    "#{window_layout}", "#{window_active}", "#{window_panes}",
]
PANE_FIELDS = [
    "#{pane_id}", "#{pane_index}", "#{pane_current_command}",
    "#{pane_current_path}", "#{pane_width}", "#{pane_height}", "#{pane_active}",
]

# stderr fragments tmux prints when there is no server to talk to
_NO_SERVER_MARKERS = (
    "no server running",
    "error connecting to",
    "failed to connect to server",
)


def _split(line: str, count: int, sep: str) -> list[str]:
    """Split a line into at least ``count`` fields; extras are ignored."""
    parts = line.split(sep)
    if len(parts) < count:
        raise ParseError(line, f"expected {count} fields, got {len(parts)}")
    return parts


def _to_int(value: str, line: str, field: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ParseError(line, f"{field} is not an integer") from None


def _to_flag(value: str, line: str, field: str) -> bool:
    return _to_int(value, line, field) > 0


def _lines(output: str) -> list[str]:
    return [line for line in output.splitlines() if line.strip()]


def parse_sessions(output: str, sep: str = FIELD_SEP) -> list[Session]:
    """Parse ``list-sessions`` output."""
    sessions = []
    for line in _lines(output):
        parts = _split(line, len(SESSION_FIELDS), sep)
        sessions.append(Session(
            id=parts[0],
            name=parts[1],
            window_count=_to_int(parts[2], line, "session_windows"),
            created_at=_to_int(parts[3], line, "session_created"),
            attached=_to_flag(parts[4], line, "session_attached"),
        ))
    return sessions


def parse_windows(output: str, sep: str = FIELD_SEP) -> list[Window]:
    """Parse ``list-windows`` output."""
    windows = []
    for line in _lines(output):
        parts = _split(line, len(WINDOW_FIELDS), sep)
        windows.append(Window(
            id=parts[0],
            index=_to_int(parts[1], line, "window_index"),
            name=parts[2],
            layout=parts[3],
            active=_to_flag(parts[4], line, "window_active"),
            pane_count=_to_int(parts[5], line, "window_panes"),
        ))
    return windows


def parse_panes(output: str, sep: str = FIELD_SEP) -> list[Pane]:
    """Parse ``list-panes`` output."""
    panes = []
    for line in _lines(output):
        parts = _split(line, len(PANE_FIELDS), sep)
        panes.append(Pane(
            id=parts[0],
            index=_to_int(parts[1], line, "pane_index"),
            command=parts[2],
            cwd=parts[3],
            width=_to_int(parts[4], line, "pane_width"),
            height=_to_int(parts[5], line, "pane_height"),
            active=_to_flag(parts[6], line, "pane_active"),
        ))
    return panes


def format_session(session: Session, sep: str = FIELD_SEP) -> str:
    """Serialize a session back into ``list-sessions`` column order."""
    return sep.join([
        session.id, session.name, str(session.window_count),
        str(session.created_at), "1" if session.attached else "0",
    ])


def format_window(window: Window, sep: str = FIELD_SEP) -> str:
    """Serialize a window back into ``list-windows`` column order."""
    return sep.join([
        window.id, str(window.index), window.name, window.layout,
        "1" if window.active else "0", str(window.pane_count),
    ])


def format_pane(pane: Pane, sep: str = FIELD_SEP) -> str:
    """Serialize a pane back into ``list-panes`` column order."""
    return sep.join([
        pane.id, str(pane.index), pane.command, pane.cwd,
        str(pane.width), str(pane.height), "1" if pane.active else "0",
    ])


def is_tmux_available(binary: str = "tmux") -> bool:
    """Check if tmux is installed."""
    return shutil.which(binary) is not None


def is_inside_tmux() -> bool:
    """Check if we're running inside tmux."""
    return os.environ.get("TMUX") is not None


class ControlPort(Protocol):
    """Operations the rest of tmuxman needs from tmux.

    Implemented by :class:`TmuxControl`; tests substitute a recording fake.
    """

    def list_sessions(self) -> list[Session]: ...

    def list_windows(self, session_id: str) -> list[Window]: ...

    def list_panes(self, window_id: str) -> list[Pane]: ...

    def create_session(self, name: str) -> None: ...

    def rename_session(self, session_id: str, name: str) -> None: ...

    def kill_session(self, session_id: str) -> None: ...

    def create_window(self, session_id: str, name: str) -> None: ...

    def rename_window(self, window_id: str, name: str) -> None: ...

    def kill_window(self, window_id: str) -> None: ...

    def split_pane(self, pane_id: str) -> None: ...

    def kill_pane(self, pane_id: str) -> None: ...

    def select_window(self, window_id: str) -> None: ...

    def select_pane(self, pane_id: str) -> None: ...

    def attach(self, target: str) -> None: ...


class TmuxControl:
    """Runs tmux commands and parses their output.

    Holds no cache: every list call asks tmux again.
    """

    def __init__(
        self,
        binary: str = "tmux",
        socket_name: Optional[str] = None,
        socket_path: Optional[str] = None,
    ) -> None:
        """Initialize TmuxControl.

        Args:
            binary: tmux executable name or path
            socket_name: server socket name (tmux -L)
            socket_path: server socket path (tmux -S), wins over socket_name
        """
        self.binary = binary
        self.socket_name = socket_name
        self.socket_path = socket_path

    def _base_command(self) -> list[str]:
        cmd = [self.binary]
        if self.socket_path:
            cmd.extend(["-S", self.socket_path])
        elif self.socket_name:
            cmd.extend(["-L", self.socket_name])
        return cmd

    def run(self, *args: str) -> str:
        """Execute a tmux command and return its stdout.

        Raises:
            ToolUnavailable: tmux could not be executed
            ServerUnreachable: no server is running
            CommandFailed: any other non-zero exit
        """
        cmd = self._base_command() + list(args)
        logger.debug("run: %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except (FileNotFoundError, PermissionError) as e:
            raise ToolUnavailable(f"cannot execute {self.binary}: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr.strip()
            logger.warning("tmux command failed: %s: %s", " ".join(cmd), stderr)
            if any(marker in stderr for marker in _NO_SERVER_MARKERS):
                raise ServerUnreachable(stderr)
            raise CommandFailed(cmd, stderr)
        return result.stdout

    # --- Read operations ---

    def list_sessions(self) -> list[Session]:
        """List all sessions on the server."""
        output = self.run("list-sessions", "-F", FIELD_SEP.join(SESSION_FIELDS))
        return parse_sessions(output)

    def list_windows(self, session_id: str) -> list[Window]:
        """List the windows of one session."""
        output = self.run(
            "list-windows", "-t", session_id, "-F", FIELD_SEP.join(WINDOW_FIELDS)
        )
        return parse_windows(output)

    def list_panes(self, window_id: str) -> list[Pane]:
        """List the panes of one window."""
        output = self.run(
            "list-panes", "-t", window_id, "-F", FIELD_SEP.join(PANE_FIELDS)
        )
        return parse_panes(output)

    # --- Write operations ---

    def create_session(self, name: str) -> None:
        self.run("new-session", "-d", "-s", name)

    def rename_session(self, session_id: str, name: str) -> None:
        self.run("rename-session", "-t", session_id, name)

    def kill_session(self, session_id: str) -> None:
        self.run("kill-session", "-t", session_id)

    def create_window(self, session_id: str, name: str) -> None:
        # Trailing colon: next free index in the session
        self.run("new-window", "-d", "-t", f"{session_id}:", "-n", name)

    def rename_window(self, window_id: str, name: str) -> None:
        self.run("rename-window", "-t", window_id, name)

    def kill_window(self, window_id: str) -> None:
        self.run("kill-window", "-t", window_id)

    def split_pane(self, pane_id: str) -> None:
        self.run("split-window", "-t", pane_id)

    def kill_pane(self, pane_id: str) -> None:
        self.run("kill-pane", "-t", pane_id)

    def select_window(self, window_id: str) -> None:
        """Make a window current in its session, so attaching lands on it."""
        self.run("select-window", "-t", window_id)

    def select_pane(self, pane_id: str) -> None:
        """Focus a pane."""
        self.run("select-pane", "-t", pane_id)

    def _is_client_server(self) -> bool:
        """Whether the configured server is the one ``$TMUX`` belongs to."""
        client_socket = os.environ.get("TMUX", "").split(",")[0]
        if self.socket_path:
            return os.path.realpath(self.socket_path) == os.path.realpath(client_socket)
        if self.socket_name:
            return os.path.basename(client_socket) == self.socket_name
        # No -L/-S: tmux itself talks to the $TMUX server
        return True

    def attach(self, target: str) -> None:
        """Hand the terminal over to tmux for ``target``.

        Inside tmux, on the same server, the current client is switched and
        this returns. Otherwise the process is replaced by ``tmux
        attach-session`` and this never returns; from inside a client of
        another server that attach is nested. Callers must release the
        terminal first.
        """
        if is_inside_tmux() and self._is_client_server():
            self.run("switch-client", "-t", target)
            return
        cmd = self._base_command() + ["attach-session", "-t", target]
        env = dict(os.environ)
        # tmux refuses to nest while $TMUX is set
        env.pop("TMUX", None)
        logger.info("exec: %s", " ".join(cmd))
        try:
            os.execvpe(cmd[0], cmd, env)
        except OSError as e:
            raise ToolUnavailable(f"cannot execute {self.binary}: {e}") from e
