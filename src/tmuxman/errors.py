"""Error taxonomy for tmux control failures."""


class TmuxError(Exception):
    """Base class for everything the tmux layer can raise."""


class ToolUnavailable(TmuxError):
    """The tmux binary is missing or cannot be executed."""


class ServerUnreachable(TmuxError):
    """No tmux server is running (distinct from a server with zero sessions)."""


class CommandFailed(TmuxError):
    """A tmux command exited non-zero."""

    def __init__(self, command: list[str], stderr: str) -> None:
        self.command = command
        self.stderr = stderr
        super().__init__(stderr or f"command failed: {' '.join(command)}")


class ParseError(TmuxError):
    """tmux printed a line that does not match the requested format."""

    def __init__(self, line: str, reason: str) -> None:
        self.line = line
        self.reason = reason
        super().__init__(f"{reason}: {line!r}")


class InvalidState(TmuxError):
    """An action needed a selection that no longer exists."""
