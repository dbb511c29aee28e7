"""tmuxman: browse and manage tmux sessions, windows and panes."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Static

from . import tmux
from .config import Config, get_config_path, load_config
from .controller import Controller, Signal
from .errors import TmuxError, ToolUnavailable
from .log import configure_logging
from .models import FocusColumn
from .store import EntityStore, StoreSnapshot
from .theme import get_colors
from .ui import EntityColumn, PromptBar, StatusArea, shortcut_hint

logger = logging.getLogger(__name__)


class TmuxManager(App):
    """Three-column view of the tmux server, driven by :class:`Controller`."""

    ENABLE_COMMAND_PALETTE = False

    # Generate CSS dynamically using theme colors
    @property
    def CSS(self) -> str:
        c = get_colors()
        return f"""
    Screen {{
        background: {c.background};
    }}

    #title {{
        text-style: bold;
        background: {c.primary};
        color: {c.background};
        padding: 0 1;
        height: 1;
    }}

    #columns {{
        height: 1fr;
    }}

    .entity-column {{
        height: 1fr;
        border: round {c.border};
        border-title-color: {c.text_muted};
        color: {c.text};
        padding: 0 1;
    }}

    .entity-column.focused {{
        border: round {c.border_focus};
        border-title-color: {c.border_focus};
    }}

    #sessions-column {{
        width: 30%;
    }}

    #windows-column, #panes-column {{
        width: 35%;
    }}

    #prompt-bar {{
        height: 0;
        dock: bottom;
    }}

    #prompt-bar.input {{
        height: 1;
        background: {c.surface};
        color: {c.warning};
    }}

    #prompt-bar.confirm {{
        height: 1;
        background: {c.surface};
        color: {c.error};
    }}

    #status-area {{
        height: 0;
        dock: bottom;
    }}

    #status-area.visible {{
        height: auto;
        max-height: 3;
        padding: 0 1;
        background: {c.surface_light};
        color: {c.text};
        border-left: wide {c.primary};
    }}

    #status-area.visible.error {{
        border-left: wide {c.error};
    }}

    #shortcuts {{
        height: 1;
        padding: 0 1;
        background: {c.surface};
        color: {c.text_muted};
        dock: bottom;
    }}
    """

    # Tab must reach the controller instead of moving widget focus
    BINDINGS = [
        Binding("tab", "forward_key('tab')", show=False, priority=True),
        Binding("shift+tab", "forward_key('shift+tab')", show=False, priority=True),
    ]

    def __init__(self, controller: Controller, config: Optional[Config] = None):
        super().__init__()
        self.controller = controller
        self.config = config or Config()
        self.attach_requested = False
        self._columns: dict[FocusColumn, EntityColumn] = {}
        self._unsubscribe = controller.store.subscribe(self._on_store_change)

    def compose(self) -> ComposeResult:
        if self.config.show_header:
            yield Static("TMUX MANAGER", id="title")
        with Horizontal(id="columns"):
            for column in FocusColumn:
                self._columns[column] = EntityColumn(column)
                yield self._columns[column]
        if self.config.show_footer:
            yield Static("", id="shortcuts")
        yield StatusArea(self.config.status_duration)
        yield PromptBar()

    def on_mount(self) -> None:
        self.theme = "textual-dark" if self.config.dark_mode else "textual-light"
        self._run(self.controller.startup)
        if self.config.auto_refresh_seconds > 0:
            self.set_interval(self.config.auto_refresh_seconds, self._auto_refresh)

    def on_unmount(self) -> None:
        self._unsubscribe()

    def _auto_refresh(self) -> None:
        self._run(self.controller.auto_refresh)

    def _on_store_change(self, snapshot: StoreSnapshot) -> None:
        """Re-render the columns whenever the store changes."""
        if self._columns:
            self._render_columns(snapshot)

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self._dispatch(event.key, event.character)

    def action_forward_key(self, key: str) -> None:
        self._dispatch(key, None)

    def _dispatch(self, key: str, character: Optional[str]) -> None:
        signal = self._run(lambda: self.controller.handle_key(key, character))
        if signal is Signal.QUIT:
            self.exit()
        elif signal is Signal.ATTACH:
            self.attach_requested = True
            self.exit()

    def _run(self, fn):
        """Run a controller call, then redraw; tmux vanishing ends the app."""
        try:
            result = fn()
        except ToolUnavailable as e:
            logger.error("tmux unavailable: %s", e)
            self.exit(return_code=1, message=f"Error: {e}")
            return None
        self._render_all()
        return result

    def _render_all(self) -> None:
        if not self._columns:
            return
        self._render_columns(self.controller.store.snapshot())
        mode = self.controller.mode
        self.query_one(PromptBar).show(mode)
        if self.config.show_footer:
            self.query_one("#shortcuts", Static).update(
                shortcut_hint(self.controller.focus, mode)
            )
        status = self.controller.pop_status()
        if status is not None:
            self.query_one(StatusArea).show_message(status.text, status.error)

    def _render_columns(self, snapshot: StoreSnapshot) -> None:
        for column, widget in self._columns.items():
            widget.show(
                snapshot.items(column),
                snapshot.index(column),
                focused=column is self.controller.focus,
            )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tmuxman", description="tmuxman - browse and manage tmux sessions"
    )
    parser.add_argument("-L", "--socket-name", default=None,
                        help="tmux server socket name")
    parser.add_argument("-S", "--socket-path", default=None,
                        help="tmux server socket path")
    parser.add_argument("--config", type=Path, default=None,
                        help=f"config file (default: {get_config_path()})")
    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Command line values win over the config file."""
    if args.socket_name:
        config.socket_name = args.socket_name
    if args.socket_path:
        config.socket_path = args.socket_path
    return config


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point - runs the TUI, then attaches if asked to."""
    args = build_parser().parse_args(argv)
    log_path = configure_logging()
    config = apply_overrides(load_config(args.config), args)
    if log_path:
        logger.info("logging to %s", log_path)

    # Check if tmux is available
    if not tmux.is_tmux_available(config.tmux_binary):
        print(f"Error: {config.tmux_binary} is not installed. Please install tmux first.",
              file=sys.stderr)
        print("  brew install tmux  (macOS)", file=sys.stderr)
        print("  apt install tmux   (Linux)", file=sys.stderr)
        return 1

    control = tmux.TmuxControl(
        binary=config.tmux_binary,
        socket_name=config.socket_name,
        socket_path=config.socket_path,
    )
    controller = Controller(EntityStore(control), control)
    app = TmuxManager(controller, config)
    app.run()

    if app.return_code:
        return app.return_code
    if app.attach_requested:
        # The terminal is ours again; outside tmux this does not return
        try:
            controller.hand_off()
        except TmuxError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
