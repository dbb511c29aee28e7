"""tmuxman: a terminal UI for tmux sessions, windows and panes."""

__version__ = "0.1.0"
