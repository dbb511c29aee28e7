"""UI components for tmuxman."""

from .columns import EntityColumn
from .notification import StatusArea
from .prompt import PromptBar, shortcut_hint

__all__ = [
    "EntityColumn",
    "StatusArea",
    "PromptBar",
    "shortcut_hint",
]
