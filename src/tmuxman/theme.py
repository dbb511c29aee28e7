"""Theme configuration for tmuxman.

Provides the color palette the CSS is generated from.
"""

from dataclasses import dataclass, field


@dataclass
class ColorPalette:
    """Color palette for the UI theme.

    Catppuccin Mocha-inspired palette with warm, muted tones.
    """
    # Background colors (warm dark)
    background: str = "#1e1e2e"     # Base background
    surface: str = "#313244"        # Bars/panels (surface0)
    surface_light: str = "#45475a"  # Elevated surfaces (surface1)

    # Border colors
    border: str = "#45475a"         # Unfocused column
    border_focus: str = "#89dceb"   # Sky - focused column

    # Text colors
    text: str = "#cdd6f4"
    text_muted: str = "#6c7086"

    # Accent colors
    primary: str = "#b4befe"        # Lavender - title, active markers
    secondary: str = "#cba6f7"      # Mauve - pane commands

    # Status colors
    success: str = "#a6e3a1"        # Attached sessions
    warning: str = "#f9e2af"        # Input prompt
    error: str = "#f38ba8"          # Confirm prompt, failed actions

    # Selection
    selection_bg: str = "#585b70"


@dataclass
class Theme:
    """Complete theme configuration."""
    name: str = "default"
    colors: ColorPalette = field(default_factory=ColorPalette)


# Default theme instance
DEFAULT_THEME = Theme()


def get_colors() -> ColorPalette:
    """Get the default color palette."""
    return DEFAULT_THEME.colors
