"""Editor themes for the focused and unfocused prompt."""

from __future__ import annotations

from dataclasses import dataclass

from qnav.style import Color, Style


@dataclass(frozen=True)
class EditorTheme:
    # Prefix for the prompt string.
    prefix: str
    # Style applied to the prompt string.
    prefix_style: Style
    # Style applied to the currently selected character.
    active_char_style: Style
    # Style applied to characters that are not currently selected.
    inactive_char_style: Style


DEFAULT_FOCUS_THEME = EditorTheme(
    prefix="❯❯ ",
    prefix_style=Style(fg=Color.DARK_GREEN),
    active_char_style=Style(bg=Color.DARK_CYAN),
    inactive_char_style=Style(),
)

DEFAULT_DEFOCUS_THEME = EditorTheme(
    prefix="▼ ",
    prefix_style=Style(fg=Color.BLUE, dim=True),
    active_char_style=Style(dim=True),
    inactive_char_style=Style(dim=True),
)
