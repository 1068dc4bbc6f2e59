"""qnav: interactive jq path builder for JSON documents."""

# Editor core
from qnav.editor import Editor, Keybind, Mode, edit, search

# Guide line
from qnav.guide import SUCCESS_STYLE, WARNING_STYLE, Guide

# Keybindings
from qnav.keybindings import (
    DEFAULT_EDITOR_KEYBINDINGS,
    DEFAULT_KEYBINDS,
    EditorAction,
    KeybindingConfigError,
    Keybinds,
)

# Keyboard input handling
from qnav.keys import (
    Key,
    KeyEventKind,
    KeyEventState,
    KeyId,
    Keystroke,
    Modifiers,
    format_keystroke,
    keystroke_from_id,
    parse_keystroke,
)

# Panes and styles
from qnav.pane import Pane
from qnav.style import Color, Style

# Suggestion search
from qnav.search import (
    IncrementalSearcher,
    SearchProvider,
    SearchResult,
    SuggestionLookupError,
    SuggestionSource,
)

# Text buffer
from qnav.text_editor import EditMode, EditorState, TextEditor

# Themes
from qnav.theme import DEFAULT_DEFOCUS_THEME, DEFAULT_FOCUS_THEME, EditorTheme

__all__ = [
    # Editor core
    "Editor",
    "Keybind",
    "Mode",
    "edit",
    "search",
    # Guide
    "SUCCESS_STYLE",
    "WARNING_STYLE",
    "Guide",
    # Keybindings
    "DEFAULT_EDITOR_KEYBINDINGS",
    "DEFAULT_KEYBINDS",
    "EditorAction",
    "KeybindingConfigError",
    "Keybinds",
    # Keys
    "Key",
    "KeyEventKind",
    "KeyEventState",
    "KeyId",
    "Keystroke",
    "Modifiers",
    "format_keystroke",
    "keystroke_from_id",
    "parse_keystroke",
    # Panes and styles
    "Pane",
    "Color",
    "Style",
    # Search
    "IncrementalSearcher",
    "SearchProvider",
    "SearchResult",
    "SuggestionLookupError",
    "SuggestionSource",
    # Text buffer
    "EditMode",
    "EditorState",
    "TextEditor",
    # Themes
    "DEFAULT_DEFOCUS_THEME",
    "DEFAULT_FOCUS_THEME",
    "EditorTheme",
]
