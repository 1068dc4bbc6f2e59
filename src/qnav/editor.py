"""Filter editor: keystroke dispatch over the prompt buffer.

The :class:`Editor` owns the prompt buffer, its focus themes, the guide
line and a suggestion :class:`~qnav.search.SearchProvider`. Keystrokes go
to whichever mode handler is current: :func:`edit` for ordinary editing
or :func:`search` while stepping through suggestions. A handler switches
modes by storing the other handler on the editor.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Literal

from qnav.guide import SUCCESS_STYLE, WARNING_STYLE, Guide
from qnav.keybindings import EditorAction, Keybinds
from qnav.keys import Key, KeyEventKind, KeyEventState, Keystroke, Modifiers
from qnav.pane import Pane
from qnav.search import SearchProvider, SuggestionLookupError
from qnav.text_editor import EditMode, EditorState
from qnav.theme import EditorTheme

logger = logging.getLogger(__name__)

Keybind = Callable[[Keystroke, "Editor"], Awaitable[None]]
Mode = Literal["edit", "search"]


class Editor:
    def __init__(
        self,
        state: EditorState,
        searcher: SearchProvider,
        focus_theme: EditorTheme,
        defocus_theme: EditorTheme,
        keybinds: Keybinds,
    ) -> None:
        self._keybind: Keybind = edit
        self.state = state
        self.searcher = searcher
        self.focus_theme = focus_theme
        self.defocus_theme = defocus_theme
        self.guide = Guide()
        self.keybinds = keybinds

    @property
    def mode(self) -> Mode:
        return "search" if self._keybind is search else "edit"

    def _apply_theme(self, theme: EditorTheme) -> None:
        self.state.prefix = theme.prefix
        self.state.prefix_style = theme.prefix_style
        self.state.active_char_style = theme.active_char_style
        self.state.inactive_char_style = theme.inactive_char_style

    def focus(self) -> None:
        self._apply_theme(self.focus_theme)

    def defocus(self) -> None:
        """Dim the prompt and drop any suggestion session in progress."""
        self._apply_theme(self.defocus_theme)
        self.searcher.cancel_session()
        self._keybind = edit
        self.guide.clear()

    def text(self) -> str:
        return self.state.texteditor.text_without_cursor()

    def create_editor_pane(self, width: int, height: int) -> Pane:
        return self.state.create_pane(width, height)

    def create_searcher_pane(self, width: int, height: int) -> Pane:
        return self.searcher.create_pane(width, height)

    def create_guide_pane(self, width: int, height: int) -> Pane:
        return self.guide.create_pane(width, height)

    async def operate(self, event: Keystroke) -> None:
        await self._keybind(event, self)


# ---------------------------------------------------------------------------
# Edit mode
# ---------------------------------------------------------------------------

_BUFFER_OPERATIONS: dict[EditorAction, Callable[[EditorState], None]] = {
    # Move cursor.
    "backward": lambda s: s.texteditor.backward(),
    "forward": lambda s: s.texteditor.forward(),
    "moveToHead": lambda s: s.texteditor.move_to_head(),
    "moveToTail": lambda s: s.texteditor.move_to_tail(),
    # Move cursor to the nearest character.
    "moveToPreviousNearest": lambda s: s.texteditor.move_to_previous_nearest(s.word_break_chars),
    "moveToNextNearest": lambda s: s.texteditor.move_to_next_nearest(s.word_break_chars),
    # Erase char(s).
    "erase": lambda s: s.texteditor.erase(),
    "eraseAll": lambda s: s.texteditor.erase_all(),
    # Erase to the nearest character.
    "eraseToPreviousNearest": lambda s: s.texteditor.erase_to_previous_nearest(s.word_break_chars),
    "eraseToNextNearest": lambda s: s.texteditor.erase_to_next_nearest(s.word_break_chars),
}

_LITERAL_MODIFIERS = (Modifiers.NONE, Modifiers.SHIFT)


def _literal_char(event: Keystroke) -> str | None:
    if (
        event.kind is KeyEventKind.PRESS
        and event.state == KeyEventState.NONE
        and event.modifiers in _LITERAL_MODIFIERS
    ):
        return event.char
    return None


async def _complete(editor: Editor) -> None:
    prefix = editor.state.texteditor.text_without_cursor()
    try:
        result = await editor.searcher.start_search(prefix)
    except SuggestionLookupError as e:
        logger.warning("Suggestion lookup for %r failed: %s", prefix, e)
        editor.guide.set(
            f"Failed to lookup suggestions: {type(e).__name__}: {e}", WARNING_STYLE
        )
        return

    if result.head_candidate is None:
        editor.guide.set(f"No suggestion found for '{prefix}'", WARNING_STYLE)
        return

    if result.fully_loaded:
        editor.guide.set(f"Loaded all ({result.loaded_count}) suggestions", SUCCESS_STYLE)
    else:
        editor.guide.set(
            f"Loaded partially ({result.loaded_count}) suggestions", SUCCESS_STYLE
        )
    editor.state.texteditor.replace(result.head_candidate)
    editor._keybind = search
    logger.debug("Entered suggestion mode for %r", prefix)


async def edit(event: Keystroke, editor: Editor) -> None:
    editor.guide.clear()

    action = editor.keybinds.resolve(event)
    if action == "completion":
        await _complete(editor)
    elif action is not None:
        _BUFFER_OPERATIONS[action](editor.state)
    else:
        # Input char.
        ch = _literal_char(event)
        if ch is None:
            return
        if editor.state.edit_mode is EditMode.INSERT:
            editor.state.texteditor.insert(ch)
        else:
            editor.state.texteditor.overwrite(ch)


# ---------------------------------------------------------------------------
# Search mode
# ---------------------------------------------------------------------------

_SEARCH_DOWN_KEYS = frozenset({Keystroke(Key.tab), Keystroke(Key.down)})


async def search(event: Keystroke, editor: Editor) -> None:
    if event in _SEARCH_DOWN_KEYS:
        await editor.searcher.advance_next()
        editor.state.texteditor.replace(editor.searcher.current_candidate())
    elif event == editor.keybinds.search_up:
        editor.searcher.advance_previous()
        editor.state.texteditor.replace(editor.searcher.current_candidate())
    else:
        editor.searcher.cancel_session()
        editor._keybind = edit
        logger.debug("Left suggestion mode")
        await edit(event, editor)
