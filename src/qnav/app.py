"""Interactive session: terminal events in, composed frames out."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from qnav.editor import Editor
from qnav.json_paths import PathError, evaluate_path, limit_arrays
from qnav.keys import Key, Keystroke, Modifiers, parse_keystroke
from qnav.pane import Pane
from qnav.style import Color, Style
from qnav.terminal import Terminal
from qnav.utils import truncate_to_width

logger = logging.getLogger(__name__)

_QUIT = Keystroke("c", Modifiers.CONTROL)
_FOCUS_PREVIEW = Keystroke(Key.down, Modifiers.SHIFT)
_FOCUS_EDITOR = Keystroke(Key.up, Modifiers.SHIFT)

_PREVIEW_ERROR_STYLE = Style(fg=Color.YELLOW)
_CLEAR_TO_EOL = "\x1b[K"
_CLEAR_BELOW = "\x1b[J"
_HOME = "\x1b[H"


class App:
    """Runs one interactive session over a JSON document.

    The filter editor has focus initially; shift+down hands focus to the
    preview pane (up/down/pageUp/pageDown scroll it) and shift+up returns it.
    Enter accepts the current filter, ctrl+c abandons the session.
    Arrays in the preview are cut to *limit_length* items.
    """

    def __init__(
        self,
        editor: Editor,
        document: Any,
        terminal: Terminal,
        *,
        indent: int = 2,
        no_hint: bool = False,
        suggestion_list_length: int = 3,
        limit_length: int | None = 50,
    ) -> None:
        self._editor = editor
        self._document = document
        self._terminal = terminal
        self._indent = indent
        self._no_hint = no_hint
        self._suggestion_list_length = suggestion_list_length
        self._limit_length = limit_length

        self._events: asyncio.Queue[Keystroke | None] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._editor_focused = True
        self._preview_offset = 0
        self._preview_cache: tuple[str, list[str]] | None = None

    @property
    def editor_focused(self) -> bool:
        return self._editor_focused

    # -- terminal callbacks ------------------------------------------------

    def _on_input(self, data: str) -> None:
        keystroke = parse_keystroke(data)
        if keystroke is None:
            logger.debug("Ignoring undecodable input %r", data)
            return
        self._events.put_nowait(keystroke)

    def _on_resize(self) -> None:
        # Called from a signal handler; None asks for a redraw
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._events.put_nowait, None)

    # -- main loop ---------------------------------------------------------

    async def run(self) -> str | None:
        """Run until the filter is accepted (returns it) or abandoned (returns None)."""
        self._loop = asyncio.get_running_loop()
        try:
            self._terminal.start(self._on_input, self._on_resize)
            self._terminal.hide_cursor()
            self._editor.focus()
            self.render()
            while True:
                event = await self._events.get()
                if event is not None:
                    if event == _QUIT:
                        return None
                    if _is_accept(event):
                        return self._editor.text()
                    await self.handle(event)
                self.render()
        finally:
            self._terminal.stop()

    async def handle(self, event: Keystroke) -> None:
        if event == _FOCUS_PREVIEW:
            if self._editor_focused:
                self._editor.defocus()
                self._editor_focused = False
            return
        if event == _FOCUS_EDITOR:
            if not self._editor_focused:
                self._editor.focus()
                self._editor_focused = True
            return

        if self._editor_focused:
            await self._editor.operate(event)
            return

        if event.modifiers != Modifiers.NONE:
            return
        page = self._preview_height()
        step = {Key.up: -1, Key.down: 1, Key.page_up: -page, Key.page_down: page}.get(event.code)
        if step is not None:
            self._preview_offset = max(0, self._preview_offset + step)

    # -- rendering ---------------------------------------------------------

    def _preview_height(self) -> int:
        fixed = 1 + (0 if self._no_hint else 1) + self._suggestion_list_length
        return max(1, self._terminal.rows - fixed)

    def _preview_lines(self) -> list[str]:
        query = self._editor.text()
        if self._preview_cache is not None and self._preview_cache[0] == query:
            return self._preview_cache[1]

        try:
            result = evaluate_path(self._document, query or ".")
            result = limit_arrays(result, self._limit_length)
        except PathError as e:
            lines = [_PREVIEW_ERROR_STYLE(f"Error: {e}")]
        else:
            text = json.dumps(result, indent=self._indent or None, ensure_ascii=False)
            lines = text.splitlines()

        if self._preview_cache is None or self._preview_cache[0] != query:
            self._preview_offset = 0
        self._preview_cache = (query, lines)
        return lines

    def compose(self, width: int, height: int) -> list[str]:
        """Stack the panes top to bottom within *height* rows."""
        panes: list[Pane] = [self._editor.create_editor_pane(width, 1)]
        if not self._no_hint:
            panes.append(self._editor.create_guide_pane(width, 1))
        panes.append(
            self._editor.create_searcher_pane(width, self._suggestion_list_length)
        )

        lines = [line for pane in panes for line in pane.lines]
        remaining = max(0, height - len(lines))

        preview = self._preview_lines()
        self._preview_offset = min(self._preview_offset, max(0, len(preview) - 1))
        window = preview[self._preview_offset : self._preview_offset + remaining]
        lines.extend(truncate_to_width(line, width) for line in window)
        return lines[:height]

    def render(self) -> None:
        width, height = self._terminal.columns, self._terminal.rows
        frame = "\r\n".join(line + _CLEAR_TO_EOL for line in self.compose(width, height))
        self._terminal.write(_HOME + frame + _CLEAR_BELOW)


def _is_accept(event: Keystroke) -> bool:
    # Keypad enter carries the KEYPAD state bit
    return event.code == Key.enter and event.modifiers == Modifiers.NONE
