"""Single-line text buffer with a grapheme-aware cursor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from qnav.pane import Pane
from qnav.style import PLAIN, Style
from qnav.utils import grapheme_width, graphemes, truncate_to_width, visible_width

DEFAULT_WORD_BREAK_CHARS: frozenset[str] = frozenset({" ", ".", "|", "[", "]", "(", ")", ","})


class EditMode(Enum):
    INSERT = "insert"
    OVERWRITE = "overwrite"


class TextEditor:
    """Text buffer addressed in grapheme clusters.

    The cursor ranges over ``0..len(buffer)``; ``len(buffer)`` is the tail,
    the position just after the last character.
    """

    def __init__(self, text: str = "") -> None:
        self._chars: list[str] = graphemes(text)
        self._position: int = len(self._chars)

    @property
    def position(self) -> int:
        return self._position

    @property
    def chars(self) -> tuple[str, ...]:
        return tuple(self._chars)

    def __len__(self) -> int:
        return len(self._chars)

    def text_without_cursor(self) -> str:
        return "".join(self._chars)

    def is_tail(self) -> bool:
        return self._position >= len(self._chars)

    # -- cursor movement ---------------------------------------------------

    def backward(self) -> None:
        if self._position > 0:
            self._position -= 1

    def forward(self) -> None:
        if self._position < len(self._chars):
            self._position += 1

    def move_to_head(self) -> None:
        self._position = 0

    def move_to_tail(self) -> None:
        self._position = len(self._chars)

    def move_to_previous_nearest(self, word_break_chars: frozenset[str]) -> None:
        self._position = self._previous_nearest_index(word_break_chars)

    def move_to_next_nearest(self, word_break_chars: frozenset[str]) -> None:
        self._position = self._next_nearest_index(word_break_chars)

    def _previous_nearest_index(self, word_break_chars: frozenset[str]) -> int:
        # The break right before the cursor is skipped so repeated moves progress
        for i in range(self._position - 2, -1, -1):
            if self._chars[i] in word_break_chars:
                return i + 1
        return 0

    def _next_nearest_index(self, word_break_chars: frozenset[str]) -> int:
        for i in range(self._position + 1, len(self._chars)):
            if self._chars[i] in word_break_chars:
                return i
        return len(self._chars)

    # -- erasure -----------------------------------------------------------

    def erase(self) -> None:
        if self._position > 0:
            del self._chars[self._position - 1]
            self._position -= 1

    def erase_all(self) -> None:
        self._chars.clear()
        self._position = 0

    def erase_to_previous_nearest(self, word_break_chars: frozenset[str]) -> None:
        target = self._previous_nearest_index(word_break_chars)
        del self._chars[target : self._position]
        self._position = target

    def erase_to_next_nearest(self, word_break_chars: frozenset[str]) -> None:
        target = self._next_nearest_index(word_break_chars)
        del self._chars[self._position : target]

    # -- input -------------------------------------------------------------

    def insert(self, text: str) -> None:
        new_chars = graphemes(text)
        self._chars[self._position : self._position] = new_chars
        self._position += len(new_chars)

    def overwrite(self, text: str) -> None:
        for ch in graphemes(text):
            if self._position < len(self._chars):
                self._chars[self._position] = ch
            else:
                self._chars.append(ch)
            self._position += 1

    def replace(self, text: str) -> None:
        self._chars = graphemes(text)
        self._position = len(self._chars)


@dataclass
class EditorState:
    """The live prompt: a :class:`TextEditor` plus its display attributes."""

    texteditor: TextEditor = field(default_factory=TextEditor)
    prefix: str = "❯❯ "
    prefix_style: Style = PLAIN
    active_char_style: Style = PLAIN
    inactive_char_style: Style = PLAIN
    edit_mode: EditMode = EditMode.INSERT
    word_break_chars: frozenset[str] = DEFAULT_WORD_BREAK_CHARS

    def create_pane(self, width: int, height: int) -> Pane:
        prefix = truncate_to_width(self.prefix, width, "")
        available = width - visible_width(prefix)
        if available <= 0:
            return Pane.from_lines([self.prefix_style(prefix)], height)

        # A blank cell stands in for the cursor at the tail
        cells = [*self.texteditor.chars, " "]
        widths = [max(grapheme_width(c), 1) for c in cells]
        cursor = self.texteditor.position

        # Scroll horizontally until the cursor cell fits
        start = 0
        used = sum(widths[: cursor + 1])
        while used > available and start < cursor:
            used -= widths[start]
            start += 1

        end = cursor + 1
        while end < len(cells) and used + widths[end] <= available:
            used += widths[end]
            end += 1

        before = "".join(cells[start:cursor])
        after = "".join(cells[cursor + 1 : end])
        line = (
            self.prefix_style(prefix)
            + self.inactive_char_style(before)
            + self.active_char_style(cells[cursor])
            + self.inactive_char_style(after)
        )
        return Pane.from_lines([line], height)
