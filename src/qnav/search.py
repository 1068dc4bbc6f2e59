"""Incremental suggestion search with paged loading.

The :class:`IncrementalSearcher` pulls candidates for a prefix from a
:class:`SuggestionSource` one chunk at a time, exposes a cursor over the
loaded candidates, and renders them as a scrolling list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from qnav.pane import EMPTY_PANE, Pane
from qnav.style import Color, Style
from qnav.utils import truncate_to_width

logger = logging.getLogger(__name__)


class SuggestionLookupError(Exception):
    """Raised when suggestions for a prefix cannot be looked up."""


@dataclass(frozen=True)
class SearchResult:
    head_candidate: str | None
    fully_loaded: bool
    loaded_count: int


class SuggestionSource(Protocol):
    """Where candidates come from."""

    async def lookup(self, prefix: str, offset: int, limit: int) -> list[str]:
        """Return up to *limit* candidates starting with *prefix*, skipping *offset*."""
        ...


class SearchProvider(Protocol):
    """What the editor needs from a suggestion search session."""

    async def start_search(self, prefix: str) -> SearchResult: ...

    async def advance_next(self) -> None: ...

    def advance_previous(self) -> None: ...

    def current_candidate(self) -> str: ...

    def cancel_session(self) -> None: ...

    def create_pane(self, width: int, height: int) -> Pane: ...


@dataclass(frozen=True)
class SearcherTheme:
    cursor: str = "❯ "
    active_item_style: Style = Style(fg=Color.GREY, bg=Color.DARK_YELLOW)
    inactive_item_style: Style = Style(fg=Color.GREY)


class IncrementalSearcher:
    """A :class:`SearchProvider` paging through a :class:`SuggestionSource`."""

    def __init__(
        self,
        source: SuggestionSource,
        *,
        chunk_size: int = 100,
        list_length: int = 5,
        theme: SearcherTheme | None = None,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._source = source
        self._chunk_size = chunk_size
        self._list_length = list_length
        self._theme = theme or SearcherTheme()

        self._prefix: str | None = None
        self._items: list[str] = []
        self._cursor: int = 0
        self._fully_loaded: bool = False

    # -- session state -----------------------------------------------------

    @property
    def in_session(self) -> bool:
        return self._prefix is not None

    @property
    def items(self) -> tuple[str, ...]:
        return tuple(self._items)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def fully_loaded(self) -> bool:
        return self._fully_loaded

    # -- SearchProvider ----------------------------------------------------

    async def start_search(self, prefix: str) -> SearchResult:
        self.cancel_session()
        page = await self._source.lookup(prefix, 0, self._chunk_size + 1)

        self._prefix = prefix
        self._fully_loaded = len(page) <= self._chunk_size
        self._items = page[: self._chunk_size]
        self._cursor = 0
        logger.debug(
            "Started search for %r: %d loaded, complete=%s",
            prefix, len(self._items), self._fully_loaded,
        )

        if not self._items:
            self.cancel_session()
            return SearchResult(head_candidate=None, fully_loaded=True, loaded_count=0)

        return SearchResult(
            head_candidate=self._items[0],
            fully_loaded=self._fully_loaded,
            loaded_count=len(self._items),
        )

    async def advance_next(self) -> None:
        if not self._items:
            return
        if self._cursor + 1 >= len(self._items) - 1 and not self._fully_loaded:
            await self._load_next_chunk()
        if self._cursor + 1 < len(self._items):
            self._cursor += 1
        elif self._fully_loaded:
            self._cursor = 0

    def advance_previous(self) -> None:
        if not self._items:
            return
        self._cursor = self._cursor - 1 if self._cursor > 0 else len(self._items) - 1

    def current_candidate(self) -> str:
        if not self._items:
            return ""
        return self._items[self._cursor]

    def cancel_session(self) -> None:
        self._prefix = None
        self._items = []
        self._cursor = 0
        self._fully_loaded = False

    async def _load_next_chunk(self) -> None:
        assert self._prefix is not None
        page = await self._source.lookup(
            self._prefix, len(self._items), self._chunk_size + 1
        )
        self._fully_loaded = len(page) <= self._chunk_size
        self._items.extend(page[: self._chunk_size])
        logger.debug(
            "Loaded %d more suggestions for %r (total %d)",
            min(len(page), self._chunk_size), self._prefix, len(self._items),
        )

    # -- rendering ---------------------------------------------------------

    def create_pane(self, width: int, height: int) -> Pane:
        if not self._items or height <= 0:
            return EMPTY_PANE

        visible = min(self._list_length, height)
        start = max(0, min(self._cursor - visible // 2, len(self._items) - visible))
        end = min(start + visible, len(self._items))

        cursor_mark = self._theme.cursor
        blank = " " * len(cursor_mark)
        lines: list[str] = []
        for i in range(start, end):
            if i == self._cursor:
                text = truncate_to_width(cursor_mark + self._items[i], width)
                lines.append(self._theme.active_item_style(text))
            else:
                text = truncate_to_width(blank + self._items[i], width)
                lines.append(self._theme.inactive_item_style(text))
        return Pane.from_lines(lines, height)
