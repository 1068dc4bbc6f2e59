"""Tests for qnav.search: paged incremental suggestion search."""

from __future__ import annotations

import pytest

from qnav.pane import EMPTY_PANE
from qnav.search import IncrementalSearcher, SearcherTheme, SearchResult
from qnav.style import PLAIN


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class ListSource:
    """Serves prefix matches from a fixed list and records every lookup."""

    def __init__(self, items: list[str]) -> None:
        self.items = items
        self.calls: list[tuple[str, int, int]] = []

    async def lookup(self, prefix: str, offset: int, limit: int) -> list[str]:
        self.calls.append((prefix, offset, limit))
        matches = [item for item in self.items if item.startswith(prefix)]
        return matches[offset : offset + limit]


PLAIN_THEME = SearcherTheme(cursor="> ", active_item_style=PLAIN, inactive_item_style=PLAIN)


def make_searcher(items: list[str], chunk_size: int = 100, list_length: int = 5):
    source = ListSource(items)
    searcher = IncrementalSearcher(
        source, chunk_size=chunk_size, list_length=list_length, theme=PLAIN_THEME
    )
    return searcher, source


# ---------------------------------------------------------------------------
# start_search
# ---------------------------------------------------------------------------


class TestStartSearch:
    @pytest.mark.asyncio
    async def test_fully_loaded(self):
        searcher, _ = make_searcher([".a", ".ab", ".b"])
        result = await searcher.start_search(".a")
        assert result == SearchResult(head_candidate=".a", fully_loaded=True, loaded_count=2)
        assert searcher.in_session
        assert searcher.current_candidate() == ".a"

    @pytest.mark.asyncio
    async def test_partially_loaded(self):
        searcher, source = make_searcher([f".c{i}" for i in range(5)], chunk_size=2)
        result = await searcher.start_search(".c")
        assert result == SearchResult(head_candidate=".c0", fully_loaded=False, loaded_count=2)
        assert source.calls == [(".c", 0, 3)]

    @pytest.mark.asyncio
    async def test_exactly_one_chunk_is_fully_loaded(self):
        searcher, _ = make_searcher([".a", ".b"], chunk_size=2)
        result = await searcher.start_search(".")
        assert result.fully_loaded
        assert result.loaded_count == 2

    @pytest.mark.asyncio
    async def test_no_match(self):
        searcher, _ = make_searcher([".a"])
        result = await searcher.start_search(".z")
        assert result == SearchResult(head_candidate=None, fully_loaded=True, loaded_count=0)
        assert not searcher.in_session
        assert searcher.current_candidate() == ""

    @pytest.mark.asyncio
    async def test_restart_replaces_session(self):
        searcher, _ = make_searcher([".a", ".b"])
        await searcher.start_search(".a")
        await searcher.start_search(".b")
        assert searcher.items == (".b",)

    def test_rejects_non_positive_chunk_size(self):
        with pytest.raises(ValueError):
            IncrementalSearcher(ListSource([]), chunk_size=0)


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


class TestNavigation:
    @pytest.mark.asyncio
    async def test_advance_next_pages_in_more(self):
        searcher, source = make_searcher([f".c{i}" for i in range(5)], chunk_size=2)
        await searcher.start_search(".c")

        await searcher.advance_next()
        assert searcher.current_candidate() == ".c1"
        assert source.calls[-1] == (".c", 2, 3)
        assert len(searcher.items) == 4
        assert not searcher.fully_loaded

        await searcher.advance_next()
        await searcher.advance_next()
        assert searcher.current_candidate() == ".c3"
        assert searcher.fully_loaded
        assert len(searcher.items) == 5

    @pytest.mark.asyncio
    async def test_advance_next_wraps_when_fully_loaded(self):
        searcher, _ = make_searcher([".a", ".b"])
        await searcher.start_search(".")
        await searcher.advance_next()
        await searcher.advance_next()
        assert searcher.cursor == 0
        assert searcher.current_candidate() == ".a"

    @pytest.mark.asyncio
    async def test_advance_previous_wraps_to_last(self):
        searcher, _ = make_searcher([".a", ".b", ".c"])
        await searcher.start_search(".")
        searcher.advance_previous()
        assert searcher.current_candidate() == ".c"
        searcher.advance_previous()
        assert searcher.current_candidate() == ".b"

    @pytest.mark.asyncio
    async def test_navigation_without_session_is_noop(self):
        searcher, source = make_searcher([".a"])
        await searcher.advance_next()
        searcher.advance_previous()
        assert searcher.current_candidate() == ""
        assert source.calls == []

    @pytest.mark.asyncio
    async def test_cancel_session(self):
        searcher, _ = make_searcher([".a", ".b"])
        await searcher.start_search(".")
        searcher.cancel_session()
        assert not searcher.in_session
        assert searcher.items == ()
        assert searcher.cursor == 0


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestCreatePane:
    def test_empty(self):
        searcher, _ = make_searcher([])
        assert searcher.create_pane(20, 5) is EMPTY_PANE

    @pytest.mark.asyncio
    async def test_marks_cursor(self):
        searcher, _ = make_searcher(["a", "b", "c"], list_length=2)
        await searcher.start_search("")
        assert searcher.create_pane(20, 5).lines == ("> a", "  b")

    @pytest.mark.asyncio
    async def test_window_follows_cursor(self):
        searcher, _ = make_searcher(["a", "b", "c"], list_length=2)
        await searcher.start_search("")
        await searcher.advance_next()
        await searcher.advance_next()
        assert searcher.create_pane(20, 5).lines == ("  b", "> c")

    @pytest.mark.asyncio
    async def test_height_limits_lines(self):
        searcher, _ = make_searcher(["a", "b", "c"])
        await searcher.start_search("")
        assert searcher.create_pane(20, 1).height == 1
