"""Tests for qnav.editor: keystroke dispatch, modes and guide messages."""

from __future__ import annotations

import pytest

from qnav.editor import Editor
from qnav.guide import SUCCESS_STYLE, WARNING_STYLE
from qnav.keybindings import DEFAULT_KEYBINDS, Keybinds
from qnav.keys import Key, KeyEventKind, KeyEventState, Keystroke, Modifiers
from qnav.pane import Pane
from qnav.search import SearchResult, SuggestionLookupError
from qnav.text_editor import EditMode, EditorState, TextEditor
from qnav.theme import DEFAULT_DEFOCUS_THEME, DEFAULT_FOCUS_THEME


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeSearcher:
    """Search provider serving a fixed candidate list and recording calls."""

    def __init__(
        self,
        candidates: list[str] | None = None,
        *,
        fully_loaded: bool = True,
        loaded_count: int | None = None,
        error: Exception | None = None,
    ) -> None:
        self.candidates = list(candidates or [])
        self.fully_loaded = fully_loaded
        self.loaded_count = len(self.candidates) if loaded_count is None else loaded_count
        self.error = error
        self.cursor = 0
        self.calls: list[tuple] = []

    async def start_search(self, prefix: str) -> SearchResult:
        self.calls.append(("start_search", prefix))
        if self.error is not None:
            raise self.error
        self.cursor = 0
        if not self.candidates:
            return SearchResult(head_candidate=None, fully_loaded=True, loaded_count=0)
        return SearchResult(self.candidates[0], self.fully_loaded, self.loaded_count)

    async def advance_next(self) -> None:
        self.calls.append(("advance_next",))
        self.cursor = (self.cursor + 1) % len(self.candidates)

    def advance_previous(self) -> None:
        self.calls.append(("advance_previous",))
        self.cursor = (self.cursor - 1) % len(self.candidates)

    def current_candidate(self) -> str:
        return self.candidates[self.cursor] if self.candidates else ""

    def cancel_session(self) -> None:
        self.calls.append(("cancel_session",))

    def create_pane(self, width: int, height: int) -> Pane:
        return Pane.from_lines(self.candidates, height)


def make_editor(
    text: str = "",
    searcher: FakeSearcher | None = None,
    *,
    edit_mode: EditMode = EditMode.INSERT,
    keybinds: Keybinds = DEFAULT_KEYBINDS,
) -> Editor:
    state = EditorState(TextEditor(text), edit_mode=edit_mode)
    return Editor(
        state,
        searcher or FakeSearcher(),
        DEFAULT_FOCUS_THEME,
        DEFAULT_DEFOCUS_THEME,
        keybinds,
    )


def theme_fields(editor: Editor) -> tuple:
    s = editor.state
    return (s.prefix, s.prefix_style, s.active_char_style, s.inactive_char_style)


TAB = Keystroke(Key.tab)
DOWN = Keystroke(Key.down)
UP = Keystroke(Key.up)


async def enter_search(editor: Editor) -> None:
    await editor.operate(TAB)
    assert editor.mode == "search"


# ---------------------------------------------------------------------------
# Edit mode: literal characters
# ---------------------------------------------------------------------------


class TestLiteralInput:
    @pytest.mark.asyncio
    async def test_insert_plain_char(self):
        editor = make_editor()
        await editor.operate(Keystroke("a"))
        assert editor.text() == "a"

    @pytest.mark.asyncio
    async def test_insert_shifted_char(self):
        editor = make_editor("x")
        await editor.operate(Keystroke("A", Modifiers.SHIFT))
        assert editor.text() == "xA"

    @pytest.mark.asyncio
    async def test_insert_keeps_prefix_and_grows_by_one(self):
        editor = make_editor("abcd")
        editor.state.texteditor.backward()
        editor.state.texteditor.backward()
        await editor.operate(Keystroke("x"))
        assert editor.text() == "abxcd"

    @pytest.mark.asyncio
    async def test_overwrite_keeps_length(self):
        editor = make_editor("abcd", edit_mode=EditMode.OVERWRITE)
        editor.state.texteditor.move_to_head()
        editor.state.texteditor.forward()
        await editor.operate(Keystroke("x"))
        assert editor.text() == "axcd"

    @pytest.mark.asyncio
    async def test_overwrite_at_tail_appends(self):
        editor = make_editor("ab", edit_mode=EditMode.OVERWRITE)
        await editor.operate(Keystroke("c"))
        assert editor.text() == "abc"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "event",
        [
            Keystroke("x", Modifiers.CONTROL),
            Keystroke("x", Modifiers.ALT),
            Keystroke("X", Modifiers.SHIFT | Modifiers.CONTROL),
            Keystroke("x", kind=KeyEventKind.RELEASE),
            Keystroke("x", kind=KeyEventKind.REPEAT),
            Keystroke("x", state=KeyEventState.CAPS_LOCK),
        ],
    )
    async def test_non_literal_events_are_ignored(self, event):
        editor = make_editor("ab")
        await editor.operate(event)
        assert editor.text() == "ab"
        assert editor.state.texteditor.position == 2
        assert editor.mode == "edit"


# ---------------------------------------------------------------------------
# Edit mode: bound actions
# ---------------------------------------------------------------------------


class TestBoundActions:
    @pytest.mark.asyncio
    async def test_cursor_motion(self):
        editor = make_editor("abc")
        await editor.operate(Keystroke(Key.left))
        assert editor.state.texteditor.position == 2
        await editor.operate(Keystroke("a", Modifiers.CONTROL))
        assert editor.state.texteditor.position == 0
        await editor.operate(Keystroke(Key.right))
        assert editor.state.texteditor.position == 1
        await editor.operate(Keystroke("e", Modifiers.CONTROL))
        assert editor.state.texteditor.position == 3

    @pytest.mark.asyncio
    async def test_word_motion(self):
        editor = make_editor(".foo.bar")
        await editor.operate(Keystroke("b", Modifiers.ALT))
        assert editor.state.texteditor.position == 5
        await editor.operate(Keystroke("f", Modifiers.ALT))
        assert editor.state.texteditor.position == 8

    @pytest.mark.asyncio
    async def test_erase(self):
        editor = make_editor("abc")
        await editor.operate(Keystroke(Key.backspace))
        assert editor.text() == "ab"

    @pytest.mark.asyncio
    async def test_erase_all(self):
        editor = make_editor("abc")
        await editor.operate(Keystroke("u", Modifiers.CONTROL))
        assert editor.text() == ""

    @pytest.mark.asyncio
    async def test_erase_words(self):
        editor = make_editor(".foo.bar")
        await editor.operate(Keystroke("w", Modifiers.CONTROL))
        assert editor.text() == ".foo."
        editor.state.texteditor.move_to_head()
        await editor.operate(Keystroke("d", Modifiers.ALT))
        assert editor.text() == "."

    @pytest.mark.asyncio
    async def test_custom_word_break_chars(self):
        editor = make_editor("a-b")
        editor.state.word_break_chars = frozenset("-")
        await editor.operate(Keystroke("w", Modifiers.CONTROL))
        assert editor.text() == "a-"

    @pytest.mark.asyncio
    async def test_unbound_key_is_noop_and_clears_guide(self):
        editor = make_editor("abc")
        editor.guide.set("stale", WARNING_STYLE)
        await editor.operate(Keystroke("f5"))
        assert editor.text() == "abc"
        assert editor.state.texteditor.position == 3
        assert editor.mode == "edit"
        assert editor.guide.text == ""

    @pytest.mark.asyncio
    async def test_up_is_unbound_in_edit_mode(self):
        searcher = FakeSearcher([".a"])
        editor = make_editor(".", searcher)
        await editor.operate(UP)
        assert editor.text() == "."
        assert searcher.calls == []

    @pytest.mark.asyncio
    async def test_rebound_action(self):
        keybinds = Keybinds.from_config({"eraseAll": "ctrl+k"})
        editor = make_editor("abc", keybinds=keybinds)
        await editor.operate(Keystroke("u", Modifiers.CONTROL))
        assert editor.text() == "abc"
        await editor.operate(Keystroke("k", Modifiers.CONTROL))
        assert editor.text() == ""


# ---------------------------------------------------------------------------
# Edit mode: completion
# ---------------------------------------------------------------------------


class TestCompletion:
    @pytest.mark.asyncio
    async def test_no_suggestion_for_empty_buffer(self):
        editor = make_editor()
        await editor.operate(TAB)
        assert editor.guide.text == "No suggestion found for ''"
        assert editor.guide.style == WARNING_STYLE
        assert editor.mode == "edit"

    @pytest.mark.asyncio
    async def test_no_suggestion_keeps_buffer(self):
        editor = make_editor(".zz")
        await editor.operate(TAB)
        assert editor.guide.text == "No suggestion found for '.zz'"
        assert editor.text() == ".zz"

    @pytest.mark.asyncio
    async def test_fully_loaded(self):
        candidates = [f".k{i}" for i in range(7)]
        searcher = FakeSearcher(candidates, fully_loaded=True, loaded_count=7)
        editor = make_editor(".k", searcher)
        await editor.operate(TAB)
        assert searcher.calls == [("start_search", ".k")]
        assert editor.guide.text == "Loaded all (7) suggestions"
        assert editor.guide.style == SUCCESS_STYLE
        assert editor.text() == ".k0"
        assert editor.state.texteditor.is_tail()
        assert editor.mode == "search"

    @pytest.mark.asyncio
    async def test_partially_loaded(self):
        searcher = FakeSearcher([".a", ".b", ".c"], fully_loaded=False, loaded_count=3)
        editor = make_editor(".", searcher)
        await editor.operate(TAB)
        assert editor.guide.text == "Loaded partially (3) suggestions"
        assert editor.guide.style == SUCCESS_STYLE
        assert editor.mode == "search"

    @pytest.mark.asyncio
    async def test_lookup_failure_is_reported(self):
        searcher = FakeSearcher(error=SuggestionLookupError("index not ready"))
        editor = make_editor(".a", searcher)
        await editor.operate(TAB)
        assert editor.guide.text == (
            "Failed to lookup suggestions: SuggestionLookupError: index not ready"
        )
        assert editor.guide.style == WARNING_STYLE
        assert editor.text() == ".a"
        assert editor.mode == "edit"

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self):
        searcher = FakeSearcher(error=RuntimeError("provider died"))
        editor = make_editor(".a", searcher)
        with pytest.raises(RuntimeError, match="provider died"):
            await editor.operate(TAB)
        assert editor.mode == "edit"

    @pytest.mark.asyncio
    async def test_guide_cleared_by_next_edit(self):
        editor = make_editor()
        await editor.operate(TAB)
        assert editor.guide.text
        await editor.operate(Keystroke("a"))
        assert editor.guide.text == ""


# ---------------------------------------------------------------------------
# Search mode
# ---------------------------------------------------------------------------


class TestSearchMode:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("event", [TAB, DOWN])
    async def test_next_candidate(self, event):
        searcher = FakeSearcher([".a", ".b", ".c"])
        editor = make_editor(".", searcher)
        await enter_search(editor)
        await editor.operate(event)
        assert editor.text() == ".b"
        assert editor.mode == "search"
        assert ("advance_next",) in searcher.calls

    @pytest.mark.asyncio
    async def test_previous_candidate(self):
        searcher = FakeSearcher([".a", ".b", ".c"])
        editor = make_editor(".", searcher)
        await enter_search(editor)
        await editor.operate(UP)
        assert editor.text() == ".c"
        assert editor.mode == "search"

    @pytest.mark.asyncio
    async def test_navigation_keeps_guide(self):
        searcher = FakeSearcher([".a", ".b"])
        editor = make_editor(".", searcher)
        await enter_search(editor)
        await editor.operate(DOWN)
        await editor.operate(UP)
        assert editor.guide.text == "Loaded all (2) suggestions"

    @pytest.mark.asyncio
    async def test_configured_search_up(self):
        keybinds = Keybinds.from_config({"searchUp": "ctrl+p"})
        searcher = FakeSearcher([".a", ".b", ".c"])
        editor = make_editor(".", searcher, keybinds=keybinds)
        await enter_search(editor)
        await editor.operate(Keystroke("p", Modifiers.CONTROL))
        assert editor.text() == ".c"
        assert editor.mode == "search"

        # Plain up is no longer navigation
        await editor.operate(UP)
        assert editor.mode == "edit"

    @pytest.mark.asyncio
    async def test_modified_down_leaves_search(self):
        searcher = FakeSearcher([".a", ".b"])
        editor = make_editor(".", searcher)
        await enter_search(editor)
        await editor.operate(Keystroke(Key.down, Modifiers.SHIFT))
        assert editor.mode == "edit"
        assert editor.text() == ".a"

    @pytest.mark.asyncio
    async def test_other_key_leaves_and_is_replayed(self):
        searcher = FakeSearcher([".a", ".b"])
        editor = make_editor(".", searcher)
        await enter_search(editor)
        await editor.operate(Keystroke("x"))
        assert editor.mode == "edit"
        assert searcher.calls[-1] == ("cancel_session",)
        assert editor.text() == ".ax"
        assert editor.guide.text == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "event",
        [
            Keystroke("x"),
            Keystroke(Key.backspace),
            Keystroke("a", Modifiers.CONTROL),
            Keystroke("w", Modifiers.CONTROL),
            Keystroke(Key.left),
            Keystroke("f5"),
        ],
    )
    async def test_exit_matches_plain_edit(self, event):
        searcher = FakeSearcher([".items", ".name"])
        editor = make_editor(".", searcher)
        await enter_search(editor)
        await editor.operate(event)

        reference = make_editor(".items")
        reference.defocus()
        await reference.operate(event)

        assert editor.mode == reference.mode == "edit"
        assert editor.text() == reference.text()
        assert editor.state.texteditor.position == reference.state.texteditor.position
        assert editor.guide.text == reference.guide.text

    @pytest.mark.asyncio
    async def test_completion_key_in_search_is_navigation(self):
        searcher = FakeSearcher([".a", ".b"])
        editor = make_editor(".", searcher)
        await enter_search(editor)
        await editor.operate(TAB)
        assert [c for c in searcher.calls if c[0] == "start_search"] == [("start_search", ".")]


# ---------------------------------------------------------------------------
# Focus lifecycle
# ---------------------------------------------------------------------------


class TestFocus:
    def test_initial_mode(self):
        assert make_editor().mode == "edit"

    def test_focus_applies_focus_theme(self):
        editor = make_editor()
        editor.focus()
        assert theme_fields(editor) == (
            DEFAULT_FOCUS_THEME.prefix,
            DEFAULT_FOCUS_THEME.prefix_style,
            DEFAULT_FOCUS_THEME.active_char_style,
            DEFAULT_FOCUS_THEME.inactive_char_style,
        )

    def test_focus_defocus_focus_round_trip(self):
        editor = make_editor()
        editor.focus()
        focused = theme_fields(editor)
        editor.defocus()
        assert editor.state.prefix == DEFAULT_DEFOCUS_THEME.prefix
        editor.focus()
        assert theme_fields(editor) == focused

    def test_focus_does_not_touch_buffer(self):
        editor = make_editor("abc")
        editor.focus()
        assert editor.text() == "abc"
        assert editor.state.texteditor.position == 3

    @pytest.mark.asyncio
    async def test_defocus_leaves_search(self):
        searcher = FakeSearcher([".a", ".b"])
        editor = make_editor(".", searcher)
        await enter_search(editor)
        editor.defocus()
        assert editor.mode == "edit"
        assert editor.guide.text == ""
        assert searcher.calls[-1] == ("cancel_session",)
        assert editor.text() == ".a"

    def test_defocus_in_edit_mode(self):
        editor = make_editor()
        editor.guide.set("hello", SUCCESS_STYLE)
        editor.defocus()
        assert editor.mode == "edit"
        assert editor.guide.text == ""


# ---------------------------------------------------------------------------
# Panes
# ---------------------------------------------------------------------------


class TestPanes:
    def test_editor_pane(self):
        editor = make_editor("ab")
        pane = editor.create_editor_pane(40, 1)
        assert pane.height == 1
        assert "ab" in pane.lines[0]

    def test_searcher_pane_delegates(self):
        editor = make_editor("", FakeSearcher([".a", ".b"]))
        assert editor.create_searcher_pane(40, 5).lines == (".a", ".b")

    @pytest.mark.asyncio
    async def test_guide_pane(self):
        editor = make_editor()
        assert editor.create_guide_pane(40, 1).is_empty()
        await editor.operate(TAB)
        lines = editor.create_guide_pane(40, 1).lines
        assert len(lines) == 1
        assert "No suggestion found for ''" in lines[0]

    def test_panes_have_no_side_effects(self):
        editor = make_editor("ab", FakeSearcher([".a"]))
        editor.create_editor_pane(10, 1)
        editor.create_searcher_pane(10, 3)
        editor.create_guide_pane(10, 1)
        assert editor.text() == "ab"
        assert editor.mode == "edit"
