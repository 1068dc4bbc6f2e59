"""CLI entry point for qnav.

Reads a JSON document, runs the interactive filter editor over it and
prints the accepted filter to stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import functools
import json
import logging
import os
import sys
from typing import Any

from qnav.app import App
from qnav.config import SettingsManager
from qnav.editor import Editor
from qnav.json_paths import PathIndex
from qnav.keybindings import KeybindingConfigError, Keybinds
from qnav.search import IncrementalSearcher
from qnav.terminal import ProcessTerminal
from qnav.text_editor import EditMode, EditorState
from qnav.theme import DEFAULT_DEFOCUS_THEME, DEFAULT_FOCUS_THEME

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="qnav",
        description="Interactively build a jq path over a JSON document",
    )
    parser.add_argument("input", nargs="?", default="-", help="JSON file to read (default: stdin)")
    parser.add_argument(
        "-e", "--edit-mode", choices=[m.value for m in EditMode], help="Prompt edit mode"
    )
    parser.add_argument("-i", "--indent", type=int, help="Indentation of the JSON preview")
    parser.add_argument(
        "-n", "--no-hint", action="store_true", default=None, help="Hide the guide line"
    )
    parser.add_argument(
        "-l", "--suggestion-list-length", type=int, help="Number of suggestions shown at once"
    )
    parser.add_argument(
        "-s", "--limit-length", type=int, help="Array items shown in the preview and indexed"
    )
    parser.add_argument("--chunk-size", type=int, help="Suggestions loaded per page")
    parser.add_argument("--config", help="Settings file to use instead of the default locations")
    parser.add_argument("--log-file", help="Write logs to this file")
    parser.add_argument(
        "--log-level", default="info", choices=["debug", "info", "warning", "error"]
    )
    parser.add_argument(
        "--list-keys", action="store_true", help="Print the effective keybindings and exit"
    )
    return parser.parse_args(argv)


def _setup_logging(args: argparse.Namespace) -> None:
    # The terminal is in raw mode while running, so only log to a file
    if not args.log_file:
        return
    logging.basicConfig(
        filename=args.log_file,
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _load_settings(args: argparse.Namespace) -> SettingsManager:
    if args.config:
        settings = SettingsManager.from_file(args.config)
    else:
        settings = SettingsManager.create(os.getcwd())
    if settings.load_error is not None:
        logger.warning("Settings could not be fully loaded: %s", settings.load_error)

    settings.apply_overrides(
        {
            "editMode": args.edit_mode,
            "indent": args.indent,
            "noHint": args.no_hint,
            "suggestionListLength": args.suggestion_list_length,
            "chunkSize": args.chunk_size,
            "limitLength": args.limit_length,
        }
    )
    return settings


def _read_document(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _on_index_loaded(index: PathIndex, task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error("Failed to index suggestion paths", exc_info=error)
        index.mark_failed(error)


async def run(document: Any, settings: SettingsManager, keybinds: Keybinds) -> str | None:
    """Build the editor over *document* and run one interactive session."""
    index = PathIndex()
    limit_length = settings.get_limit_length()
    load_task = asyncio.create_task(
        index.load(
            document,
            limit=settings.get_max_suggestions(),
            max_array_items=limit_length,
        )
    )
    load_task.add_done_callback(functools.partial(_on_index_loaded, index))

    list_length = settings.get_suggestion_list_length()
    searcher = IncrementalSearcher(
        index,
        chunk_size=settings.get_chunk_size(),
        list_length=list_length,
    )
    state = EditorState(
        edit_mode=settings.get_edit_mode(),
        word_break_chars=settings.get_word_break_chars(),
    )
    editor = Editor(state, searcher, DEFAULT_FOCUS_THEME, DEFAULT_DEFOCUS_THEME, keybinds)

    tty_in = None if sys.stdin.isatty() else os.open("/dev/tty", os.O_RDONLY)
    tty_out = None if sys.stdout.isatty() else open("/dev/tty", "w", encoding="utf-8")
    try:
        terminal = ProcessTerminal(input_fd=tty_in, output=tty_out)
        app = App(
            editor,
            document,
            terminal,
            indent=settings.get_indent(),
            no_hint=settings.get_no_hint(),
            suggestion_list_length=list_length,
            limit_length=limit_length,
        )
        return await app.run()
    finally:
        load_task.cancel()
        if tty_in is not None:
            os.close(tty_in)
        if tty_out is not None:
            tty_out.close()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    _setup_logging(args)

    settings = _load_settings(args)
    try:
        keybinds = settings.keybinds()
    except KeybindingConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.list_keys:
        for action, key_id in keybinds.to_config().items():
            print(f"{action:<24} {key_id}")
        return

    try:
        document = _read_document(args.input)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: failed to read JSON from {args.input}: {e}", file=sys.stderr)
        sys.exit(1)

    result = asyncio.run(run(document, settings, keybinds))
    if result is not None:
        print(result)


if __name__ == "__main__":
    main()
