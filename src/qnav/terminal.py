"""Terminal abstraction for raw-mode tty interaction.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal`` that
manages raw mode, the kitty keyboard protocol, cursor visibility and screen
clearing, and delivers input as complete key sequences.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import signal
import sys
import termios
import tty
from typing import Callable, Protocol, TextIO

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

ESC = "\x1b"

# Flag 1: disambiguate escape codes. Release events are not requested.
_KITTY_QUERY = "\x1b[?u"
_KITTY_ENABLE = "\x1b[>1u"
_KITTY_DISABLE = "\x1b[<u"

_KITTY_RESPONSE_RE = re.compile(r"^\x1b\[\?(\d+)u$")

_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_CLEAR_SCREEN = "\x1b[2J\x1b[H"
_ALT_SCREEN_ENTER = "\x1b[?1049h"
_ALT_SCREEN_LEAVE = "\x1b[?1049l"


# ---------------------------------------------------------------------------
# Sequence splitting
# ---------------------------------------------------------------------------


def _is_complete_sequence(data: str) -> str:
    """Check if a string is a complete escape sequence or needs more data.

    Returns 'complete', 'incomplete', or 'not-escape'.
    """
    if not data.startswith(ESC):
        return "not-escape"

    if len(data) == 1:
        return "incomplete"

    after_esc = data[1:]

    # CSI sequences: ESC [
    if after_esc.startswith("["):
        if len(data) < 3:
            return "incomplete"
        return "complete" if 0x40 <= ord(data[-1]) <= 0x7E else "incomplete"

    # OSC sequences: ESC ]
    if after_esc.startswith("]"):
        if data.endswith(f"{ESC}\\") or data.endswith("\x07"):
            return "complete"
        return "incomplete"

    # SS3 sequences: ESC O
    if after_esc.startswith("O"):
        return "complete" if len(after_esc) >= 2 else "incomplete"

    # Meta-prefixed escape sequence: ESC ESC ...
    if after_esc.startswith(ESC):
        return _is_complete_sequence(after_esc)

    # Meta key sequences: ESC followed by a single character
    return "complete"


def split_sequences(buffer: str) -> tuple[list[str], str]:
    """Split accumulated input into complete sequences.

    Returns (sequences, remainder) where the remainder is an escape sequence
    still waiting for more bytes.
    """
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        remaining = buffer[pos:]

        if not remaining.startswith(ESC):
            sequences.append(remaining[0])
            pos += 1
            continue

        seq_end = 1
        while seq_end <= len(remaining):
            status = _is_complete_sequence(remaining[:seq_end])
            if status == "incomplete":
                seq_end += 1
                continue
            sequences.append(remaining[:seq_end])
            pos += seq_end
            break
        else:
            return sequences, remaining

    return sequences, ""


class InputBuffer:
    """Buffers raw input and emits complete sequences.

    A lone ESC (or any unfinished escape sequence) is held back for
    *timeout* seconds in case the rest of the sequence is still in flight,
    then flushed as-is.
    """

    def __init__(self, on_data: Callable[[str], None], *, timeout: float = 0.01) -> None:
        self._buffer: str = ""
        self._on_data = on_data
        self._timeout = timeout
        self._timeout_handle: asyncio.TimerHandle | None = None

    def process(self, data: str) -> None:
        self._cancel_timeout()
        self._buffer += data

        sequences, self._buffer = split_sequences(self._buffer)
        for sequence in sequences:
            self._on_data(sequence)

        if self._buffer:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                self.flush()
                return
            self._timeout_handle = loop.call_later(self._timeout, self.flush)

    def flush(self) -> None:
        self._cancel_timeout()
        if self._buffer:
            data, self._buffer = self._buffer, ""
            self._on_data(data)

    def clear(self) -> None:
        self._cancel_timeout()
        self._buffer = ""

    def _cancel_timeout(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal I/O operations."""

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...

    def clear_screen(self) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Concrete terminal backed by a tty.

    Input is read from *input_fd* through the running asyncio loop; output
    goes to *output*. Both default to the process's stdin/stdout.
    """

    def __init__(self, input_fd: int | None = None, output: TextIO | None = None) -> None:
        self._input_fd = sys.stdin.fileno() if input_fd is None else input_fd
        self._output = sys.stdout if output is None else output
        self._input_handler: Callable[[str], None] | None = None
        self._resize_handler: Callable[[], None] | None = None
        self._input_buffer: InputBuffer | None = None
        self._reader_active: bool = False
        self._original_termios: list | None = None
        self._prev_sigwinch_handler: signal.Handlers | None = None
        self._kitty_protocol_active: bool = False

    # -- properties ---------------------------------------------------------

    @property
    def kitty_protocol_active(self) -> bool:
        return self._kitty_protocol_active

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(self._output.fileno()).columns
        except (ValueError, OSError):
            return 80

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(self._output.fileno()).lines
        except (ValueError, OSError):
            return 24

    # -- start / stop -------------------------------------------------------

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None:
        """Enable raw mode, switch to the alternate screen and begin reading input."""
        self._input_handler = on_input
        self._resize_handler = on_resize

        self._original_termios = termios.tcgetattr(self._input_fd)
        tty.setraw(self._input_fd)

        self._raw_write(_ALT_SCREEN_ENTER)

        self._prev_sigwinch_handler = signal.getsignal(signal.SIGWINCH)
        signal.signal(signal.SIGWINCH, self._on_sigwinch)

        self._input_buffer = InputBuffer(self._on_sequence)
        loop = asyncio.get_running_loop()
        loop.add_reader(self._input_fd, self._on_readable)
        self._reader_active = True

        self._raw_write(_KITTY_QUERY)

    def stop(self) -> None:
        """Restore terminal state and clean up all handlers."""
        if self._kitty_protocol_active:
            self._raw_write(_KITTY_DISABLE)
            self._kitty_protocol_active = False

        if self._input_buffer is not None:
            self._input_buffer.clear()
            self._input_buffer = None

        if self._reader_active:
            try:
                asyncio.get_running_loop().remove_reader(self._input_fd)
            except (RuntimeError, ValueError):
                pass
            self._reader_active = False

        if self._prev_sigwinch_handler is not None:
            signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler)
            self._prev_sigwinch_handler = None

        self._raw_write(_SHOW_CURSOR + _ALT_SCREEN_LEAVE)

        if self._original_termios is not None:
            termios.tcsetattr(self._input_fd, termios.TCSADRAIN, self._original_termios)
            self._original_termios = None

        self._input_handler = None
        self._resize_handler = None

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        self._raw_write(data)

    def hide_cursor(self) -> None:
        self._raw_write(_HIDE_CURSOR)

    def show_cursor(self) -> None:
        self._raw_write(_SHOW_CURSOR)

    def clear_screen(self) -> None:
        self._raw_write(_CLEAR_SCREEN)

    # -- private: input -----------------------------------------------------

    def _on_readable(self) -> None:
        try:
            raw = os.read(self._input_fd, 4096)
        except OSError:
            return
        if raw and self._input_buffer is not None:
            self._input_buffer.process(raw.decode("utf-8", errors="replace"))

    def _on_sequence(self, data: str) -> None:
        # Answer to the kitty protocol query: the terminal supports it
        if _KITTY_RESPONSE_RE.match(data):
            if not self._kitty_protocol_active:
                self._kitty_protocol_active = True
                self._raw_write(_KITTY_ENABLE)
                logger.debug("Kitty keyboard protocol enabled")
            return
        if self._input_handler is not None:
            self._input_handler(data)

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        if self._resize_handler is not None:
            self._resize_handler()

    def _raw_write(self, data: str) -> None:
        """Write directly to the output, bypassing buffering."""
        try:
            self._output.write(data)
            self._output.flush()
        except OSError:
            pass
