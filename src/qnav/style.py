"""ANSI content styles.

A :class:`Style` is a comparable value describing foreground/background
colours and SGR attributes. Calling it wraps text in the matching escape
codes, so styles can be used anywhere a ``Callable[[str], str]`` theme
function is expected.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Color(IntEnum):
    """Terminal colours as SGR foreground codes (background is code + 10)."""

    BLACK = 30
    DARK_RED = 31
    DARK_GREEN = 32
    DARK_YELLOW = 33
    DARK_BLUE = 34
    DARK_MAGENTA = 35
    DARK_CYAN = 36
    GREY = 37
    DARK_GREY = 90
    RED = 91
    GREEN = 92
    YELLOW = 93
    BLUE = 94
    MAGENTA = 95
    CYAN = 96
    WHITE = 97


_RESET = "\x1b[0m"


@dataclass(frozen=True)
class Style:
    fg: Color | None = None
    bg: Color | None = None
    bold: bool = False
    dim: bool = False
    italic: bool = False
    underline: bool = False
    reverse: bool = False

    def sgr_codes(self) -> list[int]:
        codes: list[int] = []
        if self.bold:
            codes.append(1)
        if self.dim:
            codes.append(2)
        if self.italic:
            codes.append(3)
        if self.underline:
            codes.append(4)
        if self.reverse:
            codes.append(7)
        if self.fg is not None:
            codes.append(int(self.fg))
        if self.bg is not None:
            codes.append(int(self.bg) + 10)
        return codes

    def __call__(self, text: str) -> str:
        codes = self.sgr_codes()
        if not codes or not text:
            return text
        return f"\x1b[{';'.join(str(c) for c in codes)}m{text}{_RESET}"


PLAIN = Style()
