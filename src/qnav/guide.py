"""Guide line: transient one-line status feedback."""

from __future__ import annotations

from dataclasses import dataclass, field

from qnav.pane import EMPTY_PANE, Pane
from qnav.style import PLAIN, Color, Style
from qnav.utils import truncate_to_width

SUCCESS_STYLE = Style(fg=Color.GREEN)
WARNING_STYLE = Style(fg=Color.YELLOW)


@dataclass
class Guide:
    text: str = ""
    style: Style = field(default=PLAIN)

    def set(self, text: str, style: Style) -> None:
        self.text = text
        self.style = style

    def clear(self) -> None:
        self.text = ""

    def create_pane(self, width: int, height: int) -> Pane:
        if not self.text or height <= 0:
            return EMPTY_PANE
        line = truncate_to_width(self.text, width)
        return Pane.from_lines([self.style(line)], height)
