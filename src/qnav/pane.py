"""Rendered pane snapshots handed to the screen compositor."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Pane:
    """An immutable block of rendered lines.

    ``fold`` is true when the pane was produced for a window that was too
    small to show all of its content.
    """

    lines: tuple[str, ...] = ()
    fold: bool = False

    @classmethod
    def from_lines(cls, lines: list[str], height: int) -> Pane:
        if height <= 0:
            return cls((), fold=bool(lines))
        return cls(tuple(lines[:height]), fold=len(lines) > height)

    @property
    def height(self) -> int:
        return len(self.lines)

    def is_empty(self) -> bool:
        return not self.lines


EMPTY_PANE = Pane()
