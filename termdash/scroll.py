"""Scrolling shared by every table-shaped view."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, TypeVar

T = TypeVar("T")

# rows that must stay below the offset before scrolling down stops
SCROLL_WINDOW = 10


def visible_slice(rows: Sequence[T], offset: int, height: int) -> Sequence[T]:
    offset = max(0, offset)
    return rows[offset : offset + max(0, height)]


def scroll_up(offset: int) -> int:
    return max(0, offset - 1)


def scroll_down(offset: int, total_rows: int, window: int = SCROLL_WINDOW) -> int:
    """Advance by one while ``offset + window < total_rows``."""
    if offset + window < total_rows:
        return offset + 1
    return offset


def column_widths(
    rows: Sequence[Sequence[str]], min_width: int, max_width: int
) -> list[int]:
    """Widest cell per column, clamped to ``[min_width, max_width]``."""

    ncols = max((len(r) for r in rows), default=0)
    widths = [0] * ncols
    for row in rows:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(cell))
    return [min(max_width, max(min_width, w)) for w in widths]


@dataclass
class ScrollState:
    offset: int = 0

    def up(self) -> None:
        self.offset = scroll_up(self.offset)

    def down(self, total_rows: int, window: int = SCROLL_WINDOW) -> None:
        self.offset = scroll_down(self.offset, total_rows, window)

    def clamp(self, total_rows: int, window: int = SCROLL_WINDOW) -> None:
        """Pull the offset back after the row count shrank."""
        self.offset = max(0, min(self.offset, total_rows - window))

    def reset(self) -> None:
        self.offset = 0
