"""Height estimation for rendered units."""

from __future__ import annotations

import math
from typing import Protocol


class HeightMeasurer(Protocol):
    """Return the scrollable height of ``text`` once rendered."""

    def measure(self, text: str, *, wrap: bool = False) -> float: ...


class LineHeightMeasurer:
    """Estimate heights from line counts and a line height derived from the font size.

    When ``wrap`` is true, long lines are soft-wrapped at ``columns`` characters
    and count as several visual lines.
    """

    def __init__(
        self,
        *,
        font_size: float = 14,
        line_height_ratio: float = 1.5,
        columns: int = 80,
        padding: float = 0.0,
    ) -> None:
        self.line_height = font_size * line_height_ratio
        self.columns = max(columns, 1)
        self.padding = padding

    def measure(self, text: str, *, wrap: bool = False) -> float:
        return self.count_lines(text, wrap=wrap) * self.line_height + self.padding

    def count_lines(self, text: str, *, wrap: bool = False) -> int:
        if not text:
            return 0
        lines = text.rstrip("\n").split("\n")
        if not wrap:
            return len(lines)
        return sum(max(1, math.ceil(len(line) / self.columns)) for line in lines)


__all__ = ["HeightMeasurer", "LineHeightMeasurer"]
