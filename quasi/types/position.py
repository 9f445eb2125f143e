from __future__ import annotations

from typing import NamedTuple


class Position(NamedTuple):
    """Location of a node in its source text (line and column are 1-based)."""

    offset: int
    line: int
    column: int

    @classmethod
    def of(cls, source: str, offset: int) -> Position:
        line = source.count("\n", 0, offset) + 1
        column = offset - (source.rfind("\n", 0, offset) + 1) + 1
        return cls(offset, line, column)

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"
