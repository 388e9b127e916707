"""Incremental line/column tracking over decoded text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass
class Cursor:
    """Forward-only position in *text*.

    Lines break at ``\\n``, ``\\r\\n`` and a lone ``\\r``; columns count
    characters from 1.
    """

    text: str
    offset: int = 0
    line: int = 1
    column: int = 1

    def advance_to(self, target: int) -> None:
        target = min(target, len(self.text))
        if target <= self.offset:
            return
        text = self.text
        line, column = self.line, self.column
        for index in range(self.offset, target):
            char = text[index]
            if char == "\n" or (char == "\r" and text[index + 1 : index + 2] != "\n"):
                line += 1
                column = 1
            else:
                column += 1
        self.offset, self.line, self.column = target, line, column

    def locate(self, target: int) -> Tuple[int, int]:
        """Return the line and column of *target* without moving the cursor."""

        probe = Cursor(self.text, self.offset, self.line, self.column)
        probe.advance_to(target)
        return probe.line, probe.column
