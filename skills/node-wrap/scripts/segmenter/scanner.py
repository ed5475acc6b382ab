"""Brace-depth walker that ignores braces inside quoted string literals.

The scanner has no notion of comments. Callers needing comment awareness
(doc-comment lookback in spans.py) do their own narrower scan.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .constants import CLOSE_BRACE, ESCAPE_CHAR, OPEN_BRACE, QUOTE_CHARS


@dataclass
class ScanState:
    brace_depth: int = 0
    in_string: bool = False
    string_delimiter: str = ""
    escape_active: bool = False


class StringScanner:
    def __init__(self, depth: int = 0) -> None:
        self.state = ScanState(brace_depth=depth)

    @property
    def depth(self) -> int:
        return self.state.brace_depth

    @property
    def underflow(self) -> bool:
        """True once a closing brace appeared with no matching opener."""
        return self.state.brace_depth < 0

    def feed(self, char: str) -> None:
        state = self.state
        if not state.in_string:
            if char == OPEN_BRACE:
                state.brace_depth += 1
            elif char == CLOSE_BRACE:
                state.brace_depth -= 1
            elif char in QUOTE_CHARS:
                state.in_string = True
                state.string_delimiter = char
            return
        if state.escape_active:
            state.escape_active = False
        elif char == ESCAPE_CHAR:
            state.escape_active = True
        elif char == state.string_delimiter:
            state.in_string = False
            state.string_delimiter = ""

    def scan(self, text: str, start: int = 0) -> Optional[int]:
        """Feed text[start:] until depth returns to zero outside a string.

        Returns the offset of the brace that closed the outermost level, or
        None when the input ends first (or underflows).
        """
        for offset in range(start, len(text)):
            char = text[offset]
            self.feed(char)
            if char == CLOSE_BRACE and not self.state.in_string:
                if self.state.brace_depth == 0:
                    return offset
                if self.underflow:
                    return None
        return None


def find_closing_brace(text: str, open_offset: int) -> Optional[int]:
    if open_offset < 0 or open_offset >= len(text) or text[open_offset] != OPEN_BRACE:
        return None
    return StringScanner(depth=1).scan(text, open_offset + 1)
