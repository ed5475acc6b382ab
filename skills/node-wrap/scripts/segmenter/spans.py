"""Locate the exact text of a named function or class definition.

Two stages share one interface: a bounded regex that handles bodies with at
most one level of nested braces, then a structural brace scan for everything
else. Both return Optional[Span]; None means "not found".
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .constants import (
    CLASS_KEYWORDS,
    CLASS_MODIFIERS,
    FUNCTION_MODIFIERS,
    FUNCTION_NAME_RE,
    LOOKBACK_WINDOW,
)
from .scanner import find_closing_brace

_DOC_COMMENT = r"/\*\*(?:[^*]|\*(?!/))*+\*/\s*"
_STRING = r"\"(?:[^\"\\]|\\.)*+\"|'(?:[^'\\]|\\.)*+'|`(?:[^`\\]|\\.)*+`"
_COMMENT = r"//[^\n]*+|#[^\n]*+|/\*(?:[^*]|\*(?!/))*+\*/"
# A lone slash is division; comments are tried first.
_PLAIN = r"[^{}\"'`/#]++|/"
_ATOM = _COMMENT + "|" + _STRING + "|" + _PLAIN
_INNER_BLOCK = r"\{(?:" + _ATOM + r")*+\}"
_BODY = r"\{(?:" + _ATOM + "|" + _INNER_BLOCK + r")*+\}"

KINDS = ("function", "class")


@dataclass(frozen=True)
class Span:
    start: int
    end: int
    text: str
    strategy: str = "pattern"


def _modifiers_for(kind: str) -> Sequence[str]:
    return CLASS_MODIFIERS if kind == "class" else FUNCTION_MODIFIERS


def _declaration(name: str, kind: str) -> str:
    modifiers = r"(?:\b(?:" + "|".join(_modifiers_for(kind)) + r")\s+)*"
    if kind == "class":
        keywords = "|".join(CLASS_KEYWORDS)
        return modifiers + r"\b(?:" + keywords + r")\s+" + re.escape(name) + r"\b[^{;]*"
    return (
        modifiers
        + r"\bfunction\s+"
        + re.escape(name)
        + r"\s*\([^)]*\)\s*(?::\s*[^\s{]+)?\s*"
    )


def _check_kind(kind: str) -> None:
    if kind not in KINDS:
        raise ValueError(f"unknown definition kind: {kind}")


def function_names(source: str) -> List[str]:
    return [match.group(1) for match in FUNCTION_NAME_RE.finditer(source)]


def match_definition(source: str, name: str, kind: str = "function") -> Optional[Span]:
    """Fast path: doc comment, modifiers, declaration and a shallow body."""
    _check_kind(kind)
    pattern = re.compile("(?:" + _DOC_COMMENT + ")?" + _declaration(name, kind) + _BODY, re.S)
    match = pattern.search(source)
    if not match:
        return None
    return Span(match.start(), match.end(), match.group(0), "pattern")


def find_definition_start(
    source: str,
    pos: int,
    *,
    modifiers: Sequence[str] = FUNCTION_MODIFIERS,
    window: int = LOOKBACK_WINDOW,
) -> int:
    """Walk back from a declaration over a block comment or modifier-only lines.

    Nothing before ``pos - window`` is examined.
    """
    limit = max(0, pos - window)
    start = pos
    while True:
        cursor = start - 1
        while cursor >= limit and source[cursor].isspace():
            cursor -= 1
        if cursor < limit:
            return start
        if cursor >= 1 and source[cursor - 1 : cursor + 1] == "*/":
            opener = source.rfind("/*", limit, cursor - 1)
            return opener if opener != -1 else start
        line_begin = source.rfind("\n", 0, cursor) + 1
        if line_begin < limit:
            return start
        line = source[line_begin : cursor + 1]
        words = line.split()
        if not words or any(word not in modifiers for word in words):
            return start
        start = line_begin + len(line) - len(line.lstrip())


def extract_structural(
    source: str,
    name: str,
    kind: str = "function",
    *,
    window: int = LOOKBACK_WINDOW,
) -> Optional[Span]:
    _check_kind(kind)
    pattern = re.compile(_declaration(name, kind) + r"\{", re.S)
    match = pattern.search(source)
    if not match:
        return None
    close = find_closing_brace(source, match.end() - 1)
    if close is None:
        return None
    start = find_definition_start(
        source, match.start(), modifiers=_modifiers_for(kind), window=window
    )
    return Span(start, close + 1, source[start : close + 1], "structural")


def extract_span(
    source: str,
    name: str,
    kind: str = "function",
    *,
    window: int = LOOKBACK_WINDOW,
) -> Optional[Span]:
    span = match_definition(source, name, kind)
    if span is not None:
        return span
    return extract_structural(source, name, kind, window=window)
