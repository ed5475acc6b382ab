"""Marker-delimited sections (``# name begin`` ... ``# name end``).

Nested sections are parsed depth-first and replaced by stubs inside their
parent's content, so a parent's ``content`` is already the text its artifact
will hold (before de-indentation).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence

from .constants import BEGIN_MARKER_RE, end_marker_re
from .dialect import WrapDialect

logger = logging.getLogger(__name__)


@dataclass
class Section:
    name: str
    qualified_name: str
    indent: str
    start: int
    end: int
    content: str
    begin_line: str
    end_line: str
    children: List["Section"] = field(default_factory=list)

    @property
    def line_count(self) -> int:
        return self.end - self.start + 1


@dataclass
class ParseReport:
    sections: List[Section] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)

    def walk(self) -> Iterator[Section]:
        return walk_sections(self.sections)


@dataclass
class Stub:
    name: str
    qualified_name: str
    indent: str
    start: int
    begin_line: str
    end_line: str

    @property
    def end(self) -> int:
        return self.start + 2


def walk_sections(sections: Sequence[Section]) -> Iterator[Section]:
    for section in sections:
        yield section
        yield from walk_sections(section.children)


def trim_trailing_blank_lines(lines: Sequence[str]) -> List[str]:
    trimmed = list(lines)
    while trimmed and not trimmed[-1].strip():
        trimmed.pop()
    return trimmed


def _find_end(lines: Sequence[str], name: str, begin: int) -> Optional[int]:
    end_re = end_marker_re(name)
    for idx in range(begin + 1, len(lines)):
        if end_re.match(lines[idx]):
            return idx
    return None


def is_artifact_reference(lines: Sequence[str], dialect: WrapDialect) -> bool:
    for line in lines:
        if line.strip():
            return dialect.referenced_name(line) is not None
    return False


def parse_sections(document: str, dialect: WrapDialect, parent: str = "") -> ParseReport:
    lines = document.split("\n")
    report = ParseReport()
    idx = 0
    while idx < len(lines):
        match = BEGIN_MARKER_RE.match(lines[idx])
        if not match:
            idx += 1
            continue
        indent, name = match.group(1), match.group(2)
        qualified = f"{parent}.{name}" if parent else name
        end = _find_end(lines, name, idx)
        if end is None:
            logger.debug("unmatched begin marker '%s' at line %d", qualified, idx + 1)
            report.unmatched.append(qualified)
            idx += 1
            continue
        raw = trim_trailing_blank_lines(lines[idx + 1 : end])
        if is_artifact_reference(raw, dialect):
            idx = end + 1
            continue
        inner = parse_sections("\n".join(raw), dialect, qualified)
        report.unmatched.extend(inner.unmatched)
        if inner.sections:
            raw = replace_sections(raw, inner.sections, dialect)
        report.sections.append(
            Section(
                name=name,
                qualified_name=qualified,
                indent=indent,
                start=idx,
                end=end,
                content="\n".join(raw),
                begin_line=lines[idx],
                end_line=lines[end],
                children=inner.sections,
            )
        )
        idx = end + 1
    return report


def replace_sections(
    lines: Sequence[str], sections: Sequence[Section], dialect: WrapDialect
) -> List[str]:
    """Swap each section (markers included) for its three-line stub."""
    result = list(lines)
    offset = 0
    for section in sections:
        start = section.start + offset
        end = section.end + offset
        stub = [
            section.begin_line,
            dialect.include_line(section.indent, section.qualified_name),
            section.end_line,
        ]
        result[start : end + 1] = stub
        offset += len(stub) - (end - start + 1)
    return result


def find_stubs(document: str, dialect: WrapDialect) -> List[Stub]:
    lines = document.split("\n")
    stubs: List[Stub] = []
    idx = 0
    while idx + 2 < len(lines):
        match = BEGIN_MARKER_RE.match(lines[idx])
        qualified = dialect.referenced_name(lines[idx + 1]) if match else None
        if match and qualified and end_marker_re(match.group(2)).match(lines[idx + 2]):
            stubs.append(
                Stub(
                    name=match.group(2),
                    qualified_name=qualified,
                    indent=match.group(1),
                    start=idx,
                    begin_line=lines[idx],
                    end_line=lines[idx + 2],
                )
            )
            idx += 3
            continue
        idx += 1
    return stubs
