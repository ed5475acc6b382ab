from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Tuple

from _fs import read_text, remove_file, write_text

from .dialect import WrapDialect
from .errors import DocumentNotFoundError, MissingArtifactError
from .sections import find_stubs, parse_sections, replace_sections, trim_trailing_blank_lines

logger = logging.getLogger(__name__)


@dataclass
class WrapResult:
    count: int
    message: str
    document: str = ""
    artifacts: List[Path] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)
    collisions: List[str] = field(default_factory=list)
    shared: List[str] = field(default_factory=list)


def strip_indent(content: str, indent: str) -> str:
    if not indent:
        return content
    size = len(indent)
    return "\n".join(
        line[size:] if line.startswith(indent) else line for line in content.split("\n")
    )


def add_indent(content: str, indent: str) -> str:
    if not indent:
        return content
    return "\n".join(f"{indent}{line}" if line else "" for line in content.split("\n"))


def _notes(result: WrapResult) -> str:
    notes = []
    if result.unmatched:
        notes.append(f"{len(result.unmatched)} unmatched markers skipped")
    if result.skipped:
        notes.append(f"{len(result.skipped)} orphaned stubs left in place")
    if result.collisions:
        notes.append(f"{len(result.collisions)} duplicate section names overwritten")
    if result.shared:
        notes.append(f"{len(result.shared)} stubs reused an already merged artifact")
    return f" ({'; '.join(notes)})" if notes else ""


class WrapEngine:
    """Split marked sections of one document into artifacts, and merge them back."""

    def __init__(
        self,
        document_path: Path,
        dialect: Optional[WrapDialect] = None,
        *,
        strict_close: bool = False,
    ) -> None:
        self.document_path = document_path
        self.dialect = dialect or WrapDialect.for_document(document_path)
        self.strict_close = strict_close

    def artifact_path(self, qualified_name: str) -> Path:
        return self.document_path.parent / self.dialect.artifact_name(qualified_name)

    def _read_document(self) -> str:
        if not self.document_path.is_file():
            raise DocumentNotFoundError(self.document_path)
        return read_text(self.document_path)

    def open(self) -> WrapResult:
        text = self._read_document()
        report = parse_sections(text, self.dialect)
        result = WrapResult(count=0, message="", document=text, unmatched=report.unmatched)
        if not report.sections:
            result.message = f"{self.document_path.name} is already wrapped" + _notes(result)
            return result

        seen: Set[str] = set()
        for section in report.walk():
            if section.qualified_name in seen:
                logger.warning("duplicate section name '%s' overwrites earlier artifact", section.qualified_name)
                result.collisions.append(section.qualified_name)
            seen.add(section.qualified_name)
            path = self.artifact_path(section.qualified_name)
            clean = strip_indent(section.content, section.indent)
            write_text(path, self.dialect.render_artifact(clean))
            logger.debug("wrote %s (%d lines)", path.name, section.line_count)
            result.artifacts.append(path)

        lines = replace_sections(text.split("\n"), report.sections, self.dialect)
        result.document = "\n".join(lines)
        write_text(self.document_path, result.document)
        result.count = len(result.artifacts)
        result.message = f"Wrapped {result.count} sections" + _notes(result)
        return result

    def close(self) -> WrapResult:
        text = self._read_document()
        result = WrapResult(count=0, message="", document=text)
        if not find_stubs(text, self.dialect):
            result.message = f"{self.document_path.name} is already unwrapped"
            return result

        merged, consumed = self._resolve(text, result.skipped, set())
        result.document = merged
        write_text(self.document_path, merged)
        unique: List[Path] = []
        for path in consumed:
            if path in unique:
                logger.warning("artifact %s is included by more than one stub", path.name)
                result.shared.append(path.name)
                continue
            unique.append(path)
            remove_file(path)
            logger.debug("removed %s", path.name)
        result.artifacts = unique
        result.count = len(unique)
        result.message = f"Unwrapped {result.count} sections" + _notes(result)
        return result

    def _resolve(self, text: str, skipped: List[str], active: Set[Path]) -> Tuple[str, List[Path]]:
        lines = text.split("\n")
        consumed: List[Path] = []
        offset = 0
        for stub in find_stubs(text, self.dialect):
            path = self.artifact_path(stub.qualified_name)
            if path in active:
                logger.warning("artifact %s includes itself; leaving stub", path.name)
                skipped.append(stub.qualified_name)
                continue
            if not path.is_file():
                if self.strict_close:
                    raise MissingArtifactError(path, stub.qualified_name)
                logger.warning("artifact %s is missing; leaving stub", path.name)
                skipped.append(stub.qualified_name)
                continue
            body = self.dialect.strip_header(read_text(path))
            body = "\n".join(trim_trailing_blank_lines(body.split("\n")))
            body, inner = self._resolve(body, skipped, active | {path})
            consumed.append(path)
            consumed.extend(inner)

            replacement = [stub.begin_line]
            if body:
                replacement.extend(add_indent(body, stub.indent).split("\n"))
            replacement.append(stub.end_line)
            start = stub.start + offset
            lines[start : stub.end + offset + 1] = replacement
            offset += len(replacement) - 3
        return "\n".join(lines), consumed
