from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from .constants import DEFAULT_HEADER, DEFAULT_INCLUDE_KEYWORD, DEFAULT_INCLUDE_PREFIX


@dataclass(frozen=True)
class WrapDialect:
    """How artifacts are named, headed and referenced from the entry document."""

    base_name: str = "node"
    extension: str = "php"
    header: str = DEFAULT_HEADER
    include_keyword: str = DEFAULT_INCLUDE_KEYWORD
    include_prefix: str = DEFAULT_INCLUDE_PREFIX

    @classmethod
    def for_document(cls, path: Path, **overrides: str) -> "WrapDialect":
        return cls(base_name=path.stem, extension=path.suffix.lstrip("."), **overrides)

    def artifact_name(self, qualified_name: str) -> str:
        if self.extension:
            return f"{self.base_name}.{qualified_name}.{self.extension}"
        return f"{self.base_name}.{qualified_name}"

    def include_line(self, indent: str, qualified_name: str) -> str:
        return (
            f'{indent}{self.include_keyword} '
            f'"{self.include_prefix}{self.artifact_name(qualified_name)}";'
        )

    @property
    def include_re(self) -> re.Pattern[str]:
        suffix = r"\." + re.escape(self.extension) if self.extension else ""
        return re.compile(
            r"^\s*"
            + re.escape(self.include_keyword)
            + r"\s+[\"'][^\"']*"
            + re.escape(self.base_name)
            + r"\.([a-z_]+(?:\.[a-z_]+)*)"
            + suffix
            + r"[\"'];\s*$"
        )

    def referenced_name(self, line: str) -> str | None:
        match = self.include_re.match(line)
        return match.group(1) if match else None

    def render_artifact(self, content: str) -> str:
        return f"{self.header}\n\n{content}\n"

    def strip_header(self, text: str) -> str:
        """Drop the header line and the blank line after it, if present."""
        pattern = r"\A" + re.escape(self.header) + r"[ \t]*\r?\n(?:[ \t]*\r?\n)?"
        return re.sub(pattern, "", text, count=1)
