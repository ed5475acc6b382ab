from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

from _fs import read_text, source_files
from ranker import CallCache, format_rank_report, rank_source
from segmenter.constants import IDENT, LOOKBACK_WINDOW
from segmenter.spans import KINDS, extract_span

from .budget import estimate_tokens, trim_to_budget

logger = logging.getLogger(__name__)

_NOISE_RE = re.compile(
    r"\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'|/\*.*?\*/|//[^\n]*",
    re.S,
)
_DEPENDENCY_RE = re.compile(
    r"\b(?:extends|new)\s+\\?(?P<cls>" + IDENT + r")"
    r"|(?P<decl>\bfunction\s+)?\b(?P<fn>" + IDENT + r")\s*\("
)

SKIP_WORDS = frozenset(
    {
        "echo", "print", "if", "else", "elseif", "for", "foreach", "while", "do",
        "switch", "case", "default", "break", "continue", "return", "function",
        "class", "interface", "trait", "namespace", "use", "extends", "implements",
        "new", "instanceof", "clone", "true", "false", "null", "self", "parent",
        "static", "array", "string", "int", "float", "bool", "void", "mixed",
        "iterable", "callable", "object", "public", "private", "protected",
        "abstract", "final", "const", "isset", "empty", "eval", "exit", "die",
        "list", "unset", "include", "include_once", "require", "require_once",
        "match", "fn",
    }
)


@dataclass
class Definition:
    name: str
    kind: str
    path: Path
    text: str
    label: str = ""


@dataclass
class ContextResult:
    target: Definition
    related: List[Definition] = field(default_factory=list)
    text: str = ""
    tokens: int = 0
    dropped: int = 0


def split_target(target: str) -> Tuple[str, Optional[str]]:
    """``Class::method`` and ``Class->method`` resolve to the class."""
    for separator in ("::", "->"):
        if separator in target:
            return target.split(separator, 1)[0], "class"
    return target, None


def find_dependencies(text: str) -> List[Tuple[str, str]]:
    """Class and function names a definition refers to, first occurrence first."""
    deps: List[Tuple[str, str]] = []
    seen: Set[Tuple[str, str]] = set()
    for match in _DEPENDENCY_RE.finditer(_NOISE_RE.sub('""', text)):
        if match.group("cls"):
            item = (match.group("cls"), "class")
        elif match.group("decl") or match.group("fn").lower() in SKIP_WORDS:
            continue
        else:
            item = (match.group("fn"), "function")
        if item not in seen:
            seen.add(item)
            deps.append(item)
    return deps


def labelled_files(
    directories: Sequence[Tuple[str, Path]], exclude_dirs: Set[str]
) -> List[Tuple[Path, str]]:
    files: List[Tuple[Path, str]] = []
    seen: Set[Path] = set()
    for label, directory in directories:
        for path in source_files([directory], exclude_dirs):
            resolved = path.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            files.append((path, label))
    return files


class SourceIndex:
    """Lazily read source files and look definitions up across them in order."""

    def __init__(self, files: Sequence[Tuple[Path, str]], *, window: int = LOOKBACK_WINDOW) -> None:
        self.files = list(files)
        self.window = window
        self._texts: Dict[Path, Optional[str]] = {}

    @property
    def paths(self) -> List[Path]:
        return [path for path, _ in self.files]

    def text(self, path: Path) -> Optional[str]:
        if path not in self._texts:
            try:
                self._texts[path] = read_text(path)
            except (OSError, UnicodeDecodeError) as exc:
                logger.debug("skipping %s: %s", path, exc)
                self._texts[path] = None
        return self._texts[path]

    def find(self, name: str, kind: Optional[str] = None) -> Optional[Definition]:
        kinds = (kind,) if kind else KINDS
        for path, label in self.files:
            source = self.text(path)
            if not source or name not in source:
                continue
            for candidate in kinds:
                span = extract_span(source, name, candidate, window=self.window)
                if span is not None:
                    return Definition(name, candidate, path, span.text, label)
        return None


def _display_path(path: Path, root: Path) -> str:
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


def _render(definition: Definition, root: Path) -> str:
    lines = [f"# {_display_path(definition.path, root)}"]
    if definition.label:
        lines.append(f"# {definition.label}")
    lines.append("")
    lines.append(definition.text)
    return "\n".join(lines) + "\n\n"


def build_context(
    target: str,
    index: SourceIndex,
    *,
    root: Path,
    budget: int = 0,
) -> Optional[ContextResult]:
    name, kind = split_target(target)
    found = index.find(name, kind)
    if found is None:
        return None
    result = ContextResult(target=found)

    for dep, dep_kind in find_dependencies(found.text):
        if dep == name:
            continue
        item = index.find(dep, dep_kind)
        if item is None or item.path == found.path:
            continue
        result.related.append(item)
    logger.debug("%s: %d related definitions", target, len(result.related))

    blocks = [_render(found, root)]
    for idx, item in enumerate(result.related):
        lead = "# related code for context below:\n\n" if idx == 0 else ""
        blocks.append(lead + _render(item, root))

    source = index.text(found.path) or ""
    cache = CallCache(index.paths, exclude=found.path)
    report = format_rank_report(rank_source(source, cache, window=index.window))
    rank_lines = [f"# ranking analysis of: {_display_path(found.path, root)}", "#"]
    rank_lines.extend(f"# {line}".rstrip() for line in report.rstrip("\n").split("\n"))
    blocks.append("\n".join(rank_lines) + "\n")

    kept, result.dropped = trim_to_budget(blocks, budget)
    if result.dropped:
        kept.append(f"# ({result.dropped} blocks omitted to fit a {budget} token budget)\n")
    result.text = "".join(kept)
    result.tokens = estimate_tokens(result.text)
    return result
