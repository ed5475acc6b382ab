from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set

from metrics import (
    FILE_METRIC_NOTES,
    METRIC_NOTES,
    compute_file_metrics,
    function_metrics,
)
from segmenter.constants import LOOKBACK_WINDOW
from segmenter.spans import Span, extract_span, function_names

logger = logging.getLogger(__name__)


class CallCache:
    """Call-site counts by function name, scoped to one rank invocation."""

    def __init__(self, files: Sequence[Path] = (), *, exclude: Optional[Path] = None) -> None:
        skip = exclude.resolve() if exclude else None
        self.files = [path for path in files if path.resolve() != skip]
        self._counts: Dict[str, int] = {}
        self._sources: Optional[List[str]] = None

    def sources(self) -> List[str]:
        if self._sources is None:
            self._sources = []
            for path in self.files:
                try:
                    self._sources.append(path.read_text(encoding="utf-8"))
                except (OSError, UnicodeDecodeError) as exc:
                    logger.debug("skipping %s: %s", path, exc)
        return self._sources

    def count(self, name: str, source: str) -> int:
        if name not in self._counts:
            pattern = re.compile(r"(?<!function\s)\b" + re.escape(name) + r"\s*\(")
            total = len(pattern.findall(source))
            total += sum(len(pattern.findall(text)) for text in self.sources())
            self._counts[name] = total
        return self._counts[name]

    def defined_names(self) -> Set[str]:
        names: Set[str] = set()
        for text in self.sources():
            names.update(function_names(text))
        return names


@dataclass
class FunctionScore:
    name: str
    metrics: Dict[str, float]
    raw: float
    score: float
    span: Optional[Span] = None


@dataclass
class RankResult:
    file_metrics: Dict[str, float]
    functions: Dict[str, FunctionScore] = field(default_factory=dict)

    @property
    def file_total(self) -> float:
        return sum(self.file_metrics.values())

    def ascending(self) -> List[FunctionScore]:
        return sorted(self.functions.values(), key=lambda item: item.score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_score": self.file_total,
            "file_metrics": self.file_metrics,
            "functions": [
                {
                    "name": item.name,
                    "score": item.score,
                    "raw": item.raw,
                    "metrics": item.metrics,
                    "span": [item.span.start, item.span.end] if item.span else None,
                }
                for item in self.ascending()
            ],
        }


def rank_source(
    source: str,
    cache: CallCache,
    *,
    names: Optional[Sequence[str]] = None,
    window: int = LOOKBACK_WINDOW,
) -> RankResult:
    result = RankResult(file_metrics=compute_file_metrics(source))
    file_total = result.file_total
    defined = function_names(source)
    user_functions = set(defined) | cache.defined_names()
    for name in names if names is not None else defined:
        if name in result.functions:
            continue
        span = extract_span(source, name, window=window)
        if span is None:
            logger.debug("no definition span for %s", name)
        body = span.text if span else ""
        values = function_metrics(source, name, body, cache, user_functions)
        raw = sum(values.values())
        result.functions[name] = FunctionScore(name, values, raw, raw + file_total, span)
    return result


def _num(value: float) -> str:
    return f"{value:,.1f}"


def _metric_columns(file_metrics: Dict[str, float]) -> List[str]:
    positive = sorted(((k, v) for k, v in file_metrics.items() if v > 0), key=lambda kv: -kv[1])
    negative = sorted(((k, v) for k, v in file_metrics.items() if v < 0), key=lambda kv: kv[1])
    items = [f"{key} {_num(value)}" for key, value in positive + negative]
    if not items:
        return []
    width = max(len(item) for item in items)
    rows = math.ceil(len(items) / 3)
    lines = []
    for row in range(rows):
        cells = [items[idx] for idx in (row, row + rows, row + rows * 2) if idx < len(items)]
        padded = [cell.ljust(width + 2) for cell in cells[:-1]] + cells[-1:]
        lines.append("".join(padded))
    return lines


def format_rank_report(result: RankResult) -> str:
    lines = [f"File Score: {_num(result.file_total)}"]
    ordered = result.ascending()
    if not ordered:
        return "No functions found in file\n"
    width = max(len(item.name) for item in ordered)

    lines.append("")
    lines.append("Top Functions:")
    for item in list(reversed(ordered))[:2]:
        lines.append(f"* {item.name}(); {' ' * (width - len(item.name))}{_num(item.score)}")

    lines.append("")
    lines.append("Needs Improvement:")
    for item in ordered:
        details = "".join(
            f"{metric}: {_num(value)}; " for metric, value in item.metrics.items() if value != 0
        )
        lines.append(
            f"* {item.name}(); {' ' * (width - len(item.name))}{_num(item.score)} // {details}".rstrip()
        )

    lines.append("")
    lines.append("File Metrics:")
    lines.extend(_metric_columns(result.file_metrics))
    return "\n".join(lines) + "\n"


def _negative_lines(values: Dict[str, float], notes: Dict[str, str]) -> List[str]:
    lines = []
    for metric, value in values.items():
        if value < 0:
            note = notes.get(metric)
            lines.append(f"* {metric}: {_num(value)};" + (f" // {note}" if note else ""))
    return lines


def format_function_report(result: RankResult, name: str) -> str:
    data = result.functions[name]
    lines = [
        f"Function: {name}()",
        f"Total Score: {_num(data.score)}",
        f"Raw Score: {_num(data.raw)}",
        f"File Score: {_num(result.file_total)}",
        "",
        "Function Metrics:",
    ]
    lines.extend(
        _negative_lines(data.metrics, METRIC_NOTES)
        or ["No negative function metrics found. Good job!"]
    )
    lines.append("")
    lines.append("File Metrics:")
    lines.extend(
        _negative_lines(result.file_metrics, FILE_METRIC_NOTES)
        or ["No negative file metrics found. Good job!"]
    )
    return "\n".join(lines) + "\n"
