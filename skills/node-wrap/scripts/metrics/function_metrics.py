from __future__ import annotations

import re
from typing import TYPE_CHECKING, Callable, Dict, FrozenSet, List, Set, Tuple

from segmenter.constants import IDENT

if TYPE_CHECKING:
    from ranker import CallCache

_FIRST_BLOCK_RE = re.compile(r"\{([\s\S]*?)\}")
_WHOLE_BLOCK_RE = re.compile(r"\{([\s\S]*)\}")
_CALL_RE = re.compile(r"\b(" + IDENT + r")\s*\(")

BRANCH_PATTERNS: List[Tuple[str, int]] = [
    (r"\bif\s*\(", re.I),
    (r"\belseif\s*\(", re.I),
    (r"\belse\s*\{?\s*(?!\s*if)", re.I),
    (r"\bswitch\s*\(", re.I),
    (r"\bcase\b", 0),
    (r"\bdefault\s*:", re.I),
    (r"\bfor\s*\(", re.I),
    (r"\bforeach\s*\(", re.I),
    (r"\bwhile\s*\(", re.I),
    (r"\bdo\s*\{[^}]*\bwhile\b", re.I),
    (r"\?\s*(?!:)", 0),
    (r":\s*(?!['\"]|\s*(int|float|string|bool|void|array|mixed|self|parent|null|\?))", re.I),
    (r"\|\|", 0),
    (r"&&", 0),
    (r"\bcatch\s*\(", re.I),
    (r"\bmatch\s*\(", re.I),
    (r"\bcontinue\s+\d+;", re.I),
    (r"\bbreak\s+\d+;", re.I),
    (r"\bgoto\b", re.I),
]

STRING_FUNCTIONS = [
    "str_replace",
    "str_ireplace",
    "strpos",
    "stripos",
    "strrpos",
    "substr",
    "strtolower",
    "strtoupper",
    "trim",
    "ltrim",
    "rtrim",
    "implode",
    "explode",
    "join",
    "sprintf",
    "preg_replace",
    "preg_match",
    "str_pad",
    "chunk_split",
]

CALL_SKIP: FrozenSet[str] = frozenset(
    {
        "if",
        "else",
        "elseif",
        "for",
        "foreach",
        "while",
        "do",
        "switch",
        "match",
        "function",
        "class",
        "new",
        "return",
        "echo",
        "print",
    }
)

# Runtime-provided functions the builtin metric rewards.
BUILTIN_FUNCTIONS: FrozenSet[str] = frozenset(
    {
        "array_filter",
        "array_key_exists",
        "array_keys",
        "array_map",
        "array_merge",
        "array_reduce",
        "array_slice",
        "array_splice",
        "array_sum",
        "array_unique",
        "array_values",
        "basename",
        "count",
        "dirname",
        "explode",
        "file_exists",
        "file_get_contents",
        "file_put_contents",
        "glob",
        "implode",
        "in_array",
        "is_array",
        "is_dir",
        "is_file",
        "json_decode",
        "json_encode",
        "max",
        "min",
        "preg_match",
        "preg_match_all",
        "preg_quote",
        "preg_replace",
        "preg_split",
        "printf",
        "sprintf",
        "str_contains",
        "str_ends_with",
        "str_repeat",
        "str_replace",
        "str_starts_with",
        "strlen",
        "strpos",
        "strtolower",
        "strtoupper",
        "substr",
        "substr_count",
        "trim",
        "unlink",
        "usort",
    }
)


def _count(pattern: str, text: str, flags: int = 0) -> int:
    return len(re.findall(pattern, text, flags))


def _first_block(body: str) -> str:
    match = _FIRST_BLOCK_RE.search(body)
    return match.group(1) if match else body


def metric_calls(source: str, name: str, body: str, cache: "CallCache") -> float:
    # Tests get no penalty for existing.
    if name.startswith("test"):
        return 0.0
    return cache.count(name, source) * 1.25 - 50.0


def metric_docblock(name: str, body: str) -> float:
    if "/**" not in body:
        return -15.0
    return body.count("@") * 1.5


def metric_lines(name: str, body: str) -> float:
    match = _WHOLE_BLOCK_RE.search(body)
    if not match:
        return 0.0
    inner = match.group(1)
    lines = inner.count("\n")
    if inner.strip() and not inner.endswith("\n"):
        lines += 1
    return 20 + lines * -0.25


def metric_parameters(name: str, body: str) -> float:
    match = re.search(r"function\s+" + re.escape(name) + r"\s*\(([^)]*)\)", body)
    if not match:
        return 0.0
    params = match.group(1).strip()
    count = 0 if not params else len([part for part in params.split(",") if part.strip()])
    return count * -0.5


def metric_branching(name: str, body: str) -> float:
    points = sum(_count(pattern, body, flags) for pattern, flags in BRANCH_PATTERNS)
    questions = body.count("?")
    colons = body.count(":")
    points -= questions
    points += min(questions, colons)
    if re.search(r"(\bif|\bfor|\bforeach|\bwhile)\s*\([^}]{100,}\)", body, re.S):
        points += 2
    return points * -2.5


def metric_division(name: str, body: str) -> float:
    inner = _first_block(body)
    divisions = _count(r"[^a-zA-Z0-9_]\s*/\s*(?![/*])", inner)
    divisions += _count(r"/=", inner)
    return divisions * -3.0


def metric_string_ops(name: str, body: str) -> float:
    inner = _first_block(body)
    ops = _count(r"\.=?", inner)
    for func in STRING_FUNCTIONS:
        ops += _count(r"\b" + func + r"\s*\(", inner, re.I)
    ops += _count(r"\.\s*\$\w+\s*\.\s*\$\w+", inner) * 2
    return ops * -2.0


def metric_builtin_usage(name: str, body: str, user_functions: Set[str]) -> float:
    match = _FIRST_BLOCK_RE.search(body)
    if not match:
        return 0.0
    user = {item.lower() for item in user_functions}
    praise = 0.0
    for func in _CALL_RE.findall(match.group(1)):
        lower = func.lower()
        if lower in CALL_SKIP:
            continue
        if lower in BUILTIN_FUNCTIONS:
            praise += 2.0
        elif lower in user:
            praise += 1.0
    return praise


def metric_if_else_balance(name: str, body: str) -> float:
    inner = _first_block(body)
    ifs = _count(r"\bif\s*\(", inner, re.I)
    elses = _count(r"\belse\b", inner, re.I)
    elses += _count(r"\belseif\b", inner, re.I)
    elses += _count(r"\belse\s+if\b", inner, re.I)
    if ifs > elses:
        return (ifs - elses) * -0.15
    return 0.0


# Metrics that only need (name, body); "call" and "builtin" take extra context.
SIMPLE_METRICS: Dict[str, Callable[[str, str], float]] = {
    "docs": metric_docblock,
    "ln": metric_lines,
    "args": metric_parameters,
    "branch": metric_branching,
    "divisions": metric_division,
    "string_ops": metric_string_ops,
}

METRIC_ORDER = [
    "call",
    "docs",
    "ln",
    "args",
    "branch",
    "divisions",
    "string_ops",
    "builtin",
    "ifelse",
]

METRIC_NOTES: Dict[str, str] = {
    "call": "More calls = higher score. Functions used throughout codebase are valuable.",
    "docs": "Add docblock with @param, @return tags. More tags = higher score.",
    "ln": "Shorter functions (<20 lines) are easier to understand and test.",
    "args": "Reduce parameters (<4 ideal). Use objects/arrays for related parameters.",
    "branch": "Reduce complex branching (if/else/switch). Extract conditions to methods.",
    "divisions": "Avoid division operations which can cause precision issues.",
    "string_ops": "Minimize string concatenation. Use string builders or templates.",
    "builtin": "Use built-in functions over custom implementations when possible.",
    "ifelse": "Balance if statements with else/elseif. Unhandled edge-cases can cause bugs.",
}


def function_metrics(
    source: str,
    name: str,
    body: str,
    cache: "CallCache",
    user_functions: Set[str],
) -> Dict[str, float]:
    values: Dict[str, float] = {"call": metric_calls(source, name, body, cache)}
    for key, metric in SIMPLE_METRICS.items():
        values[key] = metric(name, body)
    values["builtin"] = metric_builtin_usage(name, body, user_functions)
    values["ifelse"] = metric_if_else_balance(name, body)
    return {key: values[key] for key in METRIC_ORDER}
