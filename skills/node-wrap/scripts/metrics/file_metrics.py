"""File-level quality heuristics.

Each metric takes the whole source text and returns a signed score; the
weights are tuning knobs, not invariants.
"""
from __future__ import annotations

import re
from itertools import combinations
from typing import Callable, Dict

from segmenter.constants import IDENT

_TYPE = IDENT
_UNION = _TYPE + r"\??(?:\s*\|\s*" + _TYPE + r"\??)*"


def _count(pattern: str, text: str, flags: int = 0) -> int:
    return len(re.findall(pattern, text, flags))


def file_strict_types(src: str) -> float:
    return 9.0 if "declare(strict_types=1)" in src else -5.0


def file_typed_properties(src: str) -> float:
    pattern = (
        r"\b(?:public|protected|private)\s+(?:static\s+)?(?:readonly\s+)?"
        r"(?:(\??" + _TYPE + r"(?:\s*\|\s*" + _TYPE + r")*)\s+)?(\$\w+)"
    )
    matches = re.findall(pattern, src)
    if not matches:
        return 0.0
    typed = [hint for hint, _ in matches if hint]
    union_typed = sum(1 for hint in typed if "|" in hint)
    untyped_ratio = (len(matches) - len(typed)) / len(matches)
    return -(untyped_ratio * 10.0) + union_typed * 1.0


def file_namespace(src: str) -> float:
    return 0.0 if "namespace " in src else -3.0


def file_no_superglobals(src: str) -> float:
    return -(_count(r"\$_(?:GET|POST|SESSION|COOKIE|SERVER|REQUEST|FILES)\b", src) * 3.0)


def file_final_class(src: str) -> float:
    total = _count(r"\bclass\s+\w+", src)
    if total == 0:
        return 0.0
    final = _count(r"\bfinal\b\s+\bclass\b", src, re.I)
    return -((total - final) / total * 5.0)


def file_modern_visibility(src: str) -> float:
    legacy = _count(r"\bvar\s+\$", src)
    modern = _count(r"\b(?:public|private|protected)\s+\$", src)
    return modern * 0.1 - legacy * 5.0


def file_constructor_property_promotion(src: str) -> float:
    pattern = (
        r"public\s+function\s+__construct\s*\((?:[^)]*?\b(?:public|protected|private)\s+"
        r"(?:readonly\s+)?(?:" + _UNION + r")\s+\$\w+(?:\s*=[^,)]+)?[^)]*)+\)"
    )
    return _count(pattern, src, re.S) * 2.5


def file_union_types(src: str) -> float:
    in_signature = r"function\s+\w+\s*\([^)]*?\b(?:" + _UNION + r")\s+\$\w+\s*:[^)]*?\|[^)]*?\)"
    in_docblock = r"@(?:param|return|var|property)\s+(?:" + _UNION + r")\|"
    return (_count(in_signature, src) + _count(in_docblock, src)) * 1.2


def file_nullsafe_operator(src: str) -> float:
    return src.count("?->") * 1.0


def file_match_expression(src: str) -> float:
    switches = _count(r"\bswitch\s*\(", src)
    if switches == 0:
        return 0.0
    return _count(r"\bmatch\s*\(", src) / switches * 3.0


def file_named_arguments(src: str) -> float:
    return _count(r"\w+\s*\([^)]*?\b\w+\s*:", src) * 0.8


def file_attributes(src: str) -> float:
    return _count(r"#\[(?!Deprecated\b|\w+\(deprecated)", src) * 2.0


def file_enums(src: str) -> float:
    return _count(r"\benum\s+\w+", src) * 4.0


def file_readonly_properties(src: str) -> float:
    pattern = r"\b(?:public|protected|private)\s+readonly\s+(?:static\s+)?(?:" + _UNION + r")\s+\$\w+"
    return _count(pattern, src) * 3.0


def file_never_return_type(src: str) -> float:
    return _count(r":\s*never\b", src) * 2.5


def file_array_is_list(src: str) -> float:
    manual = _count(
        r"(?:array_keys\s*\(\s*\$[^)]+\)\s*===\s*range\s*\(|isset\s*\(\s*\$[^)]+\[\d+\])", src
    )
    if manual == 0:
        return 0.0
    return _count(r"\barray_is_list\s*\(", src) / manual * 2.0


def file_first_class_callable(src: str) -> float:
    return _count(r"(\w+(?:::)?\w*)\s*\(\.\.\.\)", src) * 2.0


def file_pure_annotations(src: str) -> float:
    pure = 2.0 if re.search(r"@psalm-(pure|immutable)|#\[Pure\]", src) else 0.0
    will_change = 1.0 if re.search(r"#\[\s*ReturnTypeWillChange\s*\]", src) else 0.0
    return pure - will_change


def file_immutable_objects(src: str) -> float:
    total = _count(
        r"(?:public|protected|private)\s+(?:readonly\s+)?(?:static\s+)?(?:" + _UNION + r")\s+\$\w+", src
    )
    if total == 0:
        return 0.0
    private = _count(r"private\s+(?:readonly\s+)?(?:" + _UNION + r")\s+\$\w+", src)
    score = private / total * 5.0
    if not re.search(r"public\s+function\s+set\w+\s*\(", src):
        score += 2.0
    return score


def file_cohesion(src: str) -> float:
    total = 0.0
    classes = 0
    for _, class_body in re.findall(r"\bclass\s+(\w+).*?\{(.*?)\}\s*(?=class|\Z)", src, re.S):
        methods = re.findall(
            r"(?:public|protected|private)\s+function\s+(\w+)\s*\([^)]*\)\s*\{(.*?)\}"
            r"(?=\s*(?:public|protected|private)\s+function|\Z)",
            class_body,
            re.S,
        )
        if len(methods) < 2:
            continue
        shared = sum(
            1
            for (_, first), (_, second) in combinations(methods, 2)
            if re.search(r"\$this->(\w+)", first + " " + second)
        )
        pairs = len(methods) * (len(methods) - 1) / 2
        total += shared / pairs * 10.0
        classes += 1
    return total / classes if classes else 0.0


def file_cyclomatic_complexity(src: str) -> float:
    functions = _count(r"function\s+\w+\s*\(", src)
    if functions == 0:
        return 0.0
    decisions = _count(
        r"\b(?:if|elseif|while|for|foreach|case|catch|and\s*\(|or\s*\(|\|\||&&)\b", src
    )
    average = decisions / functions
    for ceiling, score in ((5, 0.0), (10, -3.0), (15, -6.0), (20, -9.0)):
        if average <= ceiling:
            return score
    return -12.0


def file_dependency_inversion(src: str) -> float:
    total = _count(r"function\s+\w+\s*\(([^)]*)\)", src)
    if total == 0:
        return 0.0
    scalar = re.compile(r"^(int|string|bool|float|array|callable|iterable|mixed|void)$")
    abstractions = sum(
        1
        for hint in re.findall(r"@param\s+(\w+)\s+\$\w+", src)
        if hint[:1].isupper() and hint[:1].isascii() and not scalar.match(hint)
    )
    return abstractions / total * 10.0


def file_no_magic_numbers(src: str) -> float:
    numbers = _count(r"\b(?:[1-9]\d*|0)\b(?!\s*::)", src)
    if numbers == 0:
        return 0.0
    return _count(r"\bconst\s+\w+\s*=", src) / numbers * 10.0


def file_no_global_functions(src: str) -> float:
    globals_used = _count(r"\b(?:header|setcookie|session_start|mysql_|pg_)\s*\(", src, re.I)
    if globals_used == 0:
        return 0.0
    wrapped = _count(r"->(?:setHeader|setCookie|startSession|query)\s*\(", src)
    return wrapped / globals_used * 10.0


def file_interface_segregation(src: str) -> float:
    interfaces = re.findall(
        r"interface\s+\w+\s*\{[^}]*\bfunction\s+\w+\s*\([^)]*\)[^}]+\}", src, re.S
    )
    if not interfaces:
        return 0.0
    average = sum(_count(r"function\s+\w+\s*\(", body) for body in interfaces) / len(interfaces)
    for ceiling, score in ((3, 0.0), (5, -3.0), (8, -6.0)):
        if average <= ceiling:
            return score
    return -9.0


def file_single_responsibility(src: str) -> float:
    bodies = re.findall(r"\bclass\s+\w+(?:.*?)\{(.*?)\}(?=\s*class|\Z)", src, re.S)
    if not bodies:
        return 0.0
    average = sum(body.count("\n") for body in bodies) / len(bodies)
    for ceiling, score in ((50, 0.0), (100, -2.0), (200, -5.0), (300, -8.0)):
        if average <= ceiling:
            return score
    return -12.0


def file_security_metrics(src: str) -> float:
    penalty = 0.0
    penalty -= _count(r"\$_(?:GET|POST)\s*\[.*?\]\s*\.\s*\$", src) * 15.0
    penalty -= _count(r"echo\s+\$_(?:GET|POST|REQUEST)\s*\[", src, re.I) * 12.0
    penalty -= _count(r"(?:include|require)(?:_once)?\s*\(\s*\$", src) * 10.0
    positive = _count(r"htmlspecialchars|htmlentities|strip_tags", src) * 3.0
    positive += _count(r"password_hash|password_verify", src) * 4.0
    positive += _count(r"PDO::quote|mysqli_real_escape_string|prepared.*statement", src, re.I) * 5.0
    return penalty + positive


def file_performance_hints(src: str) -> float:
    score = -_count(r"SELECT\s*\*\s*FROM", src, re.I) * 5.0
    score -= _count(r"N\+1\s+problem|loop.*query|query.*loop", src, re.I) * 8.0
    score -= _count(r"file_get_contents\s*\(\s*[\"']http", src) * 3.0
    score += _count(r"yield\b|Generator\b", src) * 4.0
    score += _count(r"\bcache\b|\bCache\b|\bcaching\b", src, re.I) * 3.0
    return score


def file_documentation(src: str) -> float:
    methods = _count(r"(?:(?:public|protected|private|static)\s+)*function\s+\w+\s*\(", src, re.I)
    if methods == 0:
        return 0.0
    documented = _count(
        r"/\*\*.*?\*/\s*(?:(?:public|protected|private|static)\s+)*function\s+\w+", src, re.S
    )
    percent = documented / methods * 100
    for floor, score in ((90, 0.0), (75, -2.0), (50, -5.0), (25, -8.0)):
        if percent >= floor:
            return score
    return -12.0


def file_test_coverage(src: str) -> float:
    tests = _count(r"@test|@covers|@dataProvider|PHPUnit", src)
    mocks = _count(r"\bmock\b|Mockery|createMock", src)
    positive = tests * 6.0 + mocks * 4.0
    return positive if positive else -10.0


def file_coding_standards(src: str) -> float:
    violations = 0
    lines = src.split("\n")
    if len(lines) > 1 and not lines[1].strip() and "declare" in lines[0]:
        violations += 1
    statement_re = re.compile(r"\b(if|else|for|foreach|while|function|class|try|catch)\b")
    for idx, line in enumerate(lines):
        trimmed = line.rstrip()
        if trimmed != line:
            violations += 1
        if len(trimmed) > 120:
            is_comment = re.match(r"^\s*(?://|/\*|#|\*)", trimmed)
            is_long_string = re.search(r"['\"].{80,}['\"]", trimmed)
            if not is_comment and not is_long_string:
                violations += 1
        if statement_re.search(trimmed) and not trimmed.endswith("{"):
            nxt = idx + 1
            while nxt < len(lines) and not lines[nxt].strip():
                nxt += 1
            if nxt < len(lines) and lines[nxt].strip() == "{":
                violations += 1
        if line.startswith("\t"):
            violations += 1
    if len(lines) > 1000:
        violations += 5
    return -(violations * 1.5)


FILE_METRICS: Dict[str, Callable[[str], float]] = {
    "strict_types": file_strict_types,
    "typed_properties": file_typed_properties,
    "namespace": file_namespace,
    "no_superglobals": file_no_superglobals,
    "final_class": file_final_class,
    "modern_visibility": file_modern_visibility,
    "constructor_property_promotion": file_constructor_property_promotion,
    "union_types": file_union_types,
    "nullsafe_operator": file_nullsafe_operator,
    "match_expression": file_match_expression,
    "named_arguments": file_named_arguments,
    "attributes": file_attributes,
    "enums": file_enums,
    "readonly_properties": file_readonly_properties,
    "never_return_type": file_never_return_type,
    "array_is_list": file_array_is_list,
    "first_class_callable": file_first_class_callable,
    "pure_annotations": file_pure_annotations,
    "immutable_objects": file_immutable_objects,
    "cohesion": file_cohesion,
    "cyclomatic_complexity": file_cyclomatic_complexity,
    "dependency_inversion": file_dependency_inversion,
    "no_magic_numbers": file_no_magic_numbers,
    "no_global_functions": file_no_global_functions,
    "interface_segregation": file_interface_segregation,
    "single_responsibility": file_single_responsibility,
    "security_metrics": file_security_metrics,
    "performance_hints": file_performance_hints,
    "documentation": file_documentation,
    "test_coverage": file_test_coverage,
    "coding_standards": file_coding_standards,
}

FILE_METRIC_NOTES: Dict[str, str] = {
    "strict_types": "Add 'declare(strict_types=1);' at top of file for type safety.",
    "typed_properties": "Use type hints for class properties.",
    "namespace": "Add namespace declaration to avoid global scope pollution.",
    "no_superglobals": "Avoid direct $_GET/$_POST usage. Use input validation/sanitization.",
    "final_class": "Mark classes as 'final' when not designed for inheritance.",
    "modern_visibility": "Use 'public/private/protected' instead of old 'var' keyword.",
    "constructor_property_promotion": "Use constructor property promotion for cleaner code.",
    "union_types": "Use union types (TypeA|TypeB) for flexible parameter/return types.",
    "nullsafe_operator": "Use ?-> operator instead of null checks for method/property access.",
    "match_expression": "Prefer 'match()' over 'switch()' for expression-based control flow.",
    "named_arguments": "Use named arguments for clarity when calling functions with many parameters.",
    "attributes": "Use attributes for metadata instead of docblock annotations.",
    "enums": "Use enums for type-safe constant sets.",
    "readonly_properties": "Mark properties as 'readonly' when they shouldn't change after construction.",
    "never_return_type": "Use ': never' return type for functions that always exit/throw.",
    "array_is_list": "Use array_is_list() instead of manual array key checking.",
    "first_class_callable": "Use first-class callables (fn(...)) for cleaner callback syntax.",
    "pure_annotations": "Add @pure or #[Pure] annotations for functions without side effects.",
    "immutable_objects": "Design immutable objects with private properties and no setters.",
    "cohesion": "Improve class cohesion - methods should share data/behavior.",
    "cyclomatic_complexity": "Reduce branching logic. Extract complex conditions into methods.",
    "dependency_inversion": "Depend on abstractions (interfaces) not concrete implementations.",
    "no_magic_numbers": "Replace magic numbers with named constants or configuration.",
    "no_global_functions": "Wrap global functions in class methods for better testability/encapsulation.",
    "interface_segregation": "Split large interfaces into smaller, focused ones.",
    "single_responsibility": "Split large classes (>200 lines) into smaller, focused classes.",
    "security_metrics": "Use prepared statements, input validation, and output escaping.",
    "performance_hints": "Avoid N+1 queries, use generators for large datasets, cache results.",
    "documentation": "Add docblocks to public/protected methods describing purpose and parameters.",
    "test_coverage": "Add unit tests and use mocking for better test coverage.",
    "coding_standards": "Readable code: line length < 120, no trailing whitespace, brace style.",
}


def compute_file_metrics(src: str) -> Dict[str, float]:
    return {key: metric(src) for key, metric in FILE_METRICS.items()}
