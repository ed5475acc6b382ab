#!/usr/bin/env python3
"""node-wrap CLI: split marked sections into artifacts, rank and pack PHP code."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

from _fs import read_text, source_files
from packer import SourceIndex, build_context, configure_tokenizer, labelled_files
from ranker import CallCache, format_function_report, format_rank_report, rank_source
from segmenter import (
    KINDS,
    WrapEngine,
    WrapError,
    WrapSettings,
    extract_span,
    load_settings,
)
from utils import progress, setup_logging
from .config import apply_overrides, resolve_document, resolve_root, search_directories

logger = logging.getLogger(__name__)


def fail(message: str) -> NoReturn:
    print(f"E: {message}", file=sys.stderr)
    raise SystemExit(1)


def resolve_input(root: Path, value: str) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = root / path
    if not path.is_file():
        fail(f"{value} not found")
    return path


def run_wrap(args: argparse.Namespace, root: Path, settings: WrapSettings) -> int:
    document = resolve_document(root, settings, args.document)
    engine = WrapEngine(
        document,
        settings.dialect_for(document),
        strict_close=settings.strict_close,
    )
    try:
        result = engine.open() if args.action == "open" else engine.close()
    except WrapError as exc:
        fail(str(exc))
    print(result.message)
    return 0


def run_rank(args: argparse.Namespace, root: Path, settings: WrapSettings) -> int:
    path = resolve_input(root, args.file)
    source = read_text(path)
    directories = [directory for _, directory in search_directories(root, settings)]
    files = source_files(directories, settings.exclude_dirs)
    progress(f"Ranking {path.name} against {len(files)} source files")
    cache = CallCache(files, exclude=path)
    names = [args.function] if args.function else None
    if args.function and extract_span(source, args.function, window=settings.lookback) is None:
        fail(f"Function '{args.function}' not found in file")
    result = rank_source(source, cache, names=names, window=settings.lookback)
    progress(f"Ranked {len(result.functions)} functions", done=True)

    if args.format == "json":
        print(json.dumps(result.to_dict(), ensure_ascii=True, indent=2))
    elif args.function:
        print(format_function_report(result, args.function), end="")
    else:
        print(format_rank_report(result), end="")
    return 0


def run_ctx(args: argparse.Namespace, root: Path, settings: WrapSettings) -> int:
    configure_tokenizer(args.precise_tokens)
    files = labelled_files(search_directories(root, settings), settings.exclude_dirs)
    progress(f"Searching {len(files)} source files for {args.name}")
    index = SourceIndex(files, window=settings.lookback)
    result = build_context(args.name, index, root=root, budget=args.budget)
    if result is None:
        fail(f"{args.name} not found")
    progress(f"Packed {len(result.related)} related definitions (~{result.tokens} tokens)", done=True)
    print(result.text, end="")
    return 0


def run_extract(args: argparse.Namespace, root: Path, settings: WrapSettings) -> int:
    path = resolve_input(root, args.file)
    span = extract_span(read_text(path), args.name, args.kind, window=settings.lookback)
    if span is None:
        fail(f"{args.name} not found")
    print(f"# {path.name}:{span.start}-{span.end} ({span.strategy})")
    print(span.text)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Section wrapper and code ranker for PHP projects")
    parser.add_argument("--root", default=".", help="Project root (default: .)")
    parser.add_argument(
        "--lookback",
        type=int,
        default=None,
        help="Characters searched backwards for a definition's doc comment",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")

    sub = parser.add_subparsers(dest="command")

    wrap_parser = sub.add_parser("wrap", help="Move marked sections out to artifacts, or back in")
    wrap_parser.add_argument("action", choices=["open", "close"])
    wrap_parser.add_argument("--document", default=None, help="Entry document (default: node.php)")
    wrap_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on close when a referenced artifact is missing",
    )

    rank_parser = sub.add_parser("rank", help="Score functions in a file")
    rank_parser.add_argument("file")
    rank_parser.add_argument("function", nargs="?", default=None)
    rank_parser.add_argument("--format", choices=["text", "json"], default="text")

    ctx_parser = sub.add_parser("ctx", help="Show a definition with its dependencies")
    ctx_parser.add_argument("name", help="Function, Class or Class::method")
    ctx_parser.add_argument("--budget", type=int, default=0, help="Token budget (0 = unlimited)")
    ctx_parser.add_argument(
        "--precise-tokens",
        action="store_true",
        help="Count tokens with tiktoken when installed",
    )

    extract_parser = sub.add_parser("extract", help="Print the text of one definition")
    extract_parser.add_argument("file")
    extract_parser.add_argument("name")
    extract_parser.add_argument("--kind", choices=list(KINDS), default="function")
    return parser


COMMANDS = {
    "wrap": run_wrap,
    "rank": run_rank,
    "ctx": run_ctx,
    "extract": run_extract,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    handler = COMMANDS.get(args.command or "")
    if handler is None:
        parser.print_help()
        return 1

    root = resolve_root(args.root)
    warnings: List[str] = []
    settings, config_name = load_settings(root, warnings)
    for warning in warnings:
        logger.warning(warning)
    if config_name:
        logger.debug("loaded %s", config_name)
    apply_overrides(settings, args)
    return handler(args, root, settings)


if __name__ == "__main__":
    raise SystemExit(main())
