from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional, Tuple

from _fs import resolve_resource
from segmenter.config import WrapSettings


def resolve_root(root_arg: Optional[str]) -> Path:
    return Path(root_arg or ".").resolve()


def resolve_document(root: Path, settings: WrapSettings, document_arg: Optional[str]) -> Path:
    path = Path(document_arg or settings.document)
    if path.is_absolute():
        return path
    return (root / path).resolve()


def apply_overrides(settings: WrapSettings, args: argparse.Namespace) -> WrapSettings:
    if getattr(args, "strict", False):
        settings.strict_close = True
    lookback = getattr(args, "lookback", None)
    if lookback:
        settings.lookback = lookback
    return settings


def search_directories(root: Path, settings: WrapSettings) -> List[Tuple[str, Path]]:
    """The project root first, then each configured resource directory."""
    directories = [("", root)]
    for name in settings.roots:
        directories.append((name, resolve_resource(root, name, settings.roots)))
    return directories
