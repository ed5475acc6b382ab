"""Filesystem helpers shared by the wrap, rank and ctx commands.

Rules:
- whole-file reads and writes only (no partial patching)
- missing parent directories are created on write
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Set


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def write_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def remove_file(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


def resolve_resource(root: Path, name: str, roots: Dict[str, str]) -> Path:
    """Map a logical resource name to a directory under root."""
    rel = roots.get(name, name)
    path = Path(rel)
    if path.is_absolute():
        return path
    return (root / path).resolve()


def source_files(
    directories: Iterable[Path], exclude_dirs: Set[str], suffix: str = ".php"
) -> List[Path]:
    """Files directly inside each directory, skipping excluded directory names."""
    files: List[Path] = []
    seen: Set[Path] = set()
    for directory in directories:
        if any(part in exclude_dirs for part in directory.parts):
            continue
        if not directory.is_dir():
            continue
        for path in sorted(directory.glob(f"*{suffix}")):
            resolved = path.resolve()
            if resolved in seen or not path.is_file():
                continue
            seen.add(resolved)
            files.append(path)
    return files
