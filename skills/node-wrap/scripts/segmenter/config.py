from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from .constants import (
    CONFIG_FILES,
    DEFAULT_DOCUMENT,
    DEFAULT_HEADER,
    DEFAULT_INCLUDE_KEYWORD,
    DEFAULT_INCLUDE_PREFIX,
    EXCLUDE_DIRS,
    LOOKBACK_WINDOW,
)
from .dialect import WrapDialect


@dataclass
class WrapSettings:
    document: str = DEFAULT_DOCUMENT
    header: str = DEFAULT_HEADER
    include_keyword: str = DEFAULT_INCLUDE_KEYWORD
    include_prefix: str = DEFAULT_INCLUDE_PREFIX
    lookback: int = LOOKBACK_WINDOW
    strict_close: bool = False
    roots: Dict[str, str] = field(default_factory=dict)
    exclude_dirs: Set[str] = field(default_factory=lambda: set(EXCLUDE_DIRS))

    def dialect_for(self, document_path: Path) -> WrapDialect:
        return WrapDialect.for_document(
            document_path,
            header=self.header,
            include_keyword=self.include_keyword,
            include_prefix=self.include_prefix,
        )


def normalize_str_list(value: Any) -> List[str]:
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    if isinstance(value, list):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return []


def normalize_str_map(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {
        key.strip(): item.strip()
        for key, item in value.items()
        if isinstance(key, str) and isinstance(item, str) and key.strip() and item.strip()
    }


def load_settings(root: Path, warnings: List[str]) -> Tuple[WrapSettings, Optional[str]]:
    settings = WrapSettings()
    for filename in CONFIG_FILES:
        path = root / filename
        if not path.exists():
            continue
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            warnings.append(f"Failed to parse {filename}: {exc}")
            return settings, filename
        if not isinstance(payload, dict):
            warnings.append(f"Invalid {filename}: expected a JSON object")
            return settings, filename

        for key in ("document", "header", "include_keyword", "include_prefix"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                setattr(settings, key, value.strip())
        lookback = payload.get("lookback")
        if isinstance(lookback, int) and not isinstance(lookback, bool) and lookback > 0:
            settings.lookback = lookback
        if isinstance(payload.get("strict_close"), bool):
            settings.strict_close = payload["strict_close"]
        settings.roots = normalize_str_map(payload.get("roots"))
        if "exclude_dirs" in payload:
            settings.exclude_dirs = set(normalize_str_list(payload.get("exclude_dirs")))
        return settings, filename
    return settings, None
