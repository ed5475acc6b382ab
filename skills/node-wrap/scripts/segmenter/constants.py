from __future__ import annotations

import re

DEFAULT_DOCUMENT = "node.php"
DEFAULT_HEADER = "<?php declare(strict_types=1);"
DEFAULT_INCLUDE_KEYWORD = "include_once"
DEFAULT_INCLUDE_PREFIX = "{$LOCAL_PATH}"

# Backward search cap for doc comments / modifier lines above a definition.
LOOKBACK_WINDOW = 1000

CONFIG_FILES = [".nodewrap.json", "nodewrap.json"]

EXCLUDE_DIRS = {"vendor", "Database", "Logs", "Backup", "Deprecated"}

OPEN_BRACE = "{"
CLOSE_BRACE = "}"
QUOTE_CHARS = frozenset({'"', "'", "`"})
ESCAPE_CHAR = "\\"

SECTION_NAME = r"[a-z_]+"
BEGIN_MARKER_RE = re.compile(r"^([ \t]*)#\s*(" + SECTION_NAME + r")\s+begin\s*$")

FUNCTION_MODIFIERS = ("public", "private", "protected", "static")
CLASS_MODIFIERS = ("abstract", "final", "readonly")
CLASS_KEYWORDS = ("class", "interface", "trait", "enum")

IDENT = r"[A-Za-z_\x7f-\uffff][A-Za-z0-9_\x7f-\uffff]*"
FUNCTION_NAME_RE = re.compile(r"\bfunction\s+(" + IDENT + r")")


def end_marker_re(name: str) -> re.Pattern[str]:
    return re.compile(r"^\s*#\s*" + re.escape(name) + r"\s+end\s*$")
