from .config import WrapSettings, load_settings, normalize_str_list, normalize_str_map
from .constants import (
    BEGIN_MARKER_RE,
    CONFIG_FILES,
    DEFAULT_DOCUMENT,
    DEFAULT_HEADER,
    EXCLUDE_DIRS,
    LOOKBACK_WINDOW,
    end_marker_re,
)
from .dialect import WrapDialect
from .errors import DocumentNotFoundError, MissingArtifactError, WrapError
from .scanner import ScanState, StringScanner, find_closing_brace
from .sections import (
    ParseReport,
    Section,
    Stub,
    find_stubs,
    is_artifact_reference,
    parse_sections,
    replace_sections,
    trim_trailing_blank_lines,
    walk_sections,
)
from .spans import (
    KINDS,
    Span,
    extract_span,
    extract_structural,
    find_definition_start,
    function_names,
    match_definition,
)
from .wrap import WrapEngine, WrapResult, add_indent, strip_indent

__all__ = [name for name in globals().keys() if not name.startswith("_")]
