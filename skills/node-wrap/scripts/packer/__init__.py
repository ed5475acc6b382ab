from .budget import configure_tokenizer, estimate_tokens, trim_to_budget
from .context import (
    ContextResult,
    Definition,
    SourceIndex,
    build_context,
    find_dependencies,
    labelled_files,
    split_target,
)

__all__ = [name for name in globals().keys() if not name.startswith("_")]
