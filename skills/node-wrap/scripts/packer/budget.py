from __future__ import annotations

import re
from typing import List, Tuple

_TOKENIZER = None
_TOKENIZER_READY = False
_USE_PRECISE_TOKENS = False
_TOKEN_SPLIT_RE = re.compile(r"[A-Za-z0-9_$]+|[^\s]")


def configure_tokenizer(precise: bool) -> None:
    global _TOKENIZER, _TOKENIZER_READY, _USE_PRECISE_TOKENS
    _USE_PRECISE_TOKENS = bool(precise)
    if not _USE_PRECISE_TOKENS:
        return
    if _TOKENIZER_READY:
        return
    try:
        import tiktoken  # type: ignore

        _TOKENIZER = tiktoken.get_encoding("cl100k_base")
        _TOKENIZER_READY = True
    except Exception:
        _TOKENIZER = None
        _TOKENIZER_READY = False
        _USE_PRECISE_TOKENS = False


def estimate_tokens(text: str) -> int:
    if _USE_PRECISE_TOKENS and _TOKENIZER is not None:
        try:
            return max(1, len(_TOKENIZER.encode(text)))
        except Exception:
            pass
    tokens = _TOKEN_SPLIT_RE.findall(text)
    return max(1, len(tokens))


def trim_to_budget(blocks: List[str], budget: int) -> Tuple[List[str], int]:
    """Keep whole blocks in order until the token budget is spent.

    Returns the kept blocks and the number dropped. The first block is
    always kept so the target definition survives any budget.
    """
    kept: List[str] = []
    used = 0
    for idx, block in enumerate(blocks):
        cost = estimate_tokens(block)
        if idx and budget > 0 and used + cost > budget:
            return kept, len(blocks) - idx
        kept.append(block)
        used += cost
    return kept, 0
