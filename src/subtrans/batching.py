"""
Token-bounded grouping of subtitle segments.
"""

import logging
from collections.abc import Callable
from functools import lru_cache

import tiktoken

from .models import Segment

logger = logging.getLogger("subtrans")

DEFAULT_MAX_TOKENS = 700
TOKENIZER_MODEL = "gpt-4o-mini"
DELIMITER_TOKENS = 1  # "|"


@lru_cache(maxsize=1)
def _encoding() -> tiktoken.Encoding:
    return tiktoken.encoding_for_model(TOKENIZER_MODEL)


def count_tokens(text: str) -> int:
    """Count subword tokens with the gpt-4o-mini encoding."""
    return len(_encoding().encode(text))


def group_segments_by_tokens(
    segments: list[Segment],
    max_tokens: int = DEFAULT_MAX_TOKENS,
    tokenizer: Callable[[str], int] | None = None,
) -> list[list[Segment]]:
    """
    Greedily pack segments into contiguous groups:
    - A group costs the sum of its segment tokens plus one per delimiter.
    - A segment that alone exceeds ``max_tokens`` gets a group of its own.
    - Order is preserved; every segment lands in exactly one group.
    """
    if max_tokens <= 0:
        raise ValueError(f"max_tokens must be positive, got {max_tokens}")
    counter = tokenizer or count_tokens

    groups: list[list[Segment]] = []
    cur: list[Segment] = []
    cur_tokens = 0
    for seg in segments:
        n = counter(seg.text)
        added = n if not cur else n + DELIMITER_TOKENS
        if cur and cur_tokens + added > max_tokens:
            groups.append(cur)
            cur, cur_tokens = [seg], n
        else:
            cur.append(seg)
            cur_tokens += added
        if len(cur) == 1 and n > max_tokens:
            logger.debug(f"Segment {seg.id} alone exceeds {max_tokens} tokens ({n})")

    if cur:
        groups.append(cur)
    logger.debug(f"Packed {len(segments)} segments into {len(groups)} groups (<= {max_tokens} tokens)")
    return groups
