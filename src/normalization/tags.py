from __future__ import annotations

import re
from typing import List

STOPWORDS = frozenset(
    {"the", "and", "for", "with", "this", "that", "from", "have", "your", "you", "today"}
)
MAX_DERIVED_TAGS = 3

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")


def derive_tags(text: str, limit: int = MAX_DERIVED_TAGS) -> List[str]:
    words = _NON_ALNUM_RE.sub("", text.lower()).split()
    tags: List[str] = []
    for word in words:
        if len(word) <= 3 or word in STOPWORDS or word in tags:
            continue
        tags.append(word)
        if len(tags) == limit:
            break
    return tags
