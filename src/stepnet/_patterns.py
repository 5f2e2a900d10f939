"""Compiled-pattern cache shared by the normalizer, parser and validator.

Most patterns are built from configurable keyword lists, so they cannot
be module-level constants.  The cache is bounded and purely advisory.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable


@lru_cache(maxsize=512)
def compiled(pattern: str, flags: int = 0) -> re.Pattern[str]:
    return re.compile(pattern, flags)


def alternation(words: Iterable[str]) -> str:
    """Regex alternation of literal *words*, longest first."""
    unique = sorted(set(words), key=lambda w: (-len(w), w))
    return "|".join(re.escape(w) for w in unique)


def cache_info():
    return compiled.cache_info()
