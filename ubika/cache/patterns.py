"""
Glob pattern matching for cache keys.

``*`` is the only wildcard the key builder emits. A backslash makes the
next character literal, as in Redis MATCH, so attribute values carrying
``?``, ``[`` or ``*`` are escaped with :func:`escape_glob` before they go
into a pattern. Every other character matches literally, so the in-memory
backend and Redis agree on which keys a pattern covers.
"""

import re
from functools import lru_cache

_GLOB_SPECIAL = re.compile(r"([\\*?\[\]])")
_GLOB_TOKEN = re.compile(r"(\\.|\*)", re.DOTALL)


def escape_glob(value: str) -> str:
    """Escape Redis glob metacharacters so ``value`` matches only itself."""
    return _GLOB_SPECIAL.sub(r"\\\1", value)


@lru_cache(maxsize=512)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """
    Compile a ``*`` glob into an anchored regular expression.

    Examples:
        glob_to_regex("v1:seller:*") matches "v1:seller:42:list"
        glob_to_regex("a.b") does not match "axb"
        glob_to_regex(r"zone=a\\*b") matches only "zone=a*b"
    """
    parts = []
    for part in _GLOB_TOKEN.split(pattern):
        if part == "*":
            parts.append(".*")
        elif len(part) == 2 and part[0] == "\\":
            parts.append(re.escape(part[1]))
        else:
            parts.append(re.escape(part))
    return re.compile(f"^{''.join(parts)}$", re.DOTALL)


def matches_glob(key: str, pattern: str) -> bool:
    """Check whether ``key`` is covered by ``pattern``."""
    return glob_to_regex(pattern).match(key) is not None


__all__ = ["escape_glob", "glob_to_regex", "matches_glob"]
