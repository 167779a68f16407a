"""String helpers."""
from __future__ import annotations


def has_prefix(s: str, prefix: str) -> bool:
    """Return True when `s` starts with `prefix`.

    An empty subject is treated as having every prefix, so an empty endpoint
    is left untouched by normalization. A subject shorter than the prefix
    never matches.
    """
    if not s:
        return True
    if len(s) < len(prefix):
        return False
    return s[: len(prefix)] == prefix
