"""Case-insensitive wildcard matching with ``*`` and ``?``."""

from __future__ import annotations


def init_lookup_table(row: int, column: int) -> list[list[bool]]:
    """Return a ``row`` x ``column`` table filled with ``False``."""
    return [[False] * column for _ in range(row)]


def pattern_match(text: str, pattern: str) -> bool:
    """Return True if ``text`` matches the wildcard ``pattern``, ignoring case.

    ``*`` matches any sequence of characters (including none) and ``?``
    matches exactly one character.
    """
    s = text.lower()
    p = pattern.lower()

    if not p:
        return not s

    lookup = init_lookup_table(len(s) + 1, len(p) + 1)
    lookup[0][0] = True

    # Only a run of leading '*' can match the empty string.
    for j, pch in enumerate(p, start=1):
        if pch == "*":
            lookup[0][j] = lookup[0][j - 1]

    for i, sch in enumerate(s, start=1):
        row, above = lookup[i], lookup[i - 1]
        for j, pch in enumerate(p, start=1):
            if pch == "*":
                row[j] = row[j - 1] or above[j]
            elif pch == "?" or pch == sch:
                row[j] = above[j - 1]

    return lookup[len(s)][len(p)]