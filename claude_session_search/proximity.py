"""Directory proximity between the caller and a session's origin."""

from __future__ import annotations

import re

_SEPARATORS = re.compile(r"[\\/]")


def path_segments(path: str) -> list[str]:
    """Split a path on either separator, dropping empty segments."""
    return [part for part in _SEPARATORS.split(path) if part]


def common_prefix_length(a: list[str], b: list[str]) -> int:
    """Number of leading segments the two lists share."""
    length = 0
    for left, right in zip(a, b):
        if left != right:
            break
        length += 1
    return length


def path_distance(from_path: str, to_path: str) -> int:
    """Directory hops from one path to the other via their nearest common ancestor.

    Examples:
        /a/b/c → /a/b/c   = 0
        /a/b/c → /a/b     = 1
        /a/b/c → /a/x/y   = 4
        /a     → C:/a     = 3  (no shared prefix)
    """
    from_parts = path_segments(from_path)
    to_parts = path_segments(to_path)
    common = common_prefix_length(from_parts, to_parts)
    return (len(from_parts) - common) + (len(to_parts) - common)
