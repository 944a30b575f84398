"""Key-space normalization helpers."""

from __future__ import annotations

import posixpath
from typing import Iterable


def clean(key: str) -> str:
    """Return ``key`` rooted at "/" with redundant separators removed."""
    return posixpath.normpath("/" + key.lstrip("/"))


def normalize_prefix(prefix: str) -> str:
    """Make sure a key prefix starts with "/"."""
    if not prefix.startswith("/"):
        prefix = "/" + prefix
    return prefix


def append_prefix(prefix: str, keys: Iterable[str]) -> list[str]:
    """Qualify each key with ``prefix``.

    Args:
        prefix: Normalized key prefix
        keys: Keys relative to the prefix

    Returns:
        Fully qualified keys, in input order
    """
    return [clean(posixpath.join(prefix, key.lstrip("/"))) for key in keys]


def relativize(prefix: str, key: str) -> str:
    """Strip ``prefix`` from ``key`` and re-root the rest under "/".

    The prefix is only removed on a path-segment boundary, so "/app" strips
    "/app/db" but leaves "/application" alone.
    """
    base = clean(prefix)
    key = clean(key)
    if base == "/":
        return key
    if key == base:
        return "/"
    if key.startswith(base + "/"):
        return clean(key[len(base):])
    return key
