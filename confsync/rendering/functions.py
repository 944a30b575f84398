"""Generic helper functions available in every template."""

from __future__ import annotations

import base64
import json
import os
import posixpath
import socket
from datetime import datetime
from typing import Any, Callable

from ..filesystem.base import FileSystem

_TRUE = {"1", "t", "true", "yes", "y", "on"}
_FALSE = {"0", "f", "false", "no", "n", "off"}


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def create_map(*values: Any) -> dict[Any, Any]:
    """Build a dict from alternating keys and values."""
    if len(values) % 2 != 0:
        raise ValueError("map() needs an even number of arguments")
    return dict(zip(values[::2], values[1::2]))


def seq(first: int, last: int) -> list[int]:
    """Inclusive integer range."""
    return list(range(first, last + 1))


def lookup_ip(name: str) -> list[str]:
    """Resolve a host name to its sorted IP addresses."""
    infos = socket.getaddrinfo(name, None)
    return sorted({info[4][0] for info in infos})


def sort_by_length(values: list[str]) -> list[str]:
    return sorted(values, key=len)


def sort_kv_by_length(pairs: list[Any]) -> list[Any]:
    return sorted(pairs, key=lambda pair: len(pair.key))


def trim_suffix(value: str, suffix: str) -> str:
    if suffix and value.endswith(suffix):
        return value[: -len(suffix)]
    return value


def new_func_map(fs: FileSystem) -> dict[str, Callable[..., Any]]:
    """Return the helper namespace for templates rendered from ``fs``.

    Args:
        fs: Filesystem that ``fileExists`` checks against

    Returns:
        Mapping of template function names to callables
    """
    return {
        "add": lambda a, b: a + b,
        "atoi": int,
        "base": posixpath.basename,
        "base64Decode": lambda s: base64.b64decode(s).decode("utf-8"),
        "base64Encode": lambda s: base64.b64encode(s.encode("utf-8")).decode("ascii"),
        "contains": lambda s, sub: sub in s,
        "datetime": datetime.now,
        "dir": posixpath.dirname,
        "div": lambda a, b: a // b,
        "fileExists": fs.exists,
        "getenv": lambda key, default="": os.environ.get(key, default),
        "join": lambda values, sep: sep.join(values),
        "json": json.loads,
        "jsonArray": json.loads,
        "lookupIP": lookup_ip,
        "map": create_map,
        "mod": lambda a, b: a % b,
        "mul": lambda a, b: a * b,
        "parseBool": parse_bool,
        "replace": lambda s, old, new, count=-1: s.replace(old, new, count),
        "reverse": lambda values: list(reversed(values)),
        "seq": seq,
        "sortByLength": sort_by_length,
        "sortKVByLength": sort_kv_by_length,
        "split": lambda s, sep: s.split(sep),
        "sub": lambda a, b: a - b,
        "toLower": str.lower,
        "toUpper": str.upper,
        "trimSuffix": trim_suffix,
    }
