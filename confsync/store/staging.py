"""Staging store exposing fetched values to templates."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Any, Callable, NamedTuple

from ..backends.base import StoreClient, fetch_values
from ..core.errors import KeyNotFoundError
from .keys import append_prefix, clean, normalize_prefix, relativize

logger = logging.getLogger(__name__)

_GLOB_CHARS = frozenset("*?[")

_MISSING = object()


class KVPair(NamedTuple):
    key: str
    value: str


def _is_pattern(pattern: str) -> bool:
    return any(char in _GLOB_CHARS for char in pattern)


class StagingStore:
    """In-memory mapping from normalized keys to values.

    The contents always reflect exactly one fetch cycle: ``refresh`` purges
    everything before inserting the new results.
    """

    def __init__(
        self, client: StoreClient | None = None, prefix: str = "/", fetch_attempts: int = 1
    ) -> None:
        self.client = client
        self.prefix = normalize_prefix(prefix)
        self.fetch_attempts = fetch_attempts
        self.index = 0
        self._data: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.exists(key)

    def refresh(self, keys: list[str] | tuple[str, ...]) -> None:
        """Replace the store contents with fresh values from the backend.

        Args:
            keys: Keys relative to the store prefix

        Raises:
            BackendError: The backend failed; the previous contents are kept.
        """
        if self.client is None:
            raise RuntimeError("StagingStore has no store client attached")

        logger.debug("Retrieving keys from store")
        logger.debug(f"Key prefix set to {self.prefix}")

        result = fetch_values(
            self.client, append_prefix(self.prefix, keys), attempts=self.fetch_attempts
        )
        logger.debug(f"Got the following map from store: {result}")

        self.purge()
        for key, value in result.items():
            self.set(relativize(self.prefix, key), value)

    def advance_index(self, index: int) -> None:
        """Record a backend fetch index; lower values than the current one are ignored."""
        if index > self.index:
            self.index = index

    def set(self, key: str, value: str) -> None:
        self._data[clean(key)] = value

    def delete(self, key: str) -> None:
        self._data.pop(clean(key), None)

    def purge(self) -> None:
        self._data.clear()

    def get(self, key: str) -> KVPair:
        key = clean(key)
        try:
            return KVPair(key, self._data[key])
        except KeyError:
            raise KeyNotFoundError(key) from None

    def get_value(self, key: str, default: Any = _MISSING) -> str:
        """Return the value stored under ``key``.

        Args:
            key: Store key
            default: Value returned when the key is missing

        Raises:
            KeyNotFoundError: The key is missing and no default was given.
        """
        try:
            return self.get(key).value
        except KeyNotFoundError:
            if default is _MISSING:
                raise
            return default

    def exists(self, key: str) -> bool:
        return clean(key) in self._data

    def get_all(self, pattern: str) -> list[KVPair]:
        """Return pairs matching a glob pattern or living under a key prefix.

        A ``*`` in the pattern never crosses a "/" boundary. A pattern without
        glob characters selects the key itself and all of its descendants.
        Results are ordered by key.
        """
        return [KVPair(key, self._data[key]) for key in self._match(pattern)]

    def get_all_values(self, pattern: str) -> list[str]:
        """Values of ``get_all(pattern)``, ordered by key."""
        return [pair.value for pair in self.get_all(pattern)]

    def list_keys(self, prefix: str) -> list[str]:
        """Names of the immediate children of ``prefix``, sorted."""
        return sorted(self._children(prefix))

    def list_dirs(self, prefix: str) -> list[str]:
        """Names of the immediate children of ``prefix`` that have children themselves."""
        return sorted(name for name, is_dir in self._children(prefix).items() if is_dir)

    def func_map(self) -> dict[str, Callable[..., Any]]:
        """Store-bound functions exposed to templates."""
        return {
            "exists": self.exists,
            "get": self.get,
            "gets": self.get_all,
            "getv": self.get_value,
            "getvs": self.get_all_values,
            "ls": self.list_keys,
            "lsdir": self.list_dirs,
        }

    def _match(self, pattern: str) -> list[str]:
        if _is_pattern(pattern):
            rooted = PurePosixPath("/" + pattern.lstrip("/"))
            return sorted(key for key in self._data if PurePosixPath(key).match(str(rooted)))

        base = clean(pattern)
        scope = base.rstrip("/") + "/"
        return sorted(key for key in self._data if key == base or key.startswith(scope))

    def _children(self, prefix: str) -> dict[str, bool]:
        base = clean(prefix)
        scope = base.rstrip("/") + "/"
        children: dict[str, bool] = {}
        for key in self._data:
            if not key.startswith(scope) or key == base:
                continue
            head, sep, _rest = key[len(scope):].partition("/")
            children[head] = children.get(head, False) or bool(sep)
        return children
