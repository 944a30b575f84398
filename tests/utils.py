from __future__ import annotations

from typing import Mapping, Sequence

from confsync.filesystem import MemoryFileSystem

CONFDIR = "/etc/confsync"


class DictClient:
    """Store client serving a fixed mapping, optionally failing."""

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self.values = dict(values or {})
        self.error: Exception | None = None
        self.calls: list[list[str]] = []

    def get_values(self, keys: Sequence[str]) -> dict[str, str]:
        self.calls.append(list(keys))
        if self.error is not None:
            raise self.error
        return {k: v for k, v in self.values.items() if any(k.startswith(key) for key in keys)}


def write_text(fs: MemoryFileSystem, path: str, text: str, mode: int = 0o644) -> None:
    fs.write_file(path, text.encode("utf-8"), mode)


def read_text(fs: MemoryFileSystem, path: str) -> str:
    return fs.read_bytes(path).decode("utf-8")
