"""Filesystem abstraction.

Every filesystem effect of the pipeline goes through a ``FileSystem`` so that
the same code runs against the host filesystem or an in-memory one. Failures
are reported as ``OSError`` subclasses carrying an ``errno``, as the ``os``
module does.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import BinaryIO, Iterator


@dataclass(frozen=True)
class FileStat:
    """Metadata of a single file."""

    mode: int  # permission bits only
    uid: int
    gid: int
    size: int
    mtime: float


class FileSystem(ABC):
    """Abstract filesystem capability set."""

    @abstractmethod
    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        """Open a file for binary reading ("rb") or truncating write ("wb")."""
        ...

    @abstractmethod
    def write_file(self, path: str, data: bytes, mode: int) -> None:
        """Truncate and write ``data`` to ``path``.

        The file is created with ``mode`` when it does not exist; an existing
        file keeps its permissions.
        """
        ...

    @abstractmethod
    def exists(self, path: str) -> bool:
        ...

    @abstractmethod
    def stat(self, path: str) -> FileStat:
        ...

    @abstractmethod
    def chmod(self, path: str, mode: int) -> None:
        ...

    @abstractmethod
    def chown(self, path: str, uid: int, gid: int) -> None:
        ...

    @abstractmethod
    def rename(self, src: str, dst: str) -> None:
        """Replace ``dst`` with ``src`` in a single step."""
        ...

    @abstractmethod
    def remove(self, path: str) -> None:
        ...

    @abstractmethod
    def mkdir(self, path: str, mode: int = 0o755, parents: bool = False) -> None:
        ...

    @abstractmethod
    def create_temp(self, directory: str, prefix: str) -> tuple[BinaryIO, str]:
        """Create a uniquely named file inside ``directory``.

        Args:
            directory: Existing directory that will hold the file
            prefix: Leading part of the generated file name

        Returns:
            Writable binary handle and the path of the new file
        """
        ...

    @abstractmethod
    def walk_files(self, root: str) -> Iterator[str]:
        """Yield the path of every regular file below ``root``."""
        ...

    def read_bytes(self, path: str) -> bytes:
        with self.open(path, "rb") as handle:
            return handle.read()
