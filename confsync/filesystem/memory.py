"""In-memory filesystem for tests and dry runs."""

from __future__ import annotations

import errno
import io
import itertools
import os
import posixpath
import time
from dataclasses import dataclass, field
from typing import BinaryIO, Iterator

from .base import FileStat, FileSystem


@dataclass
class _Node:
    data: bytes = b""
    mode: int = 0o644
    uid: int = 0
    gid: int = 0
    mtime: float = field(default_factory=time.time)


def _error(code: int, path: str) -> OSError:
    return OSError(code, os.strerror(code), path)


class _MemoryWriter(io.BytesIO):
    """Buffer that stores its content in the owning filesystem on close."""

    def __init__(self, fs: MemoryFileSystem, path: str) -> None:
        super().__init__()
        self._fs = fs
        self.name = path

    def close(self) -> None:
        if not self.closed:
            node = self._fs._files.get(self.name)
            if node is not None:
                node.data = self.getvalue()
                node.mtime = time.time()
        super().close()


class MemoryFileSystem(FileSystem):
    """``FileSystem`` keeping files and directories in dictionaries.

    Faults can be injected per operation and path with ``inject_fault``;
    ``mark_busy`` makes renames onto a path fail with ``EBUSY`` the way a
    bind-mounted file does.
    """

    def __init__(self, uid: int = 0, gid: int = 0) -> None:
        self.uid = uid
        self.gid = gid
        self._files: dict[str, _Node] = {}
        self._dirs: set[str] = {"/"}
        self._faults: dict[tuple[str, str], int] = {}
        self._counter = itertools.count()

    # Test helpers

    def inject_fault(self, operation: str, path: str, code: int = errno.EIO) -> None:
        self._faults[(operation, self._norm(path))] = code

    def clear_faults(self) -> None:
        self._faults.clear()

    def mark_busy(self, path: str) -> None:
        self.inject_fault("rename", path, errno.EBUSY)

    # FileSystem

    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        path = self._norm(path)
        self._check("open", path)
        if mode == "rb":
            node = self._node(path)
            return io.BytesIO(node.data)
        if mode == "wb":
            self._require_parent(path)
            if path not in self._files:
                self._files[path] = _Node(mode=0o644, uid=self.uid, gid=self.gid)
            self._files[path].data = b""
            return _MemoryWriter(self, path)
        raise ValueError(f"Unsupported file mode: {mode!r}")

    def write_file(self, path: str, data: bytes, mode: int) -> None:
        path = self._norm(path)
        self._check("write_file", path)
        self._require_parent(path)
        node = self._files.get(path)
        if node is None:
            node = self._files[path] = _Node(mode=mode, uid=self.uid, gid=self.gid)
        node.data = data
        node.mtime = time.time()

    def exists(self, path: str) -> bool:
        path = self._norm(path)
        return path in self._files or path in self._dirs

    def stat(self, path: str) -> FileStat:
        path = self._norm(path)
        self._check("stat", path)
        if path in self._dirs:
            return FileStat(mode=0o755, uid=self.uid, gid=self.gid, size=0, mtime=0.0)
        node = self._node(path)
        return FileStat(
            mode=node.mode,
            uid=node.uid,
            gid=node.gid,
            size=len(node.data),
            mtime=node.mtime,
        )

    def chmod(self, path: str, mode: int) -> None:
        path = self._norm(path)
        self._check("chmod", path)
        self._node(path).mode = mode & 0o7777

    def chown(self, path: str, uid: int, gid: int) -> None:
        path = self._norm(path)
        self._check("chown", path)
        node = self._node(path)
        if uid != -1:
            node.uid = uid
        if gid != -1:
            node.gid = gid

    def rename(self, src: str, dst: str) -> None:
        src, dst = self._norm(src), self._norm(dst)
        self._check("rename", dst)
        node = self._node(src)
        self._require_parent(dst)
        if dst in self._dirs:
            raise _error(errno.EISDIR, dst)
        self._files[dst] = node
        del self._files[src]

    def remove(self, path: str) -> None:
        path = self._norm(path)
        self._check("remove", path)
        self._node(path)
        del self._files[path]

    def mkdir(self, path: str, mode: int = 0o755, parents: bool = False) -> None:
        path = self._norm(path)
        if path in self._dirs:
            if parents:
                return
            raise _error(errno.EEXIST, path)
        parent = posixpath.dirname(path)
        if parent not in self._dirs:
            if not parents:
                raise _error(errno.ENOENT, parent)
            self.mkdir(parent, mode, parents=True)
        if path in self._files:
            raise _error(errno.EEXIST, path)
        self._dirs.add(path)

    def create_temp(self, directory: str, prefix: str) -> tuple[BinaryIO, str]:
        directory = self._norm(directory)
        self._check("create_temp", directory)
        if directory not in self._dirs:
            raise _error(errno.ENOENT, directory)
        while True:
            path = posixpath.join(directory, f"{prefix}{next(self._counter):08d}")
            if path not in self._files:
                break
        self._files[path] = _Node(mode=0o600, uid=self.uid, gid=self.gid)
        return _MemoryWriter(self, path), path

    def walk_files(self, root: str) -> Iterator[str]:
        root = self._norm(root)
        base = root.rstrip("/") + "/"
        for path in sorted(self._files):
            if path.startswith(base):
                yield path

    # Internals

    @staticmethod
    def _norm(path: str) -> str:
        return posixpath.normpath(posixpath.join("/", path))

    def _check(self, operation: str, path: str) -> None:
        code = self._faults.get((operation, path))
        if code is not None:
            raise _error(code, path)

    def _node(self, path: str) -> _Node:
        node = self._files.get(path)
        if node is None:
            if path in self._dirs:
                raise _error(errno.EISDIR, path)
            raise _error(errno.ENOENT, path)
        return node

    def _require_parent(self, path: str) -> None:
        parent = posixpath.dirname(path)
        if parent not in self._dirs:
            raise _error(errno.ENOENT, parent)
