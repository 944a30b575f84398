"""Host filesystem backed by the ``os`` module."""

from __future__ import annotations

import os
import stat
import tempfile
from typing import BinaryIO, Iterator

from .base import FileStat, FileSystem


class LocalFileSystem(FileSystem):
    """``FileSystem`` operating on the real host filesystem."""

    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        if mode not in ("rb", "wb"):
            raise ValueError(f"Unsupported file mode: {mode!r}")
        return open(path, mode)

    def write_file(self, path: str, data: bytes, mode: int) -> None:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def stat(self, path: str) -> FileStat:
        st = os.stat(path)
        return FileStat(
            mode=stat.S_IMODE(st.st_mode),
            uid=st.st_uid,
            gid=st.st_gid,
            size=st.st_size,
            mtime=st.st_mtime,
        )

    def chmod(self, path: str, mode: int) -> None:
        os.chmod(path, mode)

    def chown(self, path: str, uid: int, gid: int) -> None:
        os.chown(path, uid, gid)

    def rename(self, src: str, dst: str) -> None:
        os.replace(src, dst)

    def remove(self, path: str) -> None:
        os.remove(path)

    def mkdir(self, path: str, mode: int = 0o755, parents: bool = False) -> None:
        if parents:
            os.makedirs(path, mode=mode, exist_ok=True)
        else:
            os.mkdir(path, mode)

    def create_temp(self, directory: str, prefix: str) -> tuple[BinaryIO, str]:
        fd, tmp_name = tempfile.mkstemp(prefix=prefix, dir=directory)
        return os.fdopen(fd, "wb"), tmp_name

    def walk_files(self, root: str) -> Iterator[str]:
        for dirpath, _dirnames, filenames in os.walk(root, followlinks=True):
            for name in filenames:
                yield os.path.join(dirpath, name)
