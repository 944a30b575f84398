"""File metadata and content comparison."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass

from ..filesystem.base import FileSystem

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class FileInfo:
    """Ownership, permissions and content fingerprint of a file."""

    mode: int
    uid: int
    gid: int
    digest: str


def fingerprint(fs: FileSystem, path: str) -> str:
    """Return the SHA-256 hex digest of a file's content.

    Args:
        fs: Filesystem holding the file
        path: File path

    Returns:
        Hex digest string
    """
    digest = hashlib.sha256()
    with fs.open(path, "rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def file_info(fs: FileSystem, path: str) -> FileInfo:
    """Describe the named file.

    Raises:
        FileNotFoundError: The file does not exist.
    """
    st = fs.stat(path)
    return FileInfo(mode=st.mode, uid=st.uid, gid=st.gid, digest=fingerprint(fs, path))


def is_config_changed(fs: FileSystem, src: str, dest: str) -> bool:
    """Report whether ``src`` and ``dest`` differ.

    Only content is compared; ownership and mode drift on ``dest`` does not
    count as a change. A missing ``dest`` always counts as changed.
    """
    if not fs.exists(dest):
        return True
    src_info = file_info(fs, src)
    dest_info = file_info(fs, dest)
    if src_info.digest != dest_info.digest:
        logger.info(f"{dest} has sha256sum {dest_info.digest} should be {src_info.digest}")
        return True
    return False
