"""Filesystem capability used by the stage-and-commit pipeline."""

from .base import FileStat, FileSystem
from .local import LocalFileSystem
from .memory import MemoryFileSystem

__all__ = ["FileStat", "FileSystem", "LocalFileSystem", "MemoryFileSystem"]
