"""YAML file store client."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Sequence

import yaml

from ..core.errors import BackendError

logger = logging.getLogger(__name__)


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def flatten(node: Any, path: str = "") -> dict[str, str]:
    """Flatten nested mappings and lists into "/a/b/0" style keys.

    Args:
        node: Parsed YAML document or sub-node
        path: Key of ``node`` itself

    Returns:
        Flat mapping of keys to string values
    """
    flat: dict[str, str] = {}
    if isinstance(node, dict):
        for key, value in node.items():
            flat.update(flatten(value, f"{path}/{key}"))
    elif isinstance(node, list):
        for index, value in enumerate(node):
            flat.update(flatten(value, f"{path}/{index}"))
    else:
        flat[path or "/"] = _scalar(node)
    return flat


class YamlFileClient:
    """Store client serving values from one or more YAML files.

    Files are re-read on every fetch so that edits are picked up by the next
    processing cycle. Later files override keys of earlier ones.
    """

    def __init__(self, paths: Iterable[str | Path]) -> None:
        self.paths = [Path(p) for p in paths]

    def _load(self) -> dict[str, str]:
        data: dict[str, str] = {}
        for path in self.paths:
            try:
                document = yaml.safe_load(path.read_text(encoding="utf-8"))
            except (OSError, yaml.YAMLError) as exc:
                raise BackendError(f"Cannot read YAML store file {path}: {exc}") from exc
            if document is None:
                continue
            data.update(flatten(document))
        return data

    def get_values(self, keys: Sequence[str]) -> dict[str, str]:
        data = self._load()
        logger.debug(f"Loaded {len(data)} key(s) from {len(self.paths)} YAML file(s)")
        return {
            k: v for k, v in data.items() if any(k.startswith(key) for key in keys)
        }
