"""Environment variable store client."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Sequence

logger = logging.getLogger(__name__)


def key_to_env(key: str) -> str:
    """Map a store key to an environment variable name ("/db/host" -> "DB_HOST")."""
    return key.lstrip("/").replace("/", "_").upper()


def env_to_key(name: str) -> str:
    """Map an environment variable name back to a store key ("DB_HOST" -> "/db/host")."""
    return "/" + name.lower().replace("_", "/")


class EnvClient:
    """Store client reading values from the process environment."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ

    def get_values(self, keys: Sequence[str]) -> dict[str, str]:
        environ = os.environ if self._environ is None else self._environ
        values: dict[str, str] = {}
        for key in keys:
            name = key_to_env(key)
            for env_name, env_value in environ.items():
                if env_name.startswith(name):
                    values[env_to_key(env_name)] = env_value
        logger.debug(f"Matched {len(values)} environment variable(s) for {len(keys)} key(s)")
        return values
