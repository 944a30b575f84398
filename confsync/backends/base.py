"""Store client contract and retrying fetch."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Mapping, Protocol, Sequence, runtime_checkable

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..core.errors import BackendError

if TYPE_CHECKING:
    from ..core.settings import Settings

logger = logging.getLogger(__name__)


@runtime_checkable
class StoreClient(Protocol):
    """A key/value store that returns a flat mapping for a set of keys."""

    def get_values(self, keys: Sequence[str]) -> Mapping[str, str]:
        """Return every key/value pair under the fully qualified ``keys``."""
        ...


def fetch_values(
    client: StoreClient, keys: Sequence[str], *, attempts: int = 1
) -> dict[str, str]:
    """Fetch values from a store client, retrying backend failures.

    Args:
        client: Backend store client
        keys: Fully qualified keys
        attempts: Total number of attempts before giving up

    Returns:
        Flat mapping of fully qualified keys to values

    Raises:
        BackendError: Every attempt failed.
    """
    retrying = Retrying(
        reraise=True,
        retry=retry_if_exception_type(BackendError),
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=1, max=30),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
    for attempt in retrying:
        with attempt:
            try:
                result = client.get_values(list(keys))
            except BackendError:
                raise
            except Exception as exc:
                raise BackendError(f"Store fetch failed: {exc}") from exc
    return dict(result)


def new_store_client(settings: Settings) -> StoreClient:
    """Create the store client selected by ``settings.backend``."""
    if settings.backend == "env":
        from .env import EnvClient

        return EnvClient()
    if settings.backend == "file":
        from .yamlfile import YamlFileClient

        return YamlFileClient(settings.files)
    raise ValueError(f"Unknown backend: {settings.backend}")
