"""Key/value store backend clients."""

from .base import StoreClient, fetch_values, new_store_client
from .env import EnvClient
from .yamlfile import YamlFileClient

__all__ = ["EnvClient", "StoreClient", "YamlFileClient", "fetch_values", "new_store_client"]
