"""Per-cycle key/value staging for template rendering."""

from .keys import append_prefix, normalize_prefix, relativize
from .staging import KVPair, StagingStore

__all__ = ["KVPair", "StagingStore", "append_prefix", "normalize_prefix", "relativize"]
