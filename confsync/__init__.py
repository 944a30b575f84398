"""confsync - keep configuration files in sync with a key/value store.

Templates are rendered with values fetched from a store backend, staged next
to the destination file and committed atomically only when the content changed.
"""

__version__ = "0.1.0"

# Configure logging for library use
import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Re-export main CLI entry point
from .cli import main

__all__ = ["main"]
