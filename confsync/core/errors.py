"""Error taxonomy for loading and processing template resources."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import CycleResult


class ConfsyncError(Exception):
    """Base class for every error raised by confsync."""


class ResourceLoadError(ConfsyncError):
    """Raised when a template resource cannot be constructed."""


class DescriptorError(ResourceLoadError):
    """Raised when a resource descriptor cannot be decoded or validated."""


class EmptySourceError(ResourceLoadError):
    """Raised when a resource descriptor has no source template."""


class IdentityResolutionError(ResourceLoadError):
    """Raised when an owner or group name cannot be resolved to an id."""


class CycleError(ConfsyncError):
    """Raised when a processing cycle fails."""


class BackendError(CycleError):
    """Raised when values cannot be fetched from the store backend."""


class TemplateSyntaxError(CycleError):
    """Raised when a source template fails to compile."""


class TemplateRenderError(CycleError):
    """Raised when a compiled template fails while rendering."""


class FilesystemError(CycleError):
    """Raised when staging or committing a file fails."""


class ValidationError(CycleError):
    """Raised when the check command rejects a staged file."""


class ReloadError(CycleError):
    """Raised when the reload command fails after a successful commit.

    The destination file has already been replaced; ``result`` describes the
    committed change.
    """

    def __init__(self, message: str, result: CycleResult) -> None:
        super().__init__(message)
        self.result = result


class KeyNotFoundError(ConfsyncError, LookupError):
    """Raised when a key is missing from the staging store."""

    def __init__(self, key: str) -> None:
        super().__init__(f"key does not exist: {key}")
        self.key = key


class CommandError(ConfsyncError):
    """Raised when a shell command exits with a nonzero status."""

    def __init__(self, command: str, returncode: int | None, output: str) -> None:
        status = "could not be started" if returncode is None else f"exited with status {returncode}"
        super().__init__(f"command {command!r} {status}")
        self.command = command
        self.returncode = returncode
        self.output = output
