"""Resource descriptor loading."""

from __future__ import annotations

import logging
import os
import tomllib
from typing import Callable

import pydantic
from pydantic import BaseModel, ConfigDict

from ..core.errors import (
    ConfsyncError,
    DescriptorError,
    EmptySourceError,
    IdentityResolutionError,
)
from ..core.models import ProcessingConfig, ResourceConfig
from ..filesystem.base import FileSystem
from ..store.keys import normalize_prefix
from ..store.staging import StagingStore
from .resource import TemplateResource

logger = logging.getLogger(__name__)


class ResourceDescriptor(BaseModel):
    """Raw ``[template]`` table of a resource descriptor file."""

    model_config = ConfigDict(extra="ignore")

    src: str = ""
    dest: str = ""
    keys: list[str] = []
    prefix: str = ""
    mode: str | int = ""
    owner: str = ""
    group: str = ""
    uid: int = -1
    gid: int = -1
    check_cmd: str = ""
    reload_cmd: str = ""


def parse_file_mode(value: str | int) -> int | None:
    """Parse an octal mode string such as "0644" or "0o640".

    Returns None for an empty value, meaning "inherit from destination".
    A bare TOML integer is rejected: ``mode = 644`` would read as decimal.
    """
    if isinstance(value, int):
        raise DescriptorError(f'Mode must be an octal string such as "0644", got {value}')
    value = value.strip()
    if not value:
        return None
    digits = value[2:] if value.lower().startswith("0o") else value
    try:
        mode = int(digits, 8)
    except ValueError as e:
        raise DescriptorError(f"Invalid octal mode: {value!r}") from e
    if not 0 <= mode <= 0o7777:
        raise DescriptorError(f"Invalid octal mode: {value!r}")
    return mode


def _resolve_id(
    explicit: int, name: str, lookup: Callable[[str], int], default: int, kind: str
) -> int:
    if explicit != -1:
        return explicit
    if not name:
        return default
    try:
        return lookup(name)
    except IdentityResolutionError:
        raise
    except (KeyError, ValueError) as exc:
        raise IdentityResolutionError(f"Cannot find {kind} id for {name!r} - {exc}") from exc


def load_resource(fs: FileSystem, path: str, config: ProcessingConfig) -> TemplateResource:
    """Load a template resource from a descriptor file.

    Args:
        fs: Filesystem holding the descriptor
        path: Descriptor file path
        config: Processing configuration

    Returns:
        Template resource with an empty staging store attached
    """
    if config.store_client is None:
        raise ConfsyncError("A valid StoreClient is required.")

    logger.debug(f"Loading template resource from {path}")

    try:
        document = tomllib.loads(fs.read_bytes(path).decode("utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise DescriptorError(f"Cannot process template resource {path} - {exc}") from exc

    table = document.get("template", document)
    if not isinstance(table, dict):
        raise DescriptorError(f"Cannot process template resource {path} - [template] is not a table")

    try:
        descriptor = ResourceDescriptor.model_validate(table)
    except pydantic.ValidationError as exc:
        raise DescriptorError(f"Cannot process template resource {path} - {exc}") from exc

    if not descriptor.src:
        raise EmptySourceError(f"empty src template in {path}")
    if not descriptor.dest:
        raise DescriptorError(f"Cannot process template resource {path} - missing dest")

    prefix = normalize_prefix(descriptor.prefix or config.prefix)

    resource = ResourceConfig(
        src=os.path.join(config.template_dir, descriptor.src),
        dest=descriptor.dest,
        keys=tuple(descriptor.keys),
        prefix=prefix,
        mode=parse_file_mode(descriptor.mode),
        uid=_resolve_id(
            descriptor.uid, descriptor.owner, config.lookup_uid, config.default_uid, "owner"
        ),
        gid=_resolve_id(
            descriptor.gid, descriptor.group, config.lookup_gid, config.default_gid, "group"
        ),
        check_cmd=descriptor.check_cmd or None,
        reload_cmd=descriptor.reload_cmd or None,
        keep_stage_file=config.keep_stage_file,
        noop=config.noop,
        sync_only=config.sync_only,
    )
    store = StagingStore(config.store_client, prefix, fetch_attempts=config.fetch_attempts)
    return TemplateResource(resource, store, fs)
