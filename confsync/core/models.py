"""Domain models for template resources and processing cycles."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .identity import lookup_gid as _lookup_gid
from .identity import lookup_uid as _lookup_uid

DEFAULT_FILE_MODE = 0o644


class ResourceConfig(BaseModel):
    """Immutable configuration of one template resource."""

    model_config = ConfigDict(frozen=True)

    src: str = Field(..., description="Source template path")
    dest: str = Field(..., description="Destination file path")
    keys: tuple[str, ...] = Field(default=(), description="Store keys to fetch")
    prefix: str = Field(default="/", description="Key prefix, always rooted")
    mode: int | None = Field(
        default=None, description="File permissions; None inherits from dest"
    )
    uid: int = Field(..., description="Owner uid applied to the staged file")
    gid: int = Field(..., description="Group gid applied to the staged file")
    check_cmd: str | None = Field(default=None, description="Validation command")
    reload_cmd: str | None = Field(default=None, description="Reload command")
    keep_stage_file: bool = False
    noop: bool = False
    sync_only: bool = False


class ProcessingConfig(BaseModel):
    """Configuration shared by every resource of a processing pass."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    confdir: str = Field(default="/etc/confsync", description="Base directory")
    config_dir: str = Field(default="", description="Resource descriptor directory")
    template_dir: str = Field(default="", description="Source template directory")
    prefix: str = Field(default="", description="Default key prefix")
    store_client: Any = Field(default=None, description="Backend store client")
    keep_stage_file: bool = False
    noop: bool = False
    sync_only: bool = False
    default_uid: int = Field(..., description="Owner used when none is configured")
    default_gid: int = Field(..., description="Group used when none is configured")
    lookup_uid: Callable[[str], int] = Field(default=_lookup_uid)
    lookup_gid: Callable[[str], int] = Field(default=_lookup_gid)
    fetch_attempts: int = Field(default=1, ge=1, description="Backend fetch attempts")

    @model_validator(mode="after")
    def _default_dirs(self) -> ProcessingConfig:
        if not self.config_dir:
            self.config_dir = os.path.join(self.confdir, "conf.d")
        if not self.template_dir:
            self.template_dir = os.path.join(self.confdir, "templates")
        return self


@dataclass
class ProcessingState:
    """Mutable state of a single processing cycle."""

    file_mode: int = DEFAULT_FILE_MODE
    stage_path: str | None = None
    changed: bool = False


class CycleResult(BaseModel):
    """Outcome of one processing cycle for a resource."""

    dest: str
    changed: bool = False
    committed: bool = False
    reloaded: bool = False
    noop: bool = False
    stage_path: str | None = Field(
        default=None, description="Staged file left on disk, if kept"
    )
