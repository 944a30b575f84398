"""Process settings read from ``CONFSYNC_*`` environment variables."""

from __future__ import annotations

import os
from typing import Any, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ProcessingConfig


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CONFSYNC_", case_sensitive=False)

    confdir: str = "/etc/confsync"
    prefix: str = ""
    backend: Literal["env", "file"] = "env"
    files: list[str] = []
    noop: bool = False
    sync_only: bool = False
    keep_stage_file: bool = False
    fetch_attempts: int = 1

    def to_processing_config(self, store_client: Any) -> ProcessingConfig:
        """Build the processing configuration for one pass.

        The effective ids of the running process become the default owner
        and group of resources that do not name one.
        """
        return ProcessingConfig(
            confdir=self.confdir,
            prefix=self.prefix,
            store_client=store_client,
            keep_stage_file=self.keep_stage_file,
            noop=self.noop,
            sync_only=self.sync_only,
            default_uid=os.geteuid(),
            default_gid=os.getegid(),
            fetch_attempts=self.fetch_attempts,
        )
