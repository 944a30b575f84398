from __future__ import annotations

from typing import Callable

import pytest

from confsync.core.models import ProcessingConfig
from confsync.filesystem import MemoryFileSystem

from .utils import CONFDIR, DictClient


@pytest.fixture
def memfs() -> MemoryFileSystem:
    fs = MemoryFileSystem(uid=1000, gid=1000)
    fs.mkdir(f"{CONFDIR}/conf.d", parents=True)
    fs.mkdir(f"{CONFDIR}/templates", parents=True)
    fs.mkdir("/srv/app", parents=True)
    return fs


@pytest.fixture
def client() -> DictClient:
    return DictClient({"/foo": "bar"})


@pytest.fixture
def make_config() -> Callable[..., ProcessingConfig]:
    def _make(store_client, **overrides) -> ProcessingConfig:
        params = {
            "confdir": CONFDIR,
            "store_client": store_client,
            "default_uid": 1000,
            "default_gid": 1000,
        }
        params.update(overrides)
        return ProcessingConfig(**params)

    return _make
