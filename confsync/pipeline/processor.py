"""Process every resource descriptor found in the configuration directory."""

from __future__ import annotations

import fnmatch
import logging
import os
from dataclasses import dataclass, field

from ..core.errors import ConfsyncError, CycleError, ReloadError, ResourceLoadError
from ..core.models import CycleResult, ProcessingConfig
from ..filesystem.base import FileSystem
from ..filesystem.local import LocalFileSystem
from .loader import load_resource
from .resource import TemplateResource

logger = logging.getLogger(__name__)


@dataclass
class ProcessReport:
    """Results and failures of one processing pass."""

    results: list[CycleResult] = field(default_factory=list)
    errors: list[tuple[str, ConfsyncError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def find_descriptors(fs: FileSystem, config_dir: str, pattern: str = "*.toml") -> list[str]:
    """Recursively collect descriptor files below ``config_dir``, sorted by path."""
    return sorted(
        path for path in fs.walk_files(config_dir) if fnmatch.fnmatch(os.path.basename(path), pattern)
    )


def load_resources(
    fs: FileSystem, config: ProcessingConfig, report: ProcessReport
) -> list[TemplateResource]:
    """Load every descriptor, recording the ones that fail in ``report``."""
    if not fs.exists(config.config_dir):
        raise ConfsyncError(f"Cannot find resource descriptors: {config.config_dir} does not exist")

    resources: list[TemplateResource] = []
    for path in find_descriptors(fs, config.config_dir):
        try:
            resources.append(load_resource(fs, path, config))
        except ResourceLoadError as exc:
            logger.error(str(exc))
            report.errors.append((path, exc))
    return resources


def process_all(config: ProcessingConfig, fs: FileSystem | None = None) -> ProcessReport:
    """Run one processing cycle for every resource.

    A failing resource does not stop the others.

    Args:
        config: Processing configuration
        fs: Filesystem to operate on (default: the host filesystem)

    Returns:
        Report of cycle results and per-resource errors
    """
    fs = fs or LocalFileSystem()
    report = ProcessReport()
    resources = load_resources(fs, config, report)
    logger.info(f"Processing {len(resources)} template resource(s)")

    for resource in resources:
        try:
            report.results.append(resource.process())
        except ReloadError as exc:
            logger.error(str(exc))
            report.results.append(exc.result)
            report.errors.append((resource.config.dest, exc))
        except CycleError as exc:
            logger.error(str(exc))
            report.errors.append((resource.config.dest, exc))

    changed = sum(1 for result in report.results if result.committed)
    logger.info(f"Updated {changed} of {len(resources)} file(s)")
    return report
