"""Stage-and-commit pipeline for a single template resource."""

from __future__ import annotations

import errno
import logging
import os

from ..core.errors import (
    CommandError,
    FilesystemError,
    ReloadError,
    ValidationError,
)
from ..core.models import DEFAULT_FILE_MODE, CycleResult, ProcessingState, ResourceConfig
from ..filesystem.base import FileSystem
from ..rendering.engine import load_template, render_string, render_to
from ..rendering.functions import new_func_map
from ..rendering.io import is_config_changed
from ..store.staging import StagingStore
from .commands import run_command

logger = logging.getLogger(__name__)


def _is_busy(exc: OSError) -> bool:
    # Renaming onto a bind-mounted file fails with EBUSY.
    if exc.errno == errno.EBUSY:
        return True
    return "device or resource busy" in str(exc).lower()


class TemplateResource:
    """A template/destination pair together with its sync policy.

    ``config`` never changes after loading. Everything a cycle computes lives
    in a ``ProcessingState`` created by ``process``.
    """

    def __init__(self, config: ResourceConfig, store: StagingStore, fs: FileSystem) -> None:
        self.config = config
        self.store = store
        self.fs = fs
        self.functions = {**new_func_map(fs), **store.func_map()}

    def __repr__(self) -> str:
        return f"TemplateResource(src={self.config.src!r}, dest={self.config.dest!r})"

    def process(self) -> CycleResult:
        """Run one fetch, stage and sync cycle.

        Returns:
            Outcome of the cycle

        Raises:
            CycleError: The cycle failed; the destination was not modified,
                except for ``ReloadError`` which is raised after the commit.
        """
        state = ProcessingState(file_mode=self.resolve_mode())
        self.store.refresh(self.config.keys)
        self.create_stage_file(state)
        return self.sync(state)

    def resolve_mode(self) -> int:
        """Return the configured mode, else the destination's, else 0644."""
        if self.config.mode is not None:
            return self.config.mode
        if not self.fs.exists(self.config.dest):
            return DEFAULT_FILE_MODE
        try:
            return self.fs.stat(self.config.dest).mode
        except OSError as exc:
            raise FilesystemError(f"Cannot stat {self.config.dest}: {exc}") from exc

    def create_stage_file(self, state: ProcessingState) -> None:
        """Render the source template into a temp file next to the destination.

        The staged file gets the resolved mode and ownership so that it can be
        renamed onto the destination as is. It is removed again on failure.
        """
        src, dest = self.config.src, self.config.dest
        logger.debug(f"Using source template {src}")
        template = load_template(self.fs, src, self.functions)

        # Stage in the destination directory so the rename stays on one filesystem
        dest_dir = os.path.dirname(dest) or "."
        try:
            handle, stage_path = self.fs.create_temp(dest_dir, f".{os.path.basename(dest)}")
        except OSError as exc:
            raise FilesystemError(f"Cannot create staged file in {dest_dir}: {exc}") from exc

        try:
            with handle:
                render_to(template, handle)
            self.fs.chmod(stage_path, state.file_mode)
            self.fs.chown(stage_path, self.config.uid, self.config.gid)
        except OSError as exc:
            self._discard(stage_path)
            raise FilesystemError(f"Cannot stage {stage_path}: {exc}") from exc
        except BaseException:
            self._discard(stage_path)
            raise

        state.stage_path = stage_path

    def sync(self, state: ProcessingState) -> CycleResult:
        """Compare the staged file with the destination and commit if they differ.

        A configured check command must accept the staged file before the
        destination is replaced; a reload command runs after the commit.
        """
        if state.stage_path is None:
            raise RuntimeError("sync() called before create_stage_file()")

        staged, dest = state.stage_path, self.config.dest
        result = CycleResult(dest=dest)
        try:
            logger.debug(f"Comparing candidate config to {dest}")
            try:
                state.changed = is_config_changed(self.fs, staged, dest)
            except OSError as exc:
                raise FilesystemError(f"Cannot compare {staged} with {dest}: {exc}") from exc
            result.changed = state.changed

            if self.config.noop:
                logger.warning(f"Noop mode enabled. {dest} will not be modified")
                result.noop = True
                return result

            if not state.changed:
                logger.debug(f"Target config {dest} in sync")
                return result

            logger.info(f"Target config {dest} out of sync")
            if not self.config.sync_only and self.config.check_cmd:
                self.check(staged)

            logger.debug(f"Overwriting target config {dest}")
            self.commit(state)
            result.committed = True

            if not self.config.sync_only and self.config.reload_cmd:
                try:
                    self.reload()
                except CommandError as exc:
                    raise ReloadError(f"Reload of {dest} failed: {exc}", result) from exc
                result.reloaded = True

            logger.info(f"Target config {dest} has been updated")
            return result
        finally:
            if self.config.keep_stage_file:
                logger.info(f"Keeping staged file: {staged}")
                if self.fs.exists(staged):
                    result.stage_path = staged
            else:
                self._discard(staged)

    def check(self, staged: str) -> None:
        """Run the check command against the staged file.

        References to ``src`` in the command are replaced with the path of
        the staged file.
        """
        cmd = render_string(self.config.check_cmd or "", src=staged)
        try:
            run_command(cmd)
        except CommandError as exc:
            raise ValidationError(f"Config check failed: {exc}") from exc

    def commit(self, state: ProcessingState) -> None:
        staged, dest = state.stage_path, self.config.dest
        if staged is None:
            raise RuntimeError("commit() called before create_stage_file()")
        try:
            self.fs.rename(staged, dest)
            return
        except OSError as exc:
            if not _is_busy(exc):
                raise FilesystemError(f"Cannot replace {dest}: {exc}") from exc

        logger.debug("Rename failed - target is likely a mount. Trying to write instead")
        try:
            contents = self.fs.read_bytes(staged)
            self.fs.write_file(dest, contents, state.file_mode)
            # Make sure owner and group match the staged file
            self.fs.chown(dest, self.config.uid, self.config.gid)
        except OSError as exc:
            raise FilesystemError(f"Cannot write {dest}: {exc}") from exc

    def reload(self) -> None:
        run_command(self.config.reload_cmd or "")

    def _discard(self, path: str) -> None:
        try:
            self.fs.remove(path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning(f"Cannot remove staged file {path}: {exc}")
