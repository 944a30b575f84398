"""Shell command execution for check and reload hooks."""

from __future__ import annotations

import logging
import subprocess

from ..core.errors import CommandError

logger = logging.getLogger(__name__)


def run_command(cmd: str) -> str:
    """Run ``cmd`` through the host shell and return its combined output.

    Blocks until the command finishes; there is no timeout.

    Raises:
        CommandError: The command could not be started or exited nonzero.
    """
    logger.debug(f"Running {cmd}")
    try:
        result = subprocess.run(
            cmd,
            shell=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
    except OSError as exc:
        logger.error(f"Cannot run {cmd!r}: {exc}")
        raise CommandError(cmd, None, str(exc)) from exc

    output = result.stdout or ""
    if result.returncode != 0:
        logger.error(f"{output!r}")
        raise CommandError(cmd, result.returncode, output)
    logger.debug(f"{output!r}")
    return output
