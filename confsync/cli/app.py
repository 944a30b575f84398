"""Main CLI application."""

from __future__ import annotations

import logging
from typing import Optional

import typer
from typing_extensions import Annotated

from ..backends import new_store_client
from ..core.errors import ConfsyncError
from ..core.settings import Settings
from ..pipeline import process_all
from .parsers import parse_fetch_attempts, parse_store_files

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="confsync",
    help="Keep configuration files in sync with a key/value store.",
)


@app.command()
def run(
    confdir: Annotated[
        Optional[str],
        typer.Option(
            "--confdir",
            help="Directory holding conf.d/ and templates/ (default: /etc/confsync).",
            metavar="DIR",
        ),
    ] = None,
    prefix: Annotated[
        Optional[str],
        typer.Option(
            "--prefix",
            help="Default key prefix for resources that do not set one.",
            metavar="PREFIX",
        ),
    ] = None,
    backend: Annotated[
        Optional[str],
        typer.Option(
            "--backend",
            help="Store backend: env or file (default: env).",
            metavar="NAME",
        ),
    ] = None,
    files: Annotated[
        list[str],
        typer.Option(
            "--file",
            help="YAML store file for the file backend. Repeatable.",
            metavar="PATH",
        ),
    ] = [],
    noop: Annotated[
        bool,
        typer.Option("--noop", help="Render and compare only; never modify targets."),
    ] = False,
    sync_only: Annotated[
        bool,
        typer.Option("--sync-only", help="Skip check and reload commands."),
    ] = False,
    keep_stage_file: Annotated[
        bool,
        typer.Option("--keep-stage-file", help="Keep staged files after each run."),
    ] = False,
    fetch_attempts: Annotated[
        Optional[int],
        typer.Option(
            "--fetch-attempts",
            help="Attempts per backend fetch before a resource fails (default: 1).",
            metavar="N",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose logging.",
        ),
    ] = False,
) -> None:
    """Render every template resource once and sync changed targets."""
    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    logger.debug("Starting confsync")

    overrides: dict[str, object] = {}
    if confdir is not None:
        overrides["confdir"] = confdir
    if prefix is not None:
        overrides["prefix"] = prefix
    if backend is not None:
        overrides["backend"] = backend
    if files:
        overrides["files"] = files
    if fetch_attempts is not None:
        overrides["fetch_attempts"] = parse_fetch_attempts(fetch_attempts)
    # Flags only switch features on; environment settings may already have done so
    for name, flag in (("noop", noop), ("sync_only", sync_only), ("keep_stage_file", keep_stage_file)):
        if flag:
            overrides[name] = True

    try:
        settings = Settings(**overrides)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    parse_store_files(settings.files, settings.backend)

    config = settings.to_processing_config(new_store_client(settings))
    logger.debug(f"Config: confdir={config.confdir} prefix={config.prefix!r}")

    try:
        report = process_all(config)
    except ConfsyncError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1) from exc

    logger.debug(f"Completed: {len(report.results)} resource(s) processed")
    if not report.ok:
        raise typer.Exit(code=1)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
