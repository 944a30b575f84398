"""CLI argument parsers and validators."""

from __future__ import annotations

from pathlib import Path

import typer


def parse_store_files(values: list[str], backend: str) -> list[str]:
    """Validate YAML store file arguments for the selected backend."""
    if backend != "file":
        if values:
            raise typer.BadParameter("--file is only valid with --backend file")
        return []
    if not values:
        raise typer.BadParameter("--backend file needs at least one --file")
    missing = [value for value in values if not Path(value).is_file()]
    if missing:
        raise typer.BadParameter(f"Store file(s) not found: {', '.join(missing)}")
    return values


def parse_fetch_attempts(value: int) -> int:
    if value < 1:
        raise typer.BadParameter(f"Must be at least 1, got: {value}")
    return value
