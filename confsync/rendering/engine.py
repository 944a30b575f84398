"""Template rendering engine."""

from __future__ import annotations

import logging
import os
from typing import Any, BinaryIO, Callable, Mapping

import jinja2
from jinja2 import BaseLoader, Environment, StrictUndefined, Template

from ..core.errors import FilesystemError, TemplateRenderError, TemplateSyntaxError
from ..filesystem.base import FileSystem

logger = logging.getLogger(__name__)

class FileSystemTemplateLoader(BaseLoader):
    """Load templates through a ``FileSystem`` relative to a search path."""

    def __init__(self, fs: FileSystem, searchpath: str) -> None:
        self.fs = fs
        self.searchpath = searchpath

    def get_source(
        self, environment: Environment, template: str
    ) -> tuple[str, str, Callable[[], bool]]:
        path = os.path.join(self.searchpath, template)
        if not self.fs.exists(path):
            raise jinja2.TemplateNotFound(template)

        source = self.fs.read_bytes(path).decode("utf-8")
        mtime = self.fs.stat(path).mtime

        def uptodate() -> bool:
            return self.fs.exists(path) and self.fs.stat(path).mtime == mtime

        return source, path, uptodate


def create_environment(
    loader: BaseLoader | None = None, functions: Mapping[str, Callable[..., Any]] | None = None
) -> Environment:
    env = Environment(
        loader=loader,
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    if functions:
        env.globals.update(functions)
    return env


def load_template(
    fs: FileSystem, template_path: str, functions: Mapping[str, Callable[..., Any]]
) -> Template:
    """Compile a template read from ``fs``.

    Args:
        fs: Filesystem holding the template
        template_path: Path to the template file
        functions: Functions exposed to the template as globals

    Returns:
        Compiled Jinja2 template
    """
    if not fs.exists(template_path):
        raise FilesystemError(f"Missing template: {template_path}")

    logger.debug(f"Compiling source template {template_path}")

    # Use template's parent directory as loader search path
    loader = FileSystemTemplateLoader(fs, os.path.dirname(template_path))
    env = create_environment(loader, functions)

    try:
        return env.get_template(os.path.basename(template_path))
    except jinja2.TemplateSyntaxError as exc:
        raise TemplateSyntaxError(
            f"Unable to process template {template_path}, line {exc.lineno}: {exc.message}"
        ) from exc
    except (jinja2.TemplateNotFound, OSError, UnicodeDecodeError) as exc:
        raise FilesystemError(f"Cannot read template {template_path}: {exc}") from exc


def render_to(template: Template, handle: BinaryIO) -> None:
    """Render ``template`` straight into a binary file handle.

    Anything the template raises while executing, including failures inside
    helper functions, is a ``TemplateRenderError``. Only failures writing to
    ``handle`` are a ``FilesystemError``.
    """
    chunks = template.generate()
    while True:
        try:
            chunk = next(chunks)
        except StopIteration:
            break
        except Exception as exc:
            raise TemplateRenderError(f"Unable to render template {template.name}: {exc}") from exc
        try:
            handle.write(chunk.encode("utf-8"))
        except OSError as exc:
            raise FilesystemError(f"Cannot write rendered template {template.name}: {exc}") from exc


def render_string(source: str, **context: Any) -> str:
    """Render a one-off string template, such as a check command."""
    env = create_environment()
    try:
        return env.from_string(source).render(**context)
    except jinja2.TemplateSyntaxError as exc:
        raise TemplateSyntaxError(f"Unable to process {source!r}: {exc.message}") from exc
    except jinja2.TemplateError as exc:
        raise TemplateRenderError(f"Unable to render {source!r}: {exc}") from exc
