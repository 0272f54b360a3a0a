"""Auxiliary helpers used by CLI commands."""

from __future__ import annotations

from pathlib import Path
import sys

import typer

from chatmark.core.config import SessionConfig, load_session_config
from chatmark.core.exceptions import ConfigurationError

from .state import emit_error


STDIN_MARKER = "-"


def read_input(source: str) -> str:
    """Return the document designated by ``source``, reading stdin for ``-``."""
    if source == STDIN_MARKER:
        return sys.stdin.read()
    path = Path(source)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        emit_error(f"Unable to read '{path}': {exc.strerror or exc}", exception=exc)
        raise typer.Exit(code=1) from exc


def load_config_or_exit(path: Path | None) -> SessionConfig:
    try:
        return load_session_config(path)
    except ConfigurationError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


def write_output(markup: str, target: Path | None) -> None:
    """Write ``markup`` to ``target``, or to stdout when no target is given."""
    if target is None:
        typer.echo(markup)
        return
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(markup, encoding="utf-8")


__all__ = ["STDIN_MARKER", "load_config_or_exit", "read_input", "write_output"]
