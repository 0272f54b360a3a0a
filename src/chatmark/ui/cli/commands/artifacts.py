"""Implementation of the ``chatmark artifacts`` command."""

from __future__ import annotations

import typer

from chatmark.api import render as render_document
from chatmark.core.config import RenderOptions
from chatmark.core.exceptions import ChatmarkError

from .._options import ConfigOption, InputArgument
from ..diagnostics import CliEmitter
from ..presenter import present_artifacts
from ..state import emit_error, get_cli_state
from ..utils import load_config_or_exit, read_input


def artifacts(
    input_path: InputArgument,
    config: ConfigOption = None,
) -> None:
    """List the diagrams and standalone documents found in code blocks."""
    state = get_cli_state()
    session = load_config_or_exit(config)
    content = read_input(input_path)

    try:
        view = render_document(
            content,
            RenderOptions(immediately_render=True),
            config=session,
            emitter=CliEmitter(state),
            previews=False,
        )
        view.drain()
        present_artifacts(state, view.artifacts())
        view.unmount()
    except ChatmarkError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["artifacts"]
