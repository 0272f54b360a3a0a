"""Implementation of the ``chatmark stream`` command."""

from __future__ import annotations

import typer

from chatmark.api import render as render_document
from chatmark.core.config import RenderOptions
from chatmark.core.exceptions import ChatmarkError
from chatmark.core.scheduling import ManualScheduler

from .._options import (
    ChunkSizeOption,
    ConfigOption,
    FontSizeOption,
    InputArgument,
    IntervalOption,
    OutputOption,
)
from ..diagnostics import CliEmitter
from ..presenter import present_stream_step
from ..state import emit_error, get_cli_state
from ..utils import load_config_or_exit, read_input, write_output


def stream(
    input_path: InputArgument,
    chunk_size: ChunkSizeOption = 80,
    interval: IntervalOption = 100,
    font_size: FontSizeOption = 14,
    config: ConfigOption = None,
    output: OutputOption = None,
) -> None:
    """Feed a document through a streaming view chunk by chunk."""
    state = get_cli_state()
    session = load_config_or_exit(config)
    content = read_input(input_path)
    scheduler = ManualScheduler()

    try:
        view = render_document(
            "",
            RenderOptions(streaming=True, font_size=font_size),
            config=session,
            emitter=CliEmitter(state),
            scheduler=scheduler,
        )
        step = 0
        for end in range(chunk_size, len(content) + chunk_size, chunk_size):
            step += 1
            received = min(end, len(content))
            view.update(content[:received])
            scheduler.advance(interval)
            present_stream_step(state, step, received, view)

        scheduler.run_all()
        state.console.print(
            f"[bold]done[/bold] {len(view.paragraphs)} paragraph(s), "
            f"{len(view.artifacts())} artifact(s)"
        )
        if output is not None:
            write_output(view.to_html(), output)
        view.unmount()
    except ChatmarkError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["stream"]
