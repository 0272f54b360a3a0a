"""Implementation of the ``chatmark render`` command."""

from __future__ import annotations

import typer

from chatmark.adapters.markdown import resolve_markdown_extensions
from chatmark.api import render as render_document, render_static
from chatmark.core.config import RenderOptions
from chatmark.core.exceptions import ChatmarkError
from chatmark.core.scheduling import Viewport

from .._options import (
    ConfigOption,
    DisableMarkdownExtensionsOption,
    FontSizeOption,
    ImmediateOption,
    InputArgument,
    MarkdownExtensionsOption,
    OutputOption,
    StaticOption,
    StreamingOption,
    ViewportHeightOption,
)
from ..diagnostics import CliEmitter
from ..state import emit_error, get_cli_state, render_message
from ..utils import load_config_or_exit, read_input, write_output


def render(
    input_path: InputArgument,
    output: OutputOption = None,
    streaming: StreamingOption = False,
    immediate: ImmediateOption = False,
    static: StaticOption = False,
    font_size: FontSizeOption = 14,
    config: ConfigOption = None,
    viewport_height: ViewportHeightOption = 800,
    markdown_extensions: MarkdownExtensionsOption = None,
    disable_markdown_extensions: DisableMarkdownExtensionsOption = None,
) -> None:
    """Render a Markdown document to HTML."""
    state = get_cli_state()
    session = load_config_or_exit(config)
    content = read_input(input_path)
    emitter = CliEmitter(state)
    extensions = resolve_markdown_extensions(markdown_extensions, disable_markdown_extensions)
    render_message("info", f"Extensions: {', '.join(extensions) or '(none)'}", state=state)

    try:
        if static:
            markup = render_static(
                content, config=session, emitter=emitter, extensions=extensions
            ).to_html()
        else:
            viewport = Viewport(
                height=viewport_height,
                root_margin=session.lookahead_margin,
                threshold=session.visibility_threshold,
            )
            options = RenderOptions(
                streaming=streaming, immediately_render=immediate, font_size=font_size
            )
            view = render_document(
                content,
                options,
                config=session,
                emitter=emitter,
                observer=viewport,
                extensions=extensions,
            )
            view.drain()
            markup = view.to_html()
            view.unmount()
    except ChatmarkError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    write_output(markup, output)


__all__ = ["render"]
