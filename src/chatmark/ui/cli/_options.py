"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


INPUTS_PANEL = "Input Handling"
RENDERING_PANEL = "Rendering"
OUTPUT_PANEL = "Output"
DIAGNOSTICS_PANEL = "Diagnostics"

InputArgument = Annotated[
    str,
    typer.Argument(
        metavar="INPUT",
        help="Markdown document to render, or '-' to read from stdin.",
        rich_help_panel=INPUTS_PANEL,
    ),
]

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="YAML file holding session flags (artifacts, code folding, thresholds).",
        dir_okay=False,
        rich_help_panel=INPUTS_PANEL,
    ),
]

OutputOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Write the rendered HTML to this file instead of stdout.",
        dir_okay=False,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

StreamingOption = Annotated[
    bool,
    typer.Option(
        "--streaming",
        help="Render every paragraph eagerly, as while a reply is still growing.",
        rich_help_panel=RENDERING_PANEL,
    ),
]

ImmediateOption = Annotated[
    bool,
    typer.Option(
        "--immediate",
        help="Render the whole document at once instead of lazily.",
        rich_help_panel=RENDERING_PANEL,
    ),
]

StaticOption = Annotated[
    bool,
    typer.Option(
        "--static",
        help="Single-pass rendering without presenters or artifact previews.",
        rich_help_panel=RENDERING_PANEL,
    ),
]

FontSizeOption = Annotated[
    float,
    typer.Option(
        "--font-size",
        min=1,
        help="Base font size of the rendered body.",
        rich_help_panel=RENDERING_PANEL,
    ),
]

ViewportHeightOption = Annotated[
    float,
    typer.Option(
        "--viewport-height",
        min=0,
        help="Height of the simulated viewport used to promote lazy paragraphs.",
        rich_help_panel=RENDERING_PANEL,
    ),
]

MarkdownExtensionsOption = Annotated[
    list[str] | None,
    typer.Option(
        "--enable-extension",
        "-x",
        help="Additional Markdown extensions to enable (comma or space separated values are accepted).",
        show_default=False,
        rich_help_panel=RENDERING_PANEL,
    ),
]

DisableMarkdownExtensionsOption = Annotated[
    list[str] | None,
    typer.Option(
        "--disable-extension",
        "-X",
        help="Markdown extensions to disable. Provide a comma separated list or repeat the option.",
        show_default=False,
        rich_help_panel=RENDERING_PANEL,
    ),
]

ChunkSizeOption = Annotated[
    int,
    typer.Option(
        "--chunk-size",
        min=1,
        help="Number of characters appended per streamed chunk.",
        rich_help_panel=RENDERING_PANEL,
    ),
]

IntervalOption = Annotated[
    int,
    typer.Option(
        "--interval",
        min=0,
        help="Simulated delay between chunks, in milliseconds.",
        rich_help_panel=RENDERING_PANEL,
    ),
]

__all__ = [
    "DIAGNOSTICS_PANEL",
    "INPUTS_PANEL",
    "OUTPUT_PANEL",
    "RENDERING_PANEL",
    "ChunkSizeOption",
    "ConfigOption",
    "DisableMarkdownExtensionsOption",
    "FontSizeOption",
    "ImmediateOption",
    "InputArgument",
    "IntervalOption",
    "MarkdownExtensionsOption",
    "OutputOption",
    "StaticOption",
    "StreamingOption",
    "ViewportHeightOption",
]
