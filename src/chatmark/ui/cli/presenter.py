"""Rich presentation helpers for CLI commands."""

from __future__ import annotations

from collections.abc import Sequence

from rich import box
from rich.table import Table
from rich.text import Text

from chatmark.api import MarkdownView
from chatmark.core.artifacts import Artifact

from .state import CLIState


def _first_line(payload: str, limit: int = 60) -> str:
    line = next((chunk.strip() for chunk in payload.splitlines() if chunk.strip()), "")
    return line if len(line) <= limit else f"{line[: limit - 3]}..."


def present_artifacts(state: CLIState, entries: Sequence[tuple[int, Artifact]]) -> None:
    """Render the detected artifacts as a table."""
    console = state.console
    if not entries:
        console.print("No artifacts detected.")
        return

    table = Table(title="Artifacts", box=box.SIMPLE, header_style="bold")
    table.add_column("Paragraph", justify="right")
    table.add_column("Block", justify="right")
    table.add_column("Kind")
    table.add_column("First line", overflow="fold")
    for paragraph, artifact in entries:
        table.add_row(
            str(paragraph),
            "" if artifact.block is None else str(artifact.block),
            artifact.kind.value,
            Text(_first_line(artifact.payload)),
        )
    console.print(table)


def present_stream_step(state: CLIState, step: int, received: int, view: MarkdownView) -> None:
    """Print one progress line of a simulated stream."""
    kinds = sorted({artifact.kind.value for _, artifact in view.artifacts()})
    detail = ", ".join(kinds) if kinds else "none"
    state.console.print(
        f"[bold]chunk {step}[/bold] {received} chars, "
        f"{len(view.paragraphs)} paragraph(s), artifacts: {detail}"
    )


__all__ = ["present_artifacts", "present_stream_step"]
