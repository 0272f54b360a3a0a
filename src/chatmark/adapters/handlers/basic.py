"""Hooks for plain block elements."""

from __future__ import annotations

from bs4.element import Tag

from chatmark.core.context import RenderContext
from chatmark.core.rules import RenderPhase, renders


@renders("p", phase=RenderPhase.BLOCK, name="paragraph_direction")
def render_paragraph(element: Tag, context: RenderContext) -> None:
    """Let the client pick the text direction of every paragraph."""
    element["dir"] = "auto"
    context.state.paragraphs += 1
