"""Entry points and mounted views of the rendering pipeline.

Architecture
: `render` mounts a document into a `MarkdownView`, which segments the
  content, schedules paragraph renders according to the resolved mode, and
  attaches code block presenters and artifact detectors to every rendered
  fence.
: `render_static` renders the whole document in one pass with the element
  hooks applied, and nothing else.
: `RenderEnvironment` gathers the injected collaborators (scheduler,
  visibility observer, measurer, clipboard, diagram renderer, image viewer)
  so tests and embedders can swap any of them.

Usage Example
:
    >>> from chatmark.api import render_static
    >>> "<strong>bold</strong>" in render_static("**bold**").to_html()
    True
"""

from __future__ import annotations

from .pipeline import RenderEnvironment, render_fragment
from .view import MarkdownView, StaticView, render, render_static


__all__ = [
    "MarkdownView",
    "RenderEnvironment",
    "StaticView",
    "render",
    "render_fragment",
    "render_static",
]
