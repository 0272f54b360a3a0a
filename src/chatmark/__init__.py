"""Streaming-aware Markdown rendering for chat transcripts."""

from __future__ import annotations

from chatmark.api import MarkdownView, RenderEnvironment, StaticView, render, render_static
from chatmark.core.config import RenderMode, RenderOptions, SessionConfig, load_session_config
from chatmark.core.normalizer import escape_brackets, normalize, try_wrap_html_code
from chatmark.core.rules import RenderPhase, renders
from chatmark.core.segmenter import split_into_paragraphs
from chatmark.version import get_version


__version__ = get_version()

__all__ = [
    "MarkdownView",
    "RenderEnvironment",
    "RenderMode",
    "RenderOptions",
    "RenderPhase",
    "SessionConfig",
    "StaticView",
    "__version__",
    "escape_brackets",
    "get_version",
    "load_session_config",
    "normalize",
    "render",
    "render_static",
    "renders",
    "split_into_paragraphs",
    "try_wrap_html_code",
]
