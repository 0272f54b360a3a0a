"""CLI command implementations exposed via `chatmark.ui.cli`."""

from __future__ import annotations

from .artifacts import artifacts
from .render import render
from .stream import stream


__all__ = ["artifacts", "render", "stream"]
