"""Element hooks applied to every rendered fragment."""

from __future__ import annotations

from chatmark.core.rules import RenderEngine

from . import basic, code, links


def build_engine() -> RenderEngine:
    """Return an engine with every built-in hook registered."""
    engine = RenderEngine()
    engine.collect_all((basic, code, links))
    return engine


__all__ = ["build_engine"]
