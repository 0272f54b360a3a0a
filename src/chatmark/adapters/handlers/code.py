"""Hooks marking fenced code blocks as presenter regions."""

from __future__ import annotations

from bs4.element import Tag

from chatmark.core.context import RenderContext
from chatmark.core.dom import code_language
from chatmark.core.rules import RenderPhase, renders


@renders("pre", phase=RenderPhase.BLOCK, priority=10, name="code_block_regions")
def render_code_block_region(element: Tag, context: RenderContext) -> None:
    """Tag each ``<pre>`` wrapping a ``<code>`` element with its language and index.

    Static renders keep the language tag only; nothing mounts presenters there.
    """
    code_element = element.find("code")
    if code_element is None:
        return

    language = code_language(code_element)
    if language:
        element["data-language"] = language
    if context.interactive:
        index = context.state.register_code_block(element)
        element["data-code-block"] = str(index)
    context.suppress_children(element)
