"""Hooks for links, including links pointing at audio and video files."""

from __future__ import annotations

import re

from bs4.element import Tag

from chatmark.core.context import RenderContext
from chatmark.core.dom import coerce_attribute, new_tag
from chatmark.core.rules import RenderPhase, renders


AUDIO_SUFFIXES = re.compile(r"\.(aac|mp3|opus|wav)$")
VIDEO_SUFFIXES = re.compile(r"\.(3gp|3g2|webm|ogv|mpeg|mp4|avi)$")
INTERNAL_LINK = re.compile(r"^/#", re.IGNORECASE)


@renders("a", phase=RenderPhase.INLINE, priority=10, name="media_links")
def render_media_link(element: Tag, context: RenderContext) -> None:
    """Replace links to audio or video files with an embedded player."""
    href = coerce_attribute(element.get("href")) or ""

    if AUDIO_SUFFIXES.search(href):
        replacement = new_tag(element, "figure")
        replacement.append(new_tag(element, "audio", controls="", src=href))
    elif VIDEO_SUFFIXES.search(href):
        replacement = new_tag(element, "video", controls="", width="99.9%")
        replacement.append(new_tag(element, "source", src=href))
    else:
        return

    context.state.media_links += 1
    context.mark_processed(element)
    element.replace_with(replacement)


@renders("a", phase=RenderPhase.INLINE, priority=20, name="link_targets")
def render_link_target(element: Tag, _context: RenderContext) -> None:
    """Open external links in a new browsing context, internal ones in place."""
    href = coerce_attribute(element.get("href")) or ""
    if INTERNAL_LINK.search(href):
        element["target"] = "_self"
    else:
        element["target"] = coerce_attribute(element.get("target")) or "_blank"
