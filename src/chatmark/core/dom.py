"""Small helpers for working with the BeautifulSoup view tree."""

from __future__ import annotations

from collections.abc import Iterable
import re
from typing import Any, cast

from bs4 import BeautifulSoup
from bs4.element import Tag


_LANGUAGE_CLASS = re.compile(r"language-(\S+)")


def gather_classes(value: Any) -> list[str]:
    """Return a list of classes extracted from a BeautifulSoup attribute."""
    if isinstance(value, str):
        return value.split()
    if isinstance(value, Iterable) and not isinstance(value, (bytes, bytearray)):
        return [cast(str, item) for item in value if isinstance(item, str)]
    return []


def coerce_attribute(value: Any) -> str | None:
    """Normalise a BeautifulSoup attribute value to a string when possible."""
    if isinstance(value, str):
        return value
    if isinstance(value, Iterable) and not isinstance(value, (bytes, bytearray)):
        for item in value:
            if isinstance(item, str):
                return item
    return None


def code_language(element: Tag | None) -> str:
    """Return the language tagged on a ``<code>`` element, or an empty string."""
    if element is None:
        return ""
    for cls in gather_classes(element.get("class")):
        match = _LANGUAGE_CLASS.match(cls)
        if match:
            return match.group(1)
    return ""


def new_tag(anchor: Tag, name: str, **attrs: str) -> Tag:
    """Create a tag owned by the same document as ``anchor``."""
    root: Tag = anchor
    while root.parent is not None:
        root = root.parent
    if isinstance(root, BeautifulSoup):
        return root.new_tag(name, attrs=attrs)
    return Tag(name=name, attrs=attrs)


def merge_style(element: Tag, **declarations: str | None) -> None:
    """Set or remove inline CSS declarations, keeping unrelated ones."""
    current: dict[str, str] = {}
    for chunk in (coerce_attribute(element.get("style")) or "").split(";"):
        if ":" in chunk:
            key, value = chunk.split(":", 1)
            current[key.strip()] = value.strip()
    for key, value in declarations.items():
        prop = key.replace("_", "-")
        if value is None:
            current.pop(prop, None)
        else:
            current[prop] = value
    if current:
        element["style"] = "; ".join(f"{key}: {value}" for key, value in current.items())
    elif "style" in element.attrs:
        del element["style"]


__all__ = ["code_language", "coerce_attribute", "gather_classes", "merge_style", "new_tag"]
