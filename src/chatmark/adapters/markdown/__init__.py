"""Markdown conversion utilities backed by Python-Markdown."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import re
from threading import Lock
from typing import Any

from bs4 import BeautifulSoup
import markdown

from chatmark.core.exceptions import MarkupConversionError


__all__ = [
    "DEFAULT_MARKDOWN_EXTENSIONS",
    "normalize_markdown_extensions",
    "parse_fragment",
    "render_markdown",
    "resolve_markdown_extensions",
]


DEFAULT_MARKDOWN_EXTENSIONS = [
    "pymdownx.arithmatex",
    "pymdownx.highlight",
    "pymdownx.superfences",
    "tables",
    "nl2br",
    "sane_lists",
]


DEFAULT_EXTENSION_CONFIGS: dict[str, dict[str, object]] = {
    "pymdownx.arithmatex": {
        "generic": True,
    },
    "pymdownx.highlight": {
        # Tokens are coloured client-side; the renderer only tags languages.
        "use_pygments": False,
    },
    "pymdownx.superfences": {
        # Diagram fences stay plain code blocks for the artifact detector.
        "custom_fences": [],
    },
}


class _MarkdownCacheEntry:
    __slots__ = ("lock", "processor")

    def __init__(self, processor: Any) -> None:
        self.processor = processor
        self.lock = Lock()


_MARKDOWN_CACHE: dict[tuple[str, ...], _MarkdownCacheEntry] = {}
_MARKDOWN_CACHE_GUARD = Lock()


def normalize_markdown_extensions(values: Iterable[str] | str | None) -> list[str]:
    """Normalise extension names from CLI-friendly strings into a flat list."""
    if values is None:
        return []
    candidates: Iterable[str] = [values] if isinstance(values, str) else values

    normalized: list[str] = []
    for value in candidates:
        if not isinstance(value, str):
            continue
        normalized.extend(chunk for chunk in re.split(r"[,\s]+", value) if chunk)
    return normalized


def resolve_markdown_extensions(
    requested: Iterable[str] | str | None = None,
    disabled: Iterable[str] | str | None = None,
) -> list[str]:
    """Return the active extension list after applying additions and removals."""
    disabled_names = {name.lower() for name in normalize_markdown_extensions(disabled)}
    seen: set[str] = set()
    result: list[str] = []
    for name in [*DEFAULT_MARKDOWN_EXTENSIONS, *normalize_markdown_extensions(requested)]:
        key = name.lower()
        if key in seen or key in disabled_names:
            continue
        seen.add(key)
        result.append(name)
    return result


def render_markdown(source: str, extensions: Sequence[str] | None = None) -> str:
    """Convert normalised Markdown into an HTML string."""
    active = tuple(extensions if extensions is not None else DEFAULT_MARKDOWN_EXTENSIONS)
    entry = _resolve_markdown_entry(active)
    try:
        with entry.lock:
            processor = entry.processor
            processor.reset()
            return processor.convert(source)
    except Exception as exc:  # pragma: no cover - library-controlled
        raise MarkupConversionError(f"Failed to convert Markdown source: {exc}") from exc


def parse_fragment(html: str) -> BeautifulSoup:
    """Parse rendered HTML into a mutable tree."""
    return BeautifulSoup(html, "html.parser")


def _resolve_markdown_entry(extensions_key: tuple[str, ...]) -> _MarkdownCacheEntry:
    entry = _MARKDOWN_CACHE.get(extensions_key)
    if entry is not None:
        return entry
    with _MARKDOWN_CACHE_GUARD:
        entry = _MARKDOWN_CACHE.get(extensions_key)
        if entry is None:
            entry = _MarkdownCacheEntry(_build_markdown_processor(extensions_key))
            _MARKDOWN_CACHE[extensions_key] = entry
    return entry


def _build_markdown_processor(extensions_key: tuple[str, ...]) -> markdown.Markdown:
    extension_configs = {
        name: dict(DEFAULT_EXTENSION_CONFIGS[name])
        for name in extensions_key
        if name in DEFAULT_EXTENSION_CONFIGS
    }
    try:
        return markdown.Markdown(extensions=list(extensions_key), extension_configs=extension_configs)
    except Exception as exc:  # pragma: no cover - library-controlled
        raise MarkupConversionError(f"Failed to initialize Markdown processor: {exc}") from exc
