"""Custom exception hierarchy for the rendering pipeline."""

from __future__ import annotations


class ChatmarkError(RuntimeError):
    """Base exception for rendering failures."""


class MarkupConversionError(ChatmarkError):
    """Raised when the markup renderer cannot convert a document."""


class DiagramRenderError(ChatmarkError):
    """Raised when a diagram description cannot be turned into vector graphics."""


class ConfigurationError(ChatmarkError):
    """Raised when a configuration file cannot be loaded or validated."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "ChatmarkError",
    "ConfigurationError",
    "DiagramRenderError",
    "MarkupConversionError",
    "exception_hint",
    "exception_messages",
]
