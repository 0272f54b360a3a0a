"""Warnings, errors, and structured events raised while rendering.

Components never print. They report through a :class:`DiagnosticEmitter`
handed in by the caller; the default forwards to :mod:`logging`.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger(__name__)


@runtime_checkable
class DiagnosticEmitter(Protocol):
    """Sink for pipeline diagnostics."""

    debug_enabled: bool

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def error(self, message: str, exc: BaseException | None = None) -> None: ...

    def event(self, name: str, payload: Mapping[str, Any]) -> None: ...


class NullEmitter:
    """Discard every diagnostic."""

    debug_enabled: bool = False

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        return


class LoggingEmitter:
    """Forward diagnostics to a :class:`logging.Logger`.

    Known events become ``INFO`` summaries, the others ``DEBUG`` records.
    """

    def __init__(
        self, *, logger_obj: logging.Logger | None = None, debug_enabled: bool = False
    ) -> None:
        self._logger = logger_obj or logger
        self.debug_enabled = debug_enabled

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self._log(logging.WARNING, message, exc)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self._log(logging.ERROR, message, exc)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        message = format_event_message(name, payload)
        if message:
            self._logger.info(message)
        else:
            self._logger.debug("diagnostic event %s: %s", name, dict(payload))

    def _log(self, level: int, message: str, exc: BaseException | None) -> None:
        if exc is None:
            self._logger.log(level, message)
        else:
            self._logger.log(level, message, exc_info=exc)


def ensure_emitter(emitter: DiagnosticEmitter | None) -> DiagnosticEmitter:
    """Return the provided emitter or a logging-backed default."""
    return emitter if emitter is not None else LoggingEmitter()


def _location(data: Mapping[str, Any]) -> str:
    block = data.get("block")
    return f" in block {block}" if block is not None else ""


def _artifact_mounted(data: Mapping[str, Any]) -> str:
    verb = "Replaced" if data.get("replaced") else "Mounted"
    return f"{verb} {data.get('kind') or 'artifact'} preview{_location(data)}"


def _artifact_cleared(data: Mapping[str, Any]) -> str:
    return f"Cleared {data.get('kind') or 'artifact'} preview{_location(data)}"


def _paragraph_loaded(data: Mapping[str, Any]) -> str | None:
    loaded, total = data.get("loaded"), data.get("total")
    if loaded is None or total is None:
        return None
    return f"Loaded {loaded} of {total} paragraphs"


_EVENT_FORMATTERS: dict[str, Callable[[Mapping[str, Any]], str | None]] = {
    "artifact_mounted": _artifact_mounted,
    "artifact_cleared": _artifact_cleared,
    "paragraph_loaded": _paragraph_loaded,
}


def format_event_message(name: str, payload: Mapping[str, Any]) -> str | None:
    """Return a one-line summary for known events, ``None`` otherwise."""
    formatter = _EVENT_FORMATTERS.get(name)
    return formatter(dict(payload)) if formatter is not None else None


__all__ = [
    "DiagnosticEmitter",
    "LoggingEmitter",
    "NullEmitter",
    "ensure_emitter",
    "format_event_message",
]
