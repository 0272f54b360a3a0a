"""Diagnostic emitter printing pipeline events on the CLI consoles."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from chatmark.core.diagnostics import format_event_message

from .state import CLIState, get_cli_state, render_message


class CliEmitter:
    """Route warnings, errors, and events of a render to the active CLI state.

    Events are always recorded on the state. Known events print a summary
    with ``-v``; unknown ones print their raw payload with ``-vv``.
    """

    def __init__(self, state: CLIState | None = None) -> None:
        self.state = state or get_cli_state()

    @property
    def debug_enabled(self) -> bool:
        return self.state.show_tracebacks

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        render_message("warning", message, exception=exc, state=self.state)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        render_message("error", message, exception=exc, state=self.state)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        data = dict(payload)
        self.state.record_event(name, data)
        message = format_event_message(name, data)
        if message is None and self.state.verbosity >= 2:
            message = f"{name} {data}"
        if message:
            render_message("info", message, state=self.state)


__all__ = ["CliEmitter"]
