"""Per-invocation CLI state: verbosity, traceback policy, consoles, and events."""

from __future__ import annotations

from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field
import sys
from typing import TYPE_CHECKING, Any, TextIO

import click
import typer

from chatmark.core.exceptions import exception_messages


if TYPE_CHECKING:  # pragma: no cover - typing only
    from rich.console import Console


LEVEL_STYLES = {"warning": "yellow", "error": "red"}


@dataclass(slots=True)
class CLIState:
    """Diagnostics settings and recorded pipeline events of one CLI run."""

    verbosity: int = 0
    show_tracebacks: bool = False
    events: dict[str, list[dict[str, Any]]] = field(default_factory=dict, init=False)
    _consoles: dict[str, Console] = field(default_factory=dict, init=False, repr=False)

    @property
    def console(self) -> Console:
        """Console bound to the current stdout (test runners swap it)."""
        return self._bound("stdout", sys.stdout)

    @property
    def err_console(self) -> Console:
        """Console bound to the current stderr, without syntax highlighting."""
        return self._bound("stderr", sys.stderr, highlight=False)

    def record_event(self, name: str, payload: Mapping[str, Any] | None = None) -> None:
        self.events.setdefault(name, []).append(dict(payload or {}))

    def consume_events(self, name: str) -> list[dict[str, Any]]:
        """Return and forget the events recorded under ``name``."""
        return self.events.pop(name, [])

    def _bound(self, key: str, stream: TextIO, **options: Any) -> Console:
        from rich.console import Console

        console = self._consoles.get(key)
        if console is None or console.file is not stream:
            console = Console(file=stream, **options)
            self._consoles[key] = console
        return console


_STATE_VAR: ContextVar[CLIState | None] = ContextVar("chatmark_cli_state", default=None)


def get_cli_state(
    ctx: typer.Context | click.Context | None = None,
    *,
    create: bool = True,
) -> CLIState:
    """Return the state attached to the click context chain, or the ambient one.

    Outside of a click invocation the state lives in a context variable so
    library callers and tests share a single instance.
    """
    ctx = ctx or click.get_current_context(silent=True)
    if ctx is not None:
        state = ctx.find_object(CLIState)
        if state is None:
            if not create:
                raise RuntimeError("CLI state is not initialised for this context.")
            state = ctx.ensure_object(CLIState)
        _STATE_VAR.set(state)
        return state

    state = _STATE_VAR.get()
    if state is None:
        if not create:
            raise RuntimeError("CLI state is not initialised for this context.")
        state = CLIState()
        _STATE_VAR.set(state)
    return state


def set_cli_state(
    *,
    ctx: typer.Context | None = None,
    verbosity: int | None = None,
    debug: bool | None = None,
) -> CLIState:
    """Apply the global options to the current state and return it."""
    state = get_cli_state(ctx)
    if verbosity is not None:
        state.verbosity = max(0, verbosity)
    if debug is not None:
        state.show_tracebacks = debug
    return state


def _detail_lines(message: str, exception: BaseException, verbosity: int) -> list[str]:
    chain = exception_messages(exception)
    lines = [chain[0]] if chain and chain[0] not in message else []
    lines.append(f"type: {type(exception).__name__}")
    if verbosity >= 2 and len(chain) > 1:
        lines.append("caused by:")
        lines.extend(f"  {entry}" for entry in chain[1:])
    return lines


def render_message(
    level: str,
    message: str,
    *,
    exception: BaseException | None = None,
    state: CLIState | None = None,
) -> None:
    """Print ``message`` on stderr; ``info`` lines only show with ``-v``."""
    state = state or get_cli_state()

    if level == "info":
        if state.verbosity >= 1:
            state.err_console.log(message)
        return

    from rich.text import Text

    style = LEVEL_STYLES.get(level, "yellow")
    text = Text.assemble((f"{level}: ", f"bold {style}"), (message, style))
    if exception is not None and state.verbosity >= 1:
        text.append("\n")
        text.append("\n".join(_detail_lines(message, exception, state.verbosity)), style=style)
    state.err_console.print(text)


def emit_warning(message: str, *, exception: BaseException | None = None) -> None:
    render_message("warning", message, exception=exception)


def emit_error(message: str, *, exception: BaseException | None = None) -> None:
    render_message("error", message, exception=exception)


def debug_enabled() -> bool:
    """Return whether full tracebacks should be displayed."""
    try:
        return get_cli_state(create=False).show_tracebacks
    except RuntimeError:
        return False


__all__ = [
    "CLIState",
    "debug_enabled",
    "emit_error",
    "emit_warning",
    "get_cli_state",
    "render_message",
    "set_cli_state",
]
