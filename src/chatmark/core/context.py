"""Rendering context primitives shared by element hooks."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .config import RenderOptions, SessionConfig
from .diagnostics import DiagnosticEmitter, NullEmitter


if TYPE_CHECKING:  # pragma: no cover - typing only
    from bs4.element import Tag

    from .rules import RenderPhase


@dataclass(slots=True)
class FragmentState:
    """Facts collected while hooks run over one rendered fragment."""

    code_blocks: list[Tag] = field(default_factory=list)
    media_links: int = 0
    paragraphs: int = 0

    def register_code_block(self, element: Tag) -> int:
        """Record a code block region and return its positional index."""
        self.code_blocks.append(element)
        return len(self.code_blocks) - 1


@dataclass
class RenderContext:
    """Shared context passed to every hook during rendering."""

    config: SessionConfig = field(default_factory=SessionConfig)
    options: RenderOptions = field(default_factory=RenderOptions)
    emitter: DiagnosticEmitter = field(default_factory=NullEmitter)
    state: FragmentState = field(default_factory=FragmentState)
    interactive: bool = True
    phase: RenderPhase | None = None

    _processed_nodes: defaultdict[Any, set[int]] = field(
        default_factory=lambda: defaultdict(set), init=False, repr=False
    )
    _skip_children: set[int] = field(default_factory=set, init=False, repr=False)

    def enter_phase(self, phase: RenderPhase) -> None:
        self.phase = phase
        self._skip_children.clear()

    def mark_processed(self, node: Any) -> None:
        self._processed_nodes[self.phase].add(id(node))

    def is_processed(self, node: Any) -> bool:
        return id(node) in self._processed_nodes[self.phase]

    def suppress_children(self, node: Any) -> None:
        """Prevent the engine from descending into ``node`` during this phase."""
        self._skip_children.add(id(node))

    def should_skip_children(self, node: Any) -> bool:
        return id(node) in self._skip_children


__all__ = ["FragmentState", "RenderContext"]
