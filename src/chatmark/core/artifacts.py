"""Detect diagrams and standalone documents inside rendered code blocks.

Each code block region owns one :class:`ArtifactDetector`. Content mutations
call :meth:`ArtifactDetector.touch`, which restarts a debounce window; the
scan itself only runs once the block has been quiet for the configured delay.
A scan reads the current region and offers the payload of every artifact kind
to its :class:`ArtifactSlot`:

- ``None -> Active`` mounts a preview surface;
- ``Active -> Active'`` replaces it only when the payload text changed;
- ``Active -> None`` clears it when nothing matches anymore;
- ``None -> None`` does nothing.

Scans never raise. A block that does not match simply has no artifact.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
import logging
from typing import TYPE_CHECKING, Protocol

from .config import SessionConfig
from .diagnostics import DiagnosticEmitter, NullEmitter
from .dom import code_language
from .scheduling import Debouncer, ManualScheduler, Scheduler


if TYPE_CHECKING:  # pragma: no cover - typing only
    from bs4.element import Tag


logger = logging.getLogger(__name__)

DIAGRAM_LANGUAGES = frozenset({"mermaid"})
DOCUMENT_LANGUAGES = frozenset({"html"})
DOCUMENT_PROLOGUES = ("<!DOCTYPE", "<svg", "<?xml")


class ArtifactKind(Enum):
    DIAGRAM = "diagram"
    DOCUMENT = "document"


@dataclass(frozen=True)
class Artifact:
    """Payload extracted from one code block region."""

    kind: ArtifactKind
    payload: str
    block: int | None = None


class ArtifactSurface(Protocol):
    """Preview mounted for an active artifact."""

    def release(self) -> None: ...


SurfaceFactory = Callable[[Artifact], ArtifactSurface]


class SlotTransition(Enum):
    MOUNTED = "mounted"
    REPLACED = "replaced"
    CLEARED = "cleared"
    UNCHANGED = "unchanged"


class ArtifactSlot:
    """Hold at most one active artifact of a given kind and its preview surface."""

    def __init__(self, kind: ArtifactKind, factory: SurfaceFactory | None = None) -> None:
        self.kind = kind
        self.factory = factory
        self.artifact: Artifact | None = None
        self.surface: ArtifactSurface | None = None
        self.mounts = 0

    @property
    def active(self) -> bool:
        return self.artifact is not None

    def offer(self, payload: str | None, *, block: int | None = None) -> SlotTransition:
        if not payload:
            if self.artifact is None:
                return SlotTransition.UNCHANGED
            self._release()
            self.artifact = None
            return SlotTransition.CLEARED

        if self.artifact is not None and self.artifact.payload == payload:
            return SlotTransition.UNCHANGED

        transition = SlotTransition.MOUNTED if self.artifact is None else SlotTransition.REPLACED
        self._release()
        self.artifact = Artifact(kind=self.kind, payload=payload, block=block)
        self.surface = self.factory(self.artifact) if self.factory is not None else None
        self.mounts += 1
        return transition

    def clear(self) -> SlotTransition:
        return self.offer(None)

    def _release(self) -> None:
        surface, self.surface = self.surface, None
        if surface is not None:
            surface.release()


def find_diagram_payload(region: Tag) -> str | None:
    """Return the text of the first diagram-tagged code element in ``region``."""
    for code in region.find_all("code"):
        if code_language(code) in DIAGRAM_LANGUAGES:
            return code.get_text(strip=False)
    return None


def find_document_payload(region: Tag) -> str | None:
    """Return a standalone HTML/SVG/XML document held by ``region``."""
    for code in region.find_all("code"):
        if code_language(code) in DOCUMENT_LANGUAGES:
            return code.get_text(strip=False)

    first = region.find("code")
    if first is None:
        return None
    text = first.get_text(strip=False)
    if text.startswith(DOCUMENT_PROLOGUES):
        return text
    return None


class ArtifactDetector:
    """Debounced scanner attached to one code block region."""

    def __init__(
        self,
        region: Callable[[], Tag | None],
        *,
        config: SessionConfig | None = None,
        scheduler: Scheduler | None = None,
        diagram_factory: SurfaceFactory | None = None,
        document_factory: SurfaceFactory | None = None,
        emitter: DiagnosticEmitter | None = None,
        block: int | None = None,
    ) -> None:
        self._region = region
        self.config = config or SessionConfig()
        self.emitter = emitter or NullEmitter()
        self.block = block
        self.scans = 0
        self.slots = {
            ArtifactKind.DIAGRAM: ArtifactSlot(ArtifactKind.DIAGRAM, diagram_factory),
            ArtifactKind.DOCUMENT: ArtifactSlot(ArtifactKind.DOCUMENT, document_factory),
        }
        self._debouncer = Debouncer(
            scheduler or ManualScheduler(), self.config.artifact_debounce_ms, self.scan
        )

    @property
    def diagram(self) -> Artifact | None:
        return self.slots[ArtifactKind.DIAGRAM].artifact

    @property
    def document(self) -> Artifact | None:
        return self.slots[ArtifactKind.DOCUMENT].artifact

    def surface(self, kind: ArtifactKind) -> ArtifactSurface | None:
        return self.slots[kind].surface

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    def touch(self) -> None:
        """Record a content mutation; the scan runs after the quiet period."""
        self._debouncer.trigger()

    def scan(self) -> dict[ArtifactKind, SlotTransition]:
        """Read the region now and update both artifact slots."""
        self.scans += 1
        region = self._region()
        diagram: str | None = None
        document: str | None = None
        if region is not None:
            diagram = find_diagram_payload(region)
            if self.config.enable_artifacts:
                document = find_document_payload(region)

        transitions = {
            ArtifactKind.DIAGRAM: self.slots[ArtifactKind.DIAGRAM].offer(diagram, block=self.block),
            ArtifactKind.DOCUMENT: self.slots[ArtifactKind.DOCUMENT].offer(
                document, block=self.block
            ),
        }
        for kind, transition in transitions.items():
            self._report(kind, transition)
        return transitions

    def unmount(self) -> None:
        """Cancel any pending scan and release every mounted surface."""
        self._debouncer.cancel()
        for slot in self.slots.values():
            slot.clear()

    def _report(self, kind: ArtifactKind, transition: SlotTransition) -> None:
        if transition is SlotTransition.UNCHANGED:
            return
        payload = {"kind": kind.value, "block": self.block}
        if transition is SlotTransition.CLEARED:
            self.emitter.event("artifact_cleared", payload)
        else:
            payload["replaced"] = transition is SlotTransition.REPLACED
            self.emitter.event("artifact_mounted", payload)
        logger.debug("artifact %s %s in block %s", kind.value, transition.value, self.block)


__all__ = [
    "DIAGRAM_LANGUAGES",
    "DOCUMENT_LANGUAGES",
    "DOCUMENT_PROLOGUES",
    "Artifact",
    "ArtifactDetector",
    "ArtifactKind",
    "ArtifactSlot",
    "ArtifactSurface",
    "SlotTransition",
    "find_diagram_payload",
    "find_document_payload",
]
