"""Composition of the presenter and the artifact detector for one code block."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .artifacts import ArtifactDetector, ArtifactKind
from .presenter import CodeBlockPresenter


if TYPE_CHECKING:  # pragma: no cover - typing only
    from bs4.element import Tag


class CodeBlockView:
    """Own the fold, copy, and artifact state of one ``<pre>`` region."""

    def __init__(
        self,
        index: int,
        presenter: CodeBlockPresenter,
        detector: ArtifactDetector | None = None,
    ) -> None:
        self.index = index
        self.presenter = presenter
        self.detector = detector
        self.mounted = False

    @property
    def element(self) -> Tag:
        return self.presenter.element

    @property
    def text(self) -> str:
        return self.presenter.text

    def mount(self) -> None:
        self.mounted = True
        self.presenter.mount()
        if self.detector is not None:
            self.detector.touch()

    def update(self, element: Tag) -> None:
        """Rebind to a re-rendered region; re-measure and restart the scan window."""
        self.presenter.update(element)
        if self.detector is not None:
            self.detector.touch()

    def unmount(self) -> None:
        self.mounted = False
        if self.detector is not None:
            self.detector.unmount()
        self.presenter.unmount()

    def preview_html(self) -> str:
        """Return the markup of the active artifact previews, diagram first."""
        if self.detector is None:
            return ""
        chunks: list[str] = []
        for kind in (ArtifactKind.DIAGRAM, ArtifactKind.DOCUMENT):
            surface = self.detector.surface(kind)
            render = getattr(surface, "to_html", None)
            if callable(render):
                chunks.append(render())
        return "".join(chunks)


__all__ = ["CodeBlockView"]
