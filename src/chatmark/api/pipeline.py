"""Wiring between the markup renderer, the element hooks, and the views."""

from __future__ import annotations

from collections.abc import Sequence
from threading import RLock
from typing import TYPE_CHECKING

from chatmark.adapters.diagrams import (
    DiagramRenderer,
    DiagramView,
    ImageViewer,
    MermaidCliRenderer,
    NullImageViewer,
)
from chatmark.adapters.handlers import build_engine
from chatmark.adapters.markdown import parse_fragment, render_markdown
from chatmark.adapters.preview import DocumentPreview
from chatmark.core.artifacts import Artifact, ArtifactDetector, ArtifactSurface
from chatmark.core.blocks import CodeBlockView
from chatmark.core.config import RenderOptions, SessionConfig
from chatmark.core.context import RenderContext
from chatmark.core.diagnostics import DiagnosticEmitter, ensure_emitter
from chatmark.core.measure import HeightMeasurer, LineHeightMeasurer
from chatmark.core.presenter import Clipboard, CodeBlockPresenter, MemoryClipboard
from chatmark.core.rules import RenderEngine
from chatmark.core.scheduler import RenderCache
from chatmark.core.scheduling import (
    ManualScheduler,
    Scheduler,
    SerializedScheduler,
    Viewport,
    VisibilityObserver,
)


if TYPE_CHECKING:  # pragma: no cover - typing only
    from bs4.element import Tag


def render_fragment(
    text: str,
    *,
    config: SessionConfig | None = None,
    options: RenderOptions | None = None,
    emitter: DiagnosticEmitter | None = None,
    interactive: bool = True,
    extensions: Sequence[str] | None = None,
    engine: RenderEngine | None = None,
) -> str:
    """Render one markup fragment and apply the element hooks."""
    soup = parse_fragment(render_markdown(text, extensions))
    context = RenderContext(
        config=config or SessionConfig(),
        options=options or RenderOptions(),
        emitter=ensure_emitter(emitter),
        interactive=interactive,
    )
    (engine or build_engine()).run(soup, context)
    return str(soup)


class RenderEnvironment:
    """Services shared by every paragraph of a mounted document.

    Artifact scans are deferred on ``scheduler`` and always run while holding
    ``lock``, the same lock the views take around tree mutations.
    """

    def __init__(
        self,
        *,
        config: SessionConfig | None = None,
        options: RenderOptions | None = None,
        emitter: DiagnosticEmitter | None = None,
        scheduler: Scheduler | None = None,
        observer: VisibilityObserver | None = None,
        measurer: HeightMeasurer | None = None,
        clipboard: Clipboard | None = None,
        diagram_renderer: DiagramRenderer | None = None,
        viewer: ImageViewer | None = None,
        cache: RenderCache | None = None,
        extensions: Sequence[str] | None = None,
        previews: bool = True,
    ) -> None:
        self.config = config or SessionConfig()
        self.options = options or RenderOptions()
        self.emitter = ensure_emitter(emitter)
        self.scheduler = scheduler or ManualScheduler()
        self.lock = RLock()
        self.task_scheduler = SerializedScheduler(self.scheduler, self.lock)
        if observer is None:
            observer = Viewport(
                root_margin=self.config.lookahead_margin,
                threshold=self.config.visibility_threshold,
            )
        self.observer = observer
        self.measurer = measurer or LineHeightMeasurer(font_size=self.options.font_size)
        self.clipboard = clipboard or MemoryClipboard()
        self.diagram_renderer = diagram_renderer or MermaidCliRenderer()
        self.viewer = viewer or NullImageViewer()
        self.cache = cache if cache is not None else RenderCache(self.config.render_cache_size)
        self.extensions = list(extensions) if extensions is not None else None
        self.previews = previews
        self.engine = build_engine()

    def render_html(self, text: str) -> str:
        return self.cache.get_or_render(text, self._render_uncached)

    def make_block(self, element: Tag, index: int) -> CodeBlockView:
        presenter = CodeBlockPresenter(
            element,
            config=self.config,
            measurer=self.measurer,
            clipboard=self.clipboard,
        )
        detector = ArtifactDetector(
            lambda: presenter.element,
            config=self.config,
            scheduler=self.task_scheduler,
            diagram_factory=self.make_diagram if self.previews else None,
            document_factory=self.make_document if self.previews else None,
            emitter=self.emitter,
            block=index,
        )
        return CodeBlockView(index, presenter, detector)

    def make_diagram(self, artifact: Artifact) -> ArtifactSurface:
        return DiagramView.for_artifact(
            artifact, self.diagram_renderer, emitter=self.emitter, viewer=self.viewer
        )

    def make_document(self, artifact: Artifact) -> ArtifactSurface:
        return DocumentPreview.for_artifact(artifact, height=self.config.preview_height)

    def drain(self) -> int:
        """Run pending deferred work when the scheduler is a virtual clock."""
        run_all = getattr(self.scheduler, "run_all", None)
        if callable(run_all):
            return run_all()
        return 0

    def _render_uncached(self, text: str) -> str:
        return render_fragment(
            text,
            config=self.config,
            options=self.options,
            emitter=self.emitter,
            extensions=self.extensions,
            engine=self.engine,
        )


__all__ = ["RenderEnvironment", "render_fragment"]
