"""Mounted views returned by the public entry points."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import html
from typing import Any

from chatmark.adapters.diagrams import DiagramRenderer, ImageViewer
from chatmark.core.artifacts import Artifact
from chatmark.core.config import RenderMode, RenderOptions, SessionConfig
from chatmark.core.diagnostics import DiagnosticEmitter
from chatmark.core.measure import HeightMeasurer
from chatmark.core.normalizer import normalize
from chatmark.core.presenter import Clipboard
from chatmark.core.scheduler import ParagraphView, RenderScheduler
from chatmark.core.scheduling import Scheduler, VisibilityObserver

from .pipeline import RenderEnvironment, render_fragment


LOADING_MARKUP = '<div class="markdown-loading" aria-busy="true"></div>'


def _body_style(options: RenderOptions) -> str:
    family = options.font_family or "inherit"
    return f"font-size: {options.font_size:g}px; font-family: {html.escape(family, quote=True)}"


def _wrap_body(inner: str, options: RenderOptions) -> str:
    return f'<div class="markdown-body" style="{_body_style(options)}" dir="auto">{inner}</div>'


class MarkdownView:
    """Interactive rendering of one document, static or streaming."""

    def __init__(self, environment: RenderEnvironment) -> None:
        self.environment = environment
        self.scheduler = RenderScheduler(environment)
        self.mounted = False

    @property
    def options(self) -> RenderOptions:
        return self.environment.options

    @property
    def mode(self) -> RenderMode | None:
        return self.scheduler.mode

    @property
    def paragraphs(self) -> list[ParagraphView]:
        return self.scheduler.paragraphs

    @property
    def loaded_count(self) -> int:
        return self.scheduler.loaded_count

    @property
    def total(self) -> int:
        return self.scheduler.total

    @property
    def progress(self) -> str:
        return self.scheduler.progress

    @property
    def show_progress_indicator(self) -> bool:
        return self.scheduler.show_progress_indicator

    @property
    def last_paragraph(self) -> ParagraphView | None:
        return self.scheduler.last_paragraph

    def mount(self, content: str) -> MarkdownView:
        self.scheduler.mount(content)
        self.mounted = True
        self.settle()
        return self

    def update(self, content: str) -> bool:
        """Apply grown or replaced content to the mounted paragraphs."""
        changed = self.scheduler.update(content)
        if changed:
            self.settle()
        return changed

    def layout(self) -> float:
        return self.scheduler.layout()

    def settle(self) -> int:
        """Promote every lazy paragraph the viewport currently reaches."""
        if self.mode is not RenderMode.STATIC_LAZY:
            return 0
        return self.scheduler.settle()

    def drain(self) -> int:
        """Run pending artifact scans immediately."""
        return self.environment.drain()

    def artifacts(self) -> list[tuple[int, Artifact]]:
        """Return the active artifacts as (paragraph index, artifact) pairs."""
        found: list[tuple[int, Artifact]] = []
        with self.environment.lock:
            for paragraph in self.paragraphs:
                for block in paragraph.blocks:
                    if block.detector is None:
                        continue
                    for artifact in (block.detector.diagram, block.detector.document):
                        if artifact is not None:
                            found.append((paragraph.index, artifact))
        return found

    def context_menu(self, event: Any = None) -> Any:
        callback = self.options.on_context_menu
        return callback(event) if callback is not None else None

    def double_click(self, event: Any = None) -> Any:
        callback = self.options.on_double_click
        return callback(event) if callback is not None else None

    def unmount(self) -> None:
        with self.environment.lock:
            self.scheduler.unmount()
        self.mounted = False

    def to_html(self) -> str:
        with self.environment.lock:
            return self._markup()

    def _markup(self) -> str:
        mode = self.mode
        if mode is RenderMode.LOADING:
            return _wrap_body(LOADING_MARKUP, self.options)

        if mode is RenderMode.STREAMING:
            chunks = []
            for paragraph in self.paragraphs:
                anchor = ' data-scroll-anchor="true"' if paragraph.scroll_anchor else ""
                chunks.append(
                    f'<div class="markdown-streaming-paragraph" data-index="{paragraph.index}"'
                    f"{anchor}>{paragraph.body_html()}</div>"
                )
            inner = f'<div class="markdown-streaming-content">{"".join(chunks)}</div>'
            return _wrap_body(inner, self.options)

        if mode is RenderMode.STATIC_LAZY:
            chunks = [
                f'<div class="markdown-paragraph" data-index="{paragraph.index}">'
                f"{paragraph.body_html()}</div>"
                for paragraph in self.paragraphs
            ]
            if self.show_progress_indicator:
                chunks.append(f'<div class="markdown-paragraph-loading">{self.progress}</div>')
            inner = f'<div class="markdown-content">{"".join(chunks)}</div>'
            return _wrap_body(inner, self.options)

        body = "".join(paragraph.body_html() for paragraph in self.paragraphs)
        return _wrap_body(f'<div class="markdown-content">{body}</div>', self.options)


class StaticView:
    """Non-interactive rendering: no segmentation, presenters, or artifact scans."""

    def __init__(self, content: str, *, config: SessionConfig | None = None, **kwargs: Any) -> None:
        self.content = content
        self.options = RenderOptions()
        self.normalized = normalize(content)
        self.html = render_fragment(
            self.normalized, config=config, options=self.options, interactive=False, **kwargs
        )

    def to_html(self) -> str:
        return _wrap_body(self.html, self.options)


def _coerce_options(options: RenderOptions | Mapping[str, Any] | None) -> RenderOptions:
    if options is None:
        return RenderOptions()
    if isinstance(options, RenderOptions):
        return options
    return RenderOptions.model_validate(dict(options))


def render(
    content: str,
    options: RenderOptions | Mapping[str, Any] | None = None,
    *,
    config: SessionConfig | None = None,
    emitter: DiagnosticEmitter | None = None,
    scheduler: Scheduler | None = None,
    observer: VisibilityObserver | None = None,
    measurer: HeightMeasurer | None = None,
    clipboard: Clipboard | None = None,
    diagram_renderer: DiagramRenderer | None = None,
    viewer: ImageViewer | None = None,
    extensions: Sequence[str] | None = None,
    previews: bool = True,
) -> MarkdownView:
    """Mount ``content`` and return the interactive view.

    Artifact scans are debounced on ``scheduler``. The default is a
    :class:`~chatmark.core.scheduling.ManualScheduler`, whose virtual clock only
    moves when the caller advances it: call :meth:`MarkdownView.drain` before
    reading :meth:`MarkdownView.artifacts`, or pass a
    :class:`~chatmark.core.scheduling.ThreadingScheduler` or
    :class:`~chatmark.core.scheduling.AsyncioScheduler` to have scans fire on
    their own.
    """
    environment = RenderEnvironment(
        config=config,
        options=_coerce_options(options),
        emitter=emitter,
        scheduler=scheduler,
        observer=observer,
        measurer=measurer,
        clipboard=clipboard,
        diagram_renderer=diagram_renderer,
        viewer=viewer,
        extensions=extensions,
        previews=previews,
    )
    return MarkdownView(environment).mount(content)


def render_static(
    content: str,
    *,
    config: SessionConfig | None = None,
    emitter: DiagnosticEmitter | None = None,
    extensions: Sequence[str] | None = None,
) -> StaticView:
    """Render ``content`` in one pass for previews and exports."""
    return StaticView(content, config=config, emitter=emitter, extensions=extensions)


__all__ = ["MarkdownView", "StaticView", "render", "render_static"]
