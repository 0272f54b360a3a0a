"""Decide, paragraph by paragraph, when rendering happens.

The scheduler turns a document into paragraph views according to the
rendering mode resolved from the caller's options:

``LOADING``
: nothing is processed; the caller shows a loading indicator.

``STREAMING``
: every paragraph renders immediately. Lazy loading is disabled because
  growing content resizes elements faster than visibility callbacks settle.
  Rendered markup is memoised by the full paragraph text, so growth of the
  last paragraph never re-renders its unchanged siblings.

``IMMEDIATE`` and ``SINGLE``
: the whole document renders at once; every paragraph counts as loaded.

``STATIC_LAZY``
: each paragraph shows a placeholder and subscribes to visibility. The first
  intersection promotes it exactly once and reports progress; later
  intersections are ignored. Promotions are independent of each other and may
  happen in any order.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
from contextlib import AbstractContextManager
import copy
from dataclasses import dataclass
import html
import logging
from threading import Lock
from typing import TYPE_CHECKING, Any, Protocol

from bs4 import BeautifulSoup

from .config import RenderMode, RenderOptions, SessionConfig
from .diagnostics import DiagnosticEmitter
from .measure import HeightMeasurer
from .normalizer import FENCE, normalize
from .scheduling import Cancel, LayoutBox, VisibilityObserver
from .segmenter import heal_fences, placeholder_text, split_into_paragraphs


if TYPE_CHECKING:  # pragma: no cover - typing only
    from bs4.element import Tag

    from .blocks import CodeBlockView


logger = logging.getLogger(__name__)


class ViewServices(Protocol):
    """Collaborators a paragraph view needs to render and decorate itself."""

    config: SessionConfig
    options: RenderOptions
    emitter: DiagnosticEmitter
    measurer: HeightMeasurer
    observer: VisibilityObserver | None
    lock: AbstractContextManager[Any]

    def render_html(self, text: str) -> str: ...

    def make_block(self, element: Tag, index: int) -> CodeBlockView: ...


@dataclass
class RenderState:
    """Per-paragraph lifecycle flags."""

    loaded: bool = False
    visible: bool = False


class RenderCache:
    """Least-recently-used memo of rendered markup keyed by the full paragraph text."""

    def __init__(self, max_size: int = 256) -> None:
        self.max_size = max_size
        self.hits = 0
        self.misses = 0
        self._entries: OrderedDict[str, str] = OrderedDict()
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, text: object) -> bool:
        return text in self._entries

    def get_or_render(self, text: str, render: Callable[[str], str]) -> str:
        with self._lock:
            cached = self._entries.get(text)
            if cached is not None:
                self._entries.move_to_end(text)
                self.hits += 1
                return cached
            self.misses += 1

        rendered = render(text)

        if self.max_size > 0:
            with self._lock:
                self._entries[text] = rendered
                while len(self._entries) > self.max_size:
                    self._entries.popitem(last=False)
        return rendered

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class ParagraphView:
    """One paragraph of a mounted document and everything it owns."""

    def __init__(
        self,
        text: str,
        index: int,
        services: ViewServices,
        *,
        loaded: bool = False,
        on_load: Callable[[ParagraphView], None] | None = None,
    ) -> None:
        self.text = text
        self.index = index
        self.services = services
        self.state = RenderState()
        self.box = LayoutBox()
        self.fragment: BeautifulSoup | None = None
        self.blocks: list[CodeBlockView] = []
        self.scroll_anchor = False
        self.renders = 0
        self._on_load = on_load
        self._unsubscribe: Cancel | None = None
        if loaded:
            self.state.loaded = True
            self._render()

    @property
    def is_code(self) -> bool:
        return self.text.startswith(FENCE)

    @property
    def placeholder(self) -> str:
        return placeholder_text(self.text, limit=self.services.config.placeholder_length)

    @property
    def subscribed(self) -> bool:
        return self._unsubscribe is not None

    def subscribe(self, observer: VisibilityObserver) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = observer.subscribe(self.box, self._on_intersect)

    def promote(self) -> bool:
        """Swap the placeholder for the full render; only the first call has an effect."""
        if self.state.loaded:
            return False
        self.state.loaded = True
        self._render()
        if self._on_load is not None:
            self._on_load(self)
        return True

    def update(self, text: str) -> bool:
        """Replace the paragraph text, re-rendering only when already loaded."""
        if text == self.text:
            return False
        self.text = text
        if self.state.loaded:
            self._render()
        return True

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for block in self.blocks:
            block.unmount()
        self.blocks = []

    def display_text(self) -> str:
        return self.text if self.state.loaded else self.placeholder

    def body_html(self) -> str:
        if not self.state.loaded or self.fragment is None:
            return (
                '<div class="markdown-paragraph-placeholder">'
                f"{html.escape(self.placeholder)}</div>"
            )

        output = copy.copy(self.fragment)
        for block in self.blocks:
            preview = block.preview_html()
            if not preview:
                continue
            region = output.find("pre", attrs={"data-code-block": str(block.index)})
            if region is None:
                continue
            anchor = region
            for node in list(BeautifulSoup(preview, "html.parser").contents):
                anchor.insert_after(node)
                anchor = node
        return str(output)

    def _on_intersect(self) -> None:
        self.state.visible = True
        self.promote()

    def _render(self) -> None:
        self.renders += 1
        markup = self.services.render_html(self.text)
        with self.services.lock:
            self.fragment = BeautifulSoup(markup, "html.parser")
            regions = self.fragment.find_all("pre", attrs={"data-code-block": True})

            for index, region in enumerate(regions):
                if index < len(self.blocks):
                    self.blocks[index].update(region)
                    continue
                block = self.services.make_block(region, index)
                block.mount()
                self.blocks.append(block)

            for stale in self.blocks[len(regions) :]:
                stale.unmount()
            del self.blocks[len(regions) :]


class RenderScheduler:
    """Build and maintain the paragraph views of one document."""

    def __init__(
        self,
        services: ViewServices,
        *,
        on_paragraph_loaded: Callable[[ParagraphView], None] | None = None,
    ) -> None:
        self.services = services
        self.mode: RenderMode | None = None
        self.normalized = ""
        self.segments: list[str] = []
        self.paragraphs: list[ParagraphView] = []
        self._on_paragraph_loaded = on_paragraph_loaded

    @property
    def total(self) -> int:
        return len(self.segments)

    @property
    def loaded_count(self) -> int:
        if self.mode is RenderMode.LOADING:
            return 0
        if self.mode is RenderMode.STATIC_LAZY:
            return sum(1 for paragraph in self.paragraphs if paragraph.state.loaded)
        return self.total

    @property
    def progress(self) -> str:
        return f"{self.loaded_count} of {self.total} loaded"

    @property
    def show_progress_indicator(self) -> bool:
        return self.mode is RenderMode.STATIC_LAZY and 0 < self.loaded_count < self.total

    @property
    def last_paragraph(self) -> ParagraphView | None:
        return self.paragraphs[-1] if self.paragraphs else None

    def mount(self, content: str) -> None:
        if self.services.options.loading:
            self.mode = RenderMode.LOADING
            self.normalized = ""
            self.segments = []
            self.paragraphs = []
            return

        self.normalized = normalize(content)
        self.segments = split_into_paragraphs(self.normalized)
        self.mode = self.services.options.resolve_mode(len(self.segments))
        self.paragraphs = self._build()
        logger.debug("mounted %d paragraph(s) in %s mode", len(self.segments), self.mode.value)

    def update(self, content: str) -> bool:
        """Apply new content; return whether anything changed."""
        if self.mode is RenderMode.LOADING:
            return False
        normalized = normalize(content)
        if normalized == self.normalized:
            return False

        segments = split_into_paragraphs(normalized)
        mode = self.services.options.resolve_mode(len(segments))
        self.normalized = normalized
        self.segments = segments

        if mode is not self.mode:
            self._unmount_paragraphs()
            self.mode = mode
            self.paragraphs = self._build()
            return True

        if mode in (RenderMode.IMMEDIATE, RenderMode.SINGLE):
            self.paragraphs[0].update(heal_fences(normalized))
            return True

        for index, text in enumerate(segments):
            if index < len(self.paragraphs):
                self.paragraphs[index].update(text)
            else:
                self.paragraphs.append(self._new_paragraph(text, index))
        for stale in self.paragraphs[len(segments) :]:
            stale.unmount()
        del self.paragraphs[len(segments) :]
        self._tag_scroll_anchor()
        return True

    def layout(self) -> float:
        """Stack paragraph boxes vertically and return the document height."""
        measurer = self.services.measurer
        top = 0.0
        for paragraph in self.paragraphs:
            paragraph.box.top = top
            paragraph.box.height = measurer.measure(paragraph.display_text(), wrap=True)
            top = paragraph.box.bottom
        return top

    def settle(self) -> int:
        """Alternate layout and visibility checks until no paragraph promotes."""
        refresh = getattr(self.services.observer, "refresh", None)
        if not callable(refresh):
            return 0
        promoted = 0
        for _ in range(len(self.paragraphs) + 1):
            self.layout()
            fired = refresh()
            promoted += fired
            if not fired:
                break
        return promoted

    def unmount(self) -> None:
        self._unmount_paragraphs()
        self.paragraphs = []

    def _build(self) -> list[ParagraphView]:
        if self.mode in (RenderMode.IMMEDIATE, RenderMode.SINGLE):
            whole = heal_fences(self.normalized)
            return [ParagraphView(whole, 0, self.services, loaded=True)]
        paragraphs = [self._new_paragraph(text, index) for index, text in enumerate(self.segments)]
        self.paragraphs = paragraphs
        self._tag_scroll_anchor()
        return paragraphs

    def _new_paragraph(self, text: str, index: int) -> ParagraphView:
        if self.mode is RenderMode.STREAMING:
            return ParagraphView(text, index, self.services, loaded=True)

        paragraph = ParagraphView(text, index, self.services, on_load=self._paragraph_loaded)
        if self.services.observer is not None:
            paragraph.subscribe(self.services.observer)
        return paragraph

    def _paragraph_loaded(self, paragraph: ParagraphView) -> None:
        self.services.emitter.event(
            "paragraph_loaded",
            {"index": paragraph.index, "loaded": self.loaded_count, "total": self.total},
        )
        if self._on_paragraph_loaded is not None:
            self._on_paragraph_loaded(paragraph)

    def _tag_scroll_anchor(self) -> None:
        streaming = self.mode is RenderMode.STREAMING
        for position, paragraph in enumerate(self.paragraphs):
            paragraph.scroll_anchor = streaming and position == len(self.paragraphs) - 1

    def _unmount_paragraphs(self) -> None:
        for paragraph in self.paragraphs:
            paragraph.unmount()


__all__ = ["ParagraphView", "RenderCache", "RenderScheduler", "RenderState", "ViewServices"]
