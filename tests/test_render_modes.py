from collections.abc import Mapping
import time
from typing import Any

from chatmark import render
from chatmark.core.artifacts import ArtifactKind
from chatmark.core.config import RenderMode, RenderOptions, SessionConfig
from chatmark.core.scheduling import ThreadingScheduler, Viewport


SVG = '<svg viewBox="0 0 10 10"><rect width="10" height="10"/></svg>'
TEN_PARAGRAPHS = "\n\n".join(f"Paragraph number {index}" for index in range(10))


class _StaticRenderer:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def render(self, code: str) -> str:
        self.calls.append(code)
        return SVG


class _RecordingEmitter:
    debug_enabled = False

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        self.events.append((name, dict(payload)))

    def named(self, name: str) -> list[dict[str, Any]]:
        return [payload for event, payload in self.events if event == name]


def _small_viewport(**overrides: float) -> Viewport:
    # Placeholders measure 21 units: the first three paragraphs reach into 50 units.
    settings = {"height": 50.0, "root_margin": 0.0, "threshold": 0.1, **overrides}
    return Viewport(**settings)


def test_loading_mode_processes_nothing() -> None:
    view = render("# Title\n\nBody", {"loading": True})

    assert view.mode is RenderMode.LOADING
    assert view.paragraphs == []
    assert (view.loaded_count, view.total) == (0, 0)
    html = view.to_html()
    assert "markdown-loading" in html
    assert "Title" not in html
    assert view.update("# Title\n\nBody grows") is False


def test_immediate_mode_loads_everything_at_mount() -> None:
    view = render(
        "One\n\nTwo\n\nThree",
        {"immediately_render": True},
        observer=_small_viewport(top=10_000),
    )

    assert view.mode is RenderMode.IMMEDIATE
    assert view.loaded_count == view.total == 3
    assert not view.show_progress_indicator
    html = view.to_html()
    assert "markdown-paragraph-placeholder" not in html
    assert all(word in html for word in ("One", "Two", "Three"))


def test_streaming_wins_over_immediate() -> None:
    view = render("One\n\nTwo", {"streaming": True, "immediately_render": True})
    assert view.mode is RenderMode.STREAMING


def test_streaming_renders_every_paragraph_regardless_of_visibility() -> None:
    viewport = _small_viewport(top=10_000, height=0)
    view = render(TEN_PARAGRAPHS, {"streaming": True}, observer=viewport)

    assert all(paragraph.state.loaded for paragraph in view.paragraphs)
    assert view.loaded_count == 10
    assert viewport.active_subscriptions == 0
    html = view.to_html()
    assert html.count('class="markdown-streaming-paragraph"') == 10
    assert "markdown-paragraph-placeholder" not in html


def test_single_paragraph_renders_directly() -> None:
    view = render("Only **one** paragraph here.", observer=_small_viewport(top=10_000))

    assert view.mode is RenderMode.SINGLE
    assert view.loaded_count == view.total == 1
    assert "<strong>one</strong>" in view.to_html()


def test_lazy_mode_promotes_visible_paragraphs_once() -> None:
    viewport = _small_viewport()
    emitter = _RecordingEmitter()
    view = render(TEN_PARAGRAPHS, observer=viewport, emitter=emitter)

    assert view.mode is RenderMode.STATIC_LAZY
    assert [p.state.loaded for p in view.paragraphs[:4]] == [True, True, True, False]
    assert view.loaded_count == 3
    assert view.progress == "3 of 10 loaded"
    assert view.show_progress_indicator
    html = view.to_html()
    assert html.count("markdown-paragraph-placeholder") == 7
    assert '<div class="markdown-paragraph-loading">3 of 10 loaded</div>' in html

    viewport.scroll_to(100)
    view.settle()
    assert view.paragraphs[5].state.loaded
    assert not view.paragraphs[3].state.loaded
    loaded = view.loaded_count

    viewport.scroll_to(0)
    view.settle()
    assert view.loaded_count == loaded
    assert len(emitter.named("paragraph_loaded")) == loaded
    assert emitter.named("paragraph_loaded")[-1]["total"] == 10


def test_promotion_order_is_free_and_idempotent() -> None:
    view = render(TEN_PARAGRAPHS, observer=_small_viewport(top=10_000))
    assert view.loaded_count == 0
    assert not view.show_progress_indicator

    assert view.paragraphs[7].promote() is True
    assert view.paragraphs[2].promote() is True
    assert view.paragraphs[7].promote() is False
    assert view.loaded_count == 2
    assert view.paragraphs[7].renders == 1


def test_placeholders_use_cheap_previews() -> None:
    long_prose = "word " * 30
    content = f"{long_prose}\n\n```python\nimport os\nprint(os.getcwd())\n```"
    view = render(content, observer=_small_viewport(top=10_000))

    prose, code = view.paragraphs
    assert prose.placeholder == long_prose[:60] + "..."
    assert code.placeholder == "```python...```"
    assert code.is_code
    assert prose.blocks == []
    assert "import os" not in view.to_html()


def test_unmount_releases_visibility_subscriptions() -> None:
    viewport = _small_viewport()
    view = render(TEN_PARAGRAPHS, observer=viewport)
    assert viewport.active_subscriptions == 10

    view.unmount()

    assert viewport.active_subscriptions == 0


def test_body_style_and_callbacks() -> None:
    seen: list[Any] = []
    view = render(
        "Hello",
        {"font_size": 16, "font_family": "Fira Sans", "on_context_menu": seen.append},
    )

    html = view.to_html()
    assert 'class="markdown-body"' in html
    assert "font-size: 16px; font-family: Fira Sans" in html
    assert 'dir="auto"' in html

    view.context_menu("right-click")
    assert seen == ["right-click"]
    assert view.double_click("dbl") is None


def test_default_body_style() -> None:
    assert "font-size: 14px; font-family: inherit" in render("Hello").to_html()


def test_long_code_block_gets_presenter_affordances() -> None:
    code = "\n".join(f"line_{index} = {index}" for index in range(30))
    view = render(f"```python\n{code}\n```", {"immediately_render": True})

    html = view.to_html()
    assert "copy-code-button" in html
    assert "show-hide-button collapsed" in html
    block = view.paragraphs[0].blocks[0]
    assert block.presenter.copy().strip() == code


def test_diagram_preview_appears_after_quiet_period() -> None:
    renderer = _StaticRenderer()
    view = render(
        "Look:\n\n```mermaid\ngraph TD\nA-->B\n```",
        {"immediately_render": True},
        diagram_renderer=renderer,
    )
    assert "no-dark mermaid" not in view.to_html()
    assert view.artifacts() == []

    view.drain()

    html = view.to_html()
    assert "no-dark mermaid" in html
    assert "<rect" in html
    assert len(renderer.calls) == 1
    assert "A-->B" in renderer.calls[0]
    [(paragraph, artifact)] = view.artifacts()
    assert paragraph == 0
    assert artifact.kind is ArtifactKind.DIAGRAM


def test_bare_html_document_becomes_document_preview() -> None:
    view = render("<!DOCTYPE html>\n<html><body><p>x</p></body></html>")
    view.drain()

    kinds = [artifact.kind for _, artifact in view.artifacts()]
    assert kinds == [ArtifactKind.DOCUMENT]
    assert "<iframe" in view.to_html()


def test_document_previews_respect_session_flag() -> None:
    content = "```html\n<p>hi</p>\n```\n\n```mermaid\ngraph LR\n```"
    view = render(
        content,
        {"immediately_render": True},
        config=SessionConfig(enable_artifacts=False),
        diagram_renderer=_StaticRenderer(),
    )
    view.drain()

    kinds = sorted(artifact.kind.value for _, artifact in view.artifacts())
    assert kinds == ["diagram"]
    assert "<iframe" not in view.to_html()


def test_render_accepts_option_mapping_or_model() -> None:
    assert render("a\n\nb", RenderOptions(streaming=True)).mode is RenderMode.STREAMING
    assert render("a\n\nb", {"streaming": True}).mode is RenderMode.STREAMING


def test_threaded_scans_fire_without_drain_once_rendering_releases_the_lock() -> None:
    scheduler = ThreadingScheduler()
    view = render(
        "```mermaid\ngraph TD\nA-->B\n```",
        config=SessionConfig(artifact_debounce_ms=300),
        scheduler=scheduler,
        diagram_renderer=_StaticRenderer(),
    )
    try:
        with view.environment.lock:
            time.sleep(0.5)
            assert view.paragraphs[0].blocks[0].detector.scans == 0

        deadline = time.monotonic() + 5
        while not view.artifacts() and time.monotonic() < deadline:
            time.sleep(0.01)

        [(_, artifact)] = view.artifacts()
        assert artifact.kind is ArtifactKind.DIAGRAM
    finally:
        view.unmount()
        scheduler.shutdown()
