from collections.abc import Mapping
from pathlib import Path
import subprocess
from typing import Any

import pytest

from chatmark.adapters import diagrams
from chatmark.adapters.diagrams import (
    DiagramView,
    ImageResource,
    MermaidCliRenderer,
    serialize_svg,
)
from chatmark.core.artifacts import Artifact, ArtifactKind
from chatmark.core.exceptions import DiagramRenderError


SVG = '<svg viewBox="0 0 10 10"><rect width="10" height="10"/></svg>'


class _RecordingEmitter:
    debug_enabled = False

    def __init__(self) -> None:
        self.warnings: list[tuple[str, BaseException | None]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append((message, exc))

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        return


class _StaticRenderer:
    def __init__(self, svg: str = SVG) -> None:
        self.svg = svg
        self.calls: list[str] = []

    def render(self, code: str) -> str:
        self.calls.append(code)
        return self.svg


class _FailingRenderer:
    def render(self, code: str) -> str:
        raise DiagramRenderError("Parse error on line 1")


class _RecordingViewer:
    def __init__(self) -> None:
        self.shown: list[ImageResource] = []

    def show(self, resource: ImageResource) -> None:
        self.shown.append(resource)


def test_mermaid_cli_renderer_runs_executable(monkeypatch: pytest.MonkeyPatch) -> None:
    commands: list[list[str]] = []

    def fake_run(command: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        commands.append(command)
        (Path(kwargs["cwd"]) / "diagram.svg").write_text(SVG, encoding="utf-8")
        return subprocess.CompletedProcess(command, 0, "", "")

    monkeypatch.setattr(diagrams.subprocess, "run", fake_run)
    renderer = MermaidCliRenderer(executable="/opt/mmdc", theme="dark")

    assert renderer.render("graph TD\nA-->B") == SVG
    assert renderer.render("graph TD\nA-->B") == SVG

    assert len(commands) == 1
    assert commands[0][0] == "/opt/mmdc"
    assert commands[0][commands[0].index("-t") + 1] == "dark"


def test_mermaid_cli_failure_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(command: list[str], **_kwargs: Any) -> subprocess.CompletedProcess[str]:
        return subprocess.CompletedProcess(command, 1, "", "Syntax error in graph")

    monkeypatch.setattr(diagrams.subprocess, "run", fake_run)

    with pytest.raises(DiagramRenderError, match="Syntax error in graph"):
        MermaidCliRenderer(executable="mmdc").render("graph ???")


def test_missing_mermaid_cli_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(diagrams, "_resolve_cli", lambda _names, _hints: None)

    with pytest.raises(DiagramRenderError, match="not available"):
        MermaidCliRenderer().render("graph TD")


def test_empty_diagram_is_rejected() -> None:
    with pytest.raises(DiagramRenderError, match="empty"):
        MermaidCliRenderer(executable="mmdc").render("   ")


def test_serialize_svg_adds_namespace() -> None:
    document = serialize_svg(f"<div>{SVG}</div>")
    assert document.startswith("<svg")
    assert 'xmlns="http://www.w3.org/2000/svg"' in document

    with pytest.raises(DiagramRenderError):
        serialize_svg("<div>no graphic</div>")


def test_diagram_view_renders_preview() -> None:
    renderer = _StaticRenderer()
    artifact = Artifact(kind=ArtifactKind.DIAGRAM, payload="graph TD", block=0)

    view = DiagramView.for_artifact(artifact, renderer)

    assert renderer.calls == ["graph TD"]
    assert view.visible
    html = view.to_html()
    assert 'class="no-dark mermaid"' in html
    assert "<rect" in html


def test_render_failure_hides_only_the_diagram() -> None:
    emitter = _RecordingEmitter()

    view = DiagramView("graph ???", _FailingRenderer(), emitter=emitter)

    assert view.has_error
    assert not view.visible
    assert view.to_html() == ""
    assert view.open_full_view() is None
    message, exc = emitter.warnings[0]
    assert message.startswith("[Mermaid]")
    assert "Parse error" in message
    assert isinstance(exc, DiagramRenderError)


def test_full_view_exports_resource_released_with_view() -> None:
    viewer = _RecordingViewer()
    view = DiagramView("graph TD", _StaticRenderer(), viewer=viewer)

    resource = view.open_full_view()

    assert resource is not None
    assert viewer.shown == [resource]
    assert resource.media_type == "image/svg+xml"
    assert resource.uri.startswith("file://")
    assert "xmlns" in resource.path.read_text(encoding="utf-8")

    view.release()

    assert resource.released
    assert not resource.path.exists()
    assert view.resources == []
    assert view.open_full_view() is None


def test_image_resource_release_is_idempotent(tmp_path: Path) -> None:
    path = tmp_path / "diagram.svg"
    path.write_text(SVG, encoding="utf-8")
    resource = ImageResource(path)

    resource.release()
    resource.release()

    assert not path.exists()
