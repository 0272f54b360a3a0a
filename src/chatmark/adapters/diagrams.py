"""Render diagram artifacts through the Mermaid CLI."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Sequence
from dataclasses import dataclass, field
from hashlib import sha256
import html
import logging
from pathlib import Path
import shutil
import subprocess
import tempfile
from threading import Lock
from typing import Protocol

from bs4 import BeautifulSoup

from chatmark.core.artifacts import Artifact
from chatmark.core.diagnostics import DiagnosticEmitter, NullEmitter
from chatmark.core.exceptions import DiagramRenderError, exception_hint


logger = logging.getLogger(__name__)

MERMAID_CLI_HINT_PATHS: tuple[Path, ...] = (Path("/snap/bin/mmdc"),)
SVG_NAMESPACE = "http://www.w3.org/2000/svg"


class DiagramRenderer(Protocol):
    """Turn diagram-description text into SVG markup."""

    def render(self, code: str) -> str: ...


class ImageViewer(Protocol):
    """Display an exported image resource."""

    def show(self, resource: ImageResource) -> None: ...


class NullImageViewer:
    """Viewer that ignores every resource."""

    def show(self, resource: ImageResource) -> None:
        return


def _resolve_cli(names: Sequence[str], hints: Sequence[Path]) -> str | None:
    for name in names:
        resolved = shutil.which(name)
        if resolved:
            return resolved
    for candidate in hints:
        if candidate.exists():
            return str(candidate)
    return None


class MermaidCliRenderer:
    """Invoke ``mmdc`` in a scratch directory and return the produced SVG."""

    def __init__(
        self,
        *,
        executable: str | None = None,
        theme: str = "neutral",
        background: str = "transparent",
        timeout: float = 30.0,
        cache_size: int = 64,
    ) -> None:
        self.executable = executable
        self.theme = theme
        self.background = background
        self.timeout = timeout
        self.cache_size = cache_size
        self._cache: OrderedDict[str, str] = OrderedDict()
        self._lock = Lock()

    def render(self, code: str) -> str:
        if not code.strip():
            raise DiagramRenderError("Mermaid diagram is empty.")

        key = sha256(f"{self.theme}\0{self.background}\0{code}".encode()).hexdigest()
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                return cached

        svg = self._run(code)

        with self._lock:
            self._cache[key] = svg
            while len(self._cache) > self.cache_size:
                self._cache.popitem(last=False)
        return svg

    def _run(self, code: str) -> str:
        executable = self.executable or _resolve_cli(["mmdc"], MERMAID_CLI_HINT_PATHS)
        if executable is None:
            raise DiagramRenderError(
                "Mermaid CLI (mmdc) is not available; install @mermaid-js/mermaid-cli."
            )

        with tempfile.TemporaryDirectory(prefix="chatmark-mermaid-") as scratch:
            working_dir = Path(scratch)
            (working_dir / "diagram.mmd").write_text(code, encoding="utf-8")
            command = [
                executable,
                "-i",
                "diagram.mmd",
                "-o",
                "diagram.svg",
                "-t",
                self.theme,
                "-b",
                self.background,
            ]
            try:
                result = subprocess.run(
                    command,
                    check=False,
                    capture_output=True,
                    text=True,
                    cwd=working_dir,
                    timeout=self.timeout,
                )
            except (OSError, subprocess.TimeoutExpired) as exc:
                raise DiagramRenderError(f"Failed to execute Mermaid CLI: {exc}") from exc

            if result.returncode != 0:
                detail = (result.stderr or "").strip() or (result.stdout or "").strip()
                message = f"Mermaid CLI exited with status {result.returncode}"
                raise DiagramRenderError(f"{message}: {detail}" if detail else message)

            produced = working_dir / "diagram.svg"
            if not produced.exists():
                raise DiagramRenderError("Mermaid CLI did not produce the expected file.")
            return produced.read_text(encoding="utf-8")


def serialize_svg(markup: str) -> str:
    """Return a standalone SVG document for the first ``<svg>`` in ``markup``."""
    soup = BeautifulSoup(markup, "html.parser")
    svg = soup.find("svg")
    if svg is None:
        raise DiagramRenderError("Rendered diagram does not contain an <svg> element.")
    if not svg.get("xmlns"):
        svg["xmlns"] = SVG_NAMESPACE
    return str(svg)


@dataclass
class ImageResource:
    """Exportable image backed by a temporary file, released explicitly."""

    path: Path
    media_type: str = "image/svg+xml"
    released: bool = field(default=False, init=False)

    @classmethod
    def from_svg(cls, svg: str) -> ImageResource:
        handle = tempfile.NamedTemporaryFile(  # noqa: SIM115 - lifetime managed by release()
            mode="w", encoding="utf-8", suffix=".svg", prefix="chatmark-diagram-", delete=False
        )
        with handle:
            handle.write(svg)
        return cls(path=Path(handle.name))

    @property
    def uri(self) -> str:
        return self.path.resolve().as_uri()

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        self.path.unlink(missing_ok=True)


class DiagramView:
    """Preview surface of one diagram artifact.

    Rendering failures are contained here: the view logs the failure through
    the emitter and hides itself, leaving the rest of the document untouched.
    """

    def __init__(
        self,
        code: str,
        renderer: DiagramRenderer,
        *,
        emitter: DiagnosticEmitter | None = None,
        viewer: ImageViewer | None = None,
    ) -> None:
        self.code = code
        self.renderer = renderer
        self.emitter = emitter or NullEmitter()
        self.viewer = viewer or NullImageViewer()
        self.svg: str | None = None
        self.has_error = False
        self.resources: list[ImageResource] = []
        self.released = False
        self.render()

    @classmethod
    def for_artifact(
        cls,
        artifact: Artifact,
        renderer: DiagramRenderer,
        *,
        emitter: DiagnosticEmitter | None = None,
        viewer: ImageViewer | None = None,
    ) -> DiagramView:
        return cls(artifact.payload, renderer, emitter=emitter, viewer=viewer)

    @property
    def visible(self) -> bool:
        return not self.has_error and not self.released

    def render(self) -> None:
        try:
            self.svg = self.renderer.render(self.code)
        except Exception as exc:  # noqa: BLE001 - any renderer failure only hides this diagram
            self.svg = None
            self.has_error = True
            self.emitter.warning(f"[Mermaid] {exception_hint(exc) or exc!r}", exc)
            return
        self.has_error = False

    def open_full_view(self) -> ImageResource | None:
        """Export the rendered diagram as an image resource and show it."""
        if self.svg is None or self.released:
            return None
        try:
            document = serialize_svg(self.svg)
        except DiagramRenderError as exc:
            self.emitter.warning(f"[Mermaid] {exc}", exc)
            return None
        resource = ImageResource.from_svg(document)
        self.resources.append(resource)
        self.viewer.show(resource)
        return resource

    def release(self) -> None:
        self.released = True
        for resource in self.resources:
            resource.release()
        self.resources.clear()

    def to_html(self) -> str:
        if not self.visible:
            return ""
        body = self.svg if self.svg is not None else html.escape(self.code)
        return (
            '<div class="no-dark mermaid" style="cursor: pointer; overflow: auto">'
            f"{body}</div>"
        )


__all__ = [
    "DiagramRenderer",
    "DiagramView",
    "ImageResource",
    "ImageViewer",
    "MermaidCliRenderer",
    "NullImageViewer",
    "serialize_svg",
]
