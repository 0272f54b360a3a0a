"""Isolated preview surface for standalone HTML/SVG/XML documents."""

from __future__ import annotations

import html
from pathlib import Path

from bs4 import BeautifulSoup
from slugify import slugify

from chatmark.core.artifacts import Artifact


SANDBOX_PERMISSIONS = "allow-forms allow-modals allow-popups allow-scripts"
DEFAULT_EXPORT_NAME = "artifact"


class DocumentPreview:
    """Render a markup document inside a sandboxed frame.

    The frame receives the document through ``srcdoc`` so it never shares
    scripts or styles with the host page. :meth:`reload` only bumps the
    generation counter; the markup is kept as is.
    """

    def __init__(self, code: str, *, height: int = 600, auto_height: bool = True) -> None:
        self.code = code
        self.height = height
        self.auto_height = auto_height
        self.generation = 0
        self.released = False

    @classmethod
    def for_artifact(cls, artifact: Artifact, *, height: int = 600) -> DocumentPreview:
        return cls(artifact.payload, height=height)

    @property
    def title(self) -> str | None:
        soup = BeautifulSoup(self.code, "html.parser")
        node = soup.find("title")
        if node is None:
            return None
        text = node.get_text(strip=True)
        return text or None

    def reload(self) -> int:
        self.generation += 1
        return self.generation

    def export(self, directory: str | Path) -> Path:
        """Write the document to ``directory`` and return the created file."""
        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        name = slugify(self.title or "", separator="-") or DEFAULT_EXPORT_NAME
        target = target_dir / f"{name}.html"
        target.write_text(self.code, encoding="utf-8")
        return target

    def release(self) -> None:
        self.released = True

    def to_html(self) -> str:
        if self.released:
            return ""
        style = "width: 100%; border: none"
        if not self.auto_height:
            style = f"{style}; height: {self.height}px"
        return (
            '<div class="no-dark html">'
            '<button class="artifact-reload" type="button">Reload</button>'
            '<button class="artifact-share" type="button">Share</button>'
            f'<iframe class="artifact-preview" sandbox="{SANDBOX_PERMISSIONS}" '
            f'data-generation="{self.generation}" data-height="{self.height}" '
            f'style="{style}" srcdoc="{html.escape(self.code, quote=True)}"></iframe>'
            "</div>"
        )


__all__ = ["DocumentPreview"]
