"""Decorate rendered code blocks with copy and fold affordances.

A presenter owns one ``<pre>`` region of a rendered paragraph. It measures the
scrollable height of the code, derives whether the block is foldable, and
writes the resulting presentation (clamp, soft wrap, toggle, copy button) back
into the tree. When a streamed paragraph is re-rendered, the presenter is
rebound to the new element and keeps its collapsed state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from .config import SessionConfig
from .dom import code_language, gather_classes, merge_style, new_tag
from .measure import HeightMeasurer, LineHeightMeasurer


if TYPE_CHECKING:  # pragma: no cover - typing only
    from bs4.element import Tag


WRAP_LANGUAGES = frozenset({"", "md", "markdown", "text", "txt", "plaintext", "tex", "latex"})

COPY_BUTTON_CLASS = "copy-code-button"
TOGGLE_CLASS = "show-hide-button"
SHOW_MORE_LABEL = "Show more"
SHOW_LESS_LABEL = "Show less"


class Clipboard(Protocol):
    """Destination of the copy action."""

    def write(self, text: str) -> None: ...


class MemoryClipboard:
    """Clipboard keeping the copied texts in memory."""

    def __init__(self) -> None:
        self.history: list[str] = []

    @property
    def text(self) -> str:
        return self.history[-1] if self.history else ""

    def write(self, text: str) -> None:
        self.history.append(text)


@dataclass
class CodeBlockState:
    """Fold state derived from the measured height of a code block."""

    collapsed: bool = True
    foldable: bool = False


class CodeBlockPresenter:
    """Copy and fold behaviour attached to one rendered code block."""

    def __init__(
        self,
        element: Tag,
        *,
        config: SessionConfig | None = None,
        measurer: HeightMeasurer | None = None,
        clipboard: Clipboard | None = None,
    ) -> None:
        self.config = config or SessionConfig()
        self.measurer = measurer or LineHeightMeasurer()
        self.clipboard = clipboard or MemoryClipboard()
        self.state = CodeBlockState(collapsed=self.config.enable_code_fold)
        self.element = element
        self.height = 0.0
        self.scroll_offset = 0.0
        self.mounted = False

    @property
    def code_element(self) -> Tag | None:
        return self.element.find("code")

    @property
    def language(self) -> str:
        return code_language(self.code_element)

    @property
    def wraps(self) -> bool:
        return self.language in WRAP_LANGUAGES

    @property
    def text(self) -> str:
        code = self.code_element
        if code is None:
            return ""
        return code.get_text(strip=False)

    @property
    def fold_enabled(self) -> bool:
        return self.config.enable_code_fold

    @property
    def clamped(self) -> bool:
        return self.fold_enabled and self.state.foldable and self.state.collapsed

    @property
    def shows_toggle(self) -> bool:
        return self.fold_enabled and self.state.foldable

    def mount(self) -> None:
        self.mounted = True
        self.measure()
        self._apply()

    def update(self, element: Tag) -> None:
        """Rebind to a re-rendered element and re-measure it."""
        self.element = element
        self.measure()
        self._apply()

    def measure(self) -> float:
        self.height = self.measurer.measure(self.text, wrap=self.wraps)
        self.state.foldable = self.height > self.config.fold_threshold
        # Streaming code keeps its tail in view.
        self.scroll_offset = self.height
        return self.height

    def toggle(self) -> bool:
        """Flip between collapsed and expanded; return the new collapsed flag."""
        if self.shows_toggle:
            self.state.collapsed = not self.state.collapsed
            self._apply()
        return self.state.collapsed

    def copy(self) -> str:
        """Copy the full code text, whatever the fold state."""
        text = self.text
        self.clipboard.write(text)
        return text

    def unmount(self) -> None:
        self.mounted = False

    def _apply(self) -> None:
        code = self.code_element
        if code is None:
            return

        self._ensure_copy_button()
        merge_style(
            code,
            max_height=f"{self.config.fold_threshold:g}px" if self.clamped else "none",
            overflow_y="hidden",
            white_space="pre-wrap" if self.wraps else None,
        )

        for stale in self.element.find_all(class_=TOGGLE_CLASS):
            stale.decompose()
        if not self.shows_toggle:
            return

        state_class = "collapsed" if self.state.collapsed else "expanded"
        toggle = new_tag(self.element, "div")
        toggle["class"] = [TOGGLE_CLASS, state_class]
        button = new_tag(self.element, "button", type="button")
        button.string = SHOW_MORE_LABEL if self.state.collapsed else SHOW_LESS_LABEL
        toggle.append(button)
        code.insert_after(toggle)

    def _ensure_copy_button(self) -> None:
        first = self.element.find(True, recursive=False)
        if first is not None and COPY_BUTTON_CLASS in gather_classes(first.get("class")):
            return
        button = new_tag(self.element, "span")
        button["class"] = [COPY_BUTTON_CLASS]
        self.element.insert(0, button)


__all__ = [
    "WRAP_LANGUAGES",
    "Clipboard",
    "CodeBlockPresenter",
    "CodeBlockState",
    "MemoryClipboard",
]
