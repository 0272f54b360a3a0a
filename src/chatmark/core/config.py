"""Configuration models used by the rendering pipeline.

SessionConfig

`enable_artifacts` (`bool`)
: Surface standalone HTML/SVG/XML documents found in code blocks as live
  previews. Diagram previews are not affected by this flag.

`enable_code_fold` (`bool`)
: Clamp tall code blocks and expose a toggle to expand them.

`fold_threshold` (`float`)
: Rendered height, in layout units, above which a code block becomes
  foldable.

`artifact_debounce_ms` (`int`)
: Quiet period after the last content mutation before a code block is
  scanned for artifacts.

`lookahead_margin` (`float`)
: Distance below and above the viewport at which a lazy paragraph already
  counts as visible.

`visibility_threshold` (`float`)
: Fraction of a paragraph that must intersect the expanded viewport before
  it is promoted.

`placeholder_length` (`int`)
: Number of characters kept in the placeholder of a prose paragraph.

`preview_height` (`int`)
: Default height of document previews when not displayed fullscreen.

`render_cache_size` (`int`)
: Maximum number of paragraph renders memoised by full text.

RenderOptions

`loading` (`bool`)
: Show a loading indicator instead of processing the content.

`font_size` (`float`)
: Base font size, also used to derive code block line heights.

`font_family` (`str | None`)
: CSS font family, `inherit` when omitted.

`default_show` (`bool`)
: Accepted for compatibility with callers; scheduling does not depend on it.

`immediately_render` (`bool`)
: Promote every paragraph synchronously at mount.

`streaming` (`bool`)
: Content is still growing; render every paragraph eagerly and memoise
  unchanged ones. Takes precedence over `immediately_render`.

`on_context_menu` / `on_double_click` (`Callable | None`)
: Callbacks invoked with the caller-supplied event object.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
import yaml

from .exceptions import ConfigurationError


class RenderMode(Enum):
    """Rendering strategy selected for a document."""

    LOADING = "loading"
    STREAMING = "streaming"
    IMMEDIATE = "immediate"
    STATIC_LAZY = "static-lazy"
    SINGLE = "single"


class SessionConfig(BaseModel):
    """Read-only snapshot of the session flags injected into a render."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    enable_artifacts: bool = True
    enable_code_fold: bool = True
    fold_threshold: float = Field(default=400, gt=0)
    artifact_debounce_ms: int = Field(default=600, ge=0)
    lookahead_margin: float = Field(default=200, ge=0)
    visibility_threshold: float = Field(default=0.1, ge=0, le=1)
    placeholder_length: int = Field(default=60, gt=0)
    preview_height: int = Field(default=600, gt=0)
    render_cache_size: int = Field(default=256, ge=0)

    def merged(self, mask: Mapping[str, Any] | None) -> SessionConfig:
        """Return a snapshot where a mask explicitly disabling a feature wins."""
        if not mask:
            return self
        updates: dict[str, bool] = {}
        for key in ("enable_artifacts", "enable_code_fold"):
            if mask.get(key) is False:
                updates[key] = False
        return self.model_copy(update=updates) if updates else self


class RenderOptions(BaseModel):
    """Caller-supplied options for a single render."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    loading: bool = False
    font_size: float = Field(default=14, gt=0)
    font_family: str | None = None
    default_show: bool = False
    immediately_render: bool = False
    streaming: bool = False
    on_context_menu: Callable[[Any], Any] | None = None
    on_double_click: Callable[[Any], Any] | None = None

    def resolve_mode(self, paragraph_count: int) -> RenderMode:
        """Return the rendering strategy for a document with the given paragraph count."""
        if self.loading:
            return RenderMode.LOADING
        if self.streaming:
            return RenderMode.STREAMING
        if self.immediately_render:
            return RenderMode.IMMEDIATE
        if paragraph_count > 1:
            return RenderMode.STATIC_LAZY
        return RenderMode.SINGLE


def load_session_config(path: str | Path | None) -> SessionConfig:
    """Load a session configuration from a YAML file, defaulting when absent."""
    if path is None:
        return SessionConfig()

    candidate = Path(path).expanduser()
    if not candidate.exists():
        return SessionConfig()

    try:
        raw = yaml.safe_load(candidate.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Unable to read configuration '{candidate}': {exc}") from exc

    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Configuration '{candidate}' must contain a mapping.")

    try:
        return SessionConfig.model_validate(dict(raw))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration '{candidate}': {exc}") from exc


__all__ = ["RenderMode", "RenderOptions", "SessionConfig", "load_session_config"]
