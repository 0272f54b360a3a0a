"""Per-element override hooks applied to the rendered markup tree.

The markup renderer produces plain HTML. Behaviour that depends on a specific
element (paragraph direction, link targets, media links, code block regions)
is attached afterwards by hooks declared with ``@renders``. The
:class:`RenderEngine` collects declarations from modules, groups them per
:class:`RenderPhase` and tag, and walks the BeautifulSoup tree depth-first
once per phase.

Hooks run in ``(priority, name)`` order for a given tag. A hook that replaces
its element must not expect later hooks to see the original node: every node
is processed at most once per phase.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, cast


if TYPE_CHECKING:  # pragma: no cover - typing only
    from bs4.element import Tag

    from .context import RenderContext


class RenderPhase(Enum):
    """Ordered passes executed over the rendered tree."""

    BLOCK = auto()
    """Block-level elements: paragraphs and code block regions."""

    INLINE = auto()
    """Inline elements: links, media references."""


HookCallable = Callable[[Any, "RenderContext"], None]


@dataclass(frozen=True)
class RuleDefinition:
    """Descriptor installed on hook callables by the decorator."""

    phase: RenderPhase
    tags: tuple[str, ...]
    priority: int = 0
    name: str | None = None

    def bind(self, handler: HookCallable) -> RenderRule:
        name = self.name or getattr(handler, "__name__", handler.__class__.__name__)
        return RenderRule(
            phase=self.phase,
            tags=self.tags,
            priority=self.priority,
            name=name,
            handler=handler,
        )


@dataclass
class RenderRule:
    """Concrete hook registered in the engine."""

    phase: RenderPhase
    tags: tuple[str, ...]
    priority: int
    name: str
    handler: HookCallable


class RenderRegistry:
    """Container gathering hooks before execution."""

    def __init__(self) -> None:
        self._rules: dict[RenderPhase, dict[str, list[RenderRule]]] = {}

    def register(self, rule: RenderRule) -> None:
        phase_bucket = self._rules.setdefault(rule.phase, {})
        for tag in rule.tags:
            bucket = phase_bucket.setdefault(tag, [])
            if any(existing.name == rule.name for existing in bucket):
                continue
            bucket.append(rule)
            bucket.sort(key=lambda item: (item.priority, item.name))

    def rules_for_phase(self, phase: RenderPhase) -> dict[str, tuple[RenderRule, ...]]:
        return {tag: tuple(rules) for tag, rules in self._rules.get(phase, {}).items()}

    def describe(self) -> list[dict[str, object]]:
        """Return a serialisable snapshot of the registered hooks."""
        entries: list[dict[str, object]] = []
        for phase in RenderPhase:
            for tag, rules in sorted(self.rules_for_phase(phase).items()):
                for order, rule in enumerate(rules):
                    entries.append(
                        {
                            "phase": phase.name,
                            "tag": tag,
                            "name": rule.name,
                            "priority": rule.priority,
                            "order": order,
                        }
                    )
        return entries


def renders(
    *tags: str,
    phase: RenderPhase = RenderPhase.BLOCK,
    priority: int = 0,
    name: str | None = None,
) -> Callable[[HookCallable], HookCallable]:
    """Decorator used to declare element hooks."""
    if not tags:
        msg = "@renders requires at least one tag name"
        raise TypeError(msg)
    definition = RuleDefinition(phase=phase, tags=tuple(tags), priority=priority, name=name)

    def decorator(handler: HookCallable) -> HookCallable:
        cast(Any, handler).__render_rule__ = definition
        return handler

    return decorator


class RenderEngine:
    """Execution engine that applies registered hooks to a tree."""

    def __init__(self, registry: RenderRegistry | None = None) -> None:
        self.registry = registry or RenderRegistry()

    def collect_from(self, owner: Any) -> None:
        """Collect decorated callables from an object or module."""
        for attribute in dir(owner):
            handler = getattr(owner, attribute)
            definition = getattr(handler, "__render_rule__", None)
            if isinstance(definition, RuleDefinition):
                self.registry.register(definition.bind(handler))

    def collect_all(self, owners: Iterable[Any]) -> None:
        for owner in owners:
            self.collect_from(owner)

    def register(self, handler: HookCallable) -> None:
        """Register a standalone callable decorated with ``@renders``."""
        definition = getattr(handler, "__render_rule__", None)
        if not isinstance(definition, RuleDefinition):
            msg = "Handler must be decorated with @renders"
            raise TypeError(msg)
        self.registry.register(definition.bind(handler))

    def run(self, root: Tag, context: RenderContext) -> None:
        for phase in RenderPhase:
            context.enter_phase(phase)
            rules_by_tag = self.registry.rules_for_phase(phase)
            if rules_by_tag:
                self._walk(root, rules_by_tag, context)

    def _walk(
        self,
        node: Tag,
        rules_by_tag: dict[str, tuple[RenderRule, ...]],
        context: RenderContext,
    ) -> None:
        # Hooks may replace nodes, so iterate over a snapshot of the children.
        for child in list(getattr(node, "children", ())):
            if not getattr(child, "name", None):
                continue
            self._dispatch(child, rules_by_tag, context)
            if child.parent is not None and not context.should_skip_children(child):
                self._walk(child, rules_by_tag, context)

    def _dispatch(
        self,
        node: Tag,
        rules_by_tag: dict[str, tuple[RenderRule, ...]],
        context: RenderContext,
    ) -> None:
        for rule in rules_by_tag.get(node.name, ()):
            if context.is_processed(node):
                return
            rule.handler(node, context)
        context.mark_processed(node)


__all__ = [
    "RenderEngine",
    "RenderPhase",
    "RenderRegistry",
    "RenderRule",
    "RuleDefinition",
    "renders",
]
