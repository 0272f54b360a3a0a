"""Timer and visibility primitives driving deferred work.

Two abstractions decouple the pipeline from any particular event loop:

`Scheduler`
: ``schedule(delay_ms, fn) -> cancel`` runs ``fn`` once after a delay. The
  returned callable cancels the task if it has not fired yet.

`VisibilityObserver`
: ``subscribe(region, on_intersect) -> unsubscribe`` reports when a layout
  region enters the (margin-expanded) viewport.

:class:`Debouncer` builds "last scheduled wins" coalescing on top of any
scheduler, and :class:`Viewport` is a geometric visibility observer with the
semantics of a browser intersection observer (root margin plus threshold).
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
import heapq
import itertools
import logging
from threading import Lock, RLock, Timer
from typing import Any, Protocol


logger = logging.getLogger(__name__)

Cancel = Callable[[], None]
Task = Callable[[], None]


class Scheduler(Protocol):
    """Run a callable once after ``delay_ms`` milliseconds."""

    def schedule(self, delay_ms: float, fn: Task) -> Cancel: ...


class ThreadingScheduler:
    """Scheduler backed by daemon :class:`threading.Timer` instances.

    Tasks run on the timer threads. Wrap it in a :class:`SerializedScheduler`
    when they touch state the caller keeps mutating.
    """

    def __init__(self) -> None:
        self._timers: set[Timer] = set()
        self._lock = Lock()

    def schedule(self, delay_ms: float, fn: Task) -> Cancel:
        timer: Timer

        def _run() -> None:
            with self._lock:
                self._timers.discard(timer)
            fn()

        timer = Timer(max(delay_ms, 0) / 1000.0, _run)
        timer.daemon = True
        with self._lock:
            self._timers.add(timer)
        timer.start()

        def cancel() -> None:
            timer.cancel()
            with self._lock:
                self._timers.discard(timer)

        return cancel

    def shutdown(self) -> None:
        """Cancel every timer that has not fired yet."""
        with self._lock:
            timers = list(self._timers)
            self._timers.clear()
        for timer in timers:
            timer.cancel()


class AsyncioScheduler:
    """Scheduler delegating to ``loop.call_later``."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def schedule(self, delay_ms: float, fn: Task) -> Cancel:
        loop = self._loop or asyncio.get_running_loop()
        handle = loop.call_later(max(delay_ms, 0) / 1000.0, fn)
        return handle.cancel


class SerializedScheduler:
    """Run the tasks of another scheduler while holding a shared lock."""

    def __init__(self, inner: Scheduler, lock: Any = None) -> None:
        self.inner = inner
        self.lock = lock if lock is not None else RLock()

    def schedule(self, delay_ms: float, fn: Task) -> Cancel:
        def _run() -> None:
            with self.lock:
                fn()

        return self.inner.schedule(delay_ms, _run)


@dataclass(order=True)
class _ManualTask:
    due: float
    sequence: int
    fn: Task = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class ManualScheduler:
    """Deterministic scheduler driven by a virtual clock.

    Tasks only run when the clock is advanced, which makes debounce windows
    reproducible in tests and lets synchronous callers drain pending work.
    """

    def __init__(self) -> None:
        self.now_ms: float = 0.0
        self._queue: list[_ManualTask] = []
        self._counter = itertools.count()

    def schedule(self, delay_ms: float, fn: Task) -> Cancel:
        task = _ManualTask(self.now_ms + max(delay_ms, 0), next(self._counter), fn)
        heapq.heappush(self._queue, task)

        def cancel() -> None:
            task.cancelled = True

        return cancel

    @property
    def pending(self) -> int:
        """Number of scheduled tasks that have neither run nor been cancelled."""
        return sum(1 for task in self._queue if not task.cancelled)

    def advance(self, delay_ms: float) -> int:
        """Move the clock forward, running every task that becomes due."""
        target = self.now_ms + delay_ms
        executed = 0
        while self._queue and self._queue[0].due <= target:
            task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self.now_ms = max(self.now_ms, task.due)
            task.fn()
            executed += 1
        self.now_ms = target
        return executed

    def run_all(self) -> int:
        """Run tasks until the queue is empty, jumping the clock as needed."""
        executed = 0
        while self._queue:
            task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self.now_ms = max(self.now_ms, task.due)
            task.fn()
            executed += 1
        return executed


class Debouncer:
    """Coalesce bursts of :meth:`trigger` calls into one callback per quiet window."""

    def __init__(self, scheduler: Scheduler, delay_ms: float, callback: Task) -> None:
        self._scheduler = scheduler
        self._delay_ms = delay_ms
        self._callback = callback
        self._cancel: Cancel | None = None
        self._generation = 0
        self._lock = Lock()

    @property
    def pending(self) -> bool:
        return self._cancel is not None

    def trigger(self) -> None:
        """Restart the quiet window; only the latest trigger fires."""
        with self._lock:
            if self._cancel is not None:
                self._cancel()
            self._generation += 1
            generation = self._generation
            self._cancel = self._scheduler.schedule(
                self._delay_ms, lambda: self._fire(generation)
            )

    def cancel(self) -> None:
        with self._lock:
            if self._cancel is not None:
                self._cancel()
            self._cancel = None
            self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._cancel = None
        self._callback()


@dataclass
class LayoutBox:
    """Vertical extent of a rendered unit, in layout units."""

    top: float = 0.0
    height: float = 0.0

    @property
    def bottom(self) -> float:
        return self.top + self.height


class VisibilityObserver(Protocol):
    """Notify when a region becomes visible."""

    def subscribe(self, region: LayoutBox, on_intersect: Task) -> Cancel: ...


@dataclass
class _Subscription:
    region: LayoutBox
    callback: Task
    intersecting: bool = False
    active: bool = True


class Viewport:
    """Scrollable window evaluating intersections of subscribed regions.

    A region intersects when the visible fraction of its height inside the
    viewport, expanded by ``root_margin`` above and below, reaches
    ``threshold``. Callbacks fire on the transition into the intersecting
    state. :meth:`refresh` collects every hit before invoking callbacks, so
    callbacks may relayout or subscribe without disturbing the current pass.
    """

    def __init__(
        self,
        *,
        top: float = 0.0,
        height: float = 800.0,
        root_margin: float = 200.0,
        threshold: float = 0.1,
    ) -> None:
        self.top = top
        self.height = height
        self.root_margin = root_margin
        self.threshold = threshold
        self._subscriptions: list[_Subscription] = []

    @property
    def active_subscriptions(self) -> int:
        return sum(1 for entry in self._subscriptions if entry.active)

    def subscribe(self, region: LayoutBox, on_intersect: Task) -> Cancel:
        entry = _Subscription(region=region, callback=on_intersect)
        self._subscriptions.append(entry)

        def unsubscribe() -> None:
            if not entry.active:
                return
            entry.active = False
            self._subscriptions = [item for item in self._subscriptions if item.active]

        return unsubscribe

    def scroll_to(self, top: float) -> int:
        self.top = top
        return self.refresh()

    def resize(self, height: float) -> int:
        self.height = height
        return self.refresh()

    def refresh(self) -> int:
        """Evaluate every subscription and fire newly intersecting callbacks."""
        low = self.top - self.root_margin
        high = self.top + self.height + self.root_margin
        entering: list[_Subscription] = []
        for entry in list(self._subscriptions):
            if not entry.active:
                continue
            visible = self._is_visible(entry.region, low, high)
            if visible and not entry.intersecting:
                entering.append(entry)
            entry.intersecting = visible

        for entry in entering:
            if entry.active:
                entry.callback()
        if entering:
            logger.debug("viewport refresh promoted %d region(s)", len(entering))
        return len(entering)

    def _is_visible(self, region: LayoutBox, low: float, high: float) -> bool:
        if region.height <= 0:
            return low <= region.top <= high
        overlap = min(region.bottom, high) - max(region.top, low)
        if overlap <= 0:
            return False
        return overlap / region.height >= self.threshold


__all__ = [
    "AsyncioScheduler",
    "Cancel",
    "Debouncer",
    "LayoutBox",
    "ManualScheduler",
    "Scheduler",
    "SerializedScheduler",
    "ThreadingScheduler",
    "Viewport",
    "VisibilityObserver",
]
