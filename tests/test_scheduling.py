import asyncio
import threading

from chatmark.core.scheduling import (
    AsyncioScheduler,
    Debouncer,
    LayoutBox,
    ManualScheduler,
    SerializedScheduler,
    ThreadingScheduler,
    Viewport,
)


def test_manual_scheduler_runs_tasks_when_due() -> None:
    scheduler = ManualScheduler()
    calls: list[str] = []
    scheduler.schedule(100, lambda: calls.append("late"))
    scheduler.schedule(10, lambda: calls.append("early"))

    assert scheduler.advance(50) == 1
    assert calls == ["early"]
    assert scheduler.pending == 1

    scheduler.advance(50)
    assert calls == ["early", "late"]
    assert scheduler.now_ms == 100


def test_manual_scheduler_cancel_prevents_execution() -> None:
    scheduler = ManualScheduler()
    calls: list[int] = []
    cancel = scheduler.schedule(10, lambda: calls.append(1))
    cancel()

    assert scheduler.pending == 0
    assert scheduler.run_all() == 0
    assert calls == []


def test_debouncer_coalesces_bursts() -> None:
    scheduler = ManualScheduler()
    fired: list[float] = []
    debouncer = Debouncer(scheduler, 600, lambda: fired.append(scheduler.now_ms))

    debouncer.trigger()
    scheduler.advance(300)
    debouncer.trigger()
    scheduler.advance(300)
    debouncer.trigger()
    scheduler.advance(599)
    assert fired == []
    assert debouncer.pending

    scheduler.advance(1)
    assert fired == [1200]
    assert not debouncer.pending


def test_debouncer_cancel_discards_pending_run() -> None:
    scheduler = ManualScheduler()
    fired: list[int] = []
    debouncer = Debouncer(scheduler, 100, lambda: fired.append(1))

    debouncer.trigger()
    debouncer.cancel()
    scheduler.run_all()

    assert fired == []


def test_threading_scheduler_fires_and_cancels() -> None:
    scheduler = ThreadingScheduler()
    done = threading.Event()
    skipped = threading.Event()

    scheduler.schedule(1, done.set)
    cancel = scheduler.schedule(200, skipped.set)
    cancel()

    assert done.wait(2)
    scheduler.shutdown()
    assert not skipped.is_set()


def test_asyncio_scheduler_uses_running_loop() -> None:
    async def scenario() -> list[str]:
        calls: list[str] = []
        scheduler = AsyncioScheduler()
        scheduler.schedule(1, lambda: calls.append("ran"))
        cancel = scheduler.schedule(1, lambda: calls.append("cancelled"))
        cancel()
        await asyncio.sleep(0.05)
        return calls

    assert asyncio.run(scenario()) == ["ran"]


def test_viewport_applies_margin_and_threshold() -> None:
    viewport = Viewport(top=0, height=100, root_margin=50, threshold=0.1)
    near = LayoutBox(top=140, height=100)
    far = LayoutBox(top=400, height=100)
    hits: list[str] = []
    viewport.subscribe(near, lambda: hits.append("near"))
    viewport.subscribe(far, lambda: hits.append("far"))

    assert viewport.refresh() == 1
    assert hits == ["near"]

    viewport.scroll_to(300)
    assert sorted(hits) == ["far", "near"]


def test_viewport_fires_only_on_entering() -> None:
    viewport = Viewport(height=100, root_margin=0)
    box = LayoutBox(top=0, height=10)
    hits: list[int] = []
    viewport.subscribe(box, lambda: hits.append(1))

    viewport.refresh()
    viewport.refresh()
    assert hits == [1]

    viewport.scroll_to(500)
    viewport.scroll_to(0)
    assert hits == [1, 1]


def test_viewport_unsubscribe_releases_entry() -> None:
    viewport = Viewport()
    unsubscribe = viewport.subscribe(LayoutBox(), lambda: None)
    assert viewport.active_subscriptions == 1

    unsubscribe()
    unsubscribe()
    assert viewport.active_subscriptions == 0
    assert viewport.refresh() == 0


def test_viewport_promotes_several_regions_in_one_pass() -> None:
    viewport = Viewport(height=1000, root_margin=0)
    hits: list[int] = []
    for index in range(5):
        viewport.subscribe(LayoutBox(top=index * 10, height=10), lambda i=index: hits.append(i))

    assert viewport.refresh() == 5
    assert sorted(hits) == [0, 1, 2, 3, 4]


def test_viewport_resize_reveals_lower_regions() -> None:
    viewport = Viewport(height=100, root_margin=0)
    hits: list[str] = []
    viewport.subscribe(LayoutBox(top=150, height=20), lambda: hits.append("lower"))

    assert viewport.refresh() == 0
    assert viewport.resize(200) == 1
    assert hits == ["lower"]


class _RecordingLock:
    def __init__(self) -> None:
        self.held = False

    def __enter__(self) -> None:
        self.held = True

    def __exit__(self, *exc: object) -> None:
        self.held = False


def test_serialized_scheduler_runs_tasks_under_the_shared_lock() -> None:
    inner = ManualScheduler()
    lock = _RecordingLock()
    serialized = SerializedScheduler(inner, lock)
    seen: list[bool] = []

    cancel = serialized.schedule(10, lambda: seen.append(lock.held))
    serialized.schedule(20, lambda: seen.append(lock.held))
    cancel()

    assert not lock.held
    assert inner.run_all() == 1
    assert seen == [True]
    assert not lock.held


def test_serialized_scheduler_waits_for_the_lock_holder() -> None:
    inner = ThreadingScheduler()
    serialized = SerializedScheduler(inner, threading.Lock())
    fired = threading.Event()

    with serialized.lock:
        serialized.schedule(0, fired.set)
        assert not fired.wait(0.2)

    assert fired.wait(5)
    inner.shutdown()
