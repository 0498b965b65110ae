from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Coroutine, Iterable
from typing import Any, Protocol

from tickos.api.models import ContextState, SchedulerStatus
from tickos.context import ExecutionContext, RunResult
from tickos.core.errors import ScriptFailure
from tickos.core.events import make_event
from tickos.event_queue import EventQueue
from tickos.timers import Timer, TimerRegistry

logger = logging.getLogger(__name__)


class EventProducer(Protocol):
    """Anything that feeds host events (input, resize, remote streams) into a scheduler."""

    def poll(self, scheduler: Scheduler) -> int: ...


class Scheduler:
    """Binds the event queue and timer registry to one execution context.

    Flow per host tick (`tick`):
      1) timers advance and may enqueue `timer` events
      2) producers are polled and may enqueue events
      3) at most one queued event is delivered, and only if the script is suspended

    Nothing is delivered synchronously: `enqueue`/`push` only ever append to the queue.
    """

    def __init__(
        self,
        *,
        tick_interval: float,
        max_queued_events: int | None = None,
        on_failure: Callable[[ScriptFailure], None] | None = None,
    ) -> None:
        self.queue = EventQueue(max_size=max_queued_events)
        self.timers = TimerRegistry(tick_interval=tick_interval, sink=self.queue.enqueue)
        self._on_failure = on_failure
        self._context: ExecutionContext | None = None
        self._ticks = 0
        self.last_failure: ScriptFailure | None = None

    @property
    def context(self) -> ExecutionContext | None:
        return self._context

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def waiting(self) -> bool:
        return self._context is not None and self._context.is_waiting

    def spawn(self, script: Callable[..., Coroutine[Any, Any, Any]] | Coroutine[Any, Any, Any], *args: Any, name: str | None = None) -> ExecutionContext:
        """Start a script and run it up to its first suspension.

        Only one live context per scheduler: a second spawn while the first is still
        running or suspended raises RuntimeError.
        """

        if self._context is not None and self._context.state != ContextState.dead:
            raise RuntimeError(f"scheduler already has a live script: {self._context!r}")

        coro = script if inspect.iscoroutine(script) else script(*args)
        if not inspect.iscoroutine(coro):
            raise TypeError(f"script must be a coroutine or coroutine function, got {type(coro).__name__}")

        ctx_name = name or getattr(coro, "__qualname__", None) or "script"
        ctx = ExecutionContext(coro, name=ctx_name)
        self._context = ctx
        logger.debug("Spawned %s", ctx_name)
        self._handle(ctx, ctx.start())
        return ctx

    def enqueue(self, name: str, *arguments: Any) -> bool:
        """Host-facing producer entry point. Safe to call from any thread."""

        return self.queue.enqueue(make_event(name, arguments))

    def advance(self, delta: float) -> list[Timer]:
        return self.timers.advance(delta)

    def step(self) -> bool:
        """Deliver the oldest queued event if the script is waiting. Returns True on delivery."""

        ctx = self._context
        if ctx is None:
            return False
        event = self.queue.dequeue_if_waiting(ctx.is_waiting)
        if event is None:
            return False
        logger.debug("Delivering %r to %s (tick %d)", event.name, ctx.name, self._ticks)
        self._handle(ctx, ctx.resume(event))
        return True

    def tick(self, delta: float, producers: Iterable[EventProducer] = ()) -> bool:
        self._ticks += 1
        self.advance(delta)
        self.poll(producers)
        return self.step()

    def poll(self, producers: Iterable[EventProducer]) -> int:
        """Poll each producer once. A producer that raises is logged and skipped."""

        produced = 0
        for producer in producers:
            try:
                produced += producer.poll(self)
            except Exception:
                logger.exception("Event producer %r failed", producer)
        return produced

    def terminate(self) -> None:
        """Tear down a suspended script. Queued events and timers are kept."""

        ctx = self._context
        if ctx is None:
            return
        result = ctx.terminate()
        if result.failure is not None:
            self._handle(ctx, result)

    def status(self) -> SchedulerStatus:
        ctx = self._context
        return SchedulerStatus(
            context=ctx.name if ctx is not None else None,
            state=ctx.state if ctx is not None else None,
            queued_events=len(self.queue),
            dropped_events=self.queue.dropped,
            active_timers=self.timers.active_ids(),
            ticks=self._ticks,
            last_failure=self.last_failure.message if self.last_failure is not None else None,
        )

    def _handle(self, ctx: ExecutionContext, result: RunResult) -> None:
        if result.failure is None:
            if result.state == ContextState.dead:
                logger.debug("Script %s finished", ctx.name)
            return

        self.last_failure = result.failure
        logger.error("Script %s failed: %s\n%s", ctx.name, result.failure.message, result.failure.traceback)
        if self._on_failure is not None:
            self._on_failure(result.failure)
