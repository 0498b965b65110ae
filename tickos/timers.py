from __future__ import annotations

import itertools
import logging
import math
import threading
from collections.abc import Callable
from dataclasses import dataclass

from tickos.core.events import TIMER, Event, QueuedEvent
from tickos.expect import expect_integer, expect_number

logger = logging.getLogger(__name__)

EPS = 1e-9


@dataclass(slots=True)
class Timer:
    id: int
    remaining: float
    fired: bool = False


class TimerRegistry:
    """One-shot countdown timers driven by host ticks.

    Rules:
    - ids are allocated from a per-registry counter and strictly increase.
    - durations round up to whole ticks; every timer waits at least one tick.
    - on expiry a `("timer", id)` event is handed to `sink`, in ascending id order
      when several expire on the same tick.
    - a timer fires exactly once and is then forgotten.
    """

    def __init__(self, *, tick_interval: float, sink: Callable[[QueuedEvent], object]) -> None:
        if tick_interval <= 0:
            raise ValueError("tick_interval must be positive")
        self._tick_interval = tick_interval
        self._sink = sink
        self._ids = itertools.count(1)
        self._active: dict[int, Timer] = {}
        self._lock = threading.Lock()

    @property
    def tick_interval(self) -> float:
        return self._tick_interval

    @tick_interval.setter
    def tick_interval(self, value: float) -> None:
        # Only affects timers started afterwards.
        if value <= 0:
            raise ValueError("tick_interval must be positive")
        self._tick_interval = value

    def __len__(self) -> int:
        with self._lock:
            return len(self._active)

    def active_ids(self) -> list[int]:
        with self._lock:
            return list(self._active)

    def _to_tick_granularity(self, duration: float) -> float:
        ticks = max(1, math.ceil(duration / self._tick_interval - EPS))
        return ticks * self._tick_interval

    def start(self, duration: float, *, func: str = "start") -> int:
        """Start a timer and return its id. `func` names the caller in argument errors."""

        duration = expect_number(1, duration, func=func, minimum=0)
        with self._lock:
            timer_id = next(self._ids)
            self._active[timer_id] = Timer(id=timer_id, remaining=self._to_tick_granularity(duration))
        logger.debug("Timer %d started (%.3fs)", timer_id, duration)
        return timer_id

    def cancel(self, timer_id: int) -> bool:
        """Forget an active timer.

        A timer that already fired is left alone: its event may be sitting in the queue
        and stays there.
        """

        timer_id = expect_integer(1, timer_id, func="cancel")
        with self._lock:
            return self._active.pop(timer_id, None) is not None

    def advance(self, delta: float) -> list[Timer]:
        """Count every active timer down by `delta` seconds and emit events for expired ones.

        Returns the timers that fired on this call (marked `fired`, in id order). They are
        no longer tracked by the registry.
        """

        if delta < 0:
            raise ValueError("delta must be >= 0")

        fired: list[Timer] = []
        with self._lock:
            for timer in self._active.values():
                timer.remaining -= delta
                if timer.remaining <= EPS:
                    timer.fired = True
                    fired.append(timer)
            for timer in fired:
                del self._active[timer.id]

        # Emit outside the registry lock; the sink has its own.
        for timer in fired:
            logger.debug("Timer %d fired", timer.id)
            self._sink(Event(name=TIMER, arguments=(timer.id,)))
        return fired
