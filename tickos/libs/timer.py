from __future__ import annotations

from tickos.core.events import TIMER
from tickos.libs.event import EventLib
from tickos.scheduler import Scheduler


class TimerLib:
    def __init__(self, scheduler: Scheduler, events: EventLib) -> None:
        self._scheduler = scheduler
        self._events = events

    def start(self, duration: float) -> int:
        return self._scheduler.timers.start(duration)

    def cancel(self, timer_id: int) -> bool:
        return self._scheduler.timers.cancel(timer_id)

    async def sleep(self, duration: float) -> None:
        """Suspend for `duration` seconds (rounded up to whole ticks).

        Built on `pull`: events other than this timer's own firing are consumed and
        discarded. An interrupt propagates as `Interrupted`.
        """

        timer_id = self._scheduler.timers.start(duration, func="sleep")
        while True:
            name, *args = await self._events.pull(TIMER)
            if name == TIMER and args and args[0] == timer_id:
                return
