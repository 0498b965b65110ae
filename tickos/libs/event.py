from __future__ import annotations

from typing import Any

from tickos.context import PullRequest
from tickos.core.errors import Interrupted
from tickos.core.events import Interrupt, make_event
from tickos.expect import expect_string, expect_strings
from tickos.scheduler import Scheduler


class EventLib:
    """`pull`, `pull_raw` and `push` for scripts running on one scheduler."""

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler

    async def pull(self, *names: str) -> tuple[Any, ...]:
        """Suspend until the next event and return `(name, *arguments)`.

        `names` are hints only; whatever event is next gets returned. Callers wanting a
        specific event loop and discard the rest. An interrupt raises `Interrupted`.
        """

        filters = expect_strings(names, func="pull")
        event = await PullRequest(names=filters, raw=False)
        match event:
            case Interrupt():
                raise Interrupted()
            case _:
                return event.as_tuple()

    async def pull_raw(self, *names: str) -> tuple[Any, ...]:
        """Like `pull`, but an interrupt comes back as ordinary data: `("interrupt", ...)`."""

        filters = expect_strings(names, func="pull_raw")
        event = await PullRequest(names=filters, raw=True)
        return event.as_tuple()

    def push(self, name: str, *arguments: Any) -> bool:
        """Queue an event for a later tick. Never suspends and never delivers synchronously.

        Arguments are deep-copied, so later mutations by the caller are not observed
        by whoever pulls the event. Returns False if a bounded queue rejected it.
        """

        expect_string(1, name, func="push")
        return self._scheduler.queue.enqueue(make_event(name, arguments))
