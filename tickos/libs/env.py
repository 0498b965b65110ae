from __future__ import annotations

import logging
from dataclasses import dataclass

from tickos import __version__
from tickos.libs.event import EventLib
from tickos.libs.timer import TimerLib
from tickos.scheduler import Scheduler

OS_NAME = "TickOS"


@dataclass(frozen=True, slots=True)
class ScriptEnv:
    """Everything a script receives: `async def main(env): ...`."""

    event: EventLib
    timer: TimerLib
    log: logging.Logger
    version: str


def make_env(scheduler: Scheduler, *, name: str) -> ScriptEnv:
    events = EventLib(scheduler)
    return ScriptEnv(
        event=events,
        timer=TimerLib(scheduler, events),
        log=logging.getLogger(f"tickos.script.{name}"),
        version=f"{OS_NAME} {__version__}",
    )
