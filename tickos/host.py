from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable, Coroutine, Iterable
from pathlib import Path
from typing import Any

from tickos.api.models import EngineMode, MachineStatus
from tickos.boot import Presenter, boot
from tickos.context import ExecutionContext
from tickos.core.errors import ScriptFailure
from tickos.libs.env import make_env
from tickos.scheduler import EventProducer, Scheduler
from tickos.settings import HostSettings

logger = logging.getLogger(__name__)

FRAME_RATE = 60

TICKRATES: dict[EngineMode, int] = {
    EngineMode.classic: 30,
    EngineMode.free: 60,
}


class Host:
    """Fixed-rate frame driver around a single scheduler.

    Frames run at FRAME_RATE. Only every (FRAME_RATE // tickrate)-th frame is an active
    tick: on those, timers advance, producers are polled and one event may be delivered.
    On the frames in between, producers are still polled so input is never missed.
    """

    def __init__(self, *, settings: HostSettings, producers: Iterable[EventProducer] = ()) -> None:
        self.settings = settings
        self._mode = settings.engine_mode
        self._producers: list[EventProducer] = list(producers)
        self.total_frames = 0
        self.frame_errors = 0
        self.last_failure: ScriptFailure | None = None
        self.scheduler = Scheduler(
            tick_interval=1 / self.tickrate,
            max_queued_events=settings.max_queued_events,
            on_failure=self._on_failure,
        )

    @property
    def engine_mode(self) -> EngineMode:
        return self._mode

    @property
    def tickrate(self) -> int:
        return TICKRATES[self._mode]

    @property
    def frames_per_tick(self) -> int:
        return FRAME_RATE // self.tickrate

    def set_engine_mode(self, mode: EngineMode) -> None:
        self._mode = mode
        self.scheduler.timers.tick_interval = 1 / self.tickrate
        logger.info("Engine mode set to %s (%d ticks/s)", mode.value, self.tickrate)

    def add_producer(self, producer: EventProducer) -> None:
        self._producers.append(producer)

    def is_active_frame(self) -> bool:
        return self.total_frames % self.frames_per_tick == 0

    def frame(self) -> bool:
        """Run one frame. Returns True if an event was delivered to the script."""

        delivered = False
        try:
            if self.is_active_frame():
                delivered = self.scheduler.tick(1 / self.tickrate, producers=self._producers)
            else:
                self.scheduler.poll(self._producers)
        finally:
            self.total_frames += 1
        return delivered

    def run_frames(self, n: int) -> int:
        """Run `n` frames back to back (headless/tests). Returns the number of deliveries."""

        return sum(1 for _ in range(n) if self.frame())

    async def run(self, *, stop: asyncio.Event) -> None:
        """Real-time loop: one frame every 1/FRAME_RATE seconds until `stop` is set.

        A frame that raises is logged with its traceback and the loop carries on with
        the next frame.
        """

        loop = asyncio.get_running_loop()
        interval = 1 / FRAME_RATE
        next_at = loop.time()
        while not stop.is_set():
            try:
                self.frame()
            except Exception:
                self.frame_errors += 1
                logger.exception("Frame %d failed", self.total_frames - 1)
            next_at += interval
            delay = next_at - loop.time()
            if delay <= 0:
                # Running behind; don't try to catch up with a burst of frames.
                next_at = loop.time()
                await asyncio.sleep(0)
                continue
            try:
                await asyncio.wait_for(stop.wait(), timeout=delay)
            except TimeoutError:
                pass

    def spawn(self, main: Callable[..., Coroutine[Any, Any, Any]], *, name: str) -> ExecutionContext:
        env = make_env(self.scheduler, name=name)
        return self.scheduler.spawn(main, env, name=name)

    def boot(self, paths: Iterable[Path], *, present: Presenter | None = None) -> ExecutionContext:
        return self.spawn(functools.partial(boot, paths=list(paths), present=present), name="boot")

    def shutdown(self) -> None:
        self.scheduler.terminate()

    def status(self) -> MachineStatus:
        return MachineStatus(
            machine_id=self.settings.machine_id,
            engine_mode=self._mode,
            tickrate=self.tickrate,
            total_frames=self.total_frames,
            scheduler=self.scheduler.status(),
        )

    def _on_failure(self, failure: ScriptFailure) -> None:
        # Presentation is the UI's job; the host only keeps the latest failure around.
        self.last_failure = failure
