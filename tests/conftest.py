from __future__ import annotations

import pytest

from tickos.libs.env import ScriptEnv, make_env
from tickos.scheduler import Scheduler


@pytest.fixture()
def scheduler() -> Scheduler:
    """A scheduler with a 100ms tick, so timer durations map to whole ticks easily."""

    return Scheduler(tick_interval=0.1)


@pytest.fixture()
def env(scheduler: Scheduler) -> ScriptEnv:
    return make_env(scheduler, name="test")
