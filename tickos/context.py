from __future__ import annotations

import traceback
from collections.abc import Coroutine, Generator
from dataclasses import dataclass
from typing import Any

from tickos.api.models import ContextState
from tickos.core.errors import ScriptFailure
from tickos.core.events import QueuedEvent
from tickos.fsm import ExecutionFSM


@dataclass(frozen=True, slots=True)
class PullRequest:
    """What a script hands to the scheduler when it suspends.

    `names` are the caller's filter hints. They are advisory only: the next queued
    event is delivered whatever its name.
    """

    names: tuple[str, ...]
    raw: bool

    def __await__(self) -> Generator[PullRequest, QueuedEvent, QueuedEvent]:
        event = yield self
        return event


@dataclass(frozen=True, slots=True)
class RunResult:
    state: ContextState
    request: PullRequest | None = None
    value: Any = None
    failure: ScriptFailure | None = None


class ExecutionContext:
    """A script coroutine plus its lifecycle.

    The coroutine is driven with `send()`/`throw()` only; the scheduler never looks
    inside it. The only thing a script may await (transitively) is a `PullRequest`.
    """

    def __init__(self, coro: Coroutine[Any, Any, Any], *, name: str) -> None:
        self.name = name
        self._coro = coro
        self._fsm = ExecutionFSM()
        self._started = False
        self.request: PullRequest | None = None
        self.result: Any = None
        self.failure: ScriptFailure | None = None

    def __repr__(self) -> str:
        return f"<ExecutionContext {self.name!r} {self.state.value}>"

    @property
    def state(self) -> ContextState:
        return self._fsm.context_state

    @property
    def is_waiting(self) -> bool:
        return self.state == ContextState.suspended

    def start(self) -> RunResult:
        if self._started:
            raise RuntimeError(f"{self!r} was already started")
        self._started = True
        return self._run(None)

    def resume(self, event: QueuedEvent) -> RunResult:
        if self.state != ContextState.suspended:
            raise RuntimeError(f"cannot resume {self!r}: it is not suspended")
        self.request = None
        self._fsm.resume()
        return self._run(event)

    def terminate(self) -> RunResult:
        """Drop a suspended script without resuming it. No-op once dead.

        The script's cleanup (`finally` blocks) runs during close. If that cleanup raises,
        or tries to suspend again, the error is returned as the result's failure. The
        context ends up dead either way.
        """

        if self.state == ContextState.dead:
            return RunResult(state=self.state)
        if self.state != ContextState.suspended:
            raise RuntimeError(f"cannot terminate {self!r} while it is running")
        self.request = None
        failure: ScriptFailure | None = None
        try:
            self._coro.close()
        except Exception as e:
            failure = ScriptFailure(error=e, traceback="".join(traceback.format_exception(e)))
            self.failure = failure
        finally:
            self._fsm.terminate()
        return RunResult(state=self.state, failure=failure)

    def _run(self, value: Any) -> RunResult:
        error: BaseException | None = None
        while True:
            try:
                if error is None:
                    yielded = self._coro.send(value)
                else:
                    yielded = self._coro.throw(error)
            except StopIteration as stop:
                self.result = stop.value
                self._fsm.finish()
                return RunResult(state=self.state, value=stop.value)
            except Exception as e:
                failure = ScriptFailure(error=e, traceback="".join(traceback.format_exception(e)))
                self.failure = failure
                self._fsm.fail()
                return RunResult(state=self.state, failure=failure)

            if isinstance(yielded, PullRequest):
                self.request = yielded
                self._fsm.suspend()
                return RunResult(state=self.state, request=yielded)

            if error is not None:
                # The script swallowed the first complaint and awaited something foreign again.
                self._coro.close()
                failure = ScriptFailure(error=error, traceback="".join(traceback.format_exception(error)))
                self.failure = failure
                self._fsm.fail()
                return RunResult(state=self.state, failure=failure)

            error = RuntimeError(f"scripts may only await event pulls, got {yielded!r}")
            value = None
