from __future__ import annotations

from statemachine import State, StateMachine

from tickos.api.models import ContextState


class ExecutionFSM(StateMachine):
    """Lifecycle of a single execution context.

    - running: executing between suspension points (a context starts here).
    - suspended: blocked in pull/pull_raw until the scheduler delivers the next event.
    - dead: returned, failed, or was terminated by the host.

    There is no suspended -> suspended edge: every delivery is exactly one resume.
    """

    running = State(ContextState.running.value, value=ContextState.running.value, initial=True)
    suspended = State(ContextState.suspended.value, value=ContextState.suspended.value)
    dead = State(ContextState.dead.value, value=ContextState.dead.value, final=True)

    suspend = running.to(suspended)
    resume = suspended.to(running)
    finish = running.to(dead)
    fail = running.to(dead)
    # Host-initiated teardown of a waiting script (shutdown, re-boot).
    terminate = suspended.to(dead)

    @property
    def context_state(self) -> ContextState:
        return ContextState(str(self.current_state.value))
