from __future__ import annotations

from dataclasses import dataclass


class ArgumentInvalid(ValueError):
    """Wrong argument arity or type at a script call boundary.

    Raised at the call site, before anything suspends.
    """


class Interrupted(Exception):
    """Raised inside a script when `pull` is resumed with an interrupt."""

    def __init__(self, message: str = "interrupt") -> None:
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class ScriptFailure:
    """An exception that escaped the top of a script, as handed to the host.

    - `error`: the exception instance.
    - `traceback`: formatted traceback text for presentation/logging.
    """

    error: BaseException
    traceback: str

    @property
    def message(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"
