from __future__ import annotations

import copy
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, ClassVar, TypeAlias

from tickos.core.errors import ArgumentInvalid

INTERRUPT = "interrupt"
TIMER = "timer"


@dataclass(frozen=True, slots=True)
class Event:
    """A named event with ordered, opaque arguments."""

    name: str
    arguments: tuple[Any, ...] = ()

    def as_tuple(self) -> tuple[Any, ...]:
        return (self.name, *self.arguments)


@dataclass(frozen=True, slots=True)
class Interrupt:
    """The cancel variant of an event.

    Travels through the same queue as ordinary events. Only the filtering `pull`
    treats it specially; `pull_raw` hands it over as `("interrupt", *arguments)`.
    """

    arguments: tuple[Any, ...] = ()

    name: ClassVar[str] = INTERRUPT

    def as_tuple(self) -> tuple[Any, ...]:
        return (INTERRUPT, *self.arguments)


QueuedEvent: TypeAlias = Event | Interrupt


def copy_arguments(arguments: Iterable[Any]) -> tuple[Any, ...]:
    """Copy producer values into a fresh carrier so the consumer never aliases them."""

    try:
        return tuple(copy.deepcopy(list(arguments)))
    except (TypeError, copy.Error) as e:
        raise ArgumentInvalid(f"event arguments cannot be copied: {e}") from e


def make_event(name: str, arguments: Iterable[Any] = ()) -> QueuedEvent:
    # Anything named "interrupt" is a cancel, whoever produced it.
    args = copy_arguments(arguments)
    if name == INTERRUPT:
        return Interrupt(arguments=args)
    return Event(name=name, arguments=args)
