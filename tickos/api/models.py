from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class EngineMode(StrEnum):
    classic = "classic"
    free = "free"


class ContextState(StrEnum):
    running = "running"
    suspended = "suspended"
    dead = "dead"


class SchedulerStatus(BaseModel):
    # Name of the current (or last) script; None before anything was spawned.
    context: str | None = None
    state: ContextState | None = None

    queued_events: int = 0
    dropped_events: int = 0
    active_timers: list[int] = Field(default_factory=list)
    ticks: int = 0

    # "<ExceptionType>: <message>" of the last script failure, if any.
    last_failure: str | None = None


class MachineStatus(BaseModel):
    machine_id: str
    engine_mode: EngineMode
    tickrate: int
    total_frames: int
    scheduler: SchedulerStatus


class PushEventRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    arguments: list[Any] = Field(default_factory=list)


class PushEventResponse(BaseModel):
    accepted: bool


class EngineModeRequest(BaseModel):
    mode: EngineMode


class InputPublishedResponse(BaseModel):
    stream: str
    entry_id: str
