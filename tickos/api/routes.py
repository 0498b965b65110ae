from __future__ import annotations

import redis
from fastapi import APIRouter, Depends, HTTPException, status

from tickos.api.deps import get_host, get_redis
from tickos.api.models import (
    EngineModeRequest,
    InputPublishedResponse,
    MachineStatus,
    PushEventRequest,
    PushEventResponse,
)
from tickos.core.errors import ArgumentInvalid
from tickos.core.events import INTERRUPT
from tickos.host import Host
from tickos.streams import InputStream, publish_input

router = APIRouter()


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/machine", response_model=MachineStatus)
async def machine_status_route(host: Host = Depends(get_host)) -> MachineStatus:
    return host.status()


@router.post("/machine/events", response_model=PushEventResponse, status_code=status.HTTP_202_ACCEPTED)
async def push_event_route(payload: PushEventRequest, host: Host = Depends(get_host)) -> PushEventResponse:
    try:
        accepted = host.scheduler.enqueue(payload.name, *payload.arguments)
    except ArgumentInvalid as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return PushEventResponse(accepted=accepted)


@router.post("/machine/interrupt", response_model=PushEventResponse, status_code=status.HTTP_202_ACCEPTED)
async def interrupt_route(host: Host = Depends(get_host)) -> PushEventResponse:
    return PushEventResponse(accepted=host.scheduler.enqueue(INTERRUPT))


@router.post("/machine/engine-mode", response_model=MachineStatus)
async def engine_mode_route(payload: EngineModeRequest, host: Host = Depends(get_host)) -> MachineStatus:
    host.set_engine_mode(payload.mode)
    return host.status()


@router.post(
    "/machines/{machine_id}/input",
    response_model=InputPublishedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def publish_input_route(
    machine_id: str,
    payload: PushEventRequest,
    r: redis.Redis = Depends(get_redis),
) -> InputPublishedResponse:
    stream = InputStream(machine_id=machine_id)
    entry_id = publish_input(r=r, stream=stream, name=payload.name, arguments=payload.arguments)
    return InputPublishedResponse(stream=stream.key, entry_id=entry_id)
