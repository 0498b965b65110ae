from __future__ import annotations

from collections.abc import Generator

import redis
from fastapi import HTTPException, Request, status

from tickos.host import Host
from tickos.infra.redis_client import create_redis


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        client.close()


def get_host(request: Request) -> Host:
    host = getattr(request.app.state, "host", None)
    if host is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Machine not started")
    return host
