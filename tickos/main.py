from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from contextlib import ExitStack, asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from tickos import __version__
from tickos.api.routes import router
from tickos.boot import autorun_paths
from tickos.host import Host
from tickos.infra.redis_client import create_redis
from tickos.lock import consumer_lock
from tickos.settings import load_settings
from tickos.streams import InputStream, RedisEventSource

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _settings_path() -> Path | None:
    raw = os.environ.get("TICKOS_SETTINGS_FILE")
    return Path(raw) if raw else None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = load_settings(user_path=_settings_path())
    logging.getLogger("tickos").setLevel(settings.log_level.upper())

    with ExitStack() as stack:
        host = Host(settings=settings)

        if settings.remote_input:
            r = create_redis(settings.redis_url)
            stack.callback(r.close)
            stack.enter_context(consumer_lock(r=r, machine_id=settings.machine_id))
            host.add_producer(RedisEventSource(r=r, stream=InputStream(machine_id=settings.machine_id)))

        if settings.autorun_dir is not None:
            host.boot(autorun_paths(settings.autorun_dir))

        stop = asyncio.Event()
        task = asyncio.create_task(host.run(stop=stop))
        app.state.host = host
        logger.info("Machine %s started (%s mode)", settings.machine_id, settings.engine_mode.value)
        try:
            yield
        finally:
            app.state.host = None
            stop.set()
            await task
            host.shutdown()


app = FastAPI(title="tickos", version=__version__, lifespan=lifespan)
app.include_router(router)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "tickos", "version": __version__}
