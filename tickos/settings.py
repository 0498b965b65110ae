from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from tickos.api.models import EngineMode
from tickos.infra.redis_client import DEFAULT_REDIS_URL

logger = logging.getLogger(__name__)


class HostSettings(BaseModel):
    engine_mode: EngineMode = EngineMode.classic

    # None means unbounded (events are never rejected).
    max_queued_events: int | None = Field(default=256, ge=1)

    machine_id: str = Field(default="default", min_length=1)

    # Directory of autorun scripts booted at startup; None skips booting.
    autorun_dir: Path | None = None

    redis_url: str = DEFAULT_REDIS_URL
    # Consume `input:<machine_id>` from Redis as an extra event producer.
    remote_input: bool = False

    log_level: str = "INFO"


# Environment variables override the settings file.
ENV_OVERRIDES: dict[str, str] = {
    "engine_mode": "TICKOS_ENGINE_MODE",
    "max_queued_events": "TICKOS_MAX_QUEUED_EVENTS",
    "machine_id": "TICKOS_MACHINE_ID",
    "autorun_dir": "TICKOS_AUTORUN_DIR",
    "remote_input": "TICKOS_REMOTE_INPUT",
    "log_level": "TICKOS_LOG_LEVEL",
    "redis_url": "REDIS_URL",
}


def _env_value(field: str, raw: str) -> Any:
    if field == "max_queued_events" and raw.strip().lower() in {"", "none", "unbounded"}:
        return None
    if field == "remote_input":
        return raw.strip().lower() in {"1", "true", "yes"}
    return raw


def load_settings(*, user_path: Path | None = None, environ: Mapping[str, str] | None = None) -> HostSettings:
    """Built-in defaults, then the user's JSON settings file, then environment variables."""

    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    if user_path is not None and user_path.exists():
        loaded = json.loads(user_path.read_text(encoding="utf-8"))
        if not isinstance(loaded, dict):
            raise ValueError(f"settings file must contain a JSON object: {user_path}")
        data.update(loaded)

    for field, var in ENV_OVERRIDES.items():
        if var in env:
            data[field] = _env_value(field, env[var])

    return HostSettings.model_validate(data)


def ensure_user_settings(path: Path) -> bool:
    """Write the default settings to `path` on first run. Returns True if a file was created."""

    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(HostSettings().model_dump_json(indent=2) + "\n", encoding="utf-8")
    logger.info("Wrote default settings to %s", path)
    return True
