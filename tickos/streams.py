from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Sequence, cast

import redis

from tickos.expect import expect_string
from tickos.scheduler import Scheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InputStream:
    machine_id: str

    @property
    def key(self) -> str:
        return f"input:{self.machine_id}"


def publish_input(*, r: redis.Redis, stream: InputStream, name: str, arguments: Sequence[Any] = ()) -> str:
    """Append a host event to a machine's input stream."""

    expect_string(1, name, func="publish_input")
    # Stream fields are flat strings; arguments travel as a JSON array.
    stream_id = r.xadd(stream.key, {"name": name, "arguments": json.dumps(list(arguments))})
    return cast(str, stream_id)


@dataclass(frozen=True, slots=True)
class RemoteInputConfig:
    # Max entries forwarded per poll; the rest wait for the next frame.
    count: int = 10
    # "$" starts after the newest existing entry; "0" replays the whole stream.
    start_id: str = "$"


def _decode_entry(fields: dict[str, str]) -> tuple[str, list[Any]] | None:
    name = fields.get("name")
    if not name:
        return None
    try:
        arguments = json.loads(fields.get("arguments") or "[]")
    except json.JSONDecodeError:
        return None
    if not isinstance(arguments, list):
        return None
    return name, arguments


class RedisEventSource:
    """Event producer that forwards a machine's Redis input stream into a scheduler.

    Reads are non-blocking (no BLOCK), so polling fits inside a host frame. Entries are
    enqueued in stream order; malformed ones are logged and skipped.
    """

    def __init__(self, *, r: redis.Redis, stream: InputStream, config: RemoteInputConfig | None = None) -> None:
        self._r = r
        self.stream = stream
        self._config = config or RemoteInputConfig()
        self._last_id = self._resolve_start_id(self._config.start_id)

    @property
    def last_id(self) -> str:
        return self._last_id

    def _resolve_start_id(self, start_id: str) -> str:
        if start_id != "$":
            return start_id
        # XREAD "$" only works with BLOCK; pin the current tail instead.
        newest = self._r.xrevrange(self.stream.key, count=1)
        return newest[0][0] if newest else "0-0"

    def poll(self, scheduler: Scheduler) -> int:
        resp = self._r.xread({self.stream.key: self._last_id}, count=self._config.count)
        if not resp:
            return 0

        forwarded = 0
        for _stream, messages in resp:
            for msg_id, fields in messages:
                self._last_id = msg_id
                decoded = _decode_entry(fields)
                if decoded is None:
                    logger.warning("Skipping malformed input entry %s on %s: %r", msg_id, self.stream.key, fields)
                    continue
                name, arguments = decoded
                scheduler.enqueue(name, *arguments)
                forwarded += 1
        return forwarded
