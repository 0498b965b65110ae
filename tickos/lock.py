from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from uuid import uuid4

import redis


def _lock_key(machine_id: str) -> str:
    return f"lock:input:{machine_id}"


@contextmanager
def consumer_lock(*, r: redis.Redis, machine_id: str, ttl_ms: int | None = None) -> Iterator[str]:
    """Best-effort exclusive consumer lock for a machine's input stream.

    A scheduler has a single consumer, so two hosts must not drain the same stream.
    Yields the lock token. Release only deletes the key if we still own it.
    """

    key = _lock_key(machine_id)
    token = uuid4().hex
    acquired = r.set(key, token, nx=True, px=ttl_ms)
    if not acquired:
        raise ValueError(f"Machine {machine_id!r} input is already being consumed")
    try:
        yield token
    finally:
        # Not atomic; good enough for one host per machine.
        if r.get(key) == token:
            r.delete(key)
