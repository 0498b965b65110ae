from __future__ import annotations

from collections.abc import Generator
from typing import Any

import fakeredis
import pytest
from fastapi.testclient import TestClient

from tickos.api.deps import get_host, get_redis
from tickos.core.events import Event, Interrupt
from tickos.host import Host
from tickos.libs.env import ScriptEnv
from tickos.main import app
from tickos.settings import HostSettings


@pytest.fixture()
def host() -> Host:
    # Driven by hand: no background frame loop touches this one.
    return Host(settings=HostSettings(machine_id="bench", max_queued_events=2))


@pytest.fixture()
def client_and_redis(host: Host) -> Generator[tuple[TestClient, fakeredis.FakeRedis], None, None]:
    r = fakeredis.FakeRedis(decode_responses=True)

    def _override_redis() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override_redis
    app.dependency_overrides[get_host] = lambda: host
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()


def test_healthcheck_and_info(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    assert client.get("/healthcheck").json() == {"status": "ok"}
    assert client.get("/info").json()["name"] == "tickos"


def test_machine_status(client_and_redis: tuple[TestClient, fakeredis.FakeRedis], host: Host) -> None:
    client, _ = client_and_redis
    host.scheduler.enqueue("key_down", 65)

    resp = client.get("/machine")
    assert resp.status_code == 200
    data = resp.json()
    assert data["machine_id"] == "bench"
    assert data["engine_mode"] == "classic"
    assert data["tickrate"] == 30
    assert data["scheduler"]["queued_events"] == 1
    assert data["scheduler"]["context"] is None


def test_push_event_reaches_a_waiting_script(client_and_redis: tuple[TestClient, fakeredis.FakeRedis], host: Host) -> None:
    client, _ = client_and_redis
    seen: list[tuple[Any, ...]] = []

    async def script(env: ScriptEnv) -> None:
        seen.append(await env.event.pull("key_down"))

    host.spawn(script, name="listener")

    resp = client.post("/machine/events", json={"name": "key_down", "arguments": [65, {"shift": True}]})
    assert resp.status_code == 202
    assert resp.json() == {"accepted": True}
    assert seen == []

    host.frame()
    assert seen == [("key_down", 65, {"shift": True})]


def test_push_event_overflow_is_reported(client_and_redis: tuple[TestClient, fakeredis.FakeRedis], host: Host) -> None:
    client, _ = client_and_redis
    accepted = [client.post("/machine/events", json={"name": f"e{n}"}).json()["accepted"] for n in range(3)]

    assert accepted == [True, True, False]
    assert client.get("/machine").json()["scheduler"]["dropped_events"] == 1


def test_push_event_validates_payload(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    assert client.post("/machine/events", json={"name": ""}).status_code == 422
    assert client.post("/machine/events", json={"arguments": []}).status_code == 422


def test_interrupt_route_enqueues_cancel(client_and_redis: tuple[TestClient, fakeredis.FakeRedis], host: Host) -> None:
    client, _ = client_and_redis
    host.scheduler.enqueue("before")

    resp = client.post("/machine/interrupt")
    assert resp.status_code == 202
    assert host.scheduler.queue.snapshot() == (Event(name="before"), Interrupt())


def test_engine_mode_route(client_and_redis: tuple[TestClient, fakeredis.FakeRedis], host: Host) -> None:
    client, _ = client_and_redis

    resp = client.post("/machine/engine-mode", json={"mode": "free"})
    assert resp.status_code == 200
    assert resp.json()["tickrate"] == 60
    assert host.frames_per_tick == 1

    assert client.post("/machine/engine-mode", json={"mode": "turbo"}).status_code == 422


def test_publish_input_appends_to_machine_stream(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, r = client_and_redis

    resp = client.post("/machines/desk/input", json={"name": "char", "arguments": ["x"]})
    assert resp.status_code == 201
    body = resp.json()
    assert body["stream"] == "input:desk"

    entries = r.xrange("input:desk")
    assert len(entries) == 1
    entry_id, fields = entries[0]
    assert entry_id == body["entry_id"]
    assert fields == {"name": "char", "arguments": "[\"x\"]"}


def test_lifespan_host_serves_status_without_overrides() -> None:
    with TestClient(app) as client:
        resp = client.get("/machine")
        assert resp.status_code == 200
        assert resp.json()["scheduler"]["state"] is None


def test_machine_routes_return_503_before_the_host_starts() -> None:
    # No `with`: the lifespan never runs, so no host is attached to the app.
    client = TestClient(app)
    assert client.get("/machine").status_code == 503
    resp = client.post("/machine/events", json={"name": "key_down", "arguments": []})
    assert resp.status_code == 503
    assert resp.json()["detail"] == "Machine not started"
