from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from tickos.api.models import EngineMode
from tickos.settings import HostSettings, ensure_user_settings, load_settings


def test_defaults_without_file_or_env() -> None:
    s = load_settings(environ={})
    assert s == HostSettings()
    assert s.engine_mode == EngineMode.classic
    assert s.max_queued_events == 256
    assert s.remote_input is False


def test_user_file_overrides_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"engine_mode": "free", "machine_id": "desk"}), encoding="utf-8")

    s = load_settings(user_path=path, environ={})
    assert s.engine_mode == EngineMode.free
    assert s.machine_id == "desk"
    assert s.max_queued_events == 256


def test_environment_overrides_user_file(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"engine_mode": "free", "max_queued_events": 10}), encoding="utf-8")

    s = load_settings(
        user_path=path,
        environ={
            "TICKOS_ENGINE_MODE": "classic",
            "TICKOS_MAX_QUEUED_EVENTS": "none",
            "TICKOS_REMOTE_INPUT": "yes",
            "TICKOS_AUTORUN_DIR": str(tmp_path),
            "REDIS_URL": "redis://example:6379/1",
        },
    )
    assert s.engine_mode == EngineMode.classic
    assert s.max_queued_events is None
    assert s.remote_input is True
    assert s.autorun_dir == tmp_path
    assert s.redis_url == "redis://example:6379/1"


def test_invalid_values_are_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        load_settings(environ={"TICKOS_ENGINE_MODE": "turbo"})
    with pytest.raises(ValidationError):
        load_settings(environ={"TICKOS_MAX_QUEUED_EVENTS": "0"})

    path = tmp_path / "settings.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(user_path=path, environ={})


def test_ensure_user_settings_writes_defaults_once(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "settings.json"

    assert ensure_user_settings(path) is True
    assert ensure_user_settings(path) is False

    assert load_settings(user_path=path, environ={}) == HostSettings()
