"""API key storage in .env and online validation."""

from __future__ import annotations

import pytest
import requests

from cwatch import credentials
from cwatch.credentials import (
    ENV_KEY,
    clear_api_key,
    load_api_key,
    require_api_key,
    save_api_key,
    update_env_var,
    validate_api_key,
)
from cwatch.errors import ConfigError


@pytest.fixture(autouse=True)
def _no_env_key(monkeypatch):
    # records the previous value for teardown
    monkeypatch.setenv(ENV_KEY, "")
    monkeypatch.delenv(ENV_KEY)


def test_save_load_clear_round(tmp_path):
    env = tmp_path / ".env"
    env.write_text("OTHER=1")
    save_api_key("  abc123  ", env)
    assert env.read_text() == f"OTHER=1\n{ENV_KEY}=abc123\n"
    assert load_api_key(env) == "abc123"

    save_api_key("def456", env)
    assert env.read_text().count(ENV_KEY) == 1
    assert load_api_key(env) == "def456"

    assert clear_api_key(env)
    assert load_api_key(env) is None
    assert env.read_text() == "OTHER=1\n"
    assert not clear_api_key(env)


def test_empty_key_rejected(tmp_path):
    with pytest.raises(ConfigError, match="valid API key"):
        save_api_key("   ", tmp_path / ".env")
    assert not (tmp_path / ".env").exists()


def test_require_api_key_gates_startup(tmp_path):
    with pytest.raises(ConfigError):
        require_api_key(tmp_path / ".env")


def test_update_env_var_replaces_in_place(tmp_path):
    env = tmp_path / ".env"
    env.write_text("A=1\nB=2\n")
    update_env_var("A", "9", env)
    assert env.read_text() == "A=9\nB=2\n"


class _Resp:
    def __init__(self, status, payload):
        self.status_code = status
        self._payload = payload

    def json(self):
        return self._payload


@pytest.mark.parametrize("resp, expected", [
    (_Resp(200, {"name": "me"}), True),
    (_Resp(200, {"error": {"code": 2, "error": "Incorrect key"}}), False),
    (_Resp(403, {}), False),
])
def test_validate_api_key(monkeypatch, resp, expected):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append(params)
        return resp

    monkeypatch.setattr(credentials.requests, "get", fake_get)
    assert validate_api_key("K") is expected
    assert calls[0] == {"selections": "basic", "key": "K"}


def test_validate_api_key_offline(monkeypatch):
    def fake_get(*a, **kw):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(credentials.requests, "get", fake_get)
    assert validate_api_key("K") is False
