"""config.json creation, defaults and validation."""

from __future__ import annotations

import json

import pytest

from cwatch.config import DEFAULT, load_cfg, save_cfg
from cwatch.errors import ConfigError


def test_creates_default_config(tmp_path):
    path = tmp_path / "config.json"
    cfg = load_cfg(path)
    assert cfg == DEFAULT
    assert json.loads(path.read_text()) == DEFAULT


def test_fills_missing_keys(tmp_path):
    path = tmp_path / "config.json"
    save_cfg({"faction_id": 42}, path)
    cfg = load_cfg(path)
    assert cfg["faction_id"] == 42
    assert cfg["warning_threshold"] == 150


@pytest.mark.parametrize("patch", [
    {"refresh_interval": 0},
    {"api_call_limit": "90"},
    {"warning_threshold": True},
    {"api_request_delay": -1},
    {"profile_url": "https://www.torn.com/"},
])
def test_rejects_invalid_values(tmp_path, patch):
    path = tmp_path / "config.json"
    save_cfg({**DEFAULT, **patch}, path)
    with pytest.raises(ConfigError):
        load_cfg(path)


def test_rejects_broken_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{")
    with pytest.raises(ConfigError):
        load_cfg(path)
