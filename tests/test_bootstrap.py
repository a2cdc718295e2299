"""Menu actions for storing and clearing the API key."""

from __future__ import annotations

import bootstrap
from cwatch import credentials


def _answers(*values):
    it = iter(values)
    return lambda prompt="": next(it)


def test_set_api_key_saves_validated_key(monkeypatch):
    saved = []
    monkeypatch.setattr(credentials, "save_api_key", lambda key: saved.append(key) or key)
    assert bootstrap.set_api_key(_answers("abc"), validate=lambda k: True)
    assert saved == ["abc"]


def test_set_api_key_rejected_key_needs_confirmation(monkeypatch):
    saved = []
    monkeypatch.setattr(credentials, "save_api_key", lambda key: saved.append(key) or key)
    assert not bootstrap.set_api_key(_answers("bad", "n"), validate=lambda k: False)
    assert saved == []
    assert bootstrap.set_api_key(_answers("bad", "y"), validate=lambda k: False)
    assert saved == ["bad"]


def test_clear_api_key_asks_first(monkeypatch):
    cleared = []
    monkeypatch.setattr(credentials, "clear_api_key", lambda: cleared.append(1) or True)
    assert not bootstrap.clear_api_key(_answers("n"))
    assert bootstrap.clear_api_key(_answers("y"))
    assert cleared == [1]


def test_menu_exit(capsys):
    bootstrap.main_menu(_answers("9", "5"))
    out = capsys.readouterr().out
    assert "invalid choice" in out
    assert "bye!" in out
