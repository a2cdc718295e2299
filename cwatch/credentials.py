# credentials.py
"""
credentials.py
• Stores the single game API key in .env (TORN_API_KEY=...)
• Loads / clears it again
• Validates a key against the live API before saving (optional)
"""

from __future__ import annotations
import os
import re
import logging
from pathlib import Path

import requests
from dotenv import dotenv_values

from .config import ENV_FN, DEFAULT
from .errors import ConfigError

ENV_KEY = "TORN_API_KEY"

log = logging.getLogger(__name__)


# --- Helper: Update .env in place ---
def update_env_var(key, value, env_file: Path = ENV_FN):
    """Update or add a key=value pair in the .env file."""
    env_file = Path(env_file)
    lines = env_file.read_text().splitlines(keepends=True) if env_file.exists() else []

    found = False
    for i, line in enumerate(lines):
        if re.match(rf"^{re.escape(key)}=", line):
            lines[i] = f"{key}={value}\n"
            found = True
            break
    if not found:
        if lines and not lines[-1].endswith("\n"):
            lines[-1] += "\n"
        lines.append(f"{key}={value}\n")

    env_file.write_text("".join(lines))


def remove_env_var(key, env_file: Path = ENV_FN) -> bool:
    """Drop every key=... line from the .env file. Returns True if one was removed."""
    env_file = Path(env_file)
    if not env_file.exists():
        return False
    lines = env_file.read_text().splitlines(keepends=True)
    kept = [ln for ln in lines if not re.match(rf"^{re.escape(key)}=", ln)]
    if len(kept) == len(lines):
        return False
    env_file.write_text("".join(kept))
    return True


# --- API key ---
def save_api_key(key: str, env_file: Path = ENV_FN) -> str:
    key = (key or "").strip()
    if not key:
        raise ConfigError("Please enter a valid API key.")
    update_env_var(ENV_KEY, key, env_file)
    os.environ[ENV_KEY] = key
    log.info("API key saved to %s", Path(env_file).name)
    return key


def load_api_key(env_file: Path = ENV_FN) -> str | None:
    """
    Stored key from .env, falling back to the process environment.
    Returns None when nothing usable is set.
    """
    key = dotenv_values(env_file).get(ENV_KEY) if Path(env_file).exists() else None
    key = (key or os.getenv(ENV_KEY) or "").strip()
    return key or None


def require_api_key(env_file: Path = ENV_FN) -> str:
    key = load_api_key(env_file)
    if not key:
        raise ConfigError(
            f"No API key stored. Set one from the bootstrap menu or add {ENV_KEY}=... to .env"
        )
    return key


def clear_api_key(env_file: Path = ENV_FN) -> bool:
    os.environ.pop(ENV_KEY, None)
    removed = remove_env_var(ENV_KEY, env_file)
    if removed:
        log.info("API key cleared")
    return removed


def validate_api_key(key: str, api_base: str = DEFAULT["api_base"]) -> bool:
    """One blocking lookup of the key owner's basic profile."""
    try:
        r = requests.get(
            f"{api_base}/user/",
            params={"selections": "basic", "key": key},
            timeout=10,
        )
    except requests.RequestException as e:
        log.warning("Key validation failed: %s", e)
        return False
    if r.status_code != 200:
        return False
    try:
        data = r.json()
    except ValueError:
        return False
    if not isinstance(data, dict) or "error" in data:
        return False
    return True
