"""
config.py
• Loads (or creates) config.json next to the repo root
• Fills in missing keys from DEFAULT and validates the numeric ones
Secrets (the API key) are not stored here, see credentials.py.
"""

from __future__ import annotations

import json
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError

# ── FILE PATHS ──────────────────────────────────────────────────
ROOT   = Path(__file__).resolve().parent.parent
CFG_FN = ROOT / "config.json"
ENV_FN = ROOT / ".env"
ADDONS = ROOT / "addons"
LOG_DIR = ROOT / "logs"

# ── DEFAULT CONFIG ──────────────────────────────────────────────
DEFAULT = {
    "faction_id":            19,
    "candidates_file":       "data.json",
    "refresh_interval":      10,    # seconds
    "api_call_limit":        90,
    "rate_limit_window":     60,    # seconds
    "warning_threshold":     150,   # 2.5 minutes
    "notification_cooldown": 10,    # seconds
    "target_fetch_count":    10,
    "max_target_attempts":   50,
    "api_request_delay":     0.1,   # seconds between target lookups
    "api_base":              "https://api.torn.com",
    "profile_url":           "https://www.torn.com/profiles.php?XID={id}",
}

POSITIVE_INTS = (
    "faction_id", "refresh_interval", "api_call_limit", "rate_limit_window",
    "warning_threshold", "notification_cooldown", "target_fetch_count",
    "max_target_attempts",
)


def validate_cfg(cfg: dict) -> dict:
    for key in POSITIVE_INTS:
        val = cfg.get(key)
        if isinstance(val, bool) or not isinstance(val, int) or val <= 0:
            raise ConfigError(f"config value '{key}' must be a positive integer, got {val!r}")
    delay = cfg.get("api_request_delay")
    if isinstance(delay, bool) or not isinstance(delay, (int, float)) or delay < 0:
        raise ConfigError(f"config value 'api_request_delay' must be >= 0, got {delay!r}")
    if "{id}" not in str(cfg.get("profile_url", "")):
        raise ConfigError("config value 'profile_url' must contain an {id} placeholder")
    return cfg


def load_cfg(path: Path = CFG_FN) -> dict:
    """
    Load or create config.json, fill defaults and validate.
    Also loads .env so the API key is visible through os.environ.
    """
    load_dotenv(ENV_FN)

    if not path.exists():
        path.write_text(json.dumps(DEFAULT, indent=2))
        print(f"Config created at {path}. Edit it to change faction or timings.")

    try:
        cfg = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path.name} is not valid JSON: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigError(f"{path.name} must contain a JSON object")

    for k, v in DEFAULT.items():
        cfg.setdefault(k, v)
    return validate_cfg(cfg)


def save_cfg(c: dict, path: Path = CFG_FN):
    path.write_text(json.dumps(c, indent=2))
