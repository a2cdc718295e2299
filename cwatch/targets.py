"""
targets.py
• CandidatePool  – static id list loaded once from data.json
• TargetSampler  – random draws without replacement, keeps the Okay ones
• profile links  – only https://www.torn.com is ever opened
"""

from __future__ import annotations

import json
import time
import enum
import random
import asyncio
import logging
import webbrowser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable
from urllib.parse import urlparse

from .errors import ApiError, ConfigError, NetworkError

PROFILE_URL = "https://www.torn.com/profiles.php?XID={id}"
ALLOWED_SCHEME = "https"
ALLOWED_HOST = "www.torn.com"
MAX_DRAWS = 100

log = logging.getLogger(__name__)


# ── candidate pool ──────────────────────────────────────────────
@dataclass(frozen=True)
class Candidate:
    id: int
    extra: dict = field(default_factory=dict, compare=False)


class CandidatePool:
    def __init__(self, candidates=()):
        self._items = tuple(candidates)

    def __len__(self):
        return len(self._items)

    def __getitem__(self, i) -> Candidate:
        return self._items[i]

    def __iter__(self):
        return iter(self._items)

    @classmethod
    def from_records(cls, records) -> "CandidatePool":
        out = []
        for rec in records:
            if not isinstance(rec, dict):
                continue
            raw = rec.get("XID", rec.get("id"))
            try:
                cid = int(raw)
            except (TypeError, ValueError):
                continue
            extra = {k: v for k, v in rec.items() if k not in ("XID", "id")}
            out.append(Candidate(cid, extra))
        return cls(out)

    @classmethod
    def load(cls, path: Path) -> "CandidatePool":
        path = Path(path)
        try:
            records = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigError(f"target database {path.name} not found") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"target database {path.name} is not valid JSON: {e}") from e
        if not isinstance(records, list):
            raise ConfigError(f"target database {path.name} must be a JSON array")
        pool = cls.from_records(records)
        log.info("Loaded %d targets from %s", len(pool), path.name)
        return pool


# ── status classification ───────────────────────────────────────
class TargetStatus(enum.Enum):
    ELIGIBLE = "eligible"
    HOSPITALIZED = "hospitalized"
    OTHER = "other"
    UNKNOWN = "unknown"


def format_duration(seconds: float) -> str:
    seconds = max(int(seconds), 0)
    return f"{seconds // 60}m {seconds % 60}s"


@dataclass(frozen=True)
class SampledTarget:
    id: int
    status: TargetStatus
    display_name: str = "Unknown"
    detail: str = ""

    @property
    def status_label(self) -> str:
        if self.status is TargetStatus.ELIGIBLE:
            return "Okay"
        if self.status is TargetStatus.HOSPITALIZED:
            return f"Hospitalized ({self.detail})"
        if self.status is TargetStatus.OTHER:
            return self.detail
        return "Unknown"

    def label(self) -> str:
        return f"{self.id} ({self.display_name or 'Unknown'}) - {self.status_label}"


def classify_status(status, now: float) -> tuple[TargetStatus, str]:
    if not isinstance(status, dict):
        return TargetStatus.UNKNOWN, ""
    state = status.get("state")
    if not isinstance(state, str) or not state:
        return TargetStatus.UNKNOWN, ""
    if state == "Okay":
        return TargetStatus.ELIGIBLE, ""
    if state == "Hospital":
        try:
            until = float(status.get("until"))
        except (TypeError, ValueError):
            return TargetStatus.HOSPITALIZED, format_duration(0)
        return TargetStatus.HOSPITALIZED, format_duration(until - now)
    return TargetStatus.OTHER, state


def to_sampled(user_id: int, data: dict, now: float) -> SampledTarget:
    status, detail = classify_status(data.get("status"), now)
    name = data.get("name") or "Unknown"
    return SampledTarget(user_id, status, str(name), detail)


# ── sampler ─────────────────────────────────────────────────────
class TargetSampler:
    """
    Draws ids from the pool without replacement inside an episode, looks
    each one up and keeps the Eligible ones, in discovery order.
    """

    def __init__(self, pool: CandidatePool, api, gate, rng: random.Random | None = None,
                 request_delay: float = 0.1, clock: Callable[[], float] = time.time,
                 sleep=asyncio.sleep):
        self.pool = pool
        self.api = api
        self.gate = gate
        self.rng = rng or random.Random()
        self.request_delay = request_delay
        self.clock = clock
        self.sleep = sleep
        self.seen: set[int] = set()

    def reset_seen(self):
        self.seen.clear()

    def _draw(self) -> Candidate | None:
        if not len(self.pool):
            return None
        for _ in range(MAX_DRAWS):
            cand = self.pool[self.rng.randrange(len(self.pool))]
            if cand.id not in self.seen:
                return cand
        return None

    async def sample(self, max_targets: int = 10, max_attempts: int = 50) -> list[SampledTarget]:
        found: list[SampledTarget] = []
        if self.gate.is_paused():
            log.warning("Cannot fetch targets - API calls paused")
            return found

        attempts = 0
        queried = 0
        while len(found) < max_targets and attempts < max_attempts:
            attempts += 1
            cand = self._draw()
            if cand is None:
                log.info("All targets in pool have been checked")
                break
            if self.gate.is_paused():
                log.warning("API limit reached during target fetch")
                break
            self.seen.add(cand.id)

            if queried and self.request_delay:
                await self.sleep(self.request_delay)
            queried += 1

            try:
                data = await self.api.fetch_user(cand.id)
            except (NetworkError, ApiError) as e:
                log.warning("Lookup failed for target %s: %s", cand.id, e)
                continue

            target = to_sampled(cand.id, data, self.clock())
            if target.status is TargetStatus.ELIGIBLE:
                found.append(target)
                log.info("Found available target: %s (%s)", target.id, target.display_name)
            else:
                log.debug("Target %s not available: %s", target.id, target.status_label)

        log.info("Found %d available targets after %d attempts", len(found), attempts)
        return found


# ── profile links ───────────────────────────────────────────────
def profile_url(target_id: int, template: str = PROFILE_URL) -> str:
    return template.format(id=target_id)


def is_allowed_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme == ALLOWED_SCHEME and parsed.hostname == ALLOWED_HOST


def open_profile(url: str, opener: Callable[[str], object] = webbrowser.open) -> bool:
    if not is_allowed_url(url):
        log.error("Rejected opening URL: %s", url)
        return False
    opener(url)
    return True
