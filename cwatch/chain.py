"""
chain.py
ChainState (count + authoritative end timestamp) and the poller that
refreshes it from the API.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainState:
    current_count: int = 0
    end_timestamp: int | None = None

    @classmethod
    def from_payload(cls, chain: dict) -> "ChainState":
        try:
            count = max(int(chain.get("current") or 0), 0)
        except (TypeError, ValueError):
            count = 0
        try:
            end = int(chain.get("end") or 0) or None
        except (TypeError, ValueError):
            end = None
        return cls(count, end)

    def remaining(self, now: float) -> int | None:
        if self.end_timestamp is None:
            return None
        return self.end_timestamp - int(now)

    def is_active(self, now: float) -> bool:
        rem = self.remaining(now)
        return self.current_count > 0 and rem is not None and rem > 0


class ChainPoller:
    """
    One request per poll(). A poll started while another is still in flight
    is dropped, as is any poll while the RateGate is paused; both return None.
    Errors propagate and leave `state` untouched.
    """

    def __init__(self, api, gate, faction_id: int):
        self.api = api
        self.gate = gate
        self.faction_id = faction_id
        self.state: ChainState | None = None
        self.in_flight = False

    async def poll(self) -> ChainState | None:
        if self.gate.is_paused():
            log.info("Skipping fetch - API calls paused")
            return None
        if self.in_flight:
            log.debug("Skipping fetch - previous poll still running")
            return None

        self.in_flight = True
        try:
            log.debug("Fetching chain data...")
            chain = await self.api.fetch_chain(self.faction_id)
        finally:
            self.in_flight = False

        self.state = ChainState.from_payload(chain)
        log.debug("Chain data: %s", self.state)
        return self.state
