"""
torn_api.py
Async client for the two read-only game API lookups the watcher needs:
  • faction chain state   /faction/{id}?selections=chain
  • user basic status     /user/{id}?selections=basic
Every successful response is registered with the RateGate.
"""

from __future__ import annotations

import logging

import httpx

from .errors import ApiError, NetworkError

API_BASE = "https://api.torn.com"

log = logging.getLogger(__name__)


class TornClient:
    def __init__(self, api_key: str, gate, api_base: str = API_BASE,
                 client: httpx.AsyncClient | None = None, timeout: float = 10):
        self.api_key = api_key
        self.gate = gate
        self.api_base = api_base.rstrip("/")
        self._http = client or httpx.AsyncClient(timeout=timeout)

    async def _get(self, path: str, selections: str) -> dict:
        url = f"{self.api_base}/{path}"
        try:
            r = await self._http.get(url, params={"selections": selections, "key": self.api_key})
        except httpx.HTTPError as e:
            raise NetworkError(f"request to {path} failed: {e}") from e

        if not r.is_success:
            raise NetworkError(f"API returned status {r.status_code}")
        try:
            data = r.json()
        except ValueError as e:
            raise NetworkError(f"API returned invalid JSON for {path}") from e
        if not isinstance(data, dict):
            raise NetworkError(f"API returned unexpected payload for {path}")

        if "error" in data:
            err = data["error"]
            if isinstance(err, dict):
                raise ApiError(f"API Error: {err.get('error', 'unknown error')}", err.get("code"))
            raise ApiError(f"API Error: {err}")

        self.gate.register_call()
        return data

    async def fetch_chain(self, faction_id: int) -> dict:
        data = await self._get(f"faction/{faction_id}", "chain")
        chain = data.get("chain")
        if not isinstance(chain, dict):
            raise ApiError("API Error: response has no chain section")
        return chain

    async def fetch_user(self, user_id: int) -> dict:
        return await self._get(f"user/{user_id}", "basic")

    async def aclose(self):
        await self._http.aclose()
