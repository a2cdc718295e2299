"""ChainState parsing and ChainPoller skip / error behaviour."""

from __future__ import annotations

import asyncio

import pytest

from cwatch.chain import ChainPoller, ChainState
from cwatch.errors import NetworkError
from tests.conftest import T0


class StubApi:
    def __init__(self, result):
        self.result = result
        self.calls = 0
        self.release = None

    async def fetch_chain(self, faction_id):
        self.calls += 1
        if self.release is not None:
            await self.release.wait()
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def test_chain_state_from_payload():
    assert ChainState.from_payload({"current": 7, "end": T0 + 30}) == ChainState(7, T0 + 30)
    assert ChainState.from_payload({"current": 0, "end": 0}) == ChainState(0, None)
    assert ChainState.from_payload({"current": "x"}) == ChainState(0, None)


def test_chain_state_activity():
    st = ChainState(3, T0 + 10)
    assert st.remaining(T0) == 10
    assert st.is_active(T0)
    assert not st.is_active(T0 + 10)
    assert not ChainState(0, T0 + 10).is_active(T0)
    assert ChainState(3, None).remaining(T0) is None


def test_poll_updates_state(gate):
    poller = ChainPoller(StubApi({"current": 4, "end": T0 + 99}), gate, 19)
    state = asyncio.run(poller.poll())
    assert state == ChainState(4, T0 + 99)
    assert poller.state == state


def test_poll_skipped_while_paused(gate):
    gate.paused = True
    api = StubApi({"current": 1, "end": T0})
    poller = ChainPoller(api, gate, 19)
    assert asyncio.run(poller.poll()) is None
    assert api.calls == 0


def test_failed_poll_keeps_previous_state(gate):
    api = StubApi({"current": 4, "end": T0 + 99})
    poller = ChainPoller(api, gate, 19)
    asyncio.run(poller.poll())
    api.result = NetworkError("down")
    with pytest.raises(NetworkError):
        asyncio.run(poller.poll())
    assert poller.state == ChainState(4, T0 + 99)
    assert not poller.in_flight


def test_overlapping_poll_is_dropped(gate):
    async def scenario():
        api = StubApi({"current": 2, "end": T0 + 50})
        api.release = asyncio.Event()
        poller = ChainPoller(api, gate, 19)
        first = asyncio.ensure_future(poller.poll())
        await asyncio.sleep(0)
        assert await poller.poll() is None
        api.release.set()
        assert await first == ChainState(2, T0 + 50)
        return api.calls

    assert asyncio.run(scenario()) == 1
