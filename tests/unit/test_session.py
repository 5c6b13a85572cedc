"""Tests for the SWM session cache: TTL expiry, single login, invalidation."""

import asyncio

import pytest

from device_factory.common.exceptions import SwmIntegrationError
from device_factory.common.messages import ApiMessage
from device_factory.swm.session import SwmSessionCache, SwmSessionId


class FakeClock:
    def __init__(self, start: int = 1_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


class CountingLogin:
    def __init__(self, tokens=None):
        self.calls = 0
        self.tokens = tokens

    async def __call__(self):
        self.calls += 1
        if self.tokens is not None:
            return self.tokens[self.calls - 1]
        return f"session-{self.calls}"


class TestSwmSessionId:
    def test_age_seconds(self):
        session = SwmSessionId(token="abc", created_at=1000)
        assert session.age_seconds(now=31_000) == 30


class TestSessionCache:
    async def test_first_call_logs_in(self):
        login = CountingLogin()
        cache = SwmSessionCache(ttl_seconds=60, clock=FakeClock())
        assert cache.current is None
        assert await cache.get_or_refresh(login) == "session-1"
        assert login.calls == 1
        assert cache.current.token == "session-1"

    async def test_reuses_live_session(self):
        login = CountingLogin()
        clock = FakeClock()
        cache = SwmSessionCache(ttl_seconds=60, clock=clock)
        await cache.get_or_refresh(login)
        clock.advance(59)
        assert await cache.get_or_refresh(login) == "session-1"
        assert login.calls == 1

    async def test_refreshes_after_ttl(self):
        login = CountingLogin()
        clock = FakeClock()
        cache = SwmSessionCache(ttl_seconds=60, clock=clock)
        await cache.get_or_refresh(login)
        clock.advance(60)
        assert await cache.get_or_refresh(login) == "session-2"
        assert login.calls == 2

    async def test_force_refresh(self):
        login = CountingLogin()
        cache = SwmSessionCache(ttl_seconds=60, clock=FakeClock())
        await cache.get_or_refresh(login)
        assert await cache.get_or_refresh(login, force=True) == "session-2"

    async def test_invalidate(self):
        login = CountingLogin()
        cache = SwmSessionCache(ttl_seconds=60, clock=FakeClock())
        await cache.get_or_refresh(login)
        cache.invalidate()
        assert cache.current is None
        assert await cache.get_or_refresh(login) == "session-2"

    async def test_concurrent_callers_share_one_login(self):
        calls = 0

        async def slow_login():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return "shared"

        cache = SwmSessionCache(ttl_seconds=60, clock=FakeClock())
        tokens = await asyncio.gather(*(cache.get_or_refresh(slow_login) for _ in range(5)))
        assert tokens == ["shared"] * 5
        assert calls == 1

    async def test_empty_token_raises(self):
        cache = SwmSessionCache(ttl_seconds=60, clock=FakeClock())
        with pytest.raises(SwmIntegrationError) as exc_info:
            await cache.get_or_refresh(CountingLogin(tokens=[None]))
        assert exc_info.value.code == ApiMessage.SWM_SESSION_ID_NULL.code
        assert cache.current is None

    async def test_login_failure_raises(self):
        async def failing_login():
            raise ConnectionError("down")

        cache = SwmSessionCache(ttl_seconds=60, clock=FakeClock())
        with pytest.raises(SwmIntegrationError) as exc_info:
            await cache.get_or_refresh(failing_login)
        assert exc_info.value.code == ApiMessage.SWM_SESSION_ID_NULL.code
