"""Single-slot SWM session token cache with TTL expiry."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from device_factory.common.exceptions import SwmIntegrationError
from device_factory.common.messages import ApiMessage

logger = logging.getLogger(__name__)

LoginCallable = Callable[[], Awaitable[str | None]]


def now_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class SwmSessionId:
    token: str
    created_at: int  # epoch millis

    def age_seconds(self, now: int | None = None) -> float:
        return ((now if now is not None else now_millis()) - self.created_at) / 1000


class SwmSessionCache:
    """Holds the one SWM session this service logs in with.

    The slot is replaced as a whole under a lock, so concurrent callers
    that find it expired trigger a single login.
    """

    def __init__(self, ttl_seconds: int, clock: Callable[[], int] = now_millis):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._session: SwmSessionId | None = None
        self._lock = asyncio.Lock()

    @property
    def current(self) -> SwmSessionId | None:
        return self._session

    def _is_valid(self, session: SwmSessionId | None) -> bool:
        return session is not None and session.age_seconds(self._clock()) < self.ttl_seconds

    async def get_or_refresh(self, login: LoginCallable, force: bool = False) -> str:
        """Return a live token, logging in when none is cached or it has expired."""
        async with self._lock:
            if not force and self._is_valid(self._session):
                return self._session.token
            try:
                token = await login()
            except Exception as exc:
                logger.exception("SWM login failed")
                raise SwmIntegrationError(ApiMessage.SWM_SESSION_ID_NULL) from exc
            if not token:
                logger.error("SWM login returned no session id")
                raise SwmIntegrationError(ApiMessage.SWM_SESSION_ID_NULL)
            self._session = SwmSessionId(token=token, created_at=self._clock())
            logger.info("SWM session refreshed")
            return token

    def invalidate(self) -> None:
        self._session = None
