"""
GS1 access token cache

Holds at most one live access token for the configured GS1 account.
Tokens live in memory only and are never persisted across restarts.

Lifecycle:
    NoToken -> Acquiring -> Valid -> Expired -> Acquiring -> ...

A token is considered expired `safety_margin_seconds` before the instant
the provider said it would expire.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600


@dataclass(frozen=True)
class AccessToken:
    """Opaque bearer credential with an absolute expiry (clock seconds)"""
    value: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


@dataclass(frozen=True)
class TokenGrant:
    """What the credential exchange returned"""
    access_token: str
    expires_in: Optional[int] = None


class TokenCache:
    """
    Injectable single-entry token cache

    Args:
        clock: Monotonic clock returning seconds (time.monotonic by default)
        safety_margin_seconds: Seconds subtracted from the provider TTL
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, safety_margin_seconds: int = 60):
        self._clock = clock
        self._safety_margin = safety_margin_seconds
        self._token: Optional[AccessToken] = None
        self._lock: Optional[asyncio.Lock] = None
        self.acquisitions = 0

    @property
    def lock(self) -> asyncio.Lock:
        # Created lazily so the lock binds to the running event loop
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def get(self, now: Optional[float] = None) -> Optional[AccessToken]:
        """Return the cached token if still valid, else None"""
        if self._token is None:
            return None
        now = self._clock() if now is None else now
        if self._token.is_valid(now):
            return self._token
        logger.debug("GS1 access token expired")
        return None

    def store(self, value: str, ttl_seconds: Optional[int] = None) -> AccessToken:
        """Cache a freshly issued token"""
        ttl = ttl_seconds if ttl_seconds else DEFAULT_TTL_SECONDS
        expires_at = self._clock() + ttl - self._safety_margin
        self._token = AccessToken(value=value, expires_at=expires_at)
        return self._token

    def invalidate(self) -> None:
        self._token = None

    async def get_or_acquire(self, acquire: Callable[[], Awaitable[TokenGrant]]) -> AccessToken:
        """
        Return the cached token, acquiring a new one when missing or expired

        Calls are serialized: concurrent callers wait for the in-flight
        acquisition and reuse its token. If `acquire` raises, the cache stays
        empty and the error propagates.
        """
        token = self.get()
        if token:
            return token

        async with self.lock:
            # Another caller may have refreshed while we waited
            token = self.get()
            if token:
                return token

            grant = await acquire()
            self.acquisitions += 1
            token = self.store(grant.access_token, grant.expires_in)
            logger.info(f"GS1 access token acquired (valid for ~{int(token.expires_at - self._clock())}s)")
            return token
