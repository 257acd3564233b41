# src/gymledger/core/tenant.py

import time
import logging
from typing import Awaitable, Callable, Optional, Protocol, runtime_checkable

from gymledger.core.config import settings

logger = logging.getLogger(__name__)

@runtime_checkable
class TenantResolver(Protocol):
    async def resolve_tenant_id(self) -> Optional[str]:
        ...

class StaticTenantResolver:
    """Resolver for request-scoped callers that already know the gym id (e.g. from a header)."""
    def __init__(self, gym_id: Optional[str]):
        self._gym_id = gym_id

    async def resolve_tenant_id(self) -> Optional[str]:
        return self._gym_id

class TenantIdCache:
    """A single cached gym id with an absolute expiry timestamp."""
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._value: Optional[str] = None
        self._expires_at: float = 0.0

    def get(self) -> Optional[str]:
        if self._value is not None and self._expires_at > self._clock():
            return self._value
        return None

    def set(self, value: str) -> None:
        self._value = value
        self._expires_at = self._clock() + self.ttl_seconds

    def clear(self) -> None:
        self._value = None
        self._expires_at = 0.0

class CachedTenantResolver:
    """
    Read-through resolver for long-lived single-operator clients.
    `source` is the slow lookup (auth session -> gym id); a None result is not cached.
    Call `invalidate()` on sign-out, expiry alone is not enough.
    """
    def __init__(self, source: Callable[[], Awaitable[Optional[str]]], cache: TenantIdCache):
        self._source = source
        self.cache = cache

    async def resolve_tenant_id(self) -> Optional[str]:
        cached = self.cache.get()
        if cached is not None:
            return cached

        gym_id = await self._source()
        if gym_id:
            self.cache.set(gym_id)
        return gym_id

    def invalidate(self) -> None:
        logger.info("Tenant id cache invalidated.")
        self.cache.clear()

def build_cached_resolver(source: Callable[[], Awaitable[Optional[str]]]) -> CachedTenantResolver:
    """Resolver with the configured TTL, for clients that keep one signed-in gym for a session."""
    return CachedTenantResolver(source, TenantIdCache(settings.TENANT_CACHE_TTL_SECONDS))
