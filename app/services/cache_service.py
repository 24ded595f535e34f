"""
In-process TTL cache.

Keys are user-scoped so one prefix delete clears everything derived from a
user's data:

    user:{user_id}:recommendations:latest
    user:{user_id}:difficulty
    user:{user_id}:difficulty:{challenge_type}

Reads and writes are not serialized: two concurrent misses for the same key
both compute, and the later write wins.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
import inspect
import logging
import time

from app.core.config import settings
from app.core.errors import CacheError

logger = logging.getLogger(__name__)


# ============================================================================
# KEY HELPERS
# ============================================================================

def user_cache_prefix(user_id: str) -> str:
    return f"user:{user_id}:"


def recommendation_cache_key(user_id: str) -> str:
    return f"{user_cache_prefix(user_id)}recommendations:latest"


def difficulty_cache_key(user_id: str, challenge_type: Optional[str] = None) -> str:
    key = f"{user_cache_prefix(user_id)}difficulty"
    if challenge_type:
        key = f"{key}:{challenge_type}"
    return key


# ============================================================================
# CACHE SERVICE
# ============================================================================

class CacheService:
    """Dictionary-backed cache with per-entry expiry."""

    def __init__(
        self,
        enabled: bool = True,
        default_ttl: int = 300,
        clock: Callable[[], float] = time.monotonic
    ):
        if default_ttl <= 0:
            raise CacheError("default_ttl must be positive", details={"default_ttl": default_ttl})

        self.enabled = enabled
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self.metrics = {"hits": 0, "misses": 0, "sets": 0, "deletes": 0}

    def _check_key(self, key: str) -> None:
        if not isinstance(key, str) or not key:
            raise CacheError("Cache key must be a non-empty string", details={"key": key})

    def _resolve_ttl(self, ttl: Optional[int]) -> int:
        if ttl is None:
            return self.default_ttl
        if ttl <= 0:
            raise CacheError("ttl must be positive", details={"ttl": ttl})
        return ttl

    def _is_expired(self, expires_at: float) -> bool:
        return self._clock() >= expires_at

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""
        self._check_key(key)
        if not self.enabled:
            return None

        entry = self._entries.get(key)
        if entry is None:
            self.metrics["misses"] += 1
            return None

        value, expires_at = entry
        if self._is_expired(expires_at):
            del self._entries[key]
            self.metrics["misses"] += 1
            return None

        self.metrics["hits"] += 1
        return value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        self._check_key(key)
        seconds = self._resolve_ttl(ttl)
        if not self.enabled:
            return

        self._entries[key] = (value, self._clock() + seconds)
        self.metrics["sets"] += 1

    def delete(self, key: str) -> bool:
        self._check_key(key)
        removed = self._entries.pop(key, None) is not None
        if removed:
            self.metrics["deletes"] += 1
        return removed

    def keys(self, prefix: str = "") -> List[str]:
        """Live keys starting with ``prefix``; expired entries are purged."""
        for key in [k for k, (_, expires_at) in self._entries.items() if self._is_expired(expires_at)]:
            del self._entries[key]
        return [key for key in self._entries if key.startswith(prefix)]

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None
    ) -> Any:
        """
        Return the cached value for ``key`` or compute, store and return it.

        Args:
            key: Cache key
            factory: Zero-argument callable returning a value or awaitable
            ttl: Lifetime in seconds (defaults to ``default_ttl``)

        Returns:
            Cached or freshly computed value. A None result is not stored.
        """
        self._check_key(key)
        if not callable(factory):
            raise CacheError("Cache factory must be callable", details={"key": key})
        seconds = self._resolve_ttl(ttl)

        cached = self.get(key)
        if cached is not None:
            logger.debug(f"🎯 Cache hit: {key}")
            return cached

        value = factory()
        if inspect.isawaitable(value):
            value = await value

        if value is not None:
            self.set(key, value, seconds)
        return value

    def get_stats(self) -> Dict[str, Any]:
        lookups = self.metrics["hits"] + self.metrics["misses"]
        return {
            **self.metrics,
            "size": len(self._entries),
            "hit_rate": self.metrics["hits"] / lookups if lookups else 0.0,
            "enabled": self.enabled,
        }


def create_cache_service() -> CacheService:
    """
    Factory function to create a CacheService from settings.

    Returns:
        CacheService honouring CACHE_ENABLED and RECOMMENDATION_CACHE_TTL
    """
    return CacheService(
        enabled=settings.CACHE_ENABLED,
        default_ttl=settings.RECOMMENDATION_CACHE_TTL
    )
