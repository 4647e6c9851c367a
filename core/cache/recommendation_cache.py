"""Recommendation Cache - short-lived Redis cache of ranked matches per profile."""
import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

from redis import Redis
from redis.exceptions import RedisError

from core.models import Match

logger = logging.getLogger(__name__)

# 5 minutes
CACHE_TTL_SECONDS = 300


def _sanitize_url(url: str) -> str:
    """Remove credentials from URL for safe logging."""
    parsed = urlparse(url)
    if parsed.password:
        return parsed._replace(
            netloc=f"{parsed.username or ''}:*@{parsed.hostname}:{parsed.port or 6379}"
        ).geturl()
    return url


class CachedRecommendations:
    """A cache hit: the stored matches and when they were computed."""

    def __init__(self, matches: List[Match], cached_at: float, was_refined: bool):
        self.matches = matches
        self.cached_at = cached_at
        self.was_refined = was_refined


class RecommendationCache:
    """
    Per-profile cache of the last computed ranked list.

    Entries are {matches, cached_at, was_refined}. Redis expires keys after
    the TTL; get() also checks the age itself so an injected clock controls
    staleness. When Redis is unreachable the cache is disabled and every
    call is a no-op.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        password: Optional[str] = None,
        ttl_seconds: int = CACHE_TTL_SECONDS,
        client: Optional[Redis] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._redis: Optional[Redis] = client
        self._available = False

        try:
            if self._redis is None:
                self._redis = Redis.from_url(
                    redis_url,
                    password=password,
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5
                )
            self._redis.ping()
            self._available = True
            logger.info(f"Recommendation cache connected to Redis at {_sanitize_url(redis_url)}")
        except RedisError as e:
            logger.warning(f"Recommendation cache Redis unavailable: {e}")
            self._redis = None

    @property
    def is_available(self) -> bool:
        return self._available and self._redis is not None

    def _make_key(self, profile_id: str) -> str:
        return f"recommendations:{profile_id}"

    def get(self, profile_id: str) -> Optional[CachedRecommendations]:
        """Cached entry younger than the TTL, else None (stale entries are deleted)."""
        if not self.is_available:
            return None

        key = self._make_key(profile_id)
        try:
            data = self._redis.get(key)
        except RedisError as e:
            logger.warning(f"Error reading from recommendation cache: {e}")
            return None

        if not data:
            logger.debug(f"Cache miss for profile {profile_id}")
            return None

        try:
            entry = json.loads(data)
            cached_at = float(entry["cached_at"])
            matches = [Match.from_dict(m) for m in entry["matches"]]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable cache entry for profile {profile_id}: {e}")
            self.invalidate(profile_id)
            return None

        if self.clock() - cached_at >= self.ttl_seconds:
            logger.debug(f"Stale cache entry for profile {profile_id}")
            self.invalidate(profile_id)
            return None

        logger.debug(f"Cache hit for profile {profile_id}")
        return CachedRecommendations(matches, cached_at, bool(entry.get("was_refined")))

    def set(self, profile_id: str, matches: List[Match], was_refined: bool) -> bool:
        """Store the ranked list, replacing any previous entry."""
        if not self.is_available:
            return False

        entry: Dict[str, Any] = {
            "matches": [m.to_dict() for m in matches],
            "cached_at": self.clock(),
            "was_refined": was_refined,
        }
        try:
            self._redis.setex(self._make_key(profile_id), self.ttl_seconds, json.dumps(entry))
            logger.debug(f"Cached {len(matches)} matches for profile {profile_id} (TTL: {self.ttl_seconds}s)")
            return True
        except RedisError as e:
            logger.warning(f"Error writing to recommendation cache: {e}")
            return False

    def invalidate(self, profile_id: str) -> bool:
        if not self.is_available:
            return False
        try:
            self._redis.delete(self._make_key(profile_id))
            return True
        except RedisError as e:
            logger.warning(f"Error deleting from recommendation cache: {e}")
            return False
