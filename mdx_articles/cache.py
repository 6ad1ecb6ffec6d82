import logging

import redis.asyncio as redis

from mdx_articles.config import settings

logger = logging.getLogger(__name__)


class CacheManager:
    """
    String cache backed by Redis, used to hold rendered article HTML.

    All public methods are safe to call even when Redis is unavailable:
    reads return None and writes are skipped, so a cache outage never
    fails a request. Rendered HTML is a derived artifact and can always be
    rebuilt from the article's markdown.
    """

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None
        self._hits: int = 0
        self._misses: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except Exception as exc:  # pragma: no cover
            logger.warning("Redis ping failed, content cache disabled: %s", exc)

    async def disconnect(self) -> None:
        """Close the connection pool.  Called once at application shutdown."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    # ------------------------------------------------------------------
    # Key helpers
    # ------------------------------------------------------------------

    @staticmethod
    def join_keys(parts: list[str]) -> str:
        return ":".join(parts)

    def content_key(self, article_id: int) -> str:
        """Key under which the rendered HTML of *article_id* is stored."""
        return self.join_keys([settings.CONTENT_HTML_PREFIX, str(article_id)])

    # ------------------------------------------------------------------
    # Core cache operations
    # ------------------------------------------------------------------

    async def get_value(self, key: str) -> str | None:
        """Return the cached string for *key*, or None on a miss / error."""
        if not self._redis:
            self._misses += 1
            return None
        try:
            data = await self._redis.get(key)
        except Exception as exc:
            logger.debug("Cache GET error for key=%r: %s", key, exc)
            self._misses += 1
            return None
        if data is None:
            self._misses += 1
            return None
        self._hits += 1
        return data

    async def set_value(self, key: str, value: str, ttl: int | None = None) -> None:
        """
        Store *value* under *key* with an optional TTL (seconds).

        Redis failures are logged but never propagated.
        """
        if not self._redis:
            return
        try:
            await self._redis.set(key, value, ex=ttl)
        except Exception as exc:
            logger.debug("Cache SET error for key=%r: %s", key, exc)

    async def delete_value(self, key: str) -> None:
        if not self._redis:
            return
        try:
            await self._redis.delete(key)
        except Exception as exc:
            logger.debug("Cache DELETE error for key=%r: %s", key, exc)

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def stats(self) -> dict:
        """Return a snapshot of hit/miss counters for the metrics endpoint."""
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }


# Module-level singleton shared across all request handlers.
cache = CacheManager()
