"""Cache management module."""
from typing import Optional

import redis.asyncio as redis
from app.config import settings
from app.search.query import CompiledQuery


class CacheManager:
    """
    Cache Redis des réponses de recherche.

    La clé est toujours dérivée de la requête compilée complète
    (prédicat + tri + limite), jamais des paramètres bruts.
    """
    def __init__(self, redis_url: Optional[str] = None, ttl: Optional[int] = None):
        """Initialize the CacheManager."""
        self.redis_url = redis_url or settings.REDIS_URL
        self.ttl = ttl or settings.CACHE_TTL
        self.redis = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)

    async def get(self, compiled: CompiledQuery) -> Optional[str]:
        """Get a value from the cache."""
        return await self.redis.get(compiled.cache_key())

    async def set(self, compiled: CompiledQuery, value: str, expire: Optional[int] = None):
        """Set a value in the cache."""
        await self.redis.set(compiled.cache_key(), value, ex=expire or self.ttl)

    async def ping(self) -> bool:
        """Check the Redis connection."""
        return await self.redis.ping()

    async def close(self):
        """Close the Redis connection."""
        await self.redis.close()

cache_manager = CacheManager()
