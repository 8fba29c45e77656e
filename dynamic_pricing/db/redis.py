from redis import asyncio as aioredis
import json
from typing import Optional, Any
from dynamic_pricing.config import Config

RULES_CACHE_PREFIX = "rules:"

cache = aioredis.from_url(Config.REDIS_URL)


# Cache functions
async def get_cache(key: str) -> Optional[Any]:
    """Get value from cache"""
    try:
        value = await cache.get(key)
        if value:
            return json.loads(value)
        return None
    except Exception:
        return None


async def set_cache(key: str, value: Any, expiry: int = Config.CACHE_RULES_TTL) -> None:
    """Set value in cache"""
    try:
        await cache.set(key, json.dumps(value, default=str), ex=expiry)
    except Exception:
        pass  # Fail silently for cache operations


async def delete_cache_pattern(pattern: str) -> None:
    """Delete all keys matching pattern"""
    try:
        keys = await cache.keys(pattern)
        if keys:
            await cache.delete(*keys)
    except Exception:
        pass
