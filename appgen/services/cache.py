from __future__ import annotations

import hashlib
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from appgen.core.config import Settings, settings

logger = logging.getLogger(__name__)


def generate_prompt_key(prompt: str) -> str:
    digest = hashlib.md5((prompt or "").strip().lower().encode("utf-8")).hexdigest()
    return f"prompt:{digest}"


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class MockCacheService:
    """
    In-process stand-in for Redis.
    Expiry is checked lazily on read; nothing is evicted in the background.
    """

    def __init__(self, clock=time.time) -> None:
        self._entries: Dict[str, CacheEntry] = {}
        self._clock = clock

    def set(self, key: str, value: Any, ttl_seconds: int = 3600) -> None:
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)
        logger.info(f"Cached: {key}")

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            logger.info(f"Cache miss: {key}")
            return None

        if self._clock() > entry.expires_at:
            del self._entries[key]
            logger.info(f"Cache expired: {key}")
            return None

        logger.info(f"Cache hit: {key}")
        return entry.value

    def generate_prompt_key(self, prompt: str) -> str:
        return generate_prompt_key(prompt)

    def get_stats(self) -> Dict[str, int]:
        return {"totalKeys": len(self._entries)}

    def clear(self) -> None:
        self._entries.clear()


class RedisCacheService:
    """Redis-backed cache with the same interface. Values are stored as JSON."""

    def __init__(self, url: str, client: Any = None) -> None:
        if client is None:
            import redis

            client = redis.Redis.from_url(url, decode_responses=True)
        self.client = client

    def set(self, key: str, value: Any, ttl_seconds: int = 3600) -> None:
        self.client.setex(key, ttl_seconds, json.dumps(value, ensure_ascii=False))
        logger.info(f"Cached: {key}")

    def get(self, key: str) -> Optional[Any]:
        raw = self.client.get(key)
        if raw is None:
            logger.info(f"Cache miss: {key}")
            return None
        logger.info(f"Cache hit: {key}")
        return json.loads(raw)

    def generate_prompt_key(self, prompt: str) -> str:
        return generate_prompt_key(prompt)

    def get_stats(self) -> Dict[str, int]:
        return {"totalKeys": int(self.client.dbsize())}

    def clear(self) -> None:
        for key in self.client.scan_iter("prompt:*"):
            self.client.delete(key)


def build_cache(cfg: Settings):
    if cfg.cache_backend == "redis":
        return RedisCacheService(cfg.redis_url)
    return MockCacheService()


cache = build_cache(settings)
