import json
import logging
import time
from typing import Any, Optional

import redis

from .config import REDIS_URL, CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)


class CacheClient:
    """Key/value cache and rate-limit counters.

    Uses Redis when ``REDIS_URL`` is configured and reachable, otherwise keeps
    entries in process memory with the same expiry semantics.
    """

    def __init__(self) -> None:
        self.redis: Optional[redis.Redis] = None
        self.fallback: dict[str, tuple[Optional[float], str]] = {}
        self.rate_limits: dict[str, tuple[int, Optional[float]]] = {}

    def connect(self) -> None:
        if not REDIS_URL:
            return
        try:
            client = redis.Redis.from_url(REDIS_URL, decode_responses=True)
            client.ping()
            self.redis = client
        except redis.RedisError as exc:
            logger.warning("Redis unavailable at %s, using in-memory cache: %s", REDIS_URL, exc)
            self.redis = None

    def disconnect(self) -> None:
        if not self.redis:
            return
        try:
            self.redis.close()
        finally:
            self.redis = None

    def get_json(self, key: str) -> Optional[Any]:
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return None

    def set_json(self, key: str, value: Any, ttl: int = CACHE_TTL_SECONDS) -> None:
        self.set(key, json.dumps(value, default=str), ttl)

    def get(self, key: str) -> Optional[str]:
        if self.redis:
            return self.redis.get(key)
        entry = self.fallback.get(key)
        if not entry:
            return None
        expires_at, payload = entry
        if expires_at is not None and expires_at < time.time():
            del self.fallback[key]
            return None
        return payload

    def set(self, key: str, value: str, ttl: int = CACHE_TTL_SECONDS) -> None:
        if self.redis:
            self.redis.setex(key, ttl, value)
            return
        expires_at = time.time() + ttl if ttl else None
        self.fallback[key] = (expires_at, value)

    def delete_prefix(self, prefix: str) -> int:
        removed = 0
        if self.redis:
            cursor = 0
            pattern = f"{prefix}*"
            while True:
                cursor, keys = self.redis.scan(cursor=cursor, match=pattern, count=200)
                if keys:
                    self.redis.delete(*keys)
                    removed += len(keys)
                if cursor == 0:
                    break
            return removed

        for key in list(self.fallback.keys()):
            if key.startswith(prefix):
                del self.fallback[key]
                removed += 1
        return removed

    def check_rate_limit(self, key: str, limit: int, window_seconds: int) -> bool:
        full_key = f"ratelimit:{key}"
        if self.redis:
            current = self.redis.incr(full_key)
            if current == 1:
                self.redis.expire(full_key, window_seconds)
            return current <= limit

        now = time.time()
        current, expires_at = self.rate_limits.get(full_key, (0, None))
        if expires_at is None or expires_at < now:
            current = 0
            expires_at = now + window_seconds
        current += 1
        self.rate_limits[full_key] = (current, expires_at)
        return current <= limit

    def clear(self) -> None:
        self.fallback.clear()
        self.rate_limits.clear()


cache_client = CacheClient()
