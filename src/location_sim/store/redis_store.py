"""Redis-backed key-value store.

All operations are wrapped in try/except; Redis failure never breaks the
host process; it just behaves like an empty, write-discarding store.
"""
from __future__ import annotations

import logging
from typing import Mapping, Optional

from location_sim.store.base import KeyValueStore

log = logging.getLogger(__name__)


class RedisStore(KeyValueStore):
    def __init__(self, redis_url: str = "", client=None):
        self.redis_url = redis_url
        self._client = client
        self._checked = client is not None

    def _redis(self):
        """Lazy connection.  Returns ``redis.Redis`` or ``None`` if unavailable."""
        if self._checked:
            return self._client
        self._checked = True
        if not self.redis_url:
            return None
        try:
            import redis

            self._client = redis.Redis.from_url(
                self.redis_url, decode_responses=True, socket_connect_timeout=3
            )
            self._client.ping()
            log.info("Redis connected: %s", self.redis_url)
        except Exception as exc:
            log.warning("Redis unavailable (%s), simulator state will not persist", exc)
            self._client = None
        return self._client

    def get(self, key: str) -> Optional[str]:
        try:
            r = self._redis()
            if r is None:
                return None
            raw = r.get(key)
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            return raw
        except Exception as exc:
            log.warning("Redis get %s failed: %s", key, exc)
            return None

    def set_many(self, values: Mapping[str, str]) -> None:
        try:
            r = self._redis()
            if r is None:
                return
            # MULTI/EXEC so the keys land together
            pipe = r.pipeline(transaction=True)
            for k, v in values.items():
                pipe.set(k, v)
            pipe.execute()
        except Exception as exc:
            log.warning("Redis write of %s failed: %s", ", ".join(values), exc)

    def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            r = self._redis()
            if r is None:
                return
            r.delete(*keys)
        except Exception as exc:
            log.warning("Redis delete of %s failed: %s", ", ".join(keys), exc)

    def close(self) -> None:
        if self._client is not None:
            try:
                self._client.close()
            except Exception:
                log.debug("Redis close failed", exc_info=True)
