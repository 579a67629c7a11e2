"""Redis-backed item store."""

import json
from typing import Any, Optional

import redis

from reviewgate.core.errors import UpstreamError
from reviewgate.core.logger import get_logger
from .base import ItemStore

logger = get_logger("redis_store")


class RedisItemStore(ItemStore):
    """Stores each value as a JSON string under its namespaced key."""

    def __init__(self, redis_url: Optional[str] = None, client: Optional[redis.Redis] = None):
        if client is None and not redis_url:
            raise ValueError("RedisItemStore requires redis_url or client")
        self._client = client or redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )

    @property
    def store_name(self) -> str:
        return "redis"

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self._client.get(key)
        except redis.RedisError as e:
            raise UpstreamError(f"Store GET failed: {e}") from e
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        try:
            self._client.set(key, json.dumps(value))
        except redis.RedisError as e:
            raise UpstreamError(f"Store SET failed: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except redis.RedisError as e:
            raise UpstreamError(f"Store DELETE failed: {e}") from e

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    def close(self) -> None:
        self._client.close()
