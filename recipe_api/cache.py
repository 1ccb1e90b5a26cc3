"""Redis access for the cached recipe list."""

from __future__ import annotations

import json
import logging
import os
from typing import List, Optional

import redis

from .errors import CacheError
from .models import Recipe

logger = logging.getLogger(__name__)

RECIPES_KEY = "recipes"


def redis_from_env() -> redis.Redis:
    """Get a new Redis client configured from environment variables."""
    timeout = float(os.environ.get("REDIS_TIMEOUT", "5"))
    return redis.Redis(
        host=os.environ.get("REDIS_HOST", "localhost"),
        port=int(os.environ.get("REDIS_PORT", "6379")),
        db=int(os.environ.get("REDIS_DATABASE", "0")),
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
        decode_responses=True,
    )


class RecipeListCache:
    """The full recipe collection stored under a single key with no expiry.

    ``get`` returns ``None`` on a miss. Every other failure of the cache
    server is raised as :class:`CacheError`.
    """

    def __init__(self, client: redis.Redis, key: str = RECIPES_KEY) -> None:
        self._client = client
        self._key = key

    def get(self) -> Optional[List[Recipe]]:
        try:
            raw = self._client.get(self._key)
        except redis.RedisError as exc:
            raise CacheError(f"Cache read failed: {exc}") from exc

        if raw is None:
            return None

        try:
            return [Recipe.from_dict(item) for item in json.loads(raw)]
        except (AttributeError, TypeError, ValueError, KeyError) as exc:
            raise CacheError("Cached recipe list is corrupted") from exc

    def set(self, recipes: List[Recipe]) -> None:
        data = json.dumps([recipe.to_dict() for recipe in recipes])
        try:
            self._client.set(self._key, data)
        except redis.RedisError as exc:
            raise CacheError(f"Cache write failed: {exc}") from exc

    def invalidate(self) -> None:
        try:
            self._client.delete(self._key)
        except redis.RedisError as exc:
            raise CacheError(f"Cache invalidation failed: {exc}") from exc


__all__ = ["RECIPES_KEY", "RecipeListCache", "redis_from_env"]
