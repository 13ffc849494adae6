"""
Redis-клиент для хранилищ токенов и настроек серверов.

Назначение:
- Единая точка подключения к Redis
- Ключи строятся с общим префиксом REDIS_KEY_PREFIX
"""

from __future__ import annotations

import redis

from jitsi_slack.common.config import get_settings

_client: redis.Redis | None = None


def redis_client() -> redis.Redis:
    """
    Singleton Redis client.
    """
    global _client
    if _client is None:
        _client = redis.Redis.from_url(get_settings().redis_url, decode_responses=True)
    return _client


def redis_key(*parts: str) -> str:
    prefix = (get_settings().redis_key_prefix or "jitsi-slack").strip()
    return ":".join([prefix, *parts])
