"""
Хранилище OAuth-токенов Slack.

Назначение:
- запись результата установки приложения (OAuth callback)
- выдача bot-токена для workspace на время одного запроса

Реализации:
- inline: in-memory словарь (dev/тесты)
- redis: hash "<prefix>:tokens:<team_id>" вида user_id -> JSON TokenData
"""

from __future__ import annotations

import json
import threading
from dataclasses import asdict, dataclass, replace
from typing import Protocol

import redis

from jitsi_slack.common.config import get_settings
from jitsi_slack.common.errors import NotAuthedError, StorageError
from jitsi_slack.common.logging import get_project_logger
from jitsi_slack.common.time import utc_now_iso

from .redis import redis_client, redis_key

log = get_project_logger()


@dataclass(frozen=True)
class TokenData:
    """
    Запись об установке приложения в workspace.
    """

    team_id: str
    user_id: str
    bot_token: str
    bot_user_id: str
    access_token: str
    installed_at: str = ""


class TokenReader(Protocol):
    def get_first_bot_token_for_team(self, team_id: str) -> str: ...


class TokenWriter(Protocol):
    def store(self, data: TokenData) -> None: ...


def _first_bot_token(team_id: str, records: list[TokenData]) -> str:
    candidates = [r for r in records if r.bot_token]
    if not candidates:
        raise NotAuthedError(details={"team_id": team_id})
    return min(candidates, key=lambda r: r.installed_at).bot_token


def _stamped(data: TokenData) -> TokenData:
    if data.installed_at:
        return data
    return replace(data, installed_at=utc_now_iso())


class InlineTokenStore:
    def __init__(self) -> None:
        self._records: dict[str, dict[str, TokenData]] = {}
        self._lock = threading.Lock()

    def store(self, data: TokenData) -> None:
        data = _stamped(data)
        with self._lock:
            self._records.setdefault(data.team_id, {})[data.user_id] = data

    def get_first_bot_token_for_team(self, team_id: str) -> str:
        with self._lock:
            records = list(self._records.get(team_id, {}).values())
        return _first_bot_token(team_id, records)


class RedisTokenStore:
    def __init__(self, client: redis.Redis | None = None) -> None:
        self._client = client

    @property
    def client(self) -> redis.Redis:
        return self._client if self._client is not None else redis_client()

    @staticmethod
    def _key(team_id: str) -> str:
        return redis_key("tokens", team_id)

    def store(self, data: TokenData) -> None:
        data = _stamped(data)
        payload = json.dumps(asdict(data), ensure_ascii=False)
        try:
            self.client.hset(self._key(data.team_id), data.user_id, payload)
        except redis.RedisError as e:
            raise StorageError(
                "Не удалось сохранить токен",
                details={"team_id": data.team_id, "err": str(e)[:200]},
            ) from e
        log.info(
            "token_stored",
            extra={"payload": {"team_id": data.team_id, "user_id": data.user_id}},
        )

    def get_first_bot_token_for_team(self, team_id: str) -> str:
        try:
            raw_records = self.client.hgetall(self._key(team_id))
        except redis.RedisError as e:
            raise StorageError(
                "Не удалось прочитать токены",
                details={"team_id": team_id, "err": str(e)[:200]},
            ) from e

        records: list[TokenData] = []
        for user_id, raw in (raw_records or {}).items():
            try:
                records.append(TokenData(**json.loads(raw)))
            except (ValueError, TypeError) as e:
                log.warning(
                    "token_record_corrupted",
                    extra={"payload": {"team_id": team_id, "user_id": user_id, "error": str(e)[:200]}},
                )
        return _first_bot_token(team_id, records)


def build_token_store() -> InlineTokenStore | RedisTokenStore:
    mode = (get_settings().store_mode or "redis").strip().lower()
    if mode == "inline":
        return InlineTokenStore()
    if mode == "redis":
        return RedisTokenStore()
    raise ValueError(f"Unsupported STORE_MODE={mode}")
