"""
Настройки сервера конференций для workspace.

Назначение:
- хранение override'а хоста (`/jitsi server <https://...>`)
- выдача действующей конфигурации: override или дефолт сервиса

Реализации:
- inline: in-memory словарь (dev/тесты)
- redis: ключ "<prefix>:server:<team_id>" с JSON override'а
"""

from __future__ import annotations

import json
import threading
from dataclasses import asdict, dataclass
from typing import Protocol

import redis

from jitsi_slack.common.config import get_settings
from jitsi_slack.common.errors import StorageError
from jitsi_slack.common.logging import get_project_logger

from .redis import redis_client, redis_key

log = get_project_logger()


@dataclass(frozen=True)
class ServerCfg:
    """
    Действующая конфигурация сервера для workspace.
    """

    server: str
    tenant_scoped_urls: bool = False
    authenticated_url_support: bool = False


@dataclass(frozen=True)
class ServerCfgData:
    """
    Override хоста, заданный командой `/jitsi server`.
    """

    team_id: str
    server: str


class ServerConfigReader(Protocol):
    def get(self, team_id: str) -> ServerCfg: ...


class ServerConfigWriter(Protocol):
    def store(self, data: ServerCfgData) -> None: ...

    def remove(self, team_id: str) -> None: ...


def default_server_cfg() -> ServerCfg:
    s = get_settings()
    return ServerCfg(
        server=s.conference_default_host.rstrip("/"),
        tenant_scoped_urls=bool(s.conference_tenant_scoped_urls),
        authenticated_url_support=bool(s.conference_authenticated_urls),
    )


def _cfg_from_override(data: ServerCfgData) -> ServerCfg:
    # Свой сервер команды: без tenant-префикса и без подписанных ссылок
    return ServerCfg(server=data.server.rstrip("/"))


class InlineServerConfigStore:
    def __init__(self) -> None:
        self._overrides: dict[str, ServerCfgData] = {}
        self._lock = threading.Lock()

    def get(self, team_id: str) -> ServerCfg:
        with self._lock:
            data = self._overrides.get(team_id)
        if data is None:
            return default_server_cfg()
        return _cfg_from_override(data)

    def store(self, data: ServerCfgData) -> None:
        with self._lock:
            self._overrides[data.team_id] = data

    def remove(self, team_id: str) -> None:
        with self._lock:
            self._overrides.pop(team_id, None)


class RedisServerConfigStore:
    def __init__(self, client: redis.Redis | None = None) -> None:
        self._client = client

    @property
    def client(self) -> redis.Redis:
        return self._client if self._client is not None else redis_client()

    @staticmethod
    def _key(team_id: str) -> str:
        return redis_key("server", team_id)

    def get(self, team_id: str) -> ServerCfg:
        try:
            raw = self.client.get(self._key(team_id))
        except redis.RedisError as e:
            raise StorageError(
                "Не удалось прочитать настройки сервера",
                details={"team_id": team_id, "err": str(e)[:200]},
            ) from e
        if not raw:
            return default_server_cfg()
        try:
            data = json.loads(raw)
            return _cfg_from_override(ServerCfgData(team_id=team_id, server=str(data["server"])))
        except (ValueError, KeyError, TypeError) as e:
            raise StorageError(
                "Повреждённые настройки сервера",
                details={"team_id": team_id, "err": str(e)[:200]},
            ) from e

    def store(self, data: ServerCfgData) -> None:
        payload = json.dumps(asdict(data), ensure_ascii=False)
        try:
            self.client.set(self._key(data.team_id), payload)
        except redis.RedisError as e:
            raise StorageError(
                "Не удалось сохранить настройки сервера",
                details={"team_id": data.team_id, "err": str(e)[:200]},
            ) from e
        log.info(
            "server_config_stored",
            extra={"payload": {"team_id": data.team_id, "server": data.server}},
        )

    def remove(self, team_id: str) -> None:
        try:
            self.client.delete(self._key(team_id))
        except redis.RedisError as e:
            raise StorageError(
                "Не удалось удалить настройки сервера",
                details={"team_id": team_id, "err": str(e)[:200]},
            ) from e
        log.info("server_config_removed", extra={"payload": {"team_id": team_id}})


def build_server_config_store() -> InlineServerConfigStore | RedisServerConfigStore:
    mode = (get_settings().store_mode or "redis").strip().lower()
    if mode == "inline":
        return InlineServerConfigStore()
    if mode == "redis":
        return RedisServerConfigStore()
    raise ValueError(f"Unsupported STORE_MODE={mode}")
