"""
Клиент Slack Web API.

Назначение:
- users.info / conversations.open / chat.postMessage для рассылки приглашений
- oauth.access для установки приложения

Ошибки Slack приводятся к SlackErrorKind, чтобы сервисный слой не зависел
от строковых кодов платформы.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

import requests

from jitsi_slack.common.config import get_settings
from jitsi_slack.common.errors import AppError, ErrCode
from jitsi_slack.common.logging import get_project_logger

log = get_project_logger()


class SlackErrorKind(str, Enum):
    INVALID_AUTH = "invalid_auth"
    ACCOUNT_INACTIVE = "account_inactive"
    NOT_AUTHED = "not_authed"
    TOKEN_REVOKED = "token_revoked"
    TRANSPORT = "transport"
    OTHER = "other"


# Токен недействителен: нужно переустановить приложение
CREDENTIAL_ERROR_KINDS = frozenset(
    {
        SlackErrorKind.INVALID_AUTH,
        SlackErrorKind.ACCOUNT_INACTIVE,
        SlackErrorKind.NOT_AUTHED,
        SlackErrorKind.TOKEN_REVOKED,
    }
)


def classify_slack_error(error: str | None) -> SlackErrorKind:
    try:
        return SlackErrorKind((error or "").strip())
    except ValueError:
        return SlackErrorKind.OTHER


class SlackAPIError(AppError):
    def __init__(
        self,
        kind: SlackErrorKind,
        message: str = "Ошибка Slack API",
        details: dict | None = None,
    ) -> None:
        super().__init__(ErrCode.SLACK_API_ERROR, message, details)
        self.kind = kind

    @property
    def is_credential_error(self) -> bool:
        return self.kind in CREDENTIAL_ERROR_KINDS


@dataclass(frozen=True)
class SlackUser:
    id: str
    name: str
    image_192: str = ""


class SlackClient:
    def __init__(
        self,
        token: str,
        *,
        base_url: str | None = None,
        timeout_sec: int | None = None,
    ) -> None:
        s = get_settings()
        self.token = token
        self.base_url = (base_url or s.slack_api_base).rstrip("/")
        self.timeout_sec = int(timeout_sec if timeout_sec is not None else s.slack_timeout_sec)

    def _call(self, method: str, *, payload: dict[str, Any], http_method: str = "POST") -> dict[str, Any]:
        """
        GET: аргументы в query (read-методы вроде users.info не читают JSON-тело).
        POST: JSON-тело.
        """
        url = f"{self.base_url}/{method}"
        headers = {"Authorization": f"Bearer {self.token}"}
        kwargs: dict[str, Any] = {}
        if http_method == "GET":
            kwargs["params"] = payload
        else:
            headers["Content-Type"] = "application/json; charset=utf-8"
            kwargs["json"] = payload
        try:
            resp = requests.request(
                method=http_method,
                url=url,
                headers=headers,
                timeout=self.timeout_sec,
                **kwargs,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise SlackAPIError(
                SlackErrorKind.TRANSPORT,
                "Ошибка обращения к Slack API",
                details={"method": method, "err": str(e)[:200]},
            ) from e

        try:
            data = resp.json()
        except ValueError as e:
            raise SlackAPIError(
                SlackErrorKind.OTHER,
                "Некорректный ответ Slack API",
                details={"method": method, "err": str(e)[:200]},
            ) from e

        if not isinstance(data, dict):
            raise SlackAPIError(SlackErrorKind.OTHER, details={"method": method})
        if not data.get("ok"):
            error = str(data.get("error") or "unknown_error")
            raise SlackAPIError(
                classify_slack_error(error),
                error,
                details={"method": method, "error": error},
            )
        return data

    def get_user_info(self, user_id: str) -> SlackUser:
        data = self._call("users.info", payload={"user": user_id}, http_method="GET")
        user = data.get("user") or {}
        profile = user.get("profile") or {}
        return SlackUser(
            id=str(user.get("id") or user_id),
            name=str(user.get("name") or ""),
            image_192=str(profile.get("image_192") or ""),
        )

    def open_conversation(self, user_ids: list[str]) -> str:
        data = self._call("conversations.open", payload={"users": ",".join(user_ids)})
        channel = data.get("channel") or {}
        channel_id = channel.get("id")
        if not channel_id:
            raise SlackAPIError(
                SlackErrorKind.OTHER,
                "conversations.open не вернул канал",
                details={"method": "conversations.open"},
            )
        return str(channel_id)

    def post_message(self, channel_id: str, *, attachments: list[dict[str, Any]], text: str = "") -> None:
        self._call(
            "chat.postMessage",
            payload={"channel": channel_id, "text": text, "attachments": attachments},
        )
        log.debug("slack_message_posted", extra={"payload": {"channel_id": channel_id}})


def oauth_access(
    *,
    access_url: str,
    client_id: str,
    client_secret: str,
    code: str,
    timeout_sec: int,
) -> dict[str, Any]:
    """
    Обмен authorization code на токены (oauth.access).
    Возвращает JSON-ответ Slack как есть; проверка "ok" на вызывающей стороне.
    """
    try:
        resp = requests.get(
            access_url,
            params={"client_id": client_id, "client_secret": client_secret, "code": code},
            timeout=timeout_sec,
        )
        resp.raise_for_status()
    except requests.RequestException as e:
        raise SlackAPIError(
            SlackErrorKind.TRANSPORT,
            "Ошибка обращения к Slack OAuth",
            details={"err": str(e)[:200]},
        ) from e

    try:
        data = resp.json()
    except ValueError as e:
        raise SlackAPIError(
            SlackErrorKind.OTHER,
            "Некорректный ответ Slack OAuth",
            details={"err": str(e)[:200]},
        ) from e
    return data if isinstance(data, dict) else {}
