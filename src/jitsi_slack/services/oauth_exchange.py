"""
Установка приложения в workspace (OAuth callback Slack).

- callback без error и ровно с одним code
- обмен code -> токены через oauth.access
- запись TokenData в хранилище токенов
- редирект на страницу приложения в Slack
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from jitsi_slack.common.config import get_settings
from jitsi_slack.common.errors import OAuthExchangeError
from jitsi_slack.common.logging import get_project_logger
from jitsi_slack.slack.client import SlackAPIError, oauth_access
from jitsi_slack.storage.tokens import TokenData, TokenWriter

log = get_project_logger()


def token_data_from_access(access: Mapping[str, Any]) -> TokenData:
    bot = access.get("bot") or {}
    return TokenData(
        team_id=str(access.get("team_id") or ""),
        user_id=str(access.get("user_id") or ""),
        bot_token=str(bot.get("bot_access_token") or ""),
        bot_user_id=str(bot.get("bot_user_id") or ""),
        access_token=str(access.get("access_token") or ""),
    )


class OAuthExchange:
    def __init__(
        self,
        *,
        token_writer: TokenWriter,
        client_id: str | None = None,
        client_secret: str | None = None,
        app_id: str | None = None,
        access_url: str | None = None,
        redirect_url_template: str | None = None,
        timeout_sec: int | None = None,
    ) -> None:
        s = get_settings()
        self.token_writer = token_writer
        self.client_id = client_id if client_id is not None else s.slack_client_id
        self.client_secret = client_secret if client_secret is not None else s.slack_client_secret
        self.app_id = app_id if app_id is not None else s.slack_app_id
        self.access_url = access_url or s.slack_oauth_access_url
        self.redirect_url_template = redirect_url_template or s.slack_app_redirect_url
        self.timeout_sec = int(timeout_sec if timeout_sec is not None else s.slack_timeout_sec)

    def redirect_url(self) -> str:
        return self.redirect_url_template.format(app_id=self.app_id)

    def complete(self, params: Mapping[str, Sequence[str]]) -> str:
        """
        Завершает установку и возвращает URL для редиректа (302).

        OAuthExchangeError / StorageError фатальны: пользователь повторяет установку.
        """
        if params.get("error"):
            raise OAuthExchangeError(
                "Пользователь отклонил установку",
                details={"error": list(params["error"])[:1]},
            )

        code = list(params.get("code") or [])
        if len(code) != 1:
            raise OAuthExchangeError("code не передан", details={"count": len(code)})

        try:
            access = oauth_access(
                access_url=self.access_url,
                client_id=self.client_id,
                client_secret=self.client_secret,
                code=code[0],
                timeout_sec=self.timeout_sec,
            )
        except SlackAPIError as e:
            raise OAuthExchangeError(e.message, details=e.details) from e

        if access.get("ok") is not True:
            raise OAuthExchangeError(
                "Slack вернул access not ok",
                details={"error": str(access.get("error") or "")[:200]},
            )

        data = token_data_from_access(access)
        self.token_writer.store(data)
        log.info(
            "slack_app_installed",
            extra={"payload": {"team_id": data.team_id, "user_id": data.user_id}},
        )
        return self.redirect_url()
