"""
FastAPI Depends.

Сюда выносим:
- проверку подписи Slack (тело запроса отдаётся дальше как есть)
- сборку сервисов и хранилищ (singleton на процесс)
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status

from jitsi_slack.common.config import get_settings
from jitsi_slack.common.errors import ErrCode
from jitsi_slack.common.logging import get_project_logger
from jitsi_slack.common.metrics import SIGNATURE_FAILURES_TOTAL
from jitsi_slack.common.security import (
    REQUEST_SIGNATURE_HEADER,
    REQUEST_TIMESTAMP_HEADER,
    verify_slack_signature,
)
from jitsi_slack.meetings.builder import MeetingGenerator
from jitsi_slack.meetings.tokens import JitsiTokenGenerator
from jitsi_slack.services.invite_dispatcher import InviteDispatcher
from jitsi_slack.services.oauth_exchange import OAuthExchange
from jitsi_slack.storage.server_config import build_server_config_store
from jitsi_slack.storage.tokens import build_token_store

log = get_project_logger()


def _audit_deny(request: Request, reason: str) -> None:
    log.warning(
        "security_audit_deny",
        extra={
            "payload": {
                "endpoint": request.url.path,
                "method": request.method,
                "status_code": status.HTTP_401_UNAUTHORIZED,
                "reason": reason,
                "error_code": ErrCode.UNAUTHORIZED,
                "client_ip": request.client.host if request.client else None,
            }
        },
    )


async def verified_slack_body(request: Request) -> bytes:
    """
    Проверка подписи Slack. Возвращает исходное тело запроса без изменений.
    """
    body = await request.body()
    settings = get_settings()
    secret = settings.slack_signing_secret or ""
    if not secret:
        log.error("slack_signing_secret_missing")
        SIGNATURE_FAILURES_TOTAL.inc()
        _audit_deny(request, "signing_secret_not_configured")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)

    ok = verify_slack_signature(
        secret,
        body,
        request.headers.get(REQUEST_TIMESTAMP_HEADER),
        request.headers.get(REQUEST_SIGNATURE_HEADER),
        max_age_sec=max(0, int(settings.slack_signature_max_age_sec)),
    )
    if not ok:
        SIGNATURE_FAILURES_TOTAL.inc()
        _audit_deny(request, "bad_signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return body


@lru_cache(maxsize=1)
def get_token_store():
    return build_token_store()


@lru_cache(maxsize=1)
def get_server_config_store():
    return build_server_config_store()


def get_invite_dispatcher(
    token_store=Depends(get_token_store),
    server_config_store=Depends(get_server_config_store),
) -> InviteDispatcher:
    generator = MeetingGenerator(
        server_config_reader=server_config_store,
        token_generator=JitsiTokenGenerator(),
    )
    return InviteDispatcher(
        meeting_generator=generator,
        token_reader=token_store,
        sharable_url=get_settings().slack_sharable_url,
    )


def get_oauth_exchange(token_store=Depends(get_token_store)) -> OAuthExchange:
    return OAuthExchange(token_writer=token_store)
