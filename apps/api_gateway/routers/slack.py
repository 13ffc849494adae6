"""
Slack endpoints.

- POST /slack/jitsi — slash-команда `/jitsi` (подпись Slack обязательна)
- GET  /slack/auth  — OAuth callback установки приложения

Фатальные ошибки: лог + 500 без тела (внутренние сообщения наружу не уходят).
"""

from __future__ import annotations

from urllib.parse import parse_qs

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response
from pydantic import BaseModel

from apps.api_gateway.deps import (
    get_invite_dispatcher,
    get_oauth_exchange,
    get_server_config_store,
    verified_slack_body,
)
from jitsi_slack.commands.router import ConfigureServer, Help, route_command
from jitsi_slack.common.errors import AppError
from jitsi_slack.common.logging import get_project_logger
from jitsi_slack.common.metrics import OAUTH_INSTALLS_TOTAL, SLASH_COMMANDS_TOTAL
from jitsi_slack.services.invite_dispatcher import InviteDispatcher
from jitsi_slack.services.oauth_exchange import OAuthExchange
from jitsi_slack.services.server_config_service import configure_server
from jitsi_slack.slack import messages

router = APIRouter()
log = get_project_logger()

SLACK_BODY_DEP = Depends(verified_slack_body)
DISPATCHER_DEP = Depends(get_invite_dispatcher)
SERVER_CONFIG_DEP = Depends(get_server_config_store)
OAUTH_DEP = Depends(get_oauth_exchange)


class SlashCommandForm(BaseModel):
    text: str = ""
    team_id: str = ""
    team_domain: str = ""
    user_id: str = ""

    @classmethod
    def from_body(cls, raw_body: bytes) -> SlashCommandForm:
        fields = parse_qs(raw_body.decode("utf-8"), keep_blank_values=True)

        # повторяющийся ключ: берём первое значение
        def first(key: str) -> str:
            return fields.get(key, [""])[0]

        return cls(
            text=first("text"),
            team_id=first("team_id"),
            team_domain=first("team_domain"),
            user_id=first("user_id"),
        )


def _fatal(event: str, e: Exception, **payload) -> Response:
    details = e.details if isinstance(e, AppError) else None
    log.error(
        event,
        extra={"payload": {**payload, "error": str(e)[:200], "details": details}},
    )
    return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("/slack/jitsi")
def jitsi_command(
    raw_body: bytes = SLACK_BODY_DEP,
    dispatcher: InviteDispatcher = DISPATCHER_DEP,
    server_config_store=SERVER_CONFIG_DEP,
) -> Response:
    try:
        form = SlashCommandForm.from_body(raw_body)
    except UnicodeDecodeError as e:
        return _fatal("unable_to_parse_form_data", e)

    intent = route_command(form.text)
    SLASH_COMMANDS_TOTAL.labels(intent=intent.name).inc()

    if isinstance(intent, Help):
        return JSONResponse(messages.help_message())

    if isinstance(intent, ConfigureServer):
        try:
            text = configure_server(intent, team_id=form.team_id, writer=server_config_store)
        except AppError as e:
            return _fatal("configuring_server_failed", e, team_id=form.team_id)
        return PlainTextResponse(text)

    try:
        result = dispatcher.dispatch(
            team_id=form.team_id,
            team_name=form.team_domain,
            caller_id=form.user_id,
            mentioned_ids=intent.mentioned_ids,
        )
    except AppError as e:
        return _fatal("dispatching_invites_failed", e, team_id=form.team_id)
    return JSONResponse(result.payload)


@router.get("/slack/auth")
def slack_auth(request: Request, exchange: OAuthExchange = OAUTH_DEP) -> Response:
    params = parse_qs(request.url.query, keep_blank_values=True)
    try:
        redirect = exchange.complete(params)
    except AppError as e:
        OAUTH_INSTALLS_TOTAL.labels(result="error").inc()
        return _fatal("oauth_install_failed", e)
    OAUTH_INSTALLS_TOTAL.labels(result="ok").inc()
    return RedirectResponse(redirect, status_code=status.HTTP_302_FOUND)
