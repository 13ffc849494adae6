"""
`/jitsi server ...`: смена хоста конференций для workspace.
"""

from __future__ import annotations

from jitsi_slack.commands.router import ConfigureServer
from jitsi_slack.common.logging import get_project_logger
from jitsi_slack.slack import messages
from jitsi_slack.storage.server_config import ServerCfgData, ServerConfigWriter, default_server_cfg

log = get_project_logger()


def configure_server(intent: ConfigureServer, *, team_id: str, writer: ServerConfigWriter) -> str:
    """
    Применяет команду и возвращает текст ответа пользователю.

    Некорректный хост не меняет хранилище. StorageError пробрасывается.
    """
    default_host = default_server_cfg().server

    if intent.action == "reset":
        writer.remove(team_id)
        log.info("server_config_reset", extra={"payload": {"team_id": team_id}})
        return messages.server_default_text(default_host)

    if intent.action == "set" and intent.host:
        writer.store(ServerCfgData(team_id=team_id, server=intent.host))
        log.info(
            "server_config_updated",
            extra={"payload": {"team_id": team_id, "server": intent.host}},
        )
        return messages.server_configured_text(intent.host, default_host)

    return messages.INVALID_HOST_TEXT
