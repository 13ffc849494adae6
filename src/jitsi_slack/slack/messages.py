"""
Тела ответов и сообщений Slack.

Только семантика: какой URL, какой текст, кому видно (in_channel / ephemeral).
"""

from __future__ import annotations

from typing import Any

ATTACHMENT_COLOR = "#3AA3E3"

HELP_TEXT = (
    "To share a conference link with the channel, use '/jitsi'. Now everyone can join.\n"
    "To share a conference link with users, use '/jitsi @bob @alice'. "
    "Now you can meet with Bob and Alice."
)
INSTALL_TEXT = "Please install the jitsi meet app to integrate with your slack workspace."
INVALID_HOST_TEXT = "A proper conference host must be provided."


def _join_attachment(title: str, url: str) -> dict[str, Any]:
    return {
        "fallback": title,
        "title": title,
        "color": ATTACHMENT_COLOR,
        "attachment_type": "default",
        "actions": [
            {
                "name": "join",
                "text": "Join",
                "type": "button",
                "url": url,
                "style": "primary",
            }
        ],
    }


def room_message(host: str, url: str) -> dict[str, Any]:
    """Встреча для всего канала."""
    return {
        "response_type": "in_channel",
        "attachments": [_join_attachment(f"Meeting started on {host}", url)],
    }


def invitations_sent_message(host: str, url: str) -> dict[str, Any]:
    """Персональный ответ инициатору после рассылки приглашений."""
    return {
        "response_type": "ephemeral",
        "attachments": [_join_attachment(f"Invitations have been sent for your meeting on {host}", url)],
    }


def personal_invite_attachments(caller_id: str, host: str, url: str) -> list[dict[str, Any]]:
    return [_join_attachment(f"<@{caller_id}> would like you to join a meeting on {host}", url)]


def help_message() -> dict[str, Any]:
    return {
        "response_type": "ephemeral",
        "text": "How to use /jitsi...",
        "attachments": [{"text": HELP_TEXT}],
    }


def install_message(sharable_url: str) -> dict[str, Any]:
    return {
        "response_type": "ephemeral",
        "text": INSTALL_TEXT,
        "attachments": [{"text": sharable_url}],
    }


def server_default_text(default_host: str) -> str:
    return f"Your team's conferences will now be hosted on {default_host}"


def server_configured_text(host: str, default_host: str) -> str:
    return (
        f"Your team's conferences will now be hosted on {host}\n"
        f"Run `/jitsi server default` if you'd like to continue using {default_host}"
    )
