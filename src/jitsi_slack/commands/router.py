"""
Разбор текста slash-команды `/jitsi`.

Правила проверяются по порядку, первое совпадение выигрывает:
- help   -> Help
- server -> ConfigureServer (reset / set / invalid)
- иначе  -> DispatchInvites (в т.ч. пустой текст)

Новая команда = новая запись в COMMAND_RULES.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

AT_MENTION_RE = re.compile(r"<@([^>|]+)")
HELP_CMD_RE = re.compile(r"^help")
SERVER_CMD_RE = re.compile(r"^server")
SERVER_CONFIG_RE = re.compile(r"^server\s+(<https?://\S+>)")


@dataclass(frozen=True)
class Help:
    name: Literal["help"] = "help"


@dataclass(frozen=True)
class ConfigureServer:
    action: Literal["reset", "set", "invalid"]
    host: str | None = None
    name: Literal["configure_server"] = "configure_server"


@dataclass(frozen=True)
class DispatchInvites:
    mentioned_ids: tuple[str, ...] = ()
    name: Literal["dispatch_invites"] = "dispatch_invites"


Intent = Help | ConfigureServer | DispatchInvites


@dataclass(frozen=True)
class CommandRule:
    name: str
    matches: Callable[[str], bool]
    parse: Callable[[str], Intent]


def extract_mentions(text: str) -> tuple[str, ...]:
    """
    ID всех упомянутых пользователей (<@U123> / <@U123|bob>) слева направо, без дедупликации.
    """
    return tuple(AT_MENTION_RE.findall(text or ""))


def parse_server_command(text: str) -> ConfigureServer:
    tokens = text.split()
    if len(tokens) >= 2 and tokens[1] == "default":
        return ConfigureServer(action="reset")

    match = SERVER_CONFIG_RE.match(text)
    if not match:
        return ConfigureServer(action="invalid")
    return ConfigureServer(action="set", host=match.group(1).strip("<>"))


COMMAND_RULES: tuple[CommandRule, ...] = (
    CommandRule(
        name="help",
        matches=lambda text: bool(HELP_CMD_RE.match(text)),
        parse=lambda _text: Help(),
    ),
    CommandRule(
        name="server",
        matches=lambda text: bool(SERVER_CMD_RE.match(text)),
        parse=parse_server_command,
    ),
)


def route_command(text: str | None) -> Intent:
    text = text or ""
    for rule in COMMAND_RULES:
        if rule.matches(text):
            return rule.parse(text)
    return DispatchInvites(mentioned_ids=extract_mentions(text))
