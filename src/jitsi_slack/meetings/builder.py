"""
Генерация встречи (комната + ссылки) на один вызов slash-команды.

Meeting живёт только в рамках одного HTTP-запроса и нигде не сохраняется.

Способ выдачи ссылки выбирается при создании встречи:
- UnauthenticatedURL: всем одна и та же базовая ссылка, без сетевых вызовов
- AuthenticatedURL: на каждого получателя подписывается свой JWT (?jwt=...)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from jitsi_slack.common.ids import new_room_name
from jitsi_slack.storage.server_config import ServerConfigReader

from .tokens import JWTInput, MeetingTokenGenerator


@dataclass(frozen=True)
class Recipient:
    """
    Пользователь, для которого выдаётся ссылка.
    """

    user_id: str
    user_name: str
    avatar_url: str = ""


@dataclass(frozen=True)
class UnauthenticatedURL:
    base_url: str

    def resolve(self, recipient: Recipient) -> str:
        return self.base_url


@dataclass(frozen=True)
class AuthenticatedURL:
    base_url: str
    signer: MeetingTokenGenerator
    tenant_id: str
    tenant_name: str
    room_name: str

    def resolve(self, recipient: Recipient) -> str:
        """
        Подписывает токен для получателя. TokenSigningError пробрасывается наверх.
        """
        token = self.signer.create_jwt(
            JWTInput(
                tenant_id=self.tenant_id,
                tenant_name=self.tenant_name,
                room_claim=self.room_name,
                user_id=recipient.user_id,
                user_name=recipient.user_name,
                avatar_url=recipient.avatar_url,
            )
        )
        return f"{self.base_url}?jwt={token}"


URLAccess = UnauthenticatedURL | AuthenticatedURL


@dataclass(frozen=True)
class Meeting:
    room_name: str
    url: str
    host: str
    access: URLAccess

    def authenticated_url(self, recipient: Recipient) -> str:
        return self.access.resolve(recipient)


def meeting_url(host: str, room_name: str, team_name: str, *, tenant_scoped: bool) -> str:
    host = host.rstrip("/")
    if tenant_scoped:
        return f"{host}/{team_name.lower()}/{room_name}"
    return f"{host}/{room_name}"


class MeetingGenerator:
    def __init__(
        self,
        *,
        server_config_reader: ServerConfigReader,
        token_generator: MeetingTokenGenerator,
        room_name_factory: Callable[[], str] = new_room_name,
    ) -> None:
        self.server_config_reader = server_config_reader
        self.token_generator = token_generator
        self.room_name_factory = room_name_factory

    def new(self, team_id: str, team_name: str) -> Meeting:
        """
        Создаёт встречу для workspace.

        Ошибка чтения конфигурации сервера (StorageError) фатальна для вызова.
        """
        room_name = self.room_name_factory()
        srv = self.server_config_reader.get(team_id)

        url = meeting_url(srv.server, room_name, team_name, tenant_scoped=srv.tenant_scoped_urls)
        access: URLAccess
        if srv.authenticated_url_support:
            access = AuthenticatedURL(
                base_url=url,
                signer=self.token_generator,
                tenant_id=team_id,
                tenant_name=team_name,
                room_name=room_name,
            )
        else:
            access = UnauthenticatedURL(base_url=url)

        return Meeting(room_name=room_name, url=url, host=srv.server, access=access)
