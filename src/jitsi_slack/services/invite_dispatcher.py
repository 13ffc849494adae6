"""
Рассылка приглашений на встречу (`/jitsi @bob @alice`).

Порядок на один вызов:
1. создать Meeting (ошибка -> 500)
2. нет упоминаний -> сообщение в канал с базовой ссылкой, токен не нужен
3. bot-токен workspace; нет токена -> предложение установить приложение
4. по очереди каждому упомянутому: своя ссылка + личное сообщение
   - токен отозван/недействителен -> стоп, предложение установить приложение
   - прочие ошибки по получателю -> лог, следующий получатель
5. персональный ответ инициатору с его собственной ссылкой
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

from jitsi_slack.common.errors import NotAuthedError, TokenSigningError
from jitsi_slack.common.logging import get_project_logger
from jitsi_slack.common.metrics import record_invite
from jitsi_slack.meetings.builder import Meeting, MeetingGenerator, Recipient
from jitsi_slack.slack import messages
from jitsi_slack.slack.client import SlackAPIError, SlackClient, SlackUser
from jitsi_slack.storage.tokens import TokenReader

log = get_project_logger()


class SlackMessenger(Protocol):
    def get_user_info(self, user_id: str) -> SlackUser: ...

    def open_conversation(self, user_ids: list[str]) -> str: ...

    def post_message(self, channel_id: str, *, attachments: list[dict[str, Any]], text: str = "") -> None: ...


DispatchKind = Literal["meeting_started", "invitations_sent", "install"]


@dataclass
class DispatchResult:
    kind: DispatchKind
    payload: dict[str, Any]
    invited: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def _recipient(user: SlackUser) -> Recipient:
    return Recipient(user_id=user.id, user_name=user.name, avatar_url=user.image_192)


class InviteDispatcher:
    def __init__(
        self,
        *,
        meeting_generator: MeetingGenerator,
        token_reader: TokenReader,
        sharable_url: str,
        messenger_factory: Callable[[str], SlackMessenger] = SlackClient,
    ) -> None:
        self.meeting_generator = meeting_generator
        self.token_reader = token_reader
        self.sharable_url = sharable_url
        self.messenger_factory = messenger_factory

    def _install(self, result: DispatchResult | None = None) -> DispatchResult:
        out = DispatchResult(kind="install", payload=messages.install_message(self.sharable_url))
        if result is not None:
            out.invited = result.invited
            out.failed = result.failed
        return out

    def send_personalized_invite(
        self,
        messenger: SlackMessenger,
        *,
        caller_id: str,
        user_id: str,
        meeting: Meeting,
    ) -> None:
        user = messenger.get_user_info(user_id)
        meeting_url = meeting.authenticated_url(_recipient(user))
        channel_id = messenger.open_conversation([user_id])
        messenger.post_message(
            channel_id,
            attachments=messages.personal_invite_attachments(caller_id, meeting.host, meeting_url),
        )

    def dispatch(
        self,
        *,
        team_id: str,
        team_name: str,
        caller_id: str,
        mentioned_ids: Sequence[str],
    ) -> DispatchResult:
        meeting = self.meeting_generator.new(team_id, team_name)

        if not mentioned_ids:
            return DispatchResult(
                kind="meeting_started",
                payload=messages.room_message(meeting.host, meeting.url),
            )

        try:
            token = self.token_reader.get_first_bot_token_for_team(team_id)
        except NotAuthedError:
            log.info("slack_app_not_installed", extra={"payload": {"team_id": team_id}})
            return self._install()

        messenger = self.messenger_factory(token)
        result = DispatchResult(kind="invitations_sent", payload={})

        for index, user_id in enumerate(mentioned_ids):
            try:
                self.send_personalized_invite(
                    messenger,
                    caller_id=caller_id,
                    user_id=user_id,
                    meeting=meeting,
                )
            except SlackAPIError as e:
                if e.is_credential_error:
                    log.warning(
                        "slack_credential_invalid",
                        extra={"payload": {"team_id": team_id, "error": e.kind.value}},
                    )
                    record_invite("aborted", len(mentioned_ids) - index)
                    return self._install(result)
                self._log_invite_failure(team_id, user_id, e.code, e.message)
                result.failed.append(user_id)
                record_invite("failed")
                continue
            except TokenSigningError as e:
                self._log_invite_failure(team_id, user_id, e.code, e.message)
                result.failed.append(user_id)
                record_invite("failed")
                continue
            result.invited.append(user_id)
            record_invite("sent")

        try:
            caller = messenger.get_user_info(caller_id)
            caller_url = meeting.authenticated_url(_recipient(caller))
        except SlackAPIError as e:
            if e.is_credential_error:
                log.warning(
                    "slack_credential_invalid",
                    extra={"payload": {"team_id": team_id, "error": e.kind.value}},
                )
                return self._install(result)
            raise

        result.payload = messages.invitations_sent_message(meeting.host, caller_url)
        log.info(
            "invitations_sent",
            extra={
                "payload": {
                    "team_id": team_id,
                    "room_name": meeting.room_name,
                    "invited": len(result.invited),
                    "failed": len(result.failed),
                }
            },
        )
        return result

    @staticmethod
    def _log_invite_failure(team_id: str, user_id: str, code: str, message: str) -> None:
        log.error(
            "inviting_user_failed",
            extra={
                "payload": {
                    "team_id": team_id,
                    "user_id": user_id,
                    "code": code,
                    "error": message[:200],
                }
            },
        )
