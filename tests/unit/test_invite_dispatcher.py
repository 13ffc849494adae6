from __future__ import annotations

from typing import Any

import pytest

from jitsi_slack.common.errors import NotAuthedError, StorageError, TokenSigningError
from jitsi_slack.meetings.builder import MeetingGenerator
from jitsi_slack.meetings.tokens import JWTInput
from jitsi_slack.services.invite_dispatcher import InviteDispatcher
from jitsi_slack.slack.client import SlackAPIError, SlackErrorKind, SlackUser
from jitsi_slack.storage.server_config import ServerCfg

SHARABLE_URL = "https://slack.com/apps/install-jitsi"


class _FakeConfigReader:
    def __init__(self, cfg: ServerCfg) -> None:
        self.cfg = cfg

    def get(self, team_id: str) -> ServerCfg:
        return self.cfg


class _FakeSigner:
    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = fail_for or set()

    def create_jwt(self, claims: JWTInput) -> str:
        if claims.user_id in self.fail_for:
            raise TokenSigningError()
        return f"tok-{claims.user_id}"


class _FakeTokenReader:
    def __init__(self, token: str | None = "xoxb-1", error: Exception | None = None) -> None:
        self.token = token
        self.error = error
        self.calls: list[str] = []

    def get_first_bot_token_for_team(self, team_id: str) -> str:
        self.calls.append(team_id)
        if self.error:
            raise self.error
        if self.token is None:
            raise NotAuthedError()
        return self.token


class _FakeMessenger:
    def __init__(self, errors: dict[str, SlackAPIError] | None = None) -> None:
        self.errors = errors or {}
        self.user_lookups: list[str] = []
        self.posts: list[dict[str, Any]] = []

    def get_user_info(self, user_id: str) -> SlackUser:
        self.user_lookups.append(user_id)
        return SlackUser(id=user_id, name=f"name-{user_id}", image_192=f"https://img/{user_id}.png")

    def open_conversation(self, user_ids: list[str]) -> str:
        return f"D-{user_ids[0]}"

    def post_message(self, channel_id: str, *, attachments: list[dict[str, Any]], text: str = "") -> None:
        user_id = channel_id.removeprefix("D-")
        if user_id in self.errors:
            raise self.errors[user_id]
        self.posts.append({"channel": channel_id, "attachments": attachments})


def _dispatcher(
    *,
    cfg: ServerCfg | None = None,
    token_reader: _FakeTokenReader | None = None,
    messenger: _FakeMessenger | None = None,
    signer: _FakeSigner | None = None,
) -> tuple[InviteDispatcher, _FakeTokenReader, _FakeMessenger, list[str]]:
    token_reader = token_reader or _FakeTokenReader()
    messenger = messenger or _FakeMessenger()
    tokens_used: list[str] = []

    def _factory(token: str) -> _FakeMessenger:
        tokens_used.append(token)
        return messenger

    generator = MeetingGenerator(
        server_config_reader=_FakeConfigReader(cfg or ServerCfg(server="https://meet.jit.si")),
        token_generator=signer or _FakeSigner(),
        room_name_factory=lambda: "CalmRivers00000000000000aa",
    )
    dispatcher = InviteDispatcher(
        meeting_generator=generator,
        token_reader=token_reader,
        sharable_url=SHARABLE_URL,
        messenger_factory=_factory,
    )
    return dispatcher, token_reader, messenger, tokens_used


def _join_url(payload: dict[str, Any]) -> str:
    return payload["attachments"][0]["actions"][0]["url"]


def test_no_mentions_skips_token_store() -> None:
    dispatcher, token_reader, _, tokens_used = _dispatcher()
    result = dispatcher.dispatch(team_id="T1", team_name="Acme", caller_id="U0", mentioned_ids=())

    assert result.kind == "meeting_started"
    assert result.payload["response_type"] == "in_channel"
    assert _join_url(result.payload) == "https://meet.jit.si/CalmRivers00000000000000aa"
    assert token_reader.calls == []
    assert tokens_used == []


def test_missing_credential_returns_install_prompt() -> None:
    dispatcher, _, messenger, tokens_used = _dispatcher(token_reader=_FakeTokenReader(token=None))
    result = dispatcher.dispatch(team_id="T1", team_name="Acme", caller_id="U0", mentioned_ids=("U1",))

    assert result.kind == "install"
    assert result.payload["attachments"][0]["text"] == SHARABLE_URL
    assert tokens_used == []
    assert messenger.posts == []


def test_token_store_failure_propagates() -> None:
    dispatcher, _, _, _ = _dispatcher(token_reader=_FakeTokenReader(error=StorageError()))
    with pytest.raises(StorageError):
        dispatcher.dispatch(team_id="T1", team_name="Acme", caller_id="U0", mentioned_ids=("U1",))


def test_invites_every_mention_and_confirms_to_caller() -> None:
    cfg = ServerCfg(server="https://meet.example", authenticated_url_support=True)
    dispatcher, _, messenger, tokens_used = _dispatcher(cfg=cfg)
    result = dispatcher.dispatch(
        team_id="T1", team_name="Acme", caller_id="U0", mentioned_ids=("U1", "U2", "U1")
    )

    assert tokens_used == ["xoxb-1"]
    assert result.kind == "invitations_sent"
    assert result.invited == ["U1", "U2", "U1"]
    assert [p["channel"] for p in messenger.posts] == ["D-U1", "D-U2", "D-U1"]
    first = messenger.posts[0]["attachments"][0]
    assert first["title"] == "<@U0> would like you to join a meeting on https://meet.example"
    assert first["actions"][0]["url"].endswith("?jwt=tok-U1")
    assert result.payload["response_type"] == "ephemeral"
    assert _join_url(result.payload).endswith("?jwt=tok-U0")


def test_credential_error_aborts_remaining_recipients() -> None:
    messenger = _FakeMessenger(errors={"U2": SlackAPIError(SlackErrorKind.INVALID_AUTH)})
    dispatcher, _, messenger, _ = _dispatcher(messenger=messenger)
    result = dispatcher.dispatch(
        team_id="T1", team_name="Acme", caller_id="U0", mentioned_ids=("U1", "U2", "U3")
    )

    assert result.kind == "install"
    assert [p["channel"] for p in messenger.posts] == ["D-U1"]
    assert "U3" not in messenger.user_lookups
    assert "U0" not in messenger.user_lookups


def test_transient_error_continues_with_next_recipient() -> None:
    messenger = _FakeMessenger(errors={"U2": SlackAPIError(SlackErrorKind.OTHER, "channel_not_found")})
    dispatcher, _, messenger, _ = _dispatcher(messenger=messenger)
    result = dispatcher.dispatch(
        team_id="T1", team_name="Acme", caller_id="U0", mentioned_ids=("U1", "U2", "U3")
    )

    assert result.kind == "invitations_sent"
    assert [p["channel"] for p in messenger.posts] == ["D-U1", "D-U3"]
    assert result.invited == ["U1", "U3"]
    assert result.failed == ["U2"]
    assert _join_url(result.payload) == "https://meet.jit.si/CalmRivers00000000000000aa"


def test_signing_failure_skips_only_that_recipient() -> None:
    cfg = ServerCfg(server="https://meet.example", authenticated_url_support=True)
    dispatcher, _, messenger, _ = _dispatcher(cfg=cfg, signer=_FakeSigner(fail_for={"U1"}))
    result = dispatcher.dispatch(
        team_id="T1", team_name="Acme", caller_id="U0", mentioned_ids=("U1", "U2")
    )

    assert result.kind == "invitations_sent"
    assert result.failed == ["U1"]
    assert [p["channel"] for p in messenger.posts] == ["D-U2"]


def test_credential_error_on_caller_response_returns_install_prompt() -> None:
    class _CallerLookupFails(_FakeMessenger):
        def get_user_info(self, user_id: str) -> SlackUser:
            if user_id == "U0":
                raise SlackAPIError(SlackErrorKind.ACCOUNT_INACTIVE)
            return super().get_user_info(user_id)

    dispatcher, _, messenger, _ = _dispatcher(messenger=_CallerLookupFails())
    result = dispatcher.dispatch(team_id="T1", team_name="Acme", caller_id="U0", mentioned_ids=("U1",))

    assert result.kind == "install"
    assert result.invited == ["U1"]


def test_other_error_on_caller_response_is_fatal() -> None:
    class _CallerLookupFails(_FakeMessenger):
        def get_user_info(self, user_id: str) -> SlackUser:
            if user_id == "U0":
                raise SlackAPIError(SlackErrorKind.TRANSPORT)
            return super().get_user_info(user_id)

    dispatcher, _, _, _ = _dispatcher(messenger=_CallerLookupFails())
    with pytest.raises(SlackAPIError):
        dispatcher.dispatch(team_id="T1", team_name="Acme", caller_id="U0", mentioned_ids=("U1",))
