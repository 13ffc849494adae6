from __future__ import annotations

from typing import Any

import pytest
import requests

from jitsi_slack.slack.client import (
    SlackAPIError,
    SlackClient,
    SlackErrorKind,
    classify_slack_error,
    oauth_access,
)


class _FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}")

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def _patch_request(monkeypatch, response: _FakeResponse) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def _request(**kwargs):
        calls.append(kwargs)
        return response

    monkeypatch.setattr("jitsi_slack.slack.client.requests.request", _request)
    return calls


@pytest.mark.parametrize(
    ("error", "kind", "credential"),
    [
        ("invalid_auth", SlackErrorKind.INVALID_AUTH, True),
        ("account_inactive", SlackErrorKind.ACCOUNT_INACTIVE, True),
        ("not_authed", SlackErrorKind.NOT_AUTHED, True),
        ("token_revoked", SlackErrorKind.TOKEN_REVOKED, True),
        ("channel_not_found", SlackErrorKind.OTHER, False),
        (None, SlackErrorKind.OTHER, False),
    ],
)
def test_error_classification(error, kind, credential) -> None:
    assert classify_slack_error(error) is kind
    assert SlackAPIError(kind).is_credential_error is credential


def test_get_user_info(monkeypatch) -> None:
    calls = _patch_request(
        monkeypatch,
        _FakeResponse(
            {
                "ok": True,
                "user": {"id": "U1", "name": "bob", "profile": {"image_192": "https://img/bob.png"}},
            }
        ),
    )
    user = SlackClient("xoxb-1", base_url="https://slack.test/api/", timeout_sec=3).get_user_info("U1")

    assert user.id == "U1"
    assert user.name == "bob"
    assert user.image_192 == "https://img/bob.png"
    assert calls[0]["url"] == "https://slack.test/api/users.info"
    assert calls[0]["headers"]["Authorization"] == "Bearer xoxb-1"
    assert calls[0]["method"] == "GET"
    assert calls[0]["params"] == {"user": "U1"}
    assert "json" not in calls[0]
    assert "Content-Type" not in calls[0]["headers"]
    assert calls[0]["timeout"] == 3


def test_open_conversation_and_post(monkeypatch) -> None:
    calls = _patch_request(monkeypatch, _FakeResponse({"ok": True, "channel": {"id": "D1"}}))
    client = SlackClient("xoxb-1", base_url="https://slack.test/api")

    assert client.open_conversation(["U1"]) == "D1"
    client.post_message("D1", attachments=[{"title": "hi"}])

    assert calls[0]["method"] == "POST"
    assert calls[0]["json"] == {"users": "U1"}
    assert calls[1]["url"] == "https://slack.test/api/chat.postMessage"
    assert calls[1]["json"]["channel"] == "D1"
    assert calls[1]["json"]["attachments"] == [{"title": "hi"}]


def test_not_ok_response_carries_kind(monkeypatch) -> None:
    _patch_request(monkeypatch, _FakeResponse({"ok": False, "error": "invalid_auth"}))
    with pytest.raises(SlackAPIError) as e:
        SlackClient("xoxb-bad", base_url="https://slack.test/api").get_user_info("U1")
    assert e.value.kind is SlackErrorKind.INVALID_AUTH
    assert e.value.is_credential_error


def test_transport_error_is_not_credential_error(monkeypatch) -> None:
    def _request(**_kwargs):
        raise requests.ConnectionError("boom")

    monkeypatch.setattr("jitsi_slack.slack.client.requests.request", _request)
    with pytest.raises(SlackAPIError) as e:
        SlackClient("xoxb-1", base_url="https://slack.test/api").get_user_info("U1")
    assert e.value.kind is SlackErrorKind.TRANSPORT
    assert not e.value.is_credential_error


def test_bad_json_is_other_error(monkeypatch) -> None:
    _patch_request(monkeypatch, _FakeResponse(ValueError("not json")))
    with pytest.raises(SlackAPIError) as e:
        SlackClient("xoxb-1", base_url="https://slack.test/api").open_conversation(["U1"])
    assert e.value.kind is SlackErrorKind.OTHER


def test_oauth_access_passes_code(monkeypatch) -> None:
    calls: list[dict[str, Any]] = []

    def _get(url, **kwargs):
        calls.append({"url": url, **kwargs})
        return _FakeResponse({"ok": True, "team_id": "T1"})

    monkeypatch.setattr("jitsi_slack.slack.client.requests.get", _get)
    data = oauth_access(
        access_url="https://slack.test/api/oauth.access",
        client_id="cid",
        client_secret="csecret",
        code="c-1",
        timeout_sec=5,
    )
    assert data == {"ok": True, "team_id": "T1"}
    assert calls[0]["params"] == {"client_id": "cid", "client_secret": "csecret", "code": "c-1"}
