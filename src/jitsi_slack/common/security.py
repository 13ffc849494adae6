"""
Проверка подписи входящих запросов Slack.

Схема v0:
- basestring = "v0:" + X-Slack-Request-Timestamp + ":" + raw body
- подпись = "v0=" + hex(HMAC-SHA256(signing_secret, basestring))
- сравнение в постоянное время

Окно свежести timestamp по умолчанию выключено (max_age_sec=0).
"""

from __future__ import annotations

import hashlib
import hmac
import time

REQUEST_TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
REQUEST_SIGNATURE_HEADER = "X-Slack-Signature"

SIGNATURE_VERSION = "v0"


def compute_signature(secret: str, raw_body: bytes, timestamp: str) -> str:
    basestring = f"{SIGNATURE_VERSION}:{timestamp}:".encode() + raw_body
    mac = hmac.new(key=secret.encode("utf-8"), msg=basestring, digestmod=hashlib.sha256)
    return f"{SIGNATURE_VERSION}={mac.hexdigest()}"


def _timestamp_is_fresh(timestamp: str, max_age_sec: int, now: float | None) -> bool:
    try:
        ts = int(timestamp)
    except ValueError:
        return False
    current = int(time.time() if now is None else now)
    return abs(current - ts) <= max_age_sec


def verify_slack_signature(
    secret: str,
    raw_body: bytes,
    timestamp: str | None,
    signature: str | None,
    *,
    max_age_sec: int = 0,
    now: float | None = None,
) -> bool:
    """
    True, если запрос подписан secret'ом.

    Отсутствующие заголовки -> False (HMAC не считается).
    """
    if not timestamp or not signature:
        return False
    if max_age_sec > 0 and not _timestamp_is_fresh(timestamp, max_age_sec, now):
        return False
    expected = compute_signature(secret, raw_body, timestamp)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))
