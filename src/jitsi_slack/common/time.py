"""
Утилиты времени (UTC).
"""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def utc_ts() -> int:
    """
    Текущее время в UTC, секунды epoch (для JWT claims).
    """
    return int(utc_now().timestamp())
