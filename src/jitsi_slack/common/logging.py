"""
Логирование сервиса.

- stdout, JSON по умолчанию, текст через LOG_FORMAT=text
- каждая JSON-запись помечена service / env (SERVICE_NAME / APP_ENV)
- структурные поля передаются через extra={"payload": {...}}
- Slack-токены (xox*-...) и JWT из ссылок на встречу (?jwt=...) маскируются
  и в сообщении, и в payload
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any

from jitsi_slack.common.config import get_settings

MASK = "***"

_SLACK_TOKEN_RE = re.compile(r"\bxox[abpres]-[A-Za-z0-9-]+")
_MEETING_JWT_RE = re.compile(r"([?&]jwt=)[^&\s\"']+")


def redact(value: Any) -> Any:
    """Маскирует секреты в строках, рекурсивно по dict/list/tuple."""
    if isinstance(value, str):
        return _MEETING_JWT_RE.sub(rf"\g<1>{MASK}", _SLACK_TOKEN_RE.sub(MASK, value))
    if isinstance(value, dict):
        return {k: redact(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact(v) for v in value]
    return value


class JsonFormatter(logging.Formatter):
    def __init__(self, *, service: str, env: str) -> None:
        super().__init__()
        self.service = service
        self.env = env

    def format(self, record: logging.LogRecord) -> str:
        out: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "service": self.service,
            "env": self.env,
            "logger": record.name,
            "msg": redact(record.getMessage()),
        }
        extra_payload = getattr(record, "payload", None)
        if isinstance(extra_payload, dict):
            out["payload"] = redact(extra_payload)
        if record.exc_info:
            out["exc_info"] = redact(self.formatException(record.exc_info))
        return json.dumps(out, ensure_ascii=False, default=str)


def _build_formatter() -> logging.Formatter:
    s = get_settings()
    if (s.log_format or "").lower() == "text":
        return logging.Formatter(
            fmt=f"%(asctime)s %(levelname)s [{s.app_env}] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    return JsonFormatter(service=s.service_name, env=s.app_env)


def setup_logging() -> None:
    s = get_settings()
    root = logging.getLogger()
    level = getattr(logging, (s.log_level or "INFO").upper(), logging.INFO)
    root.setLevel(level)

    # повторный вызов не добавляет хэндлер
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(_build_formatter())
    root.addHandler(handler)

    for name in ("uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)


def get_project_logger(name: str = "jitsi-slack") -> logging.Logger:
    return logging.getLogger(name)
