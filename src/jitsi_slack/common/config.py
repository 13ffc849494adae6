"""
Централизованная конфигурация сервиса (ENV / .env).

Важно:
- настройки читаются из .env и переменных окружения
- типизированные значения через pydantic-settings
- секреты можно передавать файлами: <ENV>_FILE=/run/secrets/...
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Runtime
    # -------------------------------------------------------------------------
    app_env: str = Field(default="dev", alias="APP_ENV")
    service_name: str = Field(default="jitsi-slack", alias="SERVICE_NAME")
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8080, alias="API_PORT")

    # -------------------------------------------------------------------------
    # Slack
    # -------------------------------------------------------------------------
    slack_signing_secret: str = Field(default="", alias="SLACK_SIGNING_SECRET")
    # 0 = окно не проверяется (совместимое поведение)
    slack_signature_max_age_sec: int = Field(default=0, alias="SLACK_SIGNATURE_MAX_AGE_SEC")
    slack_client_id: str = Field(default="", alias="SLACK_CLIENT_ID")
    slack_client_secret: str = Field(default="", alias="SLACK_CLIENT_SECRET")
    slack_app_id: str = Field(default="", alias="SLACK_APP_ID")
    slack_sharable_url: str = Field(default="", alias="SLACK_APP_SHARABLE_URL")
    slack_api_base: str = Field(default="https://slack.com/api", alias="SLACK_API_BASE")
    slack_oauth_access_url: str = Field(
        default="https://slack.com/api/oauth.access", alias="SLACK_OAUTH_ACCESS_URL"
    )
    slack_app_redirect_url: str = Field(
        default="https://slack.com/app_redirect?app={app_id}", alias="SLACK_APP_REDIRECT_URL"
    )
    slack_timeout_sec: int = Field(default=10, alias="SLACK_TIMEOUT_SEC")

    # -------------------------------------------------------------------------
    # Conference server (Jitsi Meet)
    # -------------------------------------------------------------------------
    conference_default_host: str = Field(
        default="https://meet.jit.si", alias="CONFERENCE_DEFAULT_HOST"
    )
    conference_tenant_scoped_urls: bool = Field(
        default=False, alias="CONFERENCE_TENANT_SCOPED_URLS"
    )
    conference_authenticated_urls: bool = Field(
        default=False, alias="CONFERENCE_AUTHENTICATED_URLS"
    )
    jitsi_jwt_secret: str = Field(default="", alias="JITSI_JWT_SECRET")
    jitsi_jwt_algorithm: str = Field(default="HS256", alias="JITSI_JWT_ALGORITHM")
    jitsi_jwt_key_id: str | None = Field(default=None, alias="JITSI_JWT_KEY_ID")
    jitsi_jwt_issuer: str = Field(default="jitsi-slack", alias="JITSI_JWT_ISSUER")
    jitsi_jwt_audience: str = Field(default="jitsi", alias="JITSI_JWT_AUDIENCE")
    jitsi_jwt_ttl_sec: int = Field(default=3600, alias="JITSI_JWT_TTL_SEC")

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------
    store_mode: str = Field(default="redis", alias="STORE_MODE")  # redis|inline
    redis_url: str = Field(default="redis://redis:6379/0", alias="REDIS_URL")
    redis_key_prefix: str = Field(default="jitsi-slack", alias="REDIS_KEY_PREFIX")

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")  # json|text

    def model_post_init(self, __context) -> None:
        _apply_file_overrides(self)


def _apply_file_overrides(settings: Settings) -> None:
    alias_to_field = {}
    for name, field in type(settings).model_fields.items():
        alias_to_field[str(field.alias or name)] = name

    for key, path in os.environ.items():
        if not key.endswith("_FILE"):
            continue
        target = alias_to_field.get(key[: -len("_FILE")])
        if not target:
            continue
        file_path = (path or "").strip()
        if not file_path:
            continue
        try:
            raw = Path(file_path).read_text(encoding="utf-8")
        except OSError as e:
            logging.getLogger("jitsi-slack").error(
                "config_file_read_failed",
                extra={"payload": {"env_key": key, "path": file_path, "error": str(e)[:200]}},
            )
            raise RuntimeError(f"Failed to read {key} from {file_path}") from e
        setattr(settings, target, raw.strip())


_SETTINGS = Settings()


def get_settings() -> Settings:
    return _SETTINGS
