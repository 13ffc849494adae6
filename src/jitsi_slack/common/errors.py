"""
Единые ошибки и коды ошибок.

Назначение:
- предсказуемые коды для HTTP-ответов и логов
- единый стиль исключений по проекту
"""

from __future__ import annotations

from dataclasses import dataclass


class ErrCode:
    # Общие
    UNKNOWN = "unknown"
    UNAUTHORIZED = "unauthorized"

    # Slack / установка приложения
    NOT_AUTHED = "not_authed"
    SLACK_API_ERROR = "slack_api_error"
    OAUTH_EXCHANGE_ERROR = "oauth_exchange_error"

    # Конференции
    TOKEN_SIGNING_ERROR = "token_signing_error"

    # Инфра/хранилища
    STORAGE_ERROR = "storage_error"


@dataclass
class AppError(Exception):
    """
    Базовая ошибка приложения.
    - code: стабильный код ошибки
    - message: безопасное сообщение
    - details: доп. данные (без секретов/токенов)
    """

    code: str
    message: str
    details: dict | None = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}"


class NotAuthedError(AppError):
    """Для workspace нет сохранённого bot-токена (приложение не установлено)."""

    def __init__(self, message: str = "Приложение не установлено", details: dict | None = None) -> None:
        super().__init__(ErrCode.NOT_AUTHED, message, details)


class StorageError(AppError):
    def __init__(self, message: str = "Ошибка хранилища", details: dict | None = None) -> None:
        super().__init__(ErrCode.STORAGE_ERROR, message, details)


class TokenSigningError(AppError):
    def __init__(self, message: str = "Не удалось подписать JWT", details: dict | None = None) -> None:
        super().__init__(ErrCode.TOKEN_SIGNING_ERROR, message, details)


class OAuthExchangeError(AppError):
    def __init__(self, message: str = "OAuth обмен не удался", details: dict | None = None) -> None:
        super().__init__(ErrCode.OAUTH_EXCHANGE_ERROR, message, details)
