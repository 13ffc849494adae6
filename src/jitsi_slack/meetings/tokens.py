"""
Подписанные JWT для доступа к комнате Jitsi Meet.

Назначение:
- выпуск токена, привязывающего пользователя Slack к конкретной комнате
- используется только если сервер workspace поддерживает authenticated URLs
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import jwt

from jitsi_slack.common.config import get_settings
from jitsi_slack.common.errors import TokenSigningError
from jitsi_slack.common.time import utc_ts


@dataclass(frozen=True)
class JWTInput:
    """
    Набор claims для одного получателя приглашения.
    """

    tenant_id: str
    tenant_name: str
    room_claim: str
    user_id: str
    user_name: str
    avatar_url: str


class MeetingTokenGenerator(Protocol):
    def create_jwt(self, claims: JWTInput) -> str: ...


class JitsiTokenGenerator:
    def __init__(
        self,
        *,
        secret: str | None = None,
        algorithm: str | None = None,
        key_id: str | None = None,
        issuer: str | None = None,
        audience: str | None = None,
        ttl_sec: int | None = None,
    ) -> None:
        s = get_settings()
        self.secret = secret if secret is not None else s.jitsi_jwt_secret
        self.algorithm = algorithm or s.jitsi_jwt_algorithm or "HS256"
        self.key_id = key_id if key_id is not None else s.jitsi_jwt_key_id
        self.issuer = issuer or s.jitsi_jwt_issuer
        self.audience = audience or s.jitsi_jwt_audience
        self.ttl_sec = int(ttl_sec if ttl_sec is not None else s.jitsi_jwt_ttl_sec)

    def _claims(self, data: JWTInput) -> dict[str, Any]:
        now = utc_ts()
        return {
            "iss": self.issuer,
            "aud": self.audience,
            "sub": data.tenant_name.lower(),
            "room": data.room_claim,
            "iat": now,
            "nbf": now,
            "exp": now + max(1, self.ttl_sec),
            "context": {
                "user": {
                    "id": data.user_id,
                    "name": data.user_name,
                    "avatar": data.avatar_url,
                },
                "group": data.tenant_id,
            },
        }

    def create_jwt(self, claims: JWTInput) -> str:
        if not self.secret:
            raise TokenSigningError("JITSI_JWT_SECRET не настроен")

        headers = {"kid": self.key_id} if self.key_id else None
        try:
            token = jwt.encode(
                self._claims(claims),
                self.secret,
                algorithm=self.algorithm,
                headers=headers,
            )
        except (jwt.PyJWTError, NotImplementedError, ValueError, TypeError) as e:
            raise TokenSigningError(details={"err": str(e)[:200]}) from e
        return str(token)
