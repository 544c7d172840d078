"""JWT issuance and verification for access and refresh tokens."""

from datetime import timedelta
from typing import Any
from uuid import UUID, uuid4

import jwt

from bloggers.core.modules.auth.models import TokenError, TokenPayload
from bloggers.utils import now


class TokenCodec:
    """Signs and verifies tokens with two independent secrets.

    Verification is purely cryptographic and structural; whether a refresh token is
    still the live one for its device is decided against the session store.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_token_ttl: timedelta = timedelta(hours=1),
        refresh_token_ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
    ) -> None:
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._algorithm = algorithm
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl

    def issue_access_token(self, user_id: UUID) -> str:
        return self._encode({"userId": str(user_id)}, self._access_secret, self.access_token_ttl)

    def issue_refresh_token(self, user_id: UUID, device_id: UUID) -> str:
        return self._encode(
            {"userId": str(user_id), "deviceId": str(device_id)}, self._refresh_secret, self.refresh_token_ttl
        )

    def verify_access_token(self, token: str) -> TokenPayload | TokenError:
        return self._decode(token, self._access_secret)

    def verify_refresh_token(self, token: str) -> TokenPayload | TokenError:
        return self._decode(token, self._refresh_secret)

    def _encode(self, claims: dict[str, Any], secret: str, ttl: timedelta) -> str:
        issued_at = now()
        payload = {
            **claims,
            "iat": issued_at,
            "exp": issued_at + ttl,
            # Two tokens minted within the same second must still differ
            "jti": uuid4().hex,
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def _decode(self, token: str, secret: str) -> TokenPayload | TokenError:
        try:
            claims = jwt.decode(token, secret, algorithms=[self._algorithm], options={"require": ["exp", "userId"]})
        except jwt.ExpiredSignatureError:
            return TokenError.EXPIRED
        except jwt.InvalidTokenError:
            return TokenError.INVALID_SIGNATURE

        try:
            device_id = claims.get("deviceId")
            return TokenPayload(
                user_id=UUID(str(claims["userId"])),
                device_id=UUID(str(device_id)) if device_id is not None else None,
            )
        except ValueError:
            return TokenError.INVALID_SIGNATURE
