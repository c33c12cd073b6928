"""JWT issuance and validation (HS256, single shared secret).

Tokens are stateless identity assertions: nothing is persisted, so logout is
advisory and there is no revocation list.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Request
from jose import ExpiredSignatureError, JWTError, jwt

from hrdesk.auth.models import User
from hrdesk.common.constants import UserRole
from hrdesk.common.exceptions import AuthenticationException
from hrdesk.config import Settings


@dataclass(frozen=True)
class IssuedToken:
    access_token: str
    expires_at: datetime


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by a validated access token."""

    user_id: int
    username: str
    email: str
    role: UserRole
    display_name: str


class TokenIssuer:
    """Builds and validates signed, time-bound access tokens."""

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.JWT_SECRET
        self._algorithm = settings.JWT_ALGORITHM
        self._issuer = settings.JWT_ISSUER
        self._audience = settings.JWT_AUDIENCE
        self._lifetime = timedelta(minutes=settings.JWT_EXPIRY_MINUTES)

    @property
    def lifetime_seconds(self) -> int:
        return int(self._lifetime.total_seconds())

    def issue(self, user: User) -> IssuedToken:
        now = datetime.now(timezone.utc)
        expires_at = now + self._lifetime
        payload: dict[str, Any] = {
            "sub": str(user.id),
            "username": user.username,
            "email": user.email,
            "role": user.role.value,
            "name": user.display_name,
            "given_name": user.first_name or "",
            "family_name": user.last_name or "",
            "iss": self._issuer,
            "aud": self._audience,
            "iat": now,
            "exp": expires_at,
        }
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return IssuedToken(access_token=token, expires_at=expires_at)

    def decode(self, token: str) -> TokenClaims:
        """Verify signature, expiry, issuer and audience; return the claims."""
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
            )
        except ExpiredSignatureError:
            raise AuthenticationException("Token has expired.", code="token_expired")
        except JWTError:
            raise AuthenticationException("Invalid token.", code="invalid_token")

        try:
            return TokenClaims(
                user_id=int(payload["sub"]),
                username=payload["username"],
                email=payload["email"],
                role=UserRole(payload["role"]),
                display_name=payload.get("name", ""),
            )
        except (KeyError, ValueError, TypeError):
            raise AuthenticationException("Invalid token claims.", code="invalid_token")


def get_token_issuer(request: Request) -> TokenIssuer:
    """FastAPI dependency: the TokenIssuer built at startup."""
    return request.app.state.token_issuer
