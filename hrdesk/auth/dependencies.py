"""Auth dependencies — JWT validation, tier enforcement."""

from __future__ import annotations

from typing import Callable

from fastapi import Depends, Request

from hrdesk.auth.policy import AccessTier, allowed_roles, is_allowed
from hrdesk.auth.tokens import TokenClaims, TokenIssuer, get_token_issuer
from hrdesk.common.exceptions import AuthenticationException, ForbiddenException


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    scheme, _, token = (request.headers.get("Authorization") or "").partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationException(
            "Missing or invalid Authorization header.", code="missing_token",
        )
    return token


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> TokenClaims:
    """Validate the bearer JWT and return its claims."""
    return issuer.decode(_extract_bearer(request))


# ── Tier-based dependency ───────────────────────────────────────────

def require_tier(tier: AccessTier) -> Callable:
    """Return a FastAPI dependency that admits only roles within *tier*."""

    async def _check(
        current_user: TokenClaims = Depends(get_current_user),
    ) -> TokenClaims:
        if not is_allowed(current_user.role, tier):
            permitted = sorted(r.value for r in allowed_roles(tier))
            raise ForbiddenException(
                detail=f"Role '{current_user.role.value}' is not permitted. Required: {permitted}.",
            )
        return current_user

    return _check
