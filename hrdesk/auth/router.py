"""Auth router — login, register, logout, current user profile."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.auth.dependencies import get_current_user
from hrdesk.auth.schemas import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenResponse,
    UserInfo,
)
from hrdesk.auth.service import AuthService
from hrdesk.auth.tokens import TokenClaims, TokenIssuer, get_token_issuer
from hrdesk.common.rate_limit import CREDENTIALS_LIMIT, limiter
from hrdesk.database import get_db

router = APIRouter(prefix="", tags=["auth"])


# ── POST /login ─────────────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
@limiter.limit(CREDENTIALS_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Exchange username-or-email + password for a bearer token."""
    return await AuthService.login(db, issuer, body)


# ── POST /register ──────────────────────────────────────────────────

@router.post("/register", response_model=TokenResponse, status_code=201)
@limiter.limit(CREDENTIALS_LIMIT)
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Create a user account and return a token for it."""
    return await AuthService.register(db, issuer, body)


# ── POST /logout ────────────────────────────────────────────────────

@router.post("/logout", response_model=MessageResponse)
async def logout(current_user: TokenClaims = Depends(get_current_user)):
    return MessageResponse(message=AuthService.logout(current_user.user_id))


# ── GET /profile — Current user profile ────────────────────────────

@router.get("/profile", response_model=UserInfo)
async def profile(
    current_user: TokenClaims = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await AuthService.get_profile(db, current_user.user_id)
