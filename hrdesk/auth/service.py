"""Auth service — credential verification, registration, token responses."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.auth.models import User
from hrdesk.auth.passwords import hash_password, verify_password
from hrdesk.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, UserInfo
from hrdesk.auth.tokens import TokenIssuer
from hrdesk.common.constants import UserRole
from hrdesk.common.exceptions import (
    AuthenticationException,
    ConflictError,
    NotFoundException,
    ValidationException,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Async auth operations: login, register, profile lookup, logout."""

    # ── Lookups ─────────────────────────────────────────────────────

    @staticmethod
    async def get_by_username_or_email(
        db: AsyncSession,
        username_or_email: str,
    ) -> Optional[User]:
        """Exact (case-sensitive) match on username OR email."""
        result = await db.execute(
            select(User).where(
                or_(User.username == username_or_email, User.email == username_or_email),
            ),
        )
        return result.scalars().first()

    @staticmethod
    async def identifier_taken(
        db: AsyncSession,
        identifier: str,
        *,
        exclude_user_id: Optional[int] = None,
    ) -> bool:
        """True when *identifier* is already some user's username or email.

        Login accepts either field, so the two share one namespace.
        """
        query = select(User.id).where(
            or_(User.username == identifier, User.email == identifier),
        )
        if exclude_user_id is not None:
            query = query.where(User.id != exclude_user_id)
        return (await db.execute(query)).first() is not None

    # ── User creation ───────────────────────────────────────────────

    @staticmethod
    async def create_user(
        db: AsyncSession,
        *,
        username: str,
        email: str,
        password: str,
        role: UserRole = UserRole.employee,
        first_name: Optional[str] = None,
        last_name: str = "",
    ) -> User:
        """Insert a user after checking neither username nor email is in use."""
        if await AuthService.identifier_taken(db, username):
            raise ConflictError("username", username)
        if await AuthService.identifier_taken(db, email):
            raise ConflictError("email", email)

        user = User(
            username=username,
            email=email,
            first_name=first_name if first_name is not None else username,
            last_name=last_name,
            role=role,
            password_hash=hash_password(password),
            is_active=True,
            created_at=datetime.now(timezone.utc),
        )
        db.add(user)
        await db.flush()
        return user

    # ── Token response ──────────────────────────────────────────────

    @staticmethod
    def _token_response(issuer: TokenIssuer, user: User) -> TokenResponse:
        issued = issuer.issue(user)
        return TokenResponse(
            access_token=issued.access_token,
            expires_at=issued.expires_at,
            expires_in=issuer.lifetime_seconds,
            user=UserInfo.model_validate(user),
        )

    # ── Login ───────────────────────────────────────────────────────

    @staticmethod
    async def login(
        db: AsyncSession,
        issuer: TokenIssuer,
        data: LoginRequest,
    ) -> TokenResponse:
        """Verify credentials, stamp ``last_login`` and issue a token."""
        user = await AuthService.get_by_username_or_email(db, data.username_or_email)

        if user is None or not verify_password(data.password, user.password_hash):
            logger.warning("Login failed for %r: invalid_credentials", data.username_or_email)
            raise AuthenticationException(
                "Invalid username/email or password.", code="invalid_credentials",
            )

        if not user.is_active:
            logger.warning("Login failed for %r: account_inactive", data.username_or_email)
            raise AuthenticationException(
                "User account is inactive.", code="account_inactive",
            )

        user.last_login = datetime.now(timezone.utc)
        await db.flush()

        logger.info("User %s (%s) logged in", user.id, user.role.value)
        return AuthService._token_response(issuer, user)

    # ── Register ────────────────────────────────────────────────────

    @staticmethod
    async def register(
        db: AsyncSession,
        issuer: TokenIssuer,
        data: RegisterRequest,
    ) -> TokenResponse:
        """Create a user with the requested role and issue a token immediately.

        The role is taken from the request as-is; see DESIGN.md for why
        self-registration as a privileged role is not blocked here.
        """
        if await AuthService.identifier_taken(db, data.username):
            raise ConflictError("username", data.username)
        if await AuthService.identifier_taken(db, data.email):
            raise ConflictError("email", data.email)
        if data.password != data.confirm_password:
            raise ValidationException(
                {"confirm_password": ["Passwords do not match."]},
                code="password_mismatch",
            )

        user = await AuthService.create_user(
            db,
            username=data.username,
            email=data.email,
            password=data.password,
            role=data.role,
        )

        if data.role != UserRole.employee:
            logger.warning(
                "Self-registration of user %s with elevated role %r",
                user.id, data.role.value,
            )
        else:
            logger.info("Registered user %s", user.id)

        return AuthService._token_response(issuer, user)

    # ── Profile ─────────────────────────────────────────────────────

    @staticmethod
    async def get_profile(db: AsyncSession, user_id: int) -> UserInfo:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundException("User", user_id)
        return UserInfo.model_validate(user)

    # ── Logout ──────────────────────────────────────────────────────

    @staticmethod
    def logout(user_id: int) -> str:
        """No server-side state: the client discards its token."""
        logger.info("User %s logged out", user_id)
        return "Logout successful. Please remove token from client storage."
