"""Auth Pydantic schemas for request / response validation."""


from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from hrdesk.common.constants import UserRole


# ── Requests ────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    username_or_email: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    confirm_password: str
    role: UserRole = UserRole.employee


# ── Embedded / Shared ──────────────────────────────────────────────

class UserInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    role: UserRole
    is_active: bool = True
    last_login: Optional[datetime] = None


# ── Responses ───────────────────────────────────────────────────────

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_at: datetime
    expires_in: int
    user: UserInfo


class MessageResponse(BaseModel):
    message: str
