"""Application configuration via environment variables.

``Settings`` is constructed once at startup (see ``hrdesk.main.create_app``)
and handed to the collaborators that need it; nothing reads it from a
module-level global.
"""

import json
from typing import List

from fastapi import Request
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./hrdesk.db"
    DB_ECHO: bool = False

    # Auth: JWT_SECRET has no default and must come from the environment or .env
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "hrdesk"
    JWT_AUDIENCE: str = "hrdesk-clients"
    JWT_EXPIRY_MINUTES: int = 60
    RATE_LIMIT_ENABLED: bool = True

    # App
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "info"
    CORS_ORIGINS: str = '["http://localhost:3000"]'
    SEED_DATABASE: bool = False

    @field_validator("JWT_SECRET", "JWT_ISSUER", "JWT_AUDIENCE")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("JWT_EXPIRY_MINUTES")
    @classmethod
    def _positive_expiry(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive number of minutes")
        return value

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS_ORIGINS JSON string into a list."""
        try:
            return json.loads(self.CORS_ORIGINS)
        except (json.JSONDecodeError, TypeError):
            return ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


def get_settings(request: Request) -> Settings:
    """FastAPI dependency: the Settings instance the app was built with."""
    return request.app.state.settings
