"""One-way password hashing backed by werkzeug's PBKDF2-SHA256."""

from __future__ import annotations

from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(password: str) -> str:
    """Return a salted PBKDF2-SHA256 digest (``method$salt$hash``)."""
    return generate_password_hash(password or "", method="pbkdf2:sha256", salt_length=16)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Recompute and constant-time compare; malformed digests verify as False."""
    if not password_hash:
        return False
    try:
        return check_password_hash(password_hash, password or "")
    except (ValueError, TypeError):
        return False
