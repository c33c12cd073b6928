"""Tier-based access policy.

Tiers are cumulative: each admits its own role and every role above it.
``is_allowed`` is a pure function so the policy is testable without a web app.
"""

from __future__ import annotations

import enum

from hrdesk.common.constants import UserRole


class AccessTier(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    hr = "hr"
    admin = "admin"


_TIER_MEMBERS: dict[AccessTier, frozenset[UserRole]] = {
    AccessTier.employee: frozenset(
        {UserRole.employee, UserRole.manager, UserRole.hr, UserRole.admin}
    ),
    AccessTier.manager: frozenset({UserRole.manager, UserRole.hr, UserRole.admin}),
    AccessTier.hr: frozenset({UserRole.hr, UserRole.admin}),
    AccessTier.admin: frozenset({UserRole.admin}),
}


def allowed_roles(tier: AccessTier) -> frozenset[UserRole]:
    return _TIER_MEMBERS[tier]


def is_allowed(role: UserRole, tier: AccessTier) -> bool:
    """Return True if *role* may invoke an operation gated at *tier*."""
    return role in _TIER_MEMBERS[tier]
