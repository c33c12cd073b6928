"""Enums and constants for hrdesk — stored as lowercase string values."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    admin = "admin"
    manager = "manager"
    hr = "hr"


# ── Employee / Core HR ──────────────────────────────────────────────

class EmploymentStatus(str, enum.Enum):
    active = "active"
    on_leave = "on_leave"
    terminated = "terminated"
    resigned = "resigned"
    retired = "retired"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveType(str, enum.Enum):
    annual = "annual"
    sick = "sick"
    casual = "casual"
    maternity = "maternity"
    paternity = "paternity"
    unpaid = "unpaid"
    bereavement = "bereavement"


class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


# Annual allotment per tracked leave type; other types carry no balance.
LEAVE_ALLOTMENTS: dict[LeaveType, int] = {
    LeaveType.annual: 15,
    LeaveType.sick: 10,
    LeaveType.casual: 7,
}

TERMINAL_LEAVE_STATUSES: frozenset[LeaveStatus] = frozenset(
    {LeaveStatus.approved, LeaveStatus.rejected, LeaveStatus.cancelled}
)


# ── Misc constants ──────────────────────────────────────────────────

EMPLOYEE_CODE_PREFIX = "EMP"
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10
