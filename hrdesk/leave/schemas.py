"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Decision → request bodies (write)
  - *Response / *Out    → response bodies (read)
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hrdesk.common.constants import LeaveStatus, LeaveType


# ═════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for applying for leave; the employee comes from the token."""

    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str = Field("", max_length=2000)


class LeaveDecision(BaseModel):
    """Approve (``true``) or reject (``false``) a leave request."""

    approve: bool
    comments: Optional[str] = Field(None, max_length=2000)


# ═════════════════════════════════════════════════════════════════════
# Responses
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    """Full leave request representation with employee details."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_id: int
    employee_name: Optional[str] = None
    employee_code: Optional[str] = None
    department_name: Optional[str] = None
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: int
    reason: str = ""
    status: LeaveStatus
    manager_comments: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class LeaveBalanceOut(BaseModel):
    """Remaining days per tracked leave type for one calendar year."""

    employee_id: int
    employee_name: str
    year: int
    annual_leave_balance: int
    sick_leave_balance: int
    casual_leave_balance: int


class CancelResponse(BaseModel):
    message: str
    leave: LeaveRequestOut
