"""Leave ORM models: LeaveRequest."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrdesk.common.constants import LeaveStatus, LeaveType
from hrdesk.common.models import TimestampMixin, str_enum
from hrdesk.core_hr.models import Employee
from hrdesk.database import Base


class LeaveRequest(Base, TimestampMixin):
    """A single leave application and its approval outcome."""

    __tablename__ = "leave_requests"
    __table_args__ = (
        sa.CheckConstraint("end_date >= start_date", name="ck_leave_date_range"),
        sa.Index("ix_leave_requests_employee_status", "employee_id", "status"),
    )

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    leave_type: Mapped[LeaveType] = mapped_column(
        str_enum(LeaveType, "leave_type"), nullable=False,
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    days: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    reason: Mapped[str] = mapped_column(sa.Text, default="", nullable=False)
    status: Mapped[LeaveStatus] = mapped_column(
        str_enum(LeaveStatus, "leave_status"),
        default=LeaveStatus.pending,
        nullable=False,
    )
    manager_comments: Mapped[Optional[str]] = mapped_column(sa.Text)
    approved_by: Mapped[Optional[int]] = mapped_column(sa.Integer)
    approved_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))

    # Relationships
    employee: Mapped[Employee] = relationship(lazy="raise")

    def __repr__(self) -> str:
        return (
            f"<LeaveRequest {self.id} {self.leave_type.value} "
            f"{self.start_date}..{self.end_date} {self.status.value}>"
        )
