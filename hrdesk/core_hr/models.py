"""Core HR ORM models: Department, Employee.

SQLAlchemy 2.0 async-compatible models with Mapped[] annotations.
Links between entities are foreign-key ids; the only navigable relationship
is Employee → Department (many-to-one) for name lookups.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrdesk.common.constants import EmploymentStatus
from hrdesk.common.models import TimestampMixin, str_enum
from hrdesk.database import Base


# ═════════════════════════════════════════════════════════════════════
# Department
# ═════════════════════════════════════════════════════════════════════


class Department(Base, TimestampMixin):
    """Organisational department; name and code are both unique."""

    __tablename__ = "departments"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    code: Mapped[str] = mapped_column(sa.String(20), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.String(500))
    manager_id: Mapped[Optional[int]] = mapped_column(sa.Integer)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Department {self.name!r} ({self.code})>"


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class Employee(Base, TimestampMixin):
    """HR record for a person; optionally linked to one login ``User``."""

    __tablename__ = "employees"

    # ── Identifiers ─────────────────────────────────────────────────
    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    employee_code: Mapped[str] = mapped_column(
        sa.String(20), unique=True, nullable=False,
    )

    # ── Personal ────────────────────────────────────────────────────
    first_name: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    phone: Mapped[str] = mapped_column(sa.String(20), default="")
    date_of_birth: Mapped[Optional[date]] = mapped_column(sa.Date)
    gender: Mapped[str] = mapped_column(sa.String(10), default="")
    address: Mapped[str] = mapped_column(sa.String(500), default="")
    city: Mapped[str] = mapped_column(sa.String(50), default="")
    state: Mapped[str] = mapped_column(sa.String(50), default="")
    zip_code: Mapped[str] = mapped_column(sa.String(20), default="")
    country: Mapped[str] = mapped_column(sa.String(50), default="")

    # ── Employment ──────────────────────────────────────────────────
    department_id: Mapped[int] = mapped_column(
        sa.Integer,
        sa.ForeignKey("departments.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    designation: Mapped[str] = mapped_column(sa.String(100), default="")
    hire_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    termination_date: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True),
    )
    status: Mapped[EmploymentStatus] = mapped_column(
        str_enum(EmploymentStatus, "employment_status"),
        default=EmploymentStatus.active,
        nullable=False,
        index=True,
    )
    salary: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), default=Decimal("0"))
    manager_id: Mapped[Optional[int]] = mapped_column(sa.Integer)

    # ── Login link (0..1) ───────────────────────────────────────────
    user_id: Mapped[Optional[int]] = mapped_column(
        sa.Integer, sa.ForeignKey("users.id"), unique=True,
    )

    # ── Audit ───────────────────────────────────────────────────────
    created_by: Mapped[Optional[str]] = mapped_column(sa.String(50))
    updated_by: Mapped[Optional[str]] = mapped_column(sa.String(50))

    # ── Relationships ───────────────────────────────────────────────
    department: Mapped[Department] = relationship(lazy="raise")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Employee {self.employee_code} {self.full_name!r}>"
