"""Leave service layer — leave request lifecycle and balances.

Lifecycle::

    pending ──approve──▶ approved
       │ └───reject───▶ rejected
       └────cancel────▶ cancelled

Days are an inclusive calendar span; weekends and holidays are not excluded.
Balances are derived on read from approved requests, nothing is stored.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrdesk.common.constants import (
    LEAVE_ALLOTMENTS,
    TERMINAL_LEAVE_STATUSES,
    LeaveStatus,
    LeaveType,
    UserRole,
)
from hrdesk.common.exceptions import (
    ForbiddenException,
    InvalidStateTransitionException,
    NotFoundException,
    ValidationException,
)
from hrdesk.common.filters import apply_filters
from hrdesk.common.models import utcnow
from hrdesk.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrdesk.core_hr.models import Employee
from hrdesk.leave.models import LeaveRequest
from hrdesk.leave.schemas import LeaveBalanceOut, LeaveRequestCreate, LeaveRequestOut

logger = logging.getLogger(__name__)

# Roles that may cancel any employee's pending request
_CANCEL_ANY_ROLES = frozenset({UserRole.hr, UserRole.admin})


def inclusive_days(start: date, end: date) -> int:
    """Calendar days from *start* to *end*, both endpoints counted.

    Raises ``ValidationException`` when *start* is after *end*.
    """
    if start > end:
        raise ValidationException(
            {"start_date": ["Start date cannot be after end date."]},
            code="invalid_date_range",
            detail="Start date cannot be after end date.",
        )
    return (end - start).days + 1


def remaining_balance(used: Mapping[LeaveType, int]) -> dict[LeaveType, int]:
    """Allotment minus used days for each tracked type; may go negative."""
    return {
        leave_type: allotment - used.get(leave_type, 0)
        for leave_type, allotment in LEAVE_ALLOTMENTS.items()
    }


class LeaveService:
    """Async leave operations: apply, decide, cancel, list, balance."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def _build_response(req: LeaveRequest) -> LeaveRequestOut:
        """Serialize a request loaded with its employee and department."""
        out = LeaveRequestOut.model_validate(req)
        emp = req.employee
        out.employee_name = emp.full_name
        out.employee_code = emp.employee_code
        out.department_name = emp.department.name if emp.department else None
        return out

    @staticmethod
    def _with_employee(query):
        return query.options(
            selectinload(LeaveRequest.employee).selectinload(Employee.department),
        )

    @staticmethod
    async def _load(db: AsyncSession, leave_id: int) -> LeaveRequest:
        result = await db.execute(
            LeaveService._with_employee(
                select(LeaveRequest).where(LeaveRequest.id == leave_id),
            )
        )
        req = result.scalars().first()
        if req is None:
            raise NotFoundException("LeaveRequest", leave_id)
        return req

    @staticmethod
    async def _load_employee(
        db: AsyncSession,
        *,
        employee_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> Employee:
        query = select(Employee).options(selectinload(Employee.department))
        if user_id is not None:
            query = query.where(Employee.user_id == user_id)
            label, key = "Employee profile for user", user_id
        else:
            query = query.where(Employee.id == employee_id)
            label, key = "Employee", employee_id
        employee = (await db.execute(query)).scalars().first()
        if employee is None:
            raise NotFoundException(label, key)
        return employee

    @staticmethod
    async def employee_for_user(db: AsyncSession, user_id: int) -> Employee:
        """Resolve the caller's employee record from their login id, or 404."""
        return await LeaveService._load_employee(db, user_id=user_id)

    # ─────────────────────────────────────────────────────────────────
    # Apply
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create_leave(
        db: AsyncSession,
        employee_id: int,
        data: LeaveRequestCreate,
    ) -> LeaveRequestOut:
        """Create a pending leave request for *employee_id*."""
        employee = await LeaveService._load_employee(db, employee_id=employee_id)
        days = inclusive_days(data.start_date, data.end_date)

        req = LeaveRequest(
            employee=employee,
            leave_type=data.leave_type,
            start_date=data.start_date,
            end_date=data.end_date,
            days=days,
            reason=data.reason,
            status=LeaveStatus.pending,
        )
        db.add(req)
        await db.flush()

        logger.info(
            "Leave request %s created for employee %s: %s x%d (%s..%s)",
            req.id, employee.id, data.leave_type.value, days,
            data.start_date, data.end_date,
        )
        return LeaveService._build_response(req)

    # ─────────────────────────────────────────────────────────────────
    # Approve / Reject
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def decide_leave(
        db: AsyncSession,
        leave_id: int,
        *,
        approve: bool,
        comments: Optional[str],
        approver_id: int,
    ) -> LeaveRequestOut:
        """Approve or reject a request.

        An already-decided request is decided again (last write wins); this
        is logged as a warning rather than refused.
        """
        req = await LeaveService._load(db, leave_id)

        if req.status in TERMINAL_LEAVE_STATUSES:
            logger.warning(
                "Leave request %s re-decided by user %s (was %s)",
                req.id, approver_id, req.status.value,
            )

        now = utcnow()
        req.status = LeaveStatus.approved if approve else LeaveStatus.rejected
        req.manager_comments = comments
        req.approved_by = approver_id
        req.approved_at = now
        req.updated_at = now
        await db.flush()

        logger.info("Leave request %s %s by user %s", req.id, req.status.value, approver_id)
        return LeaveService._build_response(req)

    # ─────────────────────────────────────────────────────────────────
    # Cancel
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def cancel_leave(
        db: AsyncSession,
        leave_id: int,
        *,
        actor_id: int,
        actor_role: UserRole,
    ) -> LeaveRequestOut:
        """Cancel a pending request; owner, hr or admin only."""
        req = await LeaveService._load(db, leave_id)

        is_owner = req.employee.user_id is not None and req.employee.user_id == actor_id
        if not is_owner and actor_role not in _CANCEL_ANY_ROLES:
            raise ForbiddenException(
                "You can only cancel your own leave requests.", code="not_owner",
            )

        if req.status != LeaveStatus.pending:
            raise InvalidStateTransitionException(
                "leave request", req.status.value, "cancel",
            )

        req.status = LeaveStatus.cancelled
        req.updated_at = utcnow()
        await db.flush()

        logger.info("Leave request %s cancelled by user %s", req.id, actor_id)
        return LeaveService._build_response(req)

    # ─────────────────────────────────────────────────────────────────
    # Balance
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def leave_balance(
        db: AsyncSession,
        employee_id: int,
        *,
        year: Optional[int] = None,
    ) -> LeaveBalanceOut:
        """Remaining annual/sick/casual days for *year* (default: current UTC year).

        Only approved requests whose start date falls inside the year count.
        """
        employee = await LeaveService._load_employee(db, employee_id=employee_id)
        year = year or datetime.now(timezone.utc).year

        result = await db.execute(
            select(LeaveRequest.leave_type, func.sum(LeaveRequest.days))
            .where(
                LeaveRequest.employee_id == employee.id,
                LeaveRequest.status == LeaveStatus.approved,
                LeaveRequest.start_date >= date(year, 1, 1),
                LeaveRequest.start_date < date(year + 1, 1, 1),
            )
            .group_by(LeaveRequest.leave_type)
        )
        used = {leave_type: int(total or 0) for leave_type, total in result.all()}
        balance = remaining_balance(used)

        return LeaveBalanceOut(
            employee_id=employee.id,
            employee_name=employee.full_name,
            year=year,
            annual_leave_balance=balance[LeaveType.annual],
            sick_leave_balance=balance[LeaveType.sick],
            casual_leave_balance=balance[LeaveType.casual],
        )

    # ─────────────────────────────────────────────────────────────────
    # Listing
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_leaves(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        employee_id: Optional[int] = None,
        leave_type: Optional[LeaveType] = None,
        status: Optional[LeaveStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> PaginatedResponse:
        """All requests, newest first; ``start_date``/``end_date`` bound the span."""
        filters: dict[str, Any] = {
            "employee_id": employee_id,
            "leave_type": leave_type,
            "status": status,
            "start_date__from": start_date,
            "end_date__to": end_date,
        }
        query = apply_filters(select(LeaveRequest), LeaveRequest, filters)
        query = LeaveService._with_employee(query).order_by(
            LeaveRequest.created_at.desc(), LeaveRequest.id.desc(),
        )
        return await paginate(db, query, pagination, transform=LeaveService._build_response)

    @staticmethod
    async def my_leaves(db: AsyncSession, user_id: int) -> list[LeaveRequestOut]:
        """The caller's own requests, newest first."""
        employee = await LeaveService.employee_for_user(db, user_id)
        result = await db.execute(
            LeaveService._with_employee(
                select(LeaveRequest)
                .where(LeaveRequest.employee_id == employee.id)
                .order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())
            )
        )
        return [LeaveService._build_response(r) for r in result.scalars().all()]

    @staticmethod
    async def get_leave(db: AsyncSession, leave_id: int) -> LeaveRequestOut:
        return LeaveService._build_response(await LeaveService._load(db, leave_id))
