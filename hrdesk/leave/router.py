"""Leave router — leave requests, approvals, cancellation and balance.

Routes:
    GET  /leave               — All requests (hr)
    GET  /leave/my-leaves     — Caller's requests
    GET  /leave/balance       — Caller's remaining days this year
    GET  /leave/{id}          — Single request
    POST /leave               — Apply for leave
    PUT  /leave/{id}/approve  — Approve / reject (hr)
    PUT  /leave/{id}/cancel   — Cancel a pending request (owner, hr, admin)
"""


from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.auth.dependencies import require_tier
from hrdesk.auth.policy import AccessTier
from hrdesk.auth.tokens import TokenClaims
from hrdesk.common.constants import LeaveStatus, LeaveType
from hrdesk.common.pagination import PaginatedResponse, PaginationParams
from hrdesk.database import get_db
from hrdesk.leave.schemas import (
    CancelResponse,
    LeaveBalanceOut,
    LeaveDecision,
    LeaveRequestCreate,
    LeaveRequestOut,
)
from hrdesk.leave.service import LeaveService

router = APIRouter(prefix="", tags=["leave"])


# ── GET /leave — All leave requests (HR) ────────────────────────────

@router.get("", response_model=PaginatedResponse[LeaveRequestOut])
async def list_leaves(
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.hr)),
    pagination: PaginationParams = Depends(),
    employee_id: Optional[int] = Query(None),
    leave_type: Optional[LeaveType] = Query(None, alias="type"),
    status: Optional[LeaveStatus] = Query(None),
    start_date: Optional[date] = Query(None, description="Requests starting on or after"),
    end_date: Optional[date] = Query(None, description="Requests ending on or before"),
):
    return await LeaveService.list_leaves(
        db,
        pagination,
        employee_id=employee_id,
        leave_type=leave_type,
        status=status,
        start_date=start_date,
        end_date=end_date,
    )


# ── GET /leave/my-leaves ────────────────────────────────────────────
# NOTE: static paths MUST be defined before /leave/{leave_id}.

@router.get("/my-leaves", response_model=list[LeaveRequestOut])
async def my_leaves(
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.employee)),
):
    return await LeaveService.my_leaves(db, current_user.user_id)


# ── GET /leave/balance ──────────────────────────────────────────────

@router.get("/balance", response_model=LeaveBalanceOut)
async def leave_balance(
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.employee)),
):
    """Remaining annual / sick / casual days in the current calendar year."""
    employee = await LeaveService.employee_for_user(db, current_user.user_id)
    return await LeaveService.leave_balance(db, employee.id)


# ── GET /leave/{id} ─────────────────────────────────────────────────

@router.get("/{leave_id}", response_model=LeaveRequestOut)
async def get_leave(
    leave_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.employee)),
):
    return await LeaveService.get_leave(db, leave_id)


# ── POST /leave — Apply ─────────────────────────────────────────────

@router.post("", response_model=LeaveRequestOut, status_code=201)
async def apply_leave(
    body: LeaveRequestCreate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.employee)),
):
    """Apply for leave on behalf of the caller's employee record."""
    employee = await LeaveService.employee_for_user(db, current_user.user_id)
    return await LeaveService.create_leave(db, employee.id, body)


# ── PUT /leave/{id}/approve — Approve or reject (HR) ────────────────

@router.put("/{leave_id}/approve", response_model=LeaveRequestOut)
async def decide_leave(
    leave_id: int,
    body: LeaveDecision,
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.hr)),
):
    return await LeaveService.decide_leave(
        db,
        leave_id,
        approve=body.approve,
        comments=body.comments,
        approver_id=current_user.user_id,
    )


# ── PUT /leave/{id}/cancel ──────────────────────────────────────────

@router.put("/{leave_id}/cancel", response_model=CancelResponse)
async def cancel_leave(
    leave_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.employee)),
):
    leave = await LeaveService.cancel_leave(
        db,
        leave_id,
        actor_id=current_user.user_id,
        actor_role=current_user.role,
    )
    return CancelResponse(message="Leave request cancelled successfully.", leave=leave)
