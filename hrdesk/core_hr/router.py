"""Core HR router — Employee and Department API endpoints.

Routes:
    /employees                              — List (employee), create (hr)
    /employees/profile                      — Caller's own employee record
    /employees/statistics                   — Per-department headcount / salary
    /employees/statistics/count             — Active headcount
    /employees/department/{id}/total-salary — Salary total of active staff
    /employees/{id}                         — Get (employee), update / delete (hr)
    /departments                            — List (employee), create (hr)
    /departments/statistics                 — Per-department figures
    /departments/{id}                       — Get (employee), update (hr), delete (admin)
"""


from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.auth.dependencies import require_tier
from hrdesk.auth.policy import AccessTier
from hrdesk.auth.tokens import TokenClaims
from hrdesk.common.constants import EmploymentStatus
from hrdesk.common.pagination import PaginatedResponse, PaginationParams
from hrdesk.core_hr.schemas import (
    ActiveEmployeeCount,
    DepartmentCreate,
    DepartmentDetail,
    DepartmentResponse,
    DepartmentSalaryTotal,
    DepartmentStatistics,
    DepartmentUpdate,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeStatistics,
    EmployeeUpdate,
)
from hrdesk.core_hr.service import DepartmentService, EmployeeService
from hrdesk.database import get_db


# ═════════════════════════════════════════════════════════════════════
# Routers
# ═════════════════════════════════════════════════════════════════════

employees_router = APIRouter(prefix="", tags=["employees"])
departments_router = APIRouter(prefix="", tags=["departments"])


# ═════════════════════════════════════════════════════════════════════
# Employee Endpoints
# ═════════════════════════════════════════════════════════════════════


# ── GET /employees — List employees ─────────────────────────────────

@employees_router.get("", response_model=PaginatedResponse[EmployeeResponse])
async def list_employees(
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.employee)),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search name, email, code or designation"),
    department_id: Optional[int] = Query(None),
    status: Optional[EmploymentStatus] = Query(None),
    hire_date_from: Optional[date] = Query(None),
    hire_date_to: Optional[date] = Query(None),
    min_salary: Optional[Decimal] = Query(None, ge=0),
    max_salary: Optional[Decimal] = Query(None, ge=0),
    sort_by: Optional[str] = Query(
        None,
        description="first_name, last_name, email, salary, hire_date, department, "
                    "status or created_at; prefix with '-' for descending",
    ),
):
    """List non-terminated employees with search, filters and sorting."""
    return await EmployeeService.list_employees(
        db,
        pagination,
        search=search,
        department_id=department_id,
        status=status,
        hire_date_from=hire_date_from,
        hire_date_to=hire_date_to,
        min_salary=min_salary,
        max_salary=max_salary,
        sort_by=sort_by,
    )


# ── Static paths — MUST be defined before /employees/{employee_id} ──

@employees_router.get("/profile", response_model=EmployeeResponse)
async def my_profile(
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.employee)),
):
    """Employee record linked to the caller's login."""
    return await EmployeeService.my_profile(db, current_user.user_id)


@employees_router.get("/statistics", response_model=list[EmployeeStatistics])
async def employee_statistics(
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.employee)),
):
    return await EmployeeService.employee_statistics(db)


@employees_router.get("/statistics/count", response_model=ActiveEmployeeCount)
async def active_employee_count(
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.employee)),
):
    count = await EmployeeService.active_employee_count(db)
    return ActiveEmployeeCount(active_employee_count=count)


@employees_router.get(
    "/department/{department_id}/total-salary",
    response_model=DepartmentSalaryTotal,
)
async def department_total_salary(
    department_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.employee)),
):
    total = await EmployeeService.total_salary_by_department(db, department_id)
    return DepartmentSalaryTotal(department_id=department_id, total_salary=total)


# ── GET /employees/{id} ─────────────────────────────────────────────

@employees_router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.employee)),
):
    return await EmployeeService.get_employee(db, employee_id)


# ── POST /employees — Create employee ──────────────────────────────

@employees_router.post("", response_model=EmployeeResponse, status_code=201)
async def create_employee(
    body: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.hr)),
):
    """Create an employee. Requires **hr** tier.

    Assigns the next sequential ``EMPnnn`` code.
    """
    return await EmployeeService.create_employee(db, body, actor=current_user.username)


# ── PUT /employees/{id} — Update employee ──────────────────────────

@employees_router.put("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: int,
    body: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.hr)),
):
    return await EmployeeService.update_employee(
        db, employee_id, body, actor=current_user.username,
    )


# ── DELETE /employees/{id} — Soft delete ───────────────────────────

@employees_router.delete("/{employee_id}", status_code=204)
async def delete_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.hr)),
):
    """Terminate the employee; the record is retained."""
    await EmployeeService.soft_delete_employee(db, employee_id, actor=current_user.username)
    return Response(status_code=204)


# ═════════════════════════════════════════════════════════════════════
# Department Endpoints
# ═════════════════════════════════════════════════════════════════════


# ── GET /departments ────────────────────────────────────────────────

@departments_router.get("", response_model=list[DepartmentResponse])
async def list_departments(
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.employee)),
):
    """Active departments ordered by name."""
    return await DepartmentService.list_departments(db)


# ── GET /departments/statistics ─────────────────────────────────────

@departments_router.get("/statistics", response_model=list[DepartmentStatistics])
async def department_statistics(
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.employee)),
):
    return await DepartmentService.department_statistics(db)


# ── GET /departments/{id} ───────────────────────────────────────────

@departments_router.get("/{department_id}", response_model=DepartmentDetail)
async def get_department(
    department_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.employee)),
):
    return await DepartmentService.get_department(db, department_id)


# ── POST /departments ───────────────────────────────────────────────

@departments_router.post("", response_model=DepartmentResponse, status_code=201)
async def create_department(
    body: DepartmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.hr)),
):
    return await DepartmentService.create_department(db, body)


# ── PUT /departments/{id} ───────────────────────────────────────────

@departments_router.put("/{department_id}", response_model=DepartmentResponse)
async def update_department(
    department_id: int,
    body: DepartmentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.hr)),
):
    return await DepartmentService.update_department(db, department_id, body)


# ── DELETE /departments/{id} — Admin only ───────────────────────────

@departments_router.delete("/{department_id}", status_code=204)
async def delete_department(
    department_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: TokenClaims = Depends(require_tier(AccessTier.admin)),
):
    await DepartmentService.delete_department(db, department_id)
    return Response(status_code=204)
