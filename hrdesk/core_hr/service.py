"""Core HR service layer — async CRUD, employee codes and reporting.

Uses:
  - ``paginate()`` from hrdesk.common.pagination
  - ``apply_filters / apply_search / apply_sorting`` from hrdesk.common.filters
  - ``AuthService.create_user`` for the optional linked login account
"""

from __future__ import annotations

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrdesk.auth.models import User
from hrdesk.auth.service import AuthService
from hrdesk.common.constants import EMPLOYEE_CODE_PREFIX, EmploymentStatus, UserRole
from hrdesk.common.exceptions import (
    ConflictError,
    NotFoundException,
    ValidationException,
)
from hrdesk.common.filters import apply_filters, apply_search, apply_sorting
from hrdesk.common.models import utcnow
from hrdesk.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrdesk.core_hr.models import Department, Employee
from hrdesk.core_hr.schemas import (
    DepartmentCreate,
    DepartmentDetail,
    DepartmentResponse,
    DepartmentStatistics,
    DepartmentUpdate,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeStatistics,
    EmployeeUpdate,
)

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")

# Public sort keys → Employee column names
EMPLOYEE_SORT_FIELDS: dict[str, str] = {
    "first_name": "first_name",
    "firstname": "first_name",
    "last_name": "last_name",
    "lastname": "last_name",
    "email": "email",
    "salary": "salary",
    "hire_date": "hire_date",
    "hiredate": "hire_date",
    "department": "department_id",
    "status": "status",
    "created_at": "created_at",
    "createdat": "created_at",
}

EMPLOYEE_SEARCH_COLUMNS = (
    "first_name", "last_name", "email", "employee_code", "designation",
)


def _average(values: list[Decimal]) -> Decimal:
    if not values:
        return Decimal("0.00")
    return (sum(values, Decimal("0")) / len(values)).quantize(_CENT)


def _is_blank(value: Any) -> bool:
    return isinstance(value, str) and not value.strip()


def format_employee_code(number: int) -> str:
    """``1`` → ``EMP001``; numbers past 999 are not truncated."""
    return f"{EMPLOYEE_CODE_PREFIX}{number:03d}"


def next_employee_code(existing: Iterable[str]) -> str:
    """Return the code after the numerically largest ``EMP``-prefixed one."""
    highest = 0
    for code in existing:
        suffix = code[len(EMPLOYEE_CODE_PREFIX):]
        if code.startswith(EMPLOYEE_CODE_PREFIX) and suffix.isdigit():
            highest = max(highest, int(suffix))
    return format_employee_code(highest + 1)


def to_employee_response(employee: Employee) -> EmployeeResponse:
    """Serialize an employee loaded with ``selectinload(Employee.department)``."""
    response = EmployeeResponse.model_validate(employee)
    response.department_name = employee.department.name if employee.department else ""
    return response


# ═════════════════════════════════════════════════════════════════════
# EmployeeService
# ═════════════════════════════════════════════════════════════════════


class EmployeeService:
    """Async CRUD operations and reporting for employees."""

    # ── Internal loaders ────────────────────────────────────────────

    @staticmethod
    async def _get_current(db: AsyncSession, employee_id: int) -> Employee:
        """Load a non-terminated employee with its department, or 404."""
        result = await db.execute(
            select(Employee)
            .where(
                Employee.id == employee_id,
                Employee.status != EmploymentStatus.terminated,
            )
            .options(selectinload(Employee.department))
        )
        employee = result.scalars().first()
        if employee is None:
            raise NotFoundException("Employee", employee_id)
        return employee

    @staticmethod
    async def _get_active_department(db: AsyncSession, department_id: int) -> Department:
        department = await db.get(Department, department_id)
        if department is None or not department.is_active:
            raise ValidationException(
                {"department_id": [f"Department {department_id} does not exist or is inactive."]},
                code="invalid_department",
                detail="Invalid or inactive department.",
            )
        return department

    @staticmethod
    async def _email_taken(
        db: AsyncSession,
        email: str,
        *,
        exclude_id: Optional[int] = None,
    ) -> bool:
        query = select(Employee.id).where(Employee.email == email)
        if exclude_id is not None:
            query = query.where(Employee.id != exclude_id)
        return (await db.execute(query)).first() is not None

    @staticmethod
    async def _sync_login_email(db: AsyncSession, user_id: int, email: str) -> None:
        """Keep the linked login's email equal to the employee's."""
        if await AuthService.identifier_taken(db, email, exclude_user_id=user_id):
            raise ConflictError("email", email)
        user = await db.get(User, user_id)
        if user is not None:
            user.email = email

    @staticmethod
    async def generate_employee_code(db: AsyncSession) -> str:
        result = await db.execute(
            select(Employee.employee_code).where(
                Employee.employee_code.like(f"{EMPLOYEE_CODE_PREFIX}%"),
            )
        )
        return next_employee_code(result.scalars().all())

    # ── List (paginated, searchable, filterable) ────────────────────

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        department_id: Optional[int] = None,
        status: Optional[EmploymentStatus] = None,
        hire_date_from: Any = None,
        hire_date_to: Any = None,
        min_salary: Optional[Decimal] = None,
        max_salary: Optional[Decimal] = None,
        sort_by: Optional[str] = None,
    ) -> PaginatedResponse:
        """Return a paginated list of non-terminated employees."""
        query = (
            select(Employee)
            .where(Employee.status != EmploymentStatus.terminated)
            .options(selectinload(Employee.department))
        )

        filters: dict[str, Any] = {
            "department_id": department_id,
            "status": status,
            "hire_date__from": hire_date_from,
            "hire_date__to": hire_date_to,
            "salary__from": min_salary,
            "salary__to": max_salary,
        }
        query = apply_filters(query, Employee, filters)
        query = apply_search(query, Employee, search, EMPLOYEE_SEARCH_COLUMNS)
        query = apply_sorting(
            query, Employee, sort_by,
            allowed=EMPLOYEE_SORT_FIELDS, default="-created_at",
        )
        # Stable tiebreaker so pages never overlap
        query = query.order_by(Employee.id)

        return await paginate(db, query, pagination, transform=to_employee_response)

    # ── Get single ──────────────────────────────────────────────────

    @staticmethod
    async def get_employee(db: AsyncSession, employee_id: int) -> EmployeeResponse:
        employee = await EmployeeService._get_current(db, employee_id)
        return to_employee_response(employee)

    @staticmethod
    async def my_profile(db: AsyncSession, user_id: int) -> EmployeeResponse:
        """Employee record linked to the login ``user_id``."""
        result = await db.execute(
            select(Employee)
            .where(
                Employee.user_id == user_id,
                Employee.status != EmploymentStatus.terminated,
            )
            .options(selectinload(Employee.department))
        )
        employee = result.scalars().first()
        if employee is None:
            raise NotFoundException("Employee profile for user", user_id)
        return to_employee_response(employee)

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def create_employee(
        db: AsyncSession,
        data: EmployeeCreate,
        *,
        actor: Optional[str] = None,
    ) -> EmployeeResponse:
        """Create an employee with the next sequential code.

        When both ``username`` and ``password`` are supplied a login account
        with the ``employee`` role is created and linked.
        """
        if bool(data.username) != bool(data.password):
            missing = "password" if data.username else "username"
            raise ValidationException(
                {missing: ["username and password must be supplied together."]},
                code="incomplete_login",
                detail="A login account needs both a username and a password.",
            )

        department = await EmployeeService._get_active_department(db, data.department_id)

        if await EmployeeService._email_taken(db, data.email):
            raise ConflictError("email", data.email, code="duplicate_employee_email")

        user_id: Optional[int] = None
        if data.username and data.password:
            user = await AuthService.create_user(
                db,
                username=data.username,
                email=data.email,
                password=data.password,
                role=UserRole.employee,
                first_name=data.first_name,
                last_name=data.last_name,
            )
            user_id = user.id

        fields = data.model_dump(exclude={"username", "password", "department_id"})
        employee = Employee(
            **fields,
            employee_code=await EmployeeService.generate_employee_code(db),
            department=department,
            status=EmploymentStatus.active,
            user_id=user_id,
            created_by=actor,
        )
        db.add(employee)
        await db.flush()

        logger.info(
            "Created employee %s (%s) in department %s",
            employee.id, employee.employee_code, department.code,
        )
        return to_employee_response(employee)

    # ── Update ──────────────────────────────────────────────────────

    @staticmethod
    async def update_employee(
        db: AsyncSession,
        employee_id: int,
        data: EmployeeUpdate,
        *,
        actor: Optional[str] = None,
    ) -> EmployeeResponse:
        """Partial update; ``None`` and blank strings leave a field as-is."""
        employee = await EmployeeService._get_current(db, employee_id)
        changes = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None and not _is_blank(value)
        }

        if "department_id" in changes:
            employee.department = await EmployeeService._get_active_department(
                db, changes.pop("department_id"),
            )

        if "email" in changes and changes["email"] != employee.email:
            if await EmployeeService._email_taken(db, changes["email"], exclude_id=employee.id):
                raise ConflictError("email", changes["email"], code="duplicate_employee_email")
            if employee.user_id is not None:
                await EmployeeService._sync_login_email(db, employee.user_id, changes["email"])

        for key, value in changes.items():
            setattr(employee, key, value)

        if changes.get("status") == EmploymentStatus.terminated:
            employee.termination_date = utcnow()
            logger.info("Employee %s terminated via update", employee.id)

        employee.updated_by = actor
        employee.updated_at = utcnow()
        await db.flush()
        return to_employee_response(employee)

    # ── Soft delete ─────────────────────────────────────────────────

    @staticmethod
    async def soft_delete_employee(
        db: AsyncSession,
        employee_id: int,
        *,
        actor: Optional[str] = None,
    ) -> None:
        """Mark the employee terminated; the row is kept."""
        employee = await EmployeeService._get_current(db, employee_id)
        now = utcnow()
        employee.status = EmploymentStatus.terminated
        employee.termination_date = now
        employee.updated_at = now
        employee.updated_by = actor
        await db.flush()
        logger.info("Employee %s (%s) terminated", employee.id, employee.employee_code)

    # ── Reporting ───────────────────────────────────────────────────

    @staticmethod
    async def total_salary_by_department(db: AsyncSession, department_id: int) -> Decimal:
        """Sum of salaries of active employees in the department."""
        result = await db.execute(
            select(Employee.salary).where(
                Employee.department_id == department_id,
                Employee.status == EmploymentStatus.active,
            )
        )
        return sum((s or Decimal("0") for s in result.scalars().all()), Decimal("0"))

    @staticmethod
    async def active_employee_count(db: AsyncSession) -> int:
        result = await db.execute(
            select(func.count())
            .select_from(Employee)
            .where(Employee.status == EmploymentStatus.active)
        )
        return result.scalar_one()

    @staticmethod
    async def employee_statistics(db: AsyncSession) -> list[EmployeeStatistics]:
        """Per-department figures over non-terminated employees."""
        result = await db.execute(
            select(Department.name, Employee.status, Employee.salary)
            .select_from(Employee)
            .join(Department, Employee.department_id == Department.id)
            .where(Employee.status != EmploymentStatus.terminated)
        )

        grouped: dict[str, list[tuple[EmploymentStatus, Decimal]]] = defaultdict(list)
        for name, status, salary in result.all():
            grouped[name].append((status, salary or Decimal("0")))

        return [
            EmployeeStatistics(
                department_name=name,
                employee_count=len(rows),
                average_salary=_average([salary for _, salary in rows]),
                active_count=sum(1 for s, _ in rows if s == EmploymentStatus.active),
                on_leave_count=sum(1 for s, _ in rows if s == EmploymentStatus.on_leave),
            )
            for name, rows in sorted(grouped.items())
        ]


# ═════════════════════════════════════════════════════════════════════
# DepartmentService
# ═════════════════════════════════════════════════════════════════════


class DepartmentService:
    """Async CRUD operations and statistics for departments."""

    @staticmethod
    async def _get(db: AsyncSession, department_id: int) -> Department:
        department = await db.get(Department, department_id)
        if department is None:
            raise NotFoundException("Department", department_id)
        return department

    @staticmethod
    async def _check_unique(
        db: AsyncSession,
        *,
        name: Optional[str] = None,
        code: Optional[str] = None,
        exclude_id: Optional[int] = None,
    ) -> None:
        for field, column, value in (
            ("name", Department.name, name),
            ("code", Department.code, code),
        ):
            if value is None:
                continue
            query = select(Department.id).where(column == value)
            if exclude_id is not None:
                query = query.where(Department.id != exclude_id)
            if (await db.execute(query)).first() is not None:
                raise ConflictError(field, value, code=f"duplicate_department_{field}")

    # ── List / Get ──────────────────────────────────────────────────

    @staticmethod
    async def list_departments(db: AsyncSession) -> list[DepartmentResponse]:
        result = await db.execute(
            select(Department)
            .where(Department.is_active.is_(True))
            .order_by(Department.name)
        )
        return [DepartmentResponse.model_validate(d) for d in result.scalars().all()]

    @staticmethod
    async def get_department(db: AsyncSession, department_id: int) -> DepartmentDetail:
        """Active department with its count of active employees."""
        department = await db.get(Department, department_id)
        if department is None or not department.is_active:
            raise NotFoundException("Department", department_id)

        count = (
            await db.execute(
                select(func.count())
                .select_from(Employee)
                .where(
                    Employee.department_id == department_id,
                    Employee.status == EmploymentStatus.active,
                )
            )
        ).scalar_one()

        detail = DepartmentDetail.model_validate(department)
        detail.employee_count = count
        return detail

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def create_department(db: AsyncSession, data: DepartmentCreate) -> DepartmentResponse:
        await DepartmentService._check_unique(db, name=data.name, code=data.code)

        department = Department(**data.model_dump(), is_active=True)
        db.add(department)
        await db.flush()

        logger.info("Created department %s (%s)", department.id, department.code)
        return DepartmentResponse.model_validate(department)

    # ── Update ──────────────────────────────────────────────────────

    @staticmethod
    async def update_department(
        db: AsyncSession,
        department_id: int,
        data: DepartmentUpdate,
    ) -> DepartmentResponse:
        department = await DepartmentService._get(db, department_id)
        changes = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None and not _is_blank(value)
        }

        await DepartmentService._check_unique(
            db,
            name=changes.get("name"),
            code=changes.get("code"),
            exclude_id=department.id,
        )

        for key, value in changes.items():
            setattr(department, key, value)
        department.updated_at = utcnow()

        await db.flush()
        return DepartmentResponse.model_validate(department)

    # ── Delete ──────────────────────────────────────────────────────

    @staticmethod
    async def delete_department(db: AsyncSession, department_id: int) -> None:
        """Hard delete; refused while any employee row references it."""
        department = await DepartmentService._get(db, department_id)

        attached = (
            await db.execute(
                select(func.count())
                .select_from(Employee)
                .where(Employee.department_id == department_id)
            )
        ).scalar_one()
        if attached:
            raise ValidationException(
                {"department_id": [f"{attached} employee(s) still reference this department."]},
                code="department_in_use",
                detail="Department has employees and cannot be deleted.",
            )

        await db.delete(department)
        await db.flush()
        logger.info("Deleted department %s (%s)", department_id, department.code)

    # ── Statistics ──────────────────────────────────────────────────

    @staticmethod
    async def department_statistics(db: AsyncSession) -> list[DepartmentStatistics]:
        departments = (
            await db.execute(
                select(Department)
                .where(Department.is_active.is_(True))
                .order_by(Department.name)
            )
        ).scalars().all()

        rows = (
            await db.execute(
                select(Employee.department_id, Employee.status, Employee.salary)
                .where(Employee.status != EmploymentStatus.terminated)
            )
        ).all()

        by_department: dict[int, list[tuple[EmploymentStatus, Decimal]]] = defaultdict(list)
        for department_id, status, salary in rows:
            by_department[department_id].append((status, salary or Decimal("0")))

        stats: list[DepartmentStatistics] = []
        for department in departments:
            members = by_department.get(department.id, [])
            stats.append(
                DepartmentStatistics(
                    department_id=department.id,
                    department_name=department.name,
                    department_code=department.code,
                    total_employees=len(members),
                    active_employees=sum(
                        1 for s, _ in members if s == EmploymentStatus.active
                    ),
                    on_leave_employees=sum(
                        1 for s, _ in members if s == EmploymentStatus.on_leave
                    ),
                    average_salary=_average([salary for _, salary in members]),
                )
            )
        return stats
