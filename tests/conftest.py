"""Shared test fixtures — async DB, client, auth helpers, factories.

Reusable across all test modules (auth, core_hr, leave, common).
Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from hrdesk.auth.models import User
from hrdesk.auth.passwords import hash_password
from hrdesk.auth.tokens import TokenIssuer
from hrdesk.common.constants import EmploymentStatus, LeaveStatus, LeaveType, UserRole
from hrdesk.common.rate_limit import limiter
from hrdesk.config import Settings
from hrdesk.core_hr.models import Department, Employee
from hrdesk.database import Base, enable_sqlite_foreign_keys, get_db
from hrdesk.leave.models import LeaveRequest
from hrdesk.main import create_app


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)

test_settings = Settings(
    JWT_SECRET="test-secret-for-ci-do-not-use-in-production",
    DATABASE_URL=TEST_DATABASE_URL,
    ENVIRONMENT="test",
    LOG_LEVEL="warning",
    RATE_LIMIT_ENABLED=True,
    SEED_DATABASE=False,
)

token_issuer = TokenIssuer(test_settings)

DEFAULT_PASSWORD = "Secret@123"


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app(test_settings)
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────
# Each factory commits so rows are visible to the app's own sessions.

async def _make_department(
    db: AsyncSession,
    *,
    name: str = "Information Technology",
    code: str = "IT",
    is_active: bool = True,
) -> Department:
    department = Department(name=name, code=code, description=f"{name} dept", is_active=is_active)
    db.add(department)
    await db.commit()
    return department


async def _make_user(
    db: AsyncSession,
    *,
    username: str = "jdoe",
    email: Optional[str] = None,
    password: str = DEFAULT_PASSWORD,
    role: UserRole = UserRole.employee,
    is_active: bool = True,
    first_name: str = "Test",
    last_name: str = "User",
) -> User:
    user = User(
        username=username,
        email=email or f"{username}@company.com",
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=is_active,
    )
    db.add(user)
    await db.commit()
    return user


async def _make_employee(
    db: AsyncSession,
    department: Department,
    *,
    first_name: str = "Test",
    last_name: str = "User",
    email: Optional[str] = None,
    user: Optional[User] = None,
    status: EmploymentStatus = EmploymentStatus.active,
    salary: Decimal = Decimal("50000"),
    hire_date: date = date(2024, 1, 15),
    designation: str = "Engineer",
    employee_code: Optional[str] = None,
) -> Employee:
    employee = Employee(
        employee_code=employee_code or f"T-{uuid.uuid4().hex[:6].upper()}",
        first_name=first_name,
        last_name=last_name,
        email=email or f"{first_name}.{last_name}.{uuid.uuid4().hex[:4]}@company.com".lower(),
        department_id=department.id,
        designation=designation,
        hire_date=hire_date,
        salary=salary,
        status=status,
        user_id=user.id if user else None,
    )
    db.add(employee)
    await db.commit()
    return employee


async def _make_leave(
    db: AsyncSession,
    employee: Employee,
    *,
    leave_type: LeaveType = LeaveType.annual,
    start_date: date,
    end_date: date,
    status: LeaveStatus = LeaveStatus.pending,
    reason: str = "Family trip",
) -> LeaveRequest:
    leave = LeaveRequest(
        employee_id=employee.id,
        leave_type=leave_type,
        start_date=start_date,
        end_date=end_date,
        days=(end_date - start_date).days + 1,
        reason=reason,
        status=status,
    )
    db.add(leave)
    await db.commit()
    return leave


# ── Fixtures built from the factories ───────────────────────────────

@pytest.fixture
async def test_department(db) -> Department:
    return await _make_department(db)


@pytest.fixture
async def admin_user(db) -> User:
    return await _make_user(db, username="admin", role=UserRole.admin)


@pytest.fixture
async def hr_user(db) -> User:
    return await _make_user(db, username="hrmanager", role=UserRole.hr)


@pytest.fixture
async def manager_user(db) -> User:
    return await _make_user(db, username="itmanager", role=UserRole.manager)


@pytest.fixture
async def employee_user(db) -> User:
    return await _make_user(
        db, username="jdoe", role=UserRole.employee, first_name="John", last_name="Doe",
    )


@pytest.fixture
async def test_employee(db, test_department, employee_user) -> Employee:
    """Active employee in IT linked to ``employee_user``."""
    return await _make_employee(
        db, test_department,
        first_name="John", last_name="Doe", email="john.doe@company.com",
        user=employee_user,
    )


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(user: User) -> str:
    """Issue a real access token for *user* with the test settings."""
    return token_issuer.issue(user).access_token


def create_raw_token(
    user: User,
    *,
    expires_delta: timedelta = timedelta(minutes=30),
    secret: Optional[str] = None,
    issuer: Optional[str] = None,
    audience: Optional[str] = None,
) -> str:
    """Hand-build a token so tests can vary expiry, key, issuer or audience."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "email": user.email,
        "role": user.role.value,
        "name": user.display_name,
        "iss": issuer or test_settings.JWT_ISSUER,
        "aud": audience or test_settings.JWT_AUDIENCE,
        "iat": now - timedelta(hours=2),
        "exp": now + expires_delta,
    }
    return jwt.encode(
        payload,
        secret or test_settings.JWT_SECRET,
        algorithm=test_settings.JWT_ALGORITHM,
    )


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def admin_headers(admin_user) -> dict[str, str]:
    return auth_headers(admin_user)


@pytest.fixture
def hr_headers(hr_user) -> dict[str, str]:
    return auth_headers(hr_user)


@pytest.fixture
def manager_headers(manager_user) -> dict[str, str]:
    return auth_headers(manager_user)


@pytest.fixture
def employee_headers(employee_user) -> dict[str, str]:
    return auth_headers(employee_user)
