"""Development seed data — departments, privileged users, linked employees.

Runs from the app lifespan when ``SEED_DATABASE`` is true, or standalone::

    python -m hrdesk.seed    # uses DATABASE_URL from env / .env

Seeding is skipped when any user or department already exists.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.auth.models import User
from hrdesk.auth.passwords import hash_password
from hrdesk.common.constants import EmploymentStatus, UserRole
from hrdesk.core_hr.models import Department, Employee
from hrdesk.core_hr.service import format_employee_code

logger = logging.getLogger(__name__)

DEPARTMENTS = [
    ("Human Resources", "HR", "HR Department"),
    ("Information Technology", "IT", "IT Department"),
    ("Finance", "FIN", "Finance Department"),
    ("Marketing", "MKT", "Marketing Department"),
    ("Sales", "SLS", "Sales Department"),
]

# username, email, first, last, role, development password
USERS = [
    ("admin", "admin@company.com", "System", "Administrator", UserRole.admin, "Admin@123"),
    ("hrmanager", "hr@company.com", "HR", "Manager", UserRole.hr, "Hr@123"),
    ("itmanager", "it@company.com", "IT", "Manager", UserRole.manager, "It@123"),
    ("financemanager", "finance@company.com", "Finance", "Manager", UserRole.manager, "Finance@123"),
]

# first, last, email, dept code, designation, hire date, salary, linked username
EMPLOYEES = [
    ("Raman", "Rawat", "raman.rawat@company.com", "IT", "Senior Developer",
     date(2023, 1, 15), Decimal("85000"), "admin"),
    ("John", "Doe", "john.doe@company.com", "HR", "HR Manager",
     date(2022, 6, 1), Decimal("75000"), "hrmanager"),
    ("Jane", "Smith", "jane.smith@company.com", "IT", "Software Engineer",
     date(2021, 3, 10), Decimal("70000"), "itmanager"),
    ("Priya", "Nair", "priya.nair@company.com", "FIN", "Finance Manager",
     date(2020, 9, 1), Decimal("80000"), "financemanager"),
    ("Alex", "Brown", "alex.brown@company.com", "MKT", "Marketing Specialist",
     date(2023, 7, 3), Decimal("55000"), None),
    ("Maria", "Garcia", "maria.garcia@company.com", "SLS", "Sales Executive",
     date(2024, 2, 12), Decimal("50000"), None),
]


async def is_empty(db: AsyncSession) -> bool:
    users = (await db.execute(select(func.count()).select_from(User))).scalar_one()
    departments = (
        await db.execute(select(func.count()).select_from(Department))
    ).scalar_one()
    return users == 0 and departments == 0


async def seed_database(db: AsyncSession) -> bool:
    """Populate an empty database. Returns False when data already exists."""
    if not await is_empty(db):
        logger.info("Database already populated; skipping seed")
        return False

    departments = {
        code: Department(name=name, code=code, description=description, is_active=True)
        for name, code, description in DEPARTMENTS
    }
    db.add_all(departments.values())

    users = {
        username: User(
            username=username,
            email=email,
            first_name=first,
            last_name=last,
            role=role,
            password_hash=hash_password(password),
            is_active=True,
        )
        for username, email, first, last, role, password in USERS
    }
    db.add_all(users.values())
    await db.flush()

    for number, (first, last, email, dept, designation, hired, salary, username) in enumerate(
        EMPLOYEES, start=1,
    ):
        db.add(
            Employee(
                employee_code=format_employee_code(number),
                first_name=first,
                last_name=last,
                email=email,
                department=departments[dept],
                designation=designation,
                hire_date=hired,
                salary=salary,
                status=EmploymentStatus.active,
                user_id=users[username].id if username else None,
                created_by="seed",
            )
        )
    await db.flush()

    logger.info(
        "Seeded %d departments, %d users, %d employees",
        len(departments), len(users), len(EMPLOYEES),
    )
    return True


# ── Standalone entry point ──────────────────────────────────────────

async def _run() -> None:
    from hrdesk.config import Settings
    from hrdesk.database import Base, build_engine, build_session_factory
    import hrdesk.leave.models  # noqa: F401  (register table)

    settings = Settings()
    engine = build_engine(settings)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with build_session_factory(engine)() as session:
            await seed_database(session)
            await session.commit()
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the hrdesk database")
    parser.parse_args()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    asyncio.run(_run())


if __name__ == "__main__":
    main()
