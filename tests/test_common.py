"""Tests for common utilities — filters, pagination, settings and problem bodies.

Exercises apply_filters, apply_sorting, apply_search and paginate against
SQLite, plus configuration validation and the RFC 7807 error format.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.common.constants import EmploymentStatus
from hrdesk.common.exceptions import (
    ConflictError,
    InvalidStateTransitionException,
    NotFoundException,
)
from hrdesk.common.filters import _get_column, apply_filters, apply_search, apply_sorting
from hrdesk.common.pagination import PaginationParams, paginate
from hrdesk.config import Settings
from hrdesk.core_hr.models import Employee
from tests.conftest import _make_department, _make_employee


class TestApplyFilters:
    """Tests for apply_filters utility."""

    async def test_filter_by_equality(self, db: AsyncSession):
        dept = await _make_department(db)
        await _make_employee(db, dept, first_name="Alice")
        await _make_employee(db, dept, first_name="Bob")

        query = apply_filters(select(Employee), Employee, {"first_name": "Alice"})
        employees = (await db.execute(query)).scalars().all()
        assert [e.first_name for e in employees] == ["Alice"]

    async def test_filter_none_values_skipped(self, db: AsyncSession):
        dept = await _make_department(db)
        await _make_employee(db, dept)

        query = apply_filters(
            select(Employee), Employee,
            {"first_name": None, "status": EmploymentStatus.active},
        )
        assert len((await db.execute(query)).scalars().all()) == 1

    async def test_filter_by_from_to_range(self, db: AsyncSession):
        dept = await _make_department(db)
        await _make_employee(db, dept, first_name="E1", hire_date=date(2024, 1, 1))
        await _make_employee(db, dept, first_name="E2", hire_date=date(2025, 6, 1))
        await _make_employee(db, dept, first_name="E3", hire_date=date(2026, 1, 1))

        query = apply_filters(select(Employee), Employee, {
            "hire_date__from": date(2025, 1, 1),
            "hire_date__to": date(2025, 12, 31),
        })
        employees = (await db.execute(query)).scalars().all()
        assert [e.first_name for e in employees] == ["E2"]

    async def test_filter_nonexistent_column_ignored(self, db: AsyncSession):
        dept = await _make_department(db)
        await _make_employee(db, dept)

        query = apply_filters(select(Employee), Employee, {"nonexistent_field": "value"})
        assert len((await db.execute(query)).scalars().all()) == 1


class TestApplySearch:
    """Tests for apply_search utility."""

    async def test_search_is_case_insensitive_across_columns(self, db: AsyncSession):
        dept = await _make_department(db)
        await _make_employee(db, dept, first_name="Alexander", designation="Designer")
        await _make_employee(db, dept, first_name="Bobby", designation="Lead Architect")
        await _make_employee(db, dept, first_name="Carla", designation="Analyst")

        query = apply_search(
            select(Employee), Employee, "  ARCH ", ["first_name", "designation"],
        )
        employees = (await db.execute(query)).scalars().all()
        assert [e.first_name for e in employees] == ["Bobby"]

    def test_blank_search_is_no_op(self):
        query = select(Employee)
        assert apply_search(query, Employee, "   ", ["first_name"]) is query
        assert apply_search(query, Employee, None, ["first_name"]) is query


class TestApplySorting:
    """Tests for apply_sorting utility."""

    async def test_sort_ascending_and_descending(self, db: AsyncSession):
        dept = await _make_department(db)
        for name in ("Charlie", "Alice", "Bob"):
            await _make_employee(db, dept, first_name=name)

        asc = apply_sorting(select(Employee), Employee, "first_name")
        desc = apply_sorting(select(Employee), Employee, "-first_name")
        assert [e.first_name for e in (await db.execute(asc)).scalars().all()] == [
            "Alice", "Bob", "Charlie",
        ]
        assert [e.first_name for e in (await db.execute(desc)).scalars().all()] == [
            "Charlie", "Bob", "Alice",
        ]

    def test_sort_none_no_op(self):
        query = select(Employee)
        assert apply_sorting(query, Employee, None) is query

    def test_unknown_column_is_ignored(self):
        query = select(Employee)
        assert apply_sorting(query, Employee, "nonexistent_field") is query

    async def test_whitelist_maps_keys_and_falls_back_to_default(self, db: AsyncSession):
        dept = await _make_department(db)
        await _make_employee(db, dept, first_name="Low", salary=Decimal("100"))
        await _make_employee(db, dept, first_name="High", salary=Decimal("900"))

        allowed = {"pay": "salary", "first_name": "first_name"}
        by_pay = apply_sorting(select(Employee), Employee, "-PAY", allowed=allowed)
        assert [e.first_name for e in (await db.execute(by_pay)).scalars().all()] == [
            "High", "Low",
        ]

        fallback = apply_sorting(
            select(Employee), Employee, "password_hash", allowed=allowed, default="first_name",
        )
        assert [e.first_name for e in (await db.execute(fallback)).scalars().all()] == [
            "High", "Low",
        ]


class TestGetColumn:
    """Tests for _get_column helper."""

    def test_get_existing_column(self):
        assert _get_column(Employee, "first_name") is not None

    def test_get_nonexistent_column(self):
        assert _get_column(Employee, "totally_fake_column") is None

    def test_properties_are_not_columns(self):
        assert _get_column(Employee, "full_name") is None


class TestPagination:
    """Tests for pagination helper."""

    async def test_paginate_first_and_second_page(self, db: AsyncSession):
        dept = await _make_department(db)
        for i in range(5):
            await _make_employee(db, dept, first_name=f"P{i}")

        query = select(Employee).order_by(Employee.first_name)
        first = await paginate(db, query, PaginationParams(page=1, page_size=3))
        second = await paginate(db, query, PaginationParams(page=2, page_size=3))

        assert [e.first_name for e in first.data] == ["P0", "P1", "P2"]
        assert first.meta.total == 5
        assert first.meta.total_pages == 2
        assert first.meta.has_next is True
        assert first.meta.has_prev is False
        assert [e.first_name for e in second.data] == ["P3", "P4"]
        assert second.meta.has_next is False
        assert second.meta.has_prev is True

    async def test_paginate_transform(self, db: AsyncSession):
        dept = await _make_department(db)
        await _make_employee(db, dept, first_name="Zed")

        result = await paginate(
            db, select(Employee), PaginationParams(page=1, page_size=10),
            transform=lambda e: e.first_name,
        )
        assert result.data == ["Zed"]

    async def test_paginate_empty_result(self, db: AsyncSession):
        query = select(Employee).where(Employee.first_name == "ZZZ_NONEXISTENT")
        result = await paginate(db, query, PaginationParams(page=1, page_size=10))
        assert len(result.data) == 0
        assert result.meta.total == 0
        assert result.meta.total_pages == 0


class TestSettings:
    """Configuration is validated when Settings is constructed."""

    def test_missing_secret_is_rejected(self, monkeypatch):
        monkeypatch.delenv("JWT_SECRET", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    @pytest.mark.parametrize("field", ["JWT_SECRET", "JWT_ISSUER", "JWT_AUDIENCE"])
    def test_blank_values_are_rejected(self, field):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{"JWT_SECRET": "s3cret", field: "   "})

    def test_non_positive_expiry_is_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, JWT_SECRET="s3cret", JWT_EXPIRY_MINUTES=0)

    def test_cors_origins_parsing(self):
        settings = Settings(
            _env_file=None, JWT_SECRET="s3cret", CORS_ORIGINS='["https://a.example"]',
        )
        assert settings.cors_origins_list == ["https://a.example"]

        broken = Settings(_env_file=None, JWT_SECRET="s3cret", CORS_ORIGINS="not json")
        assert broken.cors_origins_list == ["http://localhost:3000"]


class TestExceptions:
    """Exception taxonomy and RFC 7807 rendering."""

    def test_kinds_and_codes(self):
        assert NotFoundException("Employee", 7).kind == "not_found"
        conflict = ConflictError("username", "jdoe")
        assert (conflict.status_code, conflict.kind, conflict.code) == (
            409, "validation", "duplicate_username",
        )
        state = InvalidStateTransitionException("leave request", "approved", "cancel")
        assert (state.status_code, state.kind, state.code) == (
            409, "invalid_state", "invalid_state_transition",
        )

    async def test_not_found_renders_problem_json(self, client, employee_headers):
        resp = await client.get("/api/v1/employees/999", headers=employee_headers)
        assert resp.status_code == 404
        assert resp.headers["content-type"].startswith("application/problem+json")
        body = resp.json()
        assert body["status"] == 404
        assert body["kind"] == "not_found"
        assert body["instance"] == "/api/v1/employees/999"

    async def test_request_validation_renders_problem_json(self, client):
        resp = await client.post("/api/v1/auth/login", json={"password": "x"})
        assert resp.status_code == 422
        body = resp.json()
        assert body["kind"] == "validation"
        assert "username_or_email" in body["errors"]

    async def test_health_check(self, client):
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"
        assert resp.json()["environment"] == "test"
