"""Custom exceptions and RFC 7807 Problem Detail error handlers.

Every exception carries a ``kind`` drawn from a closed taxonomy
(authentication, authorization, validation, not_found, invalid_state) so
callers can tell a 401 from a 403 from a bad input without parsing text.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

BASE_ERROR_URI = "https://hrdesk.local/errors"


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → RFC 7807 JSON."""

    kind: str = "error"

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
        code: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        self.code = code
        super().__init__(detail)


class AuthenticationException(AppException):
    """401 — bad credentials, inactive account, or missing/invalid token."""

    kind = "authentication"

    def __init__(
        self,
        detail: str = "Authentication is required.",
        *,
        code: str = "invalid_credentials",
    ) -> None:
        super().__init__(
            status_code=401,
            error_type="unauthorized",
            title="Unauthorized",
            detail=detail,
            code=code,
        )


class ForbiddenException(AppException):
    """403 — insufficient permissions."""

    kind = "authorization"

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
        *,
        code: str = "insufficient_role",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
            code=code,
        )


class NotFoundException(AppException):
    """404 — entity not found."""

    kind = "not_found"

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
            code="not_found",
        )


class ConflictError(AppException):
    """409 — unique-constraint / duplicate."""

    kind = "validation"

    def __init__(self, field: str, value: Any, *, code: Optional[str] = None) -> None:
        super().__init__(
            status_code=409,
            error_type="conflict",
            title="Conflict",
            detail=f"An entry with {field}='{value}' already exists.",
            errors={field: [f"'{value}' is already in use."]},
            code=code or f"duplicate_{field}",
        )


class ValidationException(AppException):
    """422 — business-logic validation failures."""

    kind = "validation"

    def __init__(
        self,
        errors: dict[str, list[str]],
        *,
        code: Optional[str] = None,
        detail: str = "One or more fields failed validation.",
    ) -> None:
        super().__init__(
            status_code=422,
            error_type="validation-error",
            title="Validation Error",
            detail=detail,
            errors=errors,
            code=code,
        )


class InvalidStateTransitionException(AppException):
    """409 — the entity's current status does not allow the requested change."""

    kind = "invalid_state"

    def __init__(self, entity_type: str, current: str, action: str) -> None:
        super().__init__(
            status_code=409,
            error_type="invalid-state-transition",
            title="Invalid State Transition",
            detail=f"Cannot {action} a {entity_type} whose status is '{current}'.",
            code="invalid_state_transition",
        )


# ── RFC 7807 builder ────────────────────────────────────────────────

def _build_problem_detail(exc: AppException, request: Request) -> dict[str, Any]:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{exc.error_type}",
        "title": exc.title,
        "status": exc.status_code,
        "detail": exc.detail,
        "instance": str(request.url.path),
        "kind": exc.kind,
    }
    if exc.code:
        body["code"] = exc.code
    if exc.errors:
        body["errors"] = exc.errors
    return body


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    headers = None
    if exc.status_code == 401:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content=_build_problem_detail(exc, request),
        media_type="application/problem+json",
        headers=headers,
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return JSONResponse(
        status_code=422,
        content={
            "type": f"{BASE_ERROR_URI}/validation-error",
            "title": "Validation Error",
            "status": 422,
            "detail": "Request validation failed.",
            "instance": str(request.url.path),
            "kind": "validation",
            "errors": field_errors,
        },
        media_type="application/problem+json",
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
