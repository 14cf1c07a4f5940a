from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DatabaseError, IntegrityError

from app.core.logging import logger


class AppError(Exception):
    """Base application error carrying a machine readable code."""

    status_code = 400

    def __init__(
        self, message: str, code: str = "internal_error", details: dict[str, Any] | None = None
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404

    def __init__(self, resource: str, resource_id: Any) -> None:
        super().__init__(
            message=f"{resource} not found",
            code="not_found",
            details={"resource": resource, "resource_id": str(resource_id)},
        )


class ValidationError(AppError):
    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="validation_error", details=details)


class ConflictError(AppError):
    status_code = 409

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code="conflict", details=details)


class AuthenticationError(AppError):
    status_code = 401

    def __init__(self, message: str = "Access token is required") -> None:
        super().__init__(message=message, code="unauthorized")


class PermissionDeniedError(AppError):
    status_code = 403

    def __init__(self, message: str = "Access denied. Insufficient permissions.") -> None:
        super().__init__(message=message, code="forbidden")


# SQLSTATE codes raised by Postgres for constraint violations
_SQLSTATE_KINDS = {
    "23503": "foreign_key",
    "23505": "unique",
    "23514": "check",
    "23P01": "exclusion",
}


def integrity_kind(exc: IntegrityError) -> str:
    """Classify an IntegrityError as foreign_key, unique, check, exclusion or other."""
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None)
    if sqlstate in _SQLSTATE_KINDS:
        return _SQLSTATE_KINDS[sqlstate]

    message = str(orig if orig is not None else exc).lower()
    if "foreign key" in message:
        return "foreign_key"
    if "unique" in message or "duplicate" in message:
        return "unique"
    if "check constraint" in message:
        return "check"
    if "exclusion constraint" in message:
        return "exclusion"
    return "other"


def _error_body(detail: str, code: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    # "error" mirrors "detail" for clients written against the { error } body
    return {"detail": detail, "error": detail, "code": code, "details": details or {}}


def configure_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.code, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        fields = []
        for err in exc.errors():
            loc = [str(part) for part in err.get("loc", ()) if part != "body"]
            fields.append({"field": ".".join(loc), "message": err.get("msg", "")})
        first = fields[0]["message"] if fields else "Invalid request"
        # Custom validators raise "Value error, <message>", surface the message only
        first = first.removeprefix("Value error, ")
        return JSONResponse(
            status_code=400,
            content=_error_body(first, "validation_error", {"fields": fields}),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(_: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning(f"IntegrityError: {exc.orig if hasattr(exc, 'orig') else exc}")
        error_msg = str(exc.orig) if hasattr(exc, "orig") else str(exc)
        kind = integrity_kind(exc)

        if kind == "foreign_key":
            return JSONResponse(
                status_code=400,
                content=_error_body(
                    "Foreign key violation. The record is referenced or refers to a missing record.",
                    "validation_error",
                    {"error": error_msg},
                ),
            )
        if kind == "unique":
            return JSONResponse(
                status_code=409,
                content=_error_body(
                    "A record with the same values already exists.",
                    "conflict",
                    {"error": error_msg},
                ),
            )
        return JSONResponse(
            status_code=400,
            content=_error_body("Data integrity error.", "validation_error", {"error": error_msg}),
        )

    @app.exception_handler(DatabaseError)
    async def database_error_handler(_: Request, exc: DatabaseError) -> JSONResponse:
        logger.error(f"DatabaseError: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body("Database error", "database_error"),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body("Internal server error", "internal_error"),
        )
