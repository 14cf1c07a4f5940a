"""
Error classification and the JSON error body.
"""
from __future__ import annotations

import httpx
from fastapi import FastAPI
from sqlalchemy.exc import IntegrityError

from app.core.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    configure_error_handlers,
    integrity_kind,
)


class _PgError(Exception):
    def __init__(self, message: str, sqlstate: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


def _integrity(message: str, sqlstate: str | None = None) -> IntegrityError:
    return IntegrityError("INSERT ...", {}, _PgError(message, sqlstate))


class TestIntegrityKind:
    def test_by_sqlstate(self):
        assert integrity_kind(_integrity("x", "23503")) == "foreign_key"
        assert integrity_kind(_integrity("x", "23505")) == "unique"
        assert integrity_kind(_integrity("x", "23514")) == "check"
        assert integrity_kind(_integrity("x", "23P01")) == "exclusion"

    def test_by_message(self):
        assert integrity_kind(_integrity("violates foreign key constraint")) == "foreign_key"
        assert integrity_kind(_integrity("duplicate key value")) == "unique"
        assert integrity_kind(_integrity("violates check constraint")) == "check"
        assert integrity_kind(_integrity("something else")) == "other"


def _app_raising(exc: Exception) -> FastAPI:
    app = FastAPI()
    configure_error_handlers(app)

    @app.get("/boom")
    async def boom():
        raise exc

    return app


async def _get(app: FastAPI) -> httpx.Response:
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get("/boom")


class TestHandlers:
    async def test_not_found(self):
        response = await _get(_app_raising(NotFoundError("Vehicle", 12)))
        assert response.status_code == 404
        body = response.json()
        assert body["detail"] == "Vehicle not found"
        assert body["error"] == "Vehicle not found"
        assert body["details"] == {"resource": "Vehicle", "resource_id": "12"}

    async def test_validation_and_conflict(self):
        response = await _get(_app_raising(ValidationError("Bad dates", details={"field": "end"})))
        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

        response = await _get(_app_raising(ConflictError("Already there")))
        assert response.status_code == 409
        assert response.json()["code"] == "conflict"

    async def test_unhandled_integrity_error(self):
        response = await _get(_app_raising(_integrity("duplicate key value", "23505")))
        assert response.status_code == 409

        response = await _get(_app_raising(_integrity("violates foreign key", "23503")))
        assert response.status_code == 400

    async def test_unexpected_error_is_500(self):
        response = await _get(_app_raising(RuntimeError("kaboom")))
        assert response.status_code == 500
        assert response.json()["detail"] == "Internal server error"
