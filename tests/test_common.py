"""Common module: exception hierarchy, JSON error handlers, audit, health."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel, Field
from sqlalchemy import select

from leavedesk.common.audit import AuditTrail, create_audit_entry
from leavedesk.common.exceptions import (
    AppException,
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)
from leavedesk.config import settings


class _Body(BaseModel):
    name: str = Field(..., min_length=2)


def _error_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/unauthorized")
    async def unauthorized():
        raise UnauthorizedException()

    @app.get("/forbidden")
    async def forbidden():
        raise ForbiddenException("Nope")

    @app.get("/missing")
    async def missing():
        raise NotFoundException("Widget", "w-1")

    @app.get("/invalid")
    async def invalid():
        raise ValidationException({"start_date": ["Too early", "Also wrong"]})

    @app.post("/body")
    async def body(payload: _Body):
        return payload

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    return app


@pytest.fixture
async def error_client():
    transport = ASGITransport(app=_error_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ── Exception classes ───────────────────────────────────────────────


def test_validation_exception_defaults_error_to_first_message():
    exc = ValidationException({"a": [], "b": ["First", "Second"]})
    assert exc.status_code == 400
    assert exc.error == "First"
    assert exc.details == {"a": [], "b": ["First", "Second"]}


def test_not_found_message():
    assert NotFoundException("Leave request", "x").error == "Leave request not found"
    assert NotFoundException("Team", error="User not part of any team").error == (
        "User not part of any team"
    )


def test_app_exception_is_exception():
    exc = AppException(418, "teapot")
    assert str(exc) == "teapot"


# ── Handlers ────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "path, status, body",
    [
        ("/unauthorized", 401, {"error": "Unauthorized"}),
        ("/forbidden", 403, {"error": "Nope"}),
        ("/missing", 404, {"error": "Widget not found"}),
        (
            "/invalid",
            400,
            {"error": "Too early", "details": {"start_date": ["Too early", "Also wrong"]}},
        ),
        ("/no-such-route", 404, {"error": "Not Found"}),
        ("/boom", 500, {"error": "Internal server error"}),
    ],
)
async def test_error_bodies(error_client, path, status, body):
    resp = await error_client.get(path)
    assert resp.status_code == status
    assert resp.json() == body


async def test_request_validation_is_400_with_fields(error_client):
    resp = await error_client.post("/body", json={"name": "x"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid request data"
    assert list(body["details"]) == ["name"]


# ── Audit ───────────────────────────────────────────────────────────


async def test_create_audit_entry(db, owner):
    await create_audit_entry(
        db,
        action="update",
        entity_type="leave_policy",
        entity_id=None,
        actor_id=owner.id,
        old_values={"a": 1},
        new_values={"a": 2},
        ip_address="10.0.0.1",
    )
    entry = (await db.execute(select(AuditTrail))).scalars().one()
    assert entry.actor_id == owner.id
    assert entry.new_values == {"a": 2}
    assert entry.ip_address == "10.0.0.1"


# ── Health ──────────────────────────────────────────────────────────


async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


async def test_default_rate_limit_applies_to_undecorated_routes(client):
    allowed = int(settings.RATE_LIMIT_DEFAULT.split("/")[0])
    for _ in range(allowed):
        assert (await client.get("/api/health")).status_code == 200

    resp = await client.get("/api/health")
    assert resp.status_code == 429
    assert resp.json()["error"].startswith("Rate limit exceeded")
