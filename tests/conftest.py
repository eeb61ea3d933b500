"""Shared test fixtures: async DB, client, auth helpers, factories.

Reusable across all test modules (auth, leave, policies, analytics, etc.).
Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test settings before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RESEND_API_KEY", "")

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from leavedesk.auth.service import create_access_token, hash_token
from leavedesk.common.constants import LeaveStatus, TeamRole, UserRole
from leavedesk.config import settings
from leavedesk.database import Base, get_db
from leavedesk.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import leavedesk.auth.models  # noqa: F401
import leavedesk.common.audit  # noqa: F401
import leavedesk.company.models  # noqa: F401
import leavedesk.leave.models  # noqa: F401
import leavedesk.policies.models  # noqa: F401
import leavedesk.team.models  # noqa: F401

# ── SQLite compat: compile PG-specific types to TEXT ────────────────

from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() as a SQLite custom function."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


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
    """Reset rate limiter storage between tests."""
    from leavedesk.common.rate_limit import limiter

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


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
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


# ── Email ───────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def sent_emails():
    """Capture outgoing emails instead of calling Resend."""
    outbox: list[dict] = []

    async def _send(to, subject, html):
        outbox.append({"to": to, "subject": subject, "html": html})
        return True

    with patch(
        "leavedesk.notifications.service.EmailService.send",
        new=AsyncMock(side_effect=_send),
    ):
        yield outbox


# ── Model factories ─────────────────────────────────────────────────

async def make_user(
    db: AsyncSession,
    *,
    name: str = "Test User",
    email: Optional[str] = None,
    role: UserRole = UserRole.member,
):
    from leavedesk.auth.models import User

    user = User(
        id=uuid.uuid4(),
        name=name,
        email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
        role=role,
    )
    db.add(user)
    await db.flush()
    return user


async def make_team(db: AsyncSession, owner, *members, name: str = "Test Team"):
    """A team owned by ``owner`` with ``members`` as plain members."""
    from leavedesk.team.models import Team, TeamMember

    team = Team(id=uuid.uuid4(), name=name)
    db.add(team)
    await db.flush()
    db.add(TeamMember(user_id=owner.id, team_id=team.id, role=TeamRole.owner))
    for member in members:
        db.add(TeamMember(user_id=member.id, team_id=team.id, role=TeamRole.member))
    await db.flush()
    return team


async def make_leave_type(
    db: AsyncSession,
    *,
    name: str = "Annual Leave",
    color: str = "#10B981",
    is_paid: bool = True,
    requires_approval: bool = True,
):
    from leavedesk.leave.models import LeaveType

    leave_type = LeaveType(
        id=uuid.uuid4(),
        name=name,
        color=color,
        is_paid=is_paid,
        requires_approval=requires_approval,
    )
    db.add(leave_type)
    await db.flush()
    return leave_type


async def make_allowance(
    db: AsyncSession,
    user,
    *,
    year: int,
    total_days: str = "25",
    used_days: str = "0",
    carried_over: str = "0",
):
    from leavedesk.leave.models import LeaveAllowance

    allowance = LeaveAllowance(
        user_id=user.id,
        year=year,
        total_days=Decimal(total_days),
        used_days=Decimal(used_days),
        carried_over=Decimal(carried_over),
    )
    db.add(allowance)
    await db.flush()
    return allowance


async def make_request(
    db: AsyncSession,
    user,
    leave_type,
    *,
    start_date: date,
    end_date: Optional[date] = None,
    total_days: Optional[str] = None,
    status: LeaveStatus = LeaveStatus.pending,
    created_at: Optional[datetime] = None,
    approved_at: Optional[datetime] = None,
):
    from leavedesk.leave.models import LeaveRequest

    end_date = end_date or start_date
    days = total_days or str((end_date - start_date).days + 1)
    req = LeaveRequest(
        id=uuid.uuid4(),
        user_id=user.id,
        leave_type_id=leave_type.id,
        start_date=start_date,
        end_date=end_date,
        total_days=Decimal(days),
        status=status,
        approved_at=approved_at,
    )
    if created_at is not None:
        req.created_at = created_at
    db.add(req)
    await db.flush()
    return req


def future_date(days: int = 14) -> date:
    return date.today() + timedelta(days=days)


# ── Auth helpers ────────────────────────────────────────────────────

async def login(db: AsyncSession, user) -> dict[str, str]:
    """Persist a session for ``user`` and return Bearer headers."""
    from leavedesk.auth.models import UserSession

    token = create_access_token(user.id, user.role)
    db.add(
        UserSession(
            id=uuid.uuid4(),
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
            is_revoked=False,
        )
    )
    await db.flush()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def owner(db):
    return await make_user(db, name="Olivia Owner", email="olivia@example.com", role=UserRole.owner)


@pytest.fixture
async def member(db):
    return await make_user(db, name="Max Member", email="max@example.com")


@pytest.fixture
async def team(db, owner, member):
    return await make_team(db, owner, member)


@pytest.fixture
async def annual_leave(db):
    return await make_leave_type(db)


@pytest.fixture
async def owner_headers(db, owner, team) -> dict[str, str]:
    headers = await login(db, owner)
    await db.commit()
    return headers


@pytest.fixture
async def member_headers(db, member, team) -> dict[str, str]:
    headers = await login(db, member)
    await db.commit()
    return headers


@pytest.fixture
def mock_google_oauth():
    """Patch verify_google_token to return a fake Google user."""

    def _mock(email: str = "new.user@example.com", name: str = "New User"):
        google_info = {
            "email": email,
            "name": name,
            "picture": "https://lh3.googleusercontent.com/fake",
            "google_id": f"google-{uuid.uuid4().hex[:12]}",
        }
        return patch(
            "leavedesk.auth.router.verify_google_token",
            new_callable=AsyncMock,
            return_value=google_info,
        )

    return _mock
