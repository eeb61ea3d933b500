"""Default leave type seeding."""

from __future__ import annotations

from sqlalchemy import select

from leavedesk.leave.models import LeaveType
from scripts.seed_leave_types import DEFAULT_LEAVE_TYPES, seed_leave_types
from tests.conftest import make_leave_type


async def test_seeds_defaults(db):
    inserted = await seed_leave_types(db)
    assert inserted == len(DEFAULT_LEAVE_TYPES)

    types = {lt.name: lt for lt in (await db.execute(select(LeaveType))).scalars().all()}
    assert types["Sick Leave"].requires_approval is False
    assert types["Unpaid Leave"].is_paid is False
    assert types["Annual Leave"].color == "#10B981"
    assert "Maternity/Paternity" in types


async def test_skips_when_types_exist(db):
    await make_leave_type(db, name="Custom")
    assert await seed_leave_types(db) == 0
    assert len((await db.execute(select(LeaveType))).scalars().all()) == 1
