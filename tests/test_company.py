"""Company settings: defaults, partial updates, admin-only writes."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select

from leavedesk.common.audit import AuditTrail
from leavedesk.company.schemas import CompanySettingsUpdate
from leavedesk.company.service import CompanyService
from leavedesk.leave.service import LeaveService


async def test_settings_created_from_config(db):
    row = await CompanyService.get_settings(db)
    assert row.default_annual_leave_days == 25
    assert row.allow_carry_over is True
    assert row.max_carry_over_days == 5
    assert row.fiscal_year_start == "01-01"
    assert Decimal(row.estimated_daily_cost) == Decimal("150")
    assert row.working_days == 1

    again = await CompanyService.get_settings(db)
    assert again.id == row.id


async def test_update_is_partial_and_audited(db, owner):
    row = await CompanyService.update_settings(
        db, CompanySettingsUpdate(default_annual_leave_days=30), actor_id=owner.id,
    )
    assert row.default_annual_leave_days == 30
    assert row.max_carry_over_days == 5

    audit = (await db.execute(select(AuditTrail))).scalars().one()
    assert audit.entity_type == "company_settings"
    assert audit.new_values == {"default_annual_leave_days": "30"}


async def test_new_allowances_use_updated_default(db, member):
    await CompanyService.update_settings(db, CompanySettingsUpdate(default_annual_leave_days=18))
    allowance = await LeaveService.get_or_create_allowance(db, member.id, 2027)
    assert allowance.total_days == Decimal("18")


async def test_carry_over_disabled(db, member):
    from tests.conftest import make_allowance

    await CompanyService.update_settings(db, CompanySettingsUpdate(allow_carry_over=False))
    await make_allowance(db, member, year=2026, used_days="0")
    allowance = await LeaveService.get_or_create_allowance(db, member.id, 2027)
    assert allowance.carried_over == Decimal("0")


async def test_get_endpoint_for_members(client, member_headers):
    resp = await client.get("/api/company/settings", headers=member_headers)
    assert resp.status_code == 200
    assert resp.json()["default_annual_leave_days"] == 25


async def test_invalid_fiscal_year_start(client, owner_headers):
    resp = await client.put(
        "/api/company/settings", json={"fiscal_year_start": "13-40"}, headers=owner_headers,
    )
    assert resp.status_code == 400
    assert "fiscal_year_start" in resp.json()["details"]


async def test_owner_updates_working_days(client, owner_headers):
    resp = await client.put(
        "/api/company/settings", json={"working_days": 5}, headers=owner_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["working_days"] == 5
    assert resp.json()["default_annual_leave_days"] == 25
