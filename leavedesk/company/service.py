"""Company settings service: singleton row with lazy defaults."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.common.audit import create_audit_entry
from leavedesk.company.models import CompanySettings
from leavedesk.company.schemas import CompanySettingsUpdate
from leavedesk.config import settings


class CompanyService:
    """Read and update company-wide leave settings."""

    @staticmethod
    async def get_settings(db: AsyncSession) -> CompanySettings:
        """Return the settings row, creating it from config defaults on first use."""
        result = await db.execute(
            select(CompanySettings).order_by(CompanySettings.created_at).limit(1)
        )
        row = result.scalars().first()
        if row is None:
            row = CompanySettings(
                company_name=settings.COMPANY_NAME,
                default_annual_leave_days=settings.DEFAULT_ANNUAL_LEAVE_DAYS,
                estimated_daily_cost=Decimal(settings.ESTIMATED_DAILY_COST),
            )
            db.add(row)
            await db.flush()
        return row

    @staticmethod
    async def update_settings(
        db: AsyncSession,
        data: CompanySettingsUpdate,
        actor_id: Optional[uuid.UUID] = None,
    ) -> CompanySettings:
        row = await CompanyService.get_settings(db)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        old_values = {k: str(getattr(row, k)) for k in changes}
        for field, value in changes.items():
            setattr(row, field, value)
        await db.flush()

        if changes:
            await create_audit_entry(
                db,
                action="update",
                entity_type="company_settings",
                entity_id=row.id,
                actor_id=actor_id,
                old_values=old_values,
                new_values={k: str(v) for k, v in changes.items()},
            )
        return row
