"""Company settings Pydantic schemas."""


import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CompanySettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    company_name: str
    default_annual_leave_days: int
    allow_carry_over: bool
    max_carry_over_days: int
    fiscal_year_start: str
    estimated_daily_cost: Decimal
    working_days: int
    updated_at: datetime


class CompanySettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""

    company_name: Optional[str] = Field(None, min_length=1, max_length=100)
    default_annual_leave_days: Optional[int] = Field(None, ge=0, le=366)
    allow_carry_over: Optional[bool] = None
    max_carry_over_days: Optional[int] = Field(None, ge=0, le=366)
    fiscal_year_start: Optional[str] = Field(
        None,
        pattern=r"^(0[1-9]|1[0-2])-(0[1-9]|[12][0-9]|3[01])$",
        description="MM-DD",
    )
    estimated_daily_cost: Optional[Decimal] = Field(None, ge=0)
    working_days: Optional[int] = Field(None, ge=0)
