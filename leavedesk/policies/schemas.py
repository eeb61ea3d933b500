"""Leave policy Pydantic schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class PolicyRuleIn(BaseModel):
    rule_type: str = Field(..., min_length=1, max_length=50)
    rule_data: dict[str, Any] = Field(default_factory=dict)


class PolicyRuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    rule_type: str
    rule_data: dict[str, Any]


class LeavePolicyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    leave_type_id: Optional[uuid.UUID] = Field(
        None, description="Leave type the policy applies to; omit for all types"
    )
    min_notice_days: int = Field(0, ge=0, le=365)
    max_consecutive_days: Optional[int] = Field(None, ge=1, le=366)
    max_requests_per_year: Optional[int] = Field(None, ge=1, le=366)
    requires_approval: bool = True
    is_active: bool = True
    rules: list[PolicyRuleIn] = Field(default_factory=list)


class LeavePolicyUpdate(BaseModel):
    """Partial update; a supplied ``rules`` list replaces the existing rules."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    leave_type_id: Optional[uuid.UUID] = None
    min_notice_days: Optional[int] = Field(None, ge=0, le=365)
    max_consecutive_days: Optional[int] = Field(None, ge=1, le=366)
    max_requests_per_year: Optional[int] = Field(None, ge=1, le=366)
    requires_approval: Optional[bool] = None
    is_active: Optional[bool] = None
    rules: Optional[list[PolicyRuleIn]] = None


class LeavePolicyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    leave_type_id: Optional[uuid.UUID] = None
    min_notice_days: int
    max_consecutive_days: Optional[int] = None
    max_requests_per_year: Optional[int] = None
    requires_approval: bool
    is_active: bool
    rules: list[PolicyRuleOut] = []
    created_at: datetime
    updated_at: datetime


class DeleteResponse(BaseModel):
    success: bool = True
