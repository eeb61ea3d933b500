"""Auth Pydantic schemas for request / response validation."""


import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict

from leavedesk.common.constants import TeamRole, UserRole


# ── Embedded / Shared ──────────────────────────────────────────────

class UserBrief(BaseModel):
    """Minimal user info embedded in other responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str


class TeamBrief(BaseModel):
    id: uuid.UUID
    name: str
    role: TeamRole


# ── Responses ───────────────────────────────────────────────────────

class MeResponse(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    picture_url: Optional[str] = None
    is_manager: bool
    team: Optional[TeamBrief] = None


class LogoutResponse(BaseModel):
    success: bool = True
