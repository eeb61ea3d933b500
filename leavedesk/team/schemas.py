"""Team Pydantic schemas."""


import uuid
from datetime import datetime

from pydantic import BaseModel

from leavedesk.common.constants import TeamRole


class TeamMemberOut(BaseModel):
    """A member of the caller's team."""

    id: uuid.UUID
    name: str
    email: str
    role: TeamRole
    joined_at: datetime


class TeamMembersResponse(BaseModel):
    team_id: uuid.UUID
    team_name: str
    members: list[TeamMemberOut]
