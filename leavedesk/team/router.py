"""Team router: members of the caller's team."""


from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.auth.dependencies import get_current_user
from leavedesk.auth.models import User
from leavedesk.database import get_db
from leavedesk.team.schemas import TeamMembersResponse
from leavedesk.team.service import TeamService

router = APIRouter(prefix="", tags=["team"])


@router.get("/members", response_model=TeamMembersResponse)
async def list_members(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TeamService.get_members(db, user.id)
