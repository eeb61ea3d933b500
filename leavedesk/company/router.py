"""Company settings router."""


from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.auth.dependencies import get_current_user, require_role
from leavedesk.auth.models import User
from leavedesk.common.constants import UserRole
from leavedesk.company.schemas import CompanySettingsOut, CompanySettingsUpdate
from leavedesk.company.service import CompanyService
from leavedesk.database import get_db

router = APIRouter(prefix="", tags=["company"])


@router.get("/settings", response_model=CompanySettingsOut)
async def get_settings(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CompanyService.get_settings(db)


@router.put("/settings", response_model=CompanySettingsOut)
async def update_settings(
    body: CompanySettingsUpdate,
    user: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await CompanyService.update_settings(db, body, actor_id=user.id)
