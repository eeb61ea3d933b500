"""Leave policy router: read for everyone, write for admins."""


import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.auth.dependencies import get_current_user, require_role
from leavedesk.auth.models import User
from leavedesk.common.constants import UserRole
from leavedesk.database import get_db
from leavedesk.policies.schemas import (
    DeleteResponse,
    LeavePolicyCreate,
    LeavePolicyOut,
    LeavePolicyUpdate,
)
from leavedesk.policies.service import PolicyService

router = APIRouter(prefix="", tags=["policies"])


@router.get("", response_model=list[LeavePolicyOut])
async def list_policies(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await PolicyService.list_policies(db)


@router.post("", response_model=LeavePolicyOut, status_code=201)
async def create_policy(
    body: LeavePolicyCreate,
    user: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await PolicyService.create_policy(db, body, user.id)


@router.put("/{policy_id}", response_model=LeavePolicyOut)
async def update_policy(
    policy_id: uuid.UUID,
    body: LeavePolicyUpdate,
    user: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    return await PolicyService.update_policy(db, policy_id, body, user.id)


@router.delete("/{policy_id}", response_model=DeleteResponse)
async def delete_policy(
    policy_id: uuid.UUID,
    user: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    await PolicyService.delete_policy(db, policy_id, user.id)
    return DeleteResponse()
