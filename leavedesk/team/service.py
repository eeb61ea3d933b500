"""Team service: membership lookups used for scoping and notifications."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leavedesk.auth.models import User
from leavedesk.common.constants import TeamRole
from leavedesk.common.exceptions import ForbiddenException, NotFoundException
from leavedesk.team.models import Team, TeamMember
from leavedesk.team.schemas import TeamMemberOut, TeamMembersResponse


class TeamService:
    """Async team operations."""

    @staticmethod
    async def get_membership(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> Optional[TeamMember]:
        """Return the user's earliest team membership with its team loaded."""
        result = await db.execute(
            select(TeamMember)
            .where(TeamMember.user_id == user_id)
            .options(selectinload(TeamMember.team))
            .order_by(TeamMember.joined_at)
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def get_team_user_ids(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> set[uuid.UUID]:
        """Ids of everyone sharing a team with the user, the user included."""
        team_ids = select(TeamMember.team_id).where(TeamMember.user_id == user_id)
        result = await db.execute(
            select(TeamMember.user_id)
            .join(User, User.id == TeamMember.user_id)
            .where(TeamMember.team_id.in_(team_ids), User.deleted_at.is_(None))
        )
        ids = {row[0] for row in result.all()}
        ids.add(user_id)
        return ids

    @staticmethod
    async def get_members(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> TeamMembersResponse:
        """List the members of the caller's team, oldest membership first."""
        membership = await TeamService.get_membership(db, user_id)
        if membership is None:
            raise NotFoundException("Team", error="User not part of any team")

        result = await db.execute(
            select(TeamMember, User)
            .join(User, User.id == TeamMember.user_id)
            .where(
                TeamMember.team_id == membership.team_id,
                User.deleted_at.is_(None),
            )
            .order_by(TeamMember.joined_at)
        )
        members = [
            TeamMemberOut(
                id=user.id,
                name=user.name,
                email=user.email,
                role=member.role,
                joined_at=member.joined_at,
            )
            for member, user in result.all()
        ]
        return TeamMembersResponse(
            team_id=membership.team.id,
            team_name=membership.team.name,
            members=members,
        )

    @staticmethod
    async def get_team_manager(
        db: AsyncSession,
        user_id: uuid.UUID,
    ) -> Optional[User]:
        """The owner of the user's team, who receives approval emails."""
        membership = await TeamService.get_membership(db, user_id)
        if membership is None:
            return None
        result = await db.execute(
            select(User)
            .join(TeamMember, TeamMember.user_id == User.id)
            .where(
                TeamMember.team_id == membership.team_id,
                TeamMember.role == TeamRole.owner,
                User.deleted_at.is_(None),
            )
            .order_by(TeamMember.joined_at)
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def ensure_same_team(
        db: AsyncSession,
        manager_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> None:
        if user_id not in await TeamService.get_team_user_ids(db, manager_id):
            raise ForbiddenException("User is not a member of your team")

    @staticmethod
    async def create_team(
        db: AsyncSession,
        name: str,
        owner_id: uuid.UUID,
    ) -> Team:
        team = Team(name=name)
        db.add(team)
        await db.flush()
        db.add(TeamMember(user_id=owner_id, team_id=team.id, role=TeamRole.owner))
        await db.flush()
        return team
