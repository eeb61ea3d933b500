"""Team membership: scoping helpers and the members endpoint."""

from __future__ import annotations

import pytest

from leavedesk.common.constants import UserRole
from leavedesk.common.exceptions import ForbiddenException, NotFoundException
from leavedesk.team.service import TeamService
from tests.conftest import login, make_team, make_user


async def test_team_user_ids_include_self_and_teammates(db, owner, member, team):
    ids = await TeamService.get_team_user_ids(db, member.id)
    assert ids == {owner.id, member.id}


async def test_user_without_team_only_sees_self(db):
    loner = await make_user(db, name="Loner")
    assert await TeamService.get_team_user_ids(db, loner.id) == {loner.id}


async def test_team_manager_is_owner(db, owner, member, team):
    manager = await TeamService.get_team_manager(db, member.id)
    assert manager.id == owner.id


async def test_ensure_same_team(db, owner, member, team):
    stranger = await make_user(db, name="Stranger")
    await make_team(db, stranger, name="Elsewhere")

    await TeamService.ensure_same_team(db, owner.id, member.id)
    with pytest.raises(ForbiddenException):
        await TeamService.ensure_same_team(db, owner.id, stranger.id)


async def test_get_members_without_team(db):
    loner = await make_user(db, name="Loner")
    with pytest.raises(NotFoundException) as exc_info:
        await TeamService.get_members(db, loner.id)
    assert exc_info.value.error == "User not part of any team"


async def test_create_team_makes_owner_membership(db):
    founder = await make_user(db, name="Founder", role=UserRole.owner)
    team = await TeamService.create_team(db, "Founders", founder.id)

    members = await TeamService.get_members(db, founder.id)
    assert members.team_id == team.id
    assert [(m.name, m.role.value) for m in members.members] == [("Founder", "owner")]


async def test_members_endpoint(client, member_headers):
    resp = await client.get("/api/team/members", headers=member_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["team_name"] == "Test Team"
    assert {m["email"] for m in body["members"]} == {"olivia@example.com", "max@example.com"}


async def test_members_endpoint_without_team(client, db):
    loner = await make_user(db, name="Loner")
    headers = await login(db, loner)
    await db.commit()

    resp = await client.get("/api/team/members", headers=headers)
    assert resp.status_code == 404
    assert resp.json() == {"error": "User not part of any team"}
