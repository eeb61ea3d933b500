"""Auth dependencies: session validation, RBAC enforcement."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.auth.models import User, UserSession
from leavedesk.auth.service import hash_token
from leavedesk.common.constants import MANAGER_ROLES, UserRole
from leavedesk.common.exceptions import ForbiddenException, UnauthorizedException
from leavedesk.config import settings
from leavedesk.database import get_db

# Role hierarchy: each role implicitly includes lower roles
_ROLE_HIERARCHY: dict[UserRole, set[UserRole]] = {
    UserRole.owner: {UserRole.owner, UserRole.admin, UserRole.member},
    UserRole.admin: {UserRole.admin, UserRole.member},
    UserRole.member: {UserRole.member},
}


def extract_token(request: Request) -> Optional[str]:
    """Session cookie first, then ``Authorization: Bearer``."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate JWT, verify session, return the authenticated User."""
    token = extract_token(request)
    if not token:
        raise UnauthorizedException()

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise UnauthorizedException("Session has expired")
    except JWTError:
        raise UnauthorizedException("Invalid session")

    if payload.get("type") != "access":
        raise UnauthorizedException("Invalid session")

    # Verify session exists, not revoked, not expired
    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == hash_token(token),
            UserSession.is_revoked.is_(False),
            UserSession.expires_at > datetime.now(timezone.utc),
        ),
    )
    if result.scalars().first() is None:
        raise UnauthorizedException("Session invalid or expired")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise UnauthorizedException("Invalid session")

    user_result = await db.execute(
        select(User).where(User.id == user_id, User.deleted_at.is_(None)),
    )
    user = user_result.scalars().first()
    if user is None:
        raise UnauthorizedException("User account is inactive or not found")

    # The stored role wins over the token claim so role changes apply at once
    request.state.user_role = user.role
    request.state.session_token = token

    return user


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: UserRole) -> Callable:
    """Return a FastAPI dependency that enforces role membership.

    Respects hierarchy: e.g. owner can access admin endpoints.
    """

    async def _check(
        request: Request,
        user: User = Depends(get_current_user),
    ) -> User:
        user_role: UserRole = request.state.user_role
        effective_roles = _ROLE_HIERARCHY.get(user_role, {user_role})
        if not effective_roles.intersection(set(allowed_roles)):
            raise ForbiddenException("Insufficient permissions")
        return user

    return _check


require_manager = require_role(*MANAGER_ROLES)
