"""Auth service: Google OAuth exchange, user provisioning, JWT sessions."""

from __future__ import annotations

import hashlib
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import urlencode

import httpx
from jose import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.auth.models import User, UserSession
from leavedesk.common.constants import UserRole
from leavedesk.common.exceptions import ForbiddenException
from leavedesk.config import settings
from leavedesk.team.service import TeamService

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"


# ── Google OAuth ────────────────────────────────────────────────────

def generate_state() -> str:
    return secrets.token_urlsafe(32)


def states_match(expected: Optional[str], received: Optional[str]) -> bool:
    """Constant-time comparison of the cookie state and the callback state."""
    if not expected or not received:
        return False
    return secrets.compare_digest(expected.encode(), received.encode())


def build_authorization_url(state: str) -> str:
    params = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": settings.google_redirect_uri,
        "response_type": "code",
        "scope": "openid email profile",
        "state": state,
        "access_type": "offline",
        "prompt": "consent",
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


async def verify_google_token(code: str, redirect_uri: str) -> dict[str, Any]:
    """Exchange Google authorization code for user info.

    Returns dict with keys: email, name, picture, google_id.
    """
    async with httpx.AsyncClient(timeout=15) as client:
        # 1. Exchange code → tokens
        token_resp = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "client_id": settings.GOOGLE_CLIENT_ID,
                "client_secret": settings.GOOGLE_CLIENT_SECRET,
                "code": code,
                "redirect_uri": redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        token_data = token_resp.json()
        if token_resp.status_code != 200 or "access_token" not in token_data:
            raise ForbiddenException(
                f"Google token exchange failed: {token_data.get('error_description', 'unknown error')}",
            )

        # 2. Fetch user info
        info_resp = await client.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {token_data['access_token']}"},
        )
        if info_resp.status_code != 200:
            raise ForbiddenException("Failed to fetch Google user info.")

        info = info_resp.json()

    return {
        "email": info["email"],
        "name": info.get("name") or info["email"].split("@")[0],
        "picture": info.get("picture"),
        "google_id": info["id"],
    }


def validate_domain(email: str) -> None:
    """Ensure the email belongs to the allowed domain, when one is configured."""
    if settings.ALLOWED_DOMAIN and not email.lower().endswith(f"@{settings.ALLOWED_DOMAIN}"):
        raise ForbiddenException(
            f"Only @{settings.ALLOWED_DOMAIN} accounts are permitted.",
        )


# ── User provisioning ───────────────────────────────────────────────

async def find_or_create_user(
    db: AsyncSession,
    google_info: dict[str, Any],
) -> tuple[User, bool]:
    """Return (user, created).

    A first-time user becomes the owner of a fresh team of their own.
    """
    email = google_info["email"].lower()
    result = await db.execute(
        select(User).where(User.email == email, User.deleted_at.is_(None)),
    )
    user = result.scalars().first()

    if user is not None:
        if not user.google_id:
            user.google_id = google_info.get("google_id")
        if google_info.get("picture"):
            user.picture_url = google_info["picture"]
        await db.flush()
        return user, False

    user = User(
        name=google_info.get("name") or email,
        email=email,
        auth_provider="google",
        google_id=google_info.get("google_id"),
        picture_url=google_info.get("picture"),
        role=UserRole.owner,
    )
    db.add(user)
    await db.flush()

    await TeamService.create_team(db, f"{email}'s Team", user.id)

    return user, True


# ── JWT helpers ─────────────────────────────────────────────────────

def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def create_access_token(user_id: uuid.UUID, role: UserRole) -> str:
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "type": "access",
        "jti": uuid.uuid4().hex,
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


# ── Session management ──────────────────────────────────────────────

async def create_session(
    db: AsyncSession,
    user: User,
    ip: Optional[str],
    user_agent: Optional[str],
) -> str:
    """Issue a JWT and persist its hashed session row. Returns the token."""
    token = create_access_token(user.id, user.role)
    db.add(
        UserSession(
            user_id=user.id,
            token_hash=hash_token(token),
            ip_address=ip,
            user_agent=user_agent,
            expires_at=datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
        )
    )
    await db.flush()
    return token


async def revoke_session(db: AsyncSession, token: str) -> None:
    """Mark a session as revoked by its token."""
    result = await db.execute(
        select(UserSession).where(UserSession.token_hash == hash_token(token)),
    )
    session = result.scalars().first()
    if session:
        session.is_revoked = True
        await db.flush()
