"""Auth router: Google OAuth redirect/callback, logout, current user."""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.auth.dependencies import get_current_user
from leavedesk.auth.models import User
from leavedesk.auth.schemas import LogoutResponse, MeResponse, TeamBrief
from leavedesk.auth.service import (
    build_authorization_url,
    create_session,
    find_or_create_user,
    generate_state,
    revoke_session,
    states_match,
    validate_domain,
    verify_google_token,
)
from leavedesk.common.audit import create_audit_entry
from leavedesk.common.exceptions import AppException, ValidationException
from leavedesk.common.rate_limit import OAUTH_RATE_LIMIT, limiter
from leavedesk.config import settings
from leavedesk.database import get_db
from leavedesk.team.service import TeamService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["auth"])
users_router = APIRouter(prefix="", tags=["auth"])

OAUTH_STATE_COOKIE = "oauth_state"
OAUTH_REDIRECT_COOKIE = "oauth_redirect"
OAUTH_COOKIE_MAX_AGE = 600


def _safe_redirect_path(path: Optional[str]) -> str:
    """Only same-site relative paths are honoured after sign-in."""
    if path and path.startswith("/") and not path.startswith("//") and "\\" not in path:
        return path
    return "/dashboard"


def _client_info(request: Request) -> tuple[Optional[str], Optional[str]]:
    ip = request.client.host if request.client else None
    return ip, request.headers.get("user-agent")


# ── GET /google: start the authorization-code flow ─────────────────

@router.get("/google")
@limiter.limit(OAUTH_RATE_LIMIT)
async def google_sign_in(
    request: Request,
    redirect: Optional[str] = Query(None, description="Path to open after sign-in"),
):
    if not settings.GOOGLE_CLIENT_ID or not settings.BASE_URL:
        raise AppException(status_code=500, error="Google OAuth not configured")

    state = generate_state()
    response = RedirectResponse(build_authorization_url(state), status_code=302)
    cookie_opts = dict(
        max_age=OAUTH_COOKIE_MAX_AGE,
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
    )
    response.set_cookie(OAUTH_STATE_COOKIE, state, **cookie_opts)
    response.set_cookie(OAUTH_REDIRECT_COOKIE, _safe_redirect_path(redirect), **cookie_opts)
    return response


# ── GET /google/callback: exchange code, issue session cookie ──────

@router.get("/google/callback")
@limiter.limit(OAUTH_RATE_LIMIT)
async def google_callback(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    if not code or not states_match(request.cookies.get(OAUTH_STATE_COOKIE), state):
        raise ValidationException({"state": ["Invalid OAuth state"]})

    try:
        google_info = await verify_google_token(code, settings.google_redirect_uri)
    except httpx.HTTPError as exc:
        logger.error("Google OAuth exchange failed: %s", exc)
        raise AppException(status_code=500, error="OAuth error")

    validate_domain(google_info["email"])

    user, created = await find_or_create_user(db, google_info)

    ip, user_agent = _client_info(request)
    token = await create_session(db, user, ip, user_agent)

    await create_audit_entry(
        db,
        action="sign_in",
        entity_type="user_session",
        entity_id=user.id,
        actor_id=user.id,
        new_values={"new_user": created},
        ip_address=ip,
        user_agent=user_agent,
    )

    target = _safe_redirect_path(request.cookies.get(OAUTH_REDIRECT_COOKIE))
    response = RedirectResponse(f"{settings.BASE_URL.rstrip('/')}{target}", status_code=302)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=settings.JWT_EXPIRY_HOURS * 3600,
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
    )
    response.delete_cookie(OAUTH_STATE_COOKIE)
    response.delete_cookie(OAUTH_REDIRECT_COOKIE)
    return response


# ── POST /logout: Revoke current session ──────────────────────────

@router.post("/logout")
async def logout(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await revoke_session(db, request.state.session_token)

    ip, user_agent = _client_info(request)
    await create_audit_entry(
        db,
        action="sign_out",
        entity_type="user_session",
        entity_id=user.id,
        actor_id=user.id,
        ip_address=ip,
        user_agent=user_agent,
    )

    response = JSONResponse(LogoutResponse().model_dump())
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return response


# ── GET /api/user: Current user profile ───────────────────────────

@users_router.get("", response_model=MeResponse)
async def me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    membership = await TeamService.get_membership(db, user.id)
    team = None
    if membership is not None:
        team = TeamBrief(
            id=membership.team.id,
            name=membership.team.name,
            role=membership.role,
        )

    return MeResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        picture_url=user.picture_url,
        is_manager=user.is_manager,
        team=team,
    )
