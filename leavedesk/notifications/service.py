"""Email notification service and leave-workflow dispatchers.

Emails go out through the Resend HTTP API. A failed or skipped send is
logged and reported as ``False``; it never raises into the caller, so a
leave request is never failed by its notification.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

import httpx

from leavedesk.config import settings
from leavedesk.notifications import templates

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


# ── Core service ────────────────────────────────────────────────────


class EmailService:
    """Thin async client over the Resend send-email endpoint."""

    @staticmethod
    async def send(to: str, subject: str, html: str) -> bool:
        if not settings.RESEND_API_KEY:
            logger.info("Resend not configured, skipping email %r to %s", subject, to)
            return False

        try:
            async with httpx.AsyncClient(timeout=10) as client:
                resp = await client.post(
                    RESEND_API_URL,
                    headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
                    json={
                        "from": settings.FROM_EMAIL,
                        "to": [to],
                        "subject": subject,
                        "html": html,
                    },
                )
        except httpx.HTTPError as exc:
            logger.error("Failed to send email %r to %s: %s", subject, to, exc)
            return False

        if resp.status_code >= 300:
            logger.error(
                "Resend rejected email %r to %s: %s %s",
                subject, to, resp.status_code, resp.text,
            )
            return False

        logger.info("Sent email %r to %s", subject, to)
        return True


# ── Helpers ─────────────────────────────────────────────────────────


def _subject(text: str) -> str:
    return f"{text} - {settings.COMPANY_NAME}"


def _days(value: Decimal) -> str:
    return f"{Decimal(value).normalize():f}"


def _dashboard_url(path: str) -> str:
    return f"{settings.BASE_URL.rstrip('/')}{path}"


# ── Helper dispatchers (called from leave service) ─────────────────


async def notify_leave_submitted(leave_request, user, leave_type) -> bool:
    """Confirm receipt of a request to the employee who filed it."""
    return await EmailService.send(
        user.email,
        _subject("Leave Request Submitted"),
        templates.leave_submitted(
            employee_name=user.name,
            leave_type=leave_type.name,
            start_date=leave_request.start_date.isoformat(),
            end_date=leave_request.end_date.isoformat(),
            total_days=_days(leave_request.total_days),
            status=leave_request.status.value,
            dashboard_url=_dashboard_url("/dashboard/leave"),
        ),
    )


async def notify_manager_of_request(
    leave_request,
    user,
    leave_type,
    manager,
) -> bool:
    """Tell the team manager a request is waiting for review."""
    return await EmailService.send(
        manager.email,
        _subject(f"Leave Request from {user.name}"),
        templates.manager_notification(
            manager_name=manager.name,
            employee_name=user.name,
            leave_type=leave_type.name,
            start_date=leave_request.start_date.isoformat(),
            end_date=leave_request.end_date.isoformat(),
            total_days=_days(leave_request.total_days),
            reason=leave_request.reason,
            dashboard_url=_dashboard_url("/dashboard/leave/approvals"),
        ),
    )


async def notify_leave_approved(leave_request, user, leave_type, approver) -> bool:
    """Notify the employee that their leave request was approved."""
    return await EmailService.send(
        user.email,
        _subject("Leave Request Approved"),
        templates.leave_approved(
            employee_name=user.name,
            leave_type=leave_type.name,
            start_date=leave_request.start_date.isoformat(),
            end_date=leave_request.end_date.isoformat(),
            total_days=_days(leave_request.total_days),
            approver_name=approver.name,
            dashboard_url=_dashboard_url("/dashboard/leave"),
        ),
    )


async def notify_leave_rejected(
    leave_request,
    user,
    leave_type,
    approver,
    reason: Optional[str] = None,
) -> bool:
    """Notify the employee that their leave request was rejected."""
    return await EmailService.send(
        user.email,
        _subject("Leave Request Rejected"),
        templates.leave_rejected(
            employee_name=user.name,
            leave_type=leave_type.name,
            start_date=leave_request.start_date.isoformat(),
            end_date=leave_request.end_date.isoformat(),
            total_days=_days(leave_request.total_days),
            approver_name=approver.name,
            rejection_reason=reason or leave_request.rejection_reason or "",
            dashboard_url=_dashboard_url("/dashboard/leave"),
        ),
    )
