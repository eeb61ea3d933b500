"""Plain HTML bodies for leave emails."""

from __future__ import annotations

from html import escape
from typing import Optional


def _layout(heading: str, paragraphs: list[str], link: Optional[tuple[str, str]] = None) -> str:
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    if link:
        label, url = link
        body += f'<p><a href="{escape(url, quote=True)}">{escape(label)}</a></p>'
    return f"<html><body><h2>{escape(heading)}</h2>{body}</body></html>"


def _period(leave_type: str, start_date: str, end_date: str, total_days: str) -> str:
    return (
        f"<strong>{escape(leave_type)}</strong> from {escape(start_date)} "
        f"to {escape(end_date)} ({escape(total_days)} days)"
    )


def leave_submitted(
    employee_name: str,
    leave_type: str,
    start_date: str,
    end_date: str,
    total_days: str,
    status: str,
    dashboard_url: str,
) -> str:
    outcome = (
        "It has been approved automatically."
        if status == "approved"
        else "Your manager has been notified and will review it shortly."
    )
    return _layout(
        "Leave request submitted",
        [
            f"Hi {escape(employee_name)},",
            f"Your request for {_period(leave_type, start_date, end_date, total_days)} was received.",
            outcome,
        ],
        ("View your requests", dashboard_url),
    )


def manager_notification(
    manager_name: str,
    employee_name: str,
    leave_type: str,
    start_date: str,
    end_date: str,
    total_days: str,
    reason: Optional[str],
    dashboard_url: str,
) -> str:
    paragraphs = [
        f"Hi {escape(manager_name)},",
        f"{escape(employee_name)} requested {_period(leave_type, start_date, end_date, total_days)}.",
    ]
    if reason:
        paragraphs.append(f"Reason: {escape(reason)}")
    return _layout("Leave request requires approval", paragraphs, ("Review request", dashboard_url))


def leave_approved(
    employee_name: str,
    leave_type: str,
    start_date: str,
    end_date: str,
    total_days: str,
    approver_name: str,
    dashboard_url: str,
) -> str:
    return _layout(
        "Leave request approved",
        [
            f"Hi {escape(employee_name)},",
            f"Your request for {_period(leave_type, start_date, end_date, total_days)} "
            f"was approved by {escape(approver_name)}.",
        ],
        ("View your requests", dashboard_url),
    )


def leave_rejected(
    employee_name: str,
    leave_type: str,
    start_date: str,
    end_date: str,
    total_days: str,
    approver_name: str,
    rejection_reason: str,
    dashboard_url: str,
) -> str:
    return _layout(
        "Leave request rejected",
        [
            f"Hi {escape(employee_name)},",
            f"Your request for {_period(leave_type, start_date, end_date, total_days)} "
            f"was rejected by {escape(approver_name)}.",
            f"Reason: {escape(rejection_reason)}",
        ],
        ("View your requests", dashboard_url),
    )
