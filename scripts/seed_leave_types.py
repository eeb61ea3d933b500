#!/usr/bin/env python3
"""Seed the default leave types.

Skips seeding when any leave type already exists, so it is safe to re-run.

Usage:
    python scripts/seed_leave_types.py
    python scripts/seed_leave_types.py --dry-run   # list what would be inserted
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# ── Path setup ────────────────────────────────────────────────────────
SCRIPT_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = SCRIPT_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT))

from sqlalchemy import func, select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

import leavedesk.main  # noqa: E402,F401  (registers every model)
from leavedesk.leave.models import LeaveType  # noqa: E402

logger = logging.getLogger("seed_leave_types")

# name, color, is_paid, requires_approval
DEFAULT_LEAVE_TYPES: list[tuple[str, str, bool, bool]] = [
    ("Annual Leave", "#10B981", True, True),
    ("Sick Leave", "#EF4444", True, False),
    ("Personal Leave", "#8B5CF6", False, True),
    ("Maternity/Paternity", "#F59E0B", True, True),
    ("Unpaid Leave", "#6B7280", False, True),
]


async def seed_leave_types(session: AsyncSession) -> int:
    """Insert the defaults unless leave types exist. Returns rows inserted."""
    existing = (await session.execute(select(func.count(LeaveType.id)))).scalar_one()
    if existing:
        logger.info("%d leave types already present, skipping", existing)
        return 0

    for name, color, is_paid, requires_approval in DEFAULT_LEAVE_TYPES:
        session.add(
            LeaveType(
                name=name,
                color=color,
                is_paid=is_paid,
                requires_approval=requires_approval,
            )
        )
        logger.info("Adding leave type %s", name)
    await session.flush()
    return len(DEFAULT_LEAVE_TYPES)


async def _run() -> int:
    from leavedesk.database import engine, session_scope

    async with session_scope() as session:
        inserted = await seed_leave_types(session)
    await engine.dispose()
    return inserted


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed default leave types")
    parser.add_argument("--dry-run", action="store_true", help="Only list the defaults")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    if args.dry_run:
        for name, color, is_paid, requires_approval in DEFAULT_LEAVE_TYPES:
            logger.info(
                "%s color=%s paid=%s approval=%s", name, color, is_paid, requires_approval
            )
        return

    inserted = asyncio.run(_run())
    logger.info("Seeded %d leave types", inserted)


if __name__ == "__main__":
    main()
