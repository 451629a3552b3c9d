#!/usr/bin/env python3
"""Run every macro assignment that is due today (or on --date).

Intended for a daily cron job. Each tenant runs in its own transaction so
one failing tenant does not roll back the others.

Usage:
    python scripts/run_due_macros.py                       # all active tenants, today
    python scripts/run_due_macros.py --date 2026-03-01     # replay a specific day
    python scripts/run_due_macros.py --tenant <uuid>       # single tenant

Exit codes:
    0 = all tenants processed
    1 = at least one tenant failed
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select

from timetrack.common.context import RequestContext
from timetrack.common.exceptions import AppException
from timetrack.common.timeutil import today
from timetrack.database import async_session_factory, engine
from timetrack.logging_config import setup_logging
from timetrack.macros.service import MacroService
from timetrack.tenants.models import Tenant

logger = logging.getLogger("run_due_macros")


async def _tenant_ids(only: Optional[uuid.UUID]) -> list[uuid.UUID]:
    async with async_session_factory() as session:
        query = select(Tenant.id).where(Tenant.is_active.is_(True)).order_by(Tenant.name)
        if only is not None:
            query = query.where(Tenant.id == only)
        return list((await session.execute(query)).scalars().all())


async def run(on: date, only: Optional[uuid.UUID] = None) -> int:
    failures = 0
    for tenant_id in await _tenant_ids(only):
        async with async_session_factory() as session:
            try:
                executions = await MacroService.execute_due(
                    session, RequestContext.system(tenant_id), on,
                )
                await session.commit()
            except AppException as exc:
                await session.rollback()
                failures += 1
                logger.error("Tenant %s: macro run failed: %s", tenant_id, exc.detail)
                continue
        logger.info("Tenant %s: %d execution(s)", tenant_id, len(executions))
    await engine.dispose()
    return failures


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Execute due weekly/monthly macros",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--date", dest="on", type=date.fromisoformat,
                        help="Execution date (YYYY-MM-DD, default: today)")
    parser.add_argument("--tenant", type=uuid.UUID,
                        help="Restrict the run to one tenant id")
    parser.add_argument("--log-level", default=None,
                        help="Override LOG_LEVEL (debug, info, warning)")
    args = parser.parse_args()

    setup_logging(args.log_level)
    on = args.on or today()
    logger.info("Running due macros for %s", on.isoformat())

    failures = asyncio.run(run(on, args.tenant))
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
