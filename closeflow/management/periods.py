#!/usr/bin/env python3
"""
Management command for close periods.
Usage:
    python -m closeflow.management.periods --help
    python -m closeflow.management.periods --workspace 1 --open 2024-06
    python -m closeflow.management.periods --workspace 1 --open-next
    python -m closeflow.management.periods --workspace 1 --current
    python -m closeflow.management.periods --close 42
"""

import asyncio
import argparse

from closeflow.core.config import settings
from closeflow.core.exceptions import CloseflowError
from closeflow.core.logging_config import configure_logging
from closeflow.db.session import AsyncSessionLocal
from closeflow.services.period_rules import parse_month_id
from closeflow.services.period_service import PeriodService


def print_rollover(result) -> None:
    period = result.period
    print(f"Opened period {period.month_id} (id={period.id}, Q{period.quarter}) "
          f"with {len(result.cloned_tasks)}/{result.eligible_count} task(s)")
    for outcome in result.outcomes:
        if outcome.succeeded:
            print(f"  + {outcome.title} (task {outcome.task_id})")
        else:
            print(f"  ! {outcome.title} (template {outcome.template_id}): {outcome.error}")


async def open_period(workspace_id: int, month_id: str):
    year, month = parse_month_id(month_id)
    async with AsyncSessionLocal() as db:
        result = await PeriodService(db).open_period(workspace_id, year, month)
    print_rollover(result)


async def open_next_period(workspace_id: int):
    async with AsyncSessionLocal() as db:
        service = PeriodService(db)
        following = await service.get_next_period(workspace_id)
        result = await service.open_period(workspace_id, following.year, following.month)
    print_rollover(result)


async def show_current(workspace_id: int):
    async with AsyncSessionLocal() as db:
        period = await PeriodService(db).get_current_period(workspace_id)
    if period:
        print(f"Current period: {period.month_id} (id={period.id}, {period.status.value})")
    else:
        print("No open period")


async def close_period(period_id: int):
    async with AsyncSessionLocal() as db:
        closed_id = await PeriodService(db).close_period(period_id)
    print(f"Closed period {closed_id}")


async def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Open and close monthly close periods')
    parser.add_argument('--workspace', type=int, help='Workspace ID')
    parser.add_argument('--open', type=str, metavar='YYYY-MM', help='Open the period for a month')
    parser.add_argument('--open-next', action='store_true', help='Open the month after the current period')
    parser.add_argument('--current', action='store_true', help='Show the current open period')
    parser.add_argument('--close', type=int, metavar='PERIOD_ID', help='Close a period')

    args = parser.parse_args(argv)
    configure_logging(settings.LOG_LEVEL)

    needs_workspace = args.open or args.open_next or args.current
    if needs_workspace and args.workspace is None:
        parser.error("--workspace is required")

    try:
        if args.open:
            await open_period(args.workspace, args.open)
        elif args.open_next:
            await open_next_period(args.workspace)
        elif args.current:
            await show_current(args.workspace)
        elif args.close is not None:
            await close_period(args.close)
        else:
            parser.print_help()
    except ValueError:
        print("Invalid month format. Use YYYY-MM (e.g., 2024-06)")
        return 2
    except CloseflowError as e:
        print(f"Error: {e.message}")
        return 1
    return 0


def run() -> None:
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    run()
