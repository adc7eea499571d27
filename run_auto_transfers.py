"""
Run due automatic transfers.
Meant to be called from cron or another external scheduler.
"""
import argparse
import asyncio

from space_ledger.core.container import get_container
from space_ledger.infrastructure.database.session import dispose_engine


async def run(account_id: str | None) -> int:
    ledger = get_container().ledger
    try:
        if account_id:
            executed = await ledger.execute_due_transfers(account_id)
        else:
            executed = await ledger.execute_all_due_transfers()
    finally:
        await dispose_engine()
    print(f"Automatic transfers executed: {executed}")
    return executed


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Execute due automatic transfers")
    parser.add_argument("--account-id", help="only run transfers of this account")
    args = parser.parse_args()
    asyncio.run(run(args.account_id))
