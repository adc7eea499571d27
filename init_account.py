"""
Initialise an account's spaces.
Creates the main space for the given account when it does not exist yet.
"""
import argparse
import asyncio

from space_ledger.core.container import get_container
from space_ledger.infrastructure.database.session import dispose_engine, init_db


async def create_main_space(account_id: str) -> None:
    """Create (or find) the main space of ``account_id``."""
    container = get_container()
    await init_db()

    try:
        ledger = container.ledger
        existing = await ledger.spaces_by_type(account_id, "MAIN")
        space = await ledger.ensure_main_space(account_id)
        if existing:
            print(f"Main space already exists: {space.id} ({space.name})")
        else:
            print(f"Main space created: {space.id} ({space.name}) for account {account_id}")
    finally:
        await dispose_engine()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the main space of an account")
    parser.add_argument("account_id", help="account identifier owning the spaces")
    args = parser.parse_args()
    asyncio.run(create_main_space(args.account_id))
