from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio

from space_ledger.core.config import DatabaseSettings, Settings
from space_ledger.infrastructure.database.session import build_engine, build_session_factory, init_db
from space_ledger.ledger import SpaceLedger
from space_ledger.modules.spaces import SpaceCreateInput, SpaceType

ACCOUNT = "acc-1"
OTHER_ACCOUNT = "acc-2"


class FakeClock:
    """Settable clock so tests can move time forward."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        environment="test",
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"),
    )


@pytest_asyncio.fixture
async def engine(settings):
    engine = build_engine(settings)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def ledger(session_factory, settings, clock):
    return SpaceLedger(session_factory, settings=settings, clock=clock)


async def make_space(ledger, name, kind, balance="0", account_id=ACCOUNT, **kwargs):
    return await ledger.create_space(
        SpaceCreateInput(
            account_id=account_id,
            name=name,
            kind=kind,
            balance=Decimal(balance),
            **kwargs,
        )
    )


async def make_main(ledger, balance="1000.00", account_id=ACCOUNT):
    return await make_space(ledger, "Main", SpaceType.MAIN, balance, account_id=account_id)
