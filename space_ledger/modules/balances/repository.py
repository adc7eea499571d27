"""Repository protocol for balance history."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Protocol, Sequence

from .models import BalanceSnapshot, BalanceType


class BalanceHistoryRepository(Protocol):
    """Append-only store of balance snapshots."""

    async def append(
        self,
        *,
        account_id: str,
        space_id: str | None,
        balance_type: BalanceType,
        amount: Decimal,
        as_of: datetime,
    ) -> BalanceSnapshot:
        ...

    async def query(
        self,
        account_id: str,
        *,
        space_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        balance_type: BalanceType | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[BalanceSnapshot]:
        ...

    async def latest_at(
        self,
        account_id: str,
        space_id: str,
        at: datetime,
        balance_type: BalanceType = BalanceType.CURRENT,
    ) -> BalanceSnapshot | None:
        ...
