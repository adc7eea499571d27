"""Balance history recorder."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from space_ledger.core.clock import ensure_utc
from space_ledger.core.money import ZERO, round_money

from .models import BalanceSnapshot, BalanceType
from .repository import BalanceHistoryRepository


@dataclass(slots=True)
class BalanceHistoryService:
    repository: BalanceHistoryRepository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "BalanceHistoryService":
        # deferred import: the SQL repository imports this package's models
        from space_ledger.infrastructure.database.repositories.balance_repository import (
            SqlBalanceHistoryRepository,
        )

        return cls(SqlBalanceHistoryRepository(session))

    async def record(
        self,
        *,
        account_id: str,
        space_id: str | None,
        amount: Decimal,
        as_of: datetime,
        balance_type: BalanceType = BalanceType.CURRENT,
    ) -> BalanceSnapshot:
        if amount < ZERO:
            raise ValueError(f"balance snapshot cannot be negative: {amount}")
        return await self.repository.append(
            account_id=account_id,
            space_id=space_id,
            balance_type=balance_type,
            amount=round_money(amount),
            as_of=ensure_utc(as_of),
        )

    async def history(
        self,
        account_id: str,
        space_id: str | None = None,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[BalanceSnapshot]:
        """Snapshots in ``[start, end]`` ordered oldest first."""
        return await self.repository.query(
            account_id,
            space_id=space_id,
            start=ensure_utc(start),
            end=ensure_utc(end),
            limit=limit,
            offset=offset,
        )

    async def balance_at(self, account_id: str, space_id: str, at: datetime) -> Decimal:
        snapshot = await self.repository.latest_at(account_id, space_id, ensure_utc(at))
        return snapshot.amount if snapshot is not None else ZERO
