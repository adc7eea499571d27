"""SQLAlchemy implementation of the balance history recorder."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from space_ledger.core.clock import ensure_utc
from space_ledger.db.models import BalanceSnapshot as BalanceSnapshotModel
from space_ledger.modules.balances.models import BalanceSnapshot, BalanceType


class SqlBalanceHistoryRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def append(
        self,
        *,
        account_id: str,
        space_id: str | None,
        balance_type: BalanceType,
        amount: Decimal,
        as_of: datetime,
    ) -> BalanceSnapshot:
        model = BalanceSnapshotModel(
            account_id=account_id,
            space_id=space_id,
            balance_type=balance_type.value,
            amount=amount,
            as_of=as_of,
        )
        self.session.add(model)
        await self.session.flush()
        return self._to_domain(model)

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
    ) -> list[BalanceSnapshot]:
        stmt = select(BalanceSnapshotModel).where(BalanceSnapshotModel.account_id == account_id)
        if space_id is not None:
            stmt = stmt.where(BalanceSnapshotModel.space_id == space_id)
        if start is not None:
            stmt = stmt.where(BalanceSnapshotModel.as_of >= start)
        if end is not None:
            stmt = stmt.where(BalanceSnapshotModel.as_of <= end)
        if balance_type is not None:
            stmt = stmt.where(BalanceSnapshotModel.balance_type == balance_type.value)
        stmt = stmt.order_by(BalanceSnapshotModel.as_of, BalanceSnapshotModel.created_at).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def latest_at(
        self,
        account_id: str,
        space_id: str,
        at: datetime,
        balance_type: BalanceType = BalanceType.CURRENT,
    ) -> BalanceSnapshot | None:
        stmt = (
            select(BalanceSnapshotModel)
            .where(
                BalanceSnapshotModel.account_id == account_id,
                BalanceSnapshotModel.space_id == space_id,
                BalanceSnapshotModel.balance_type == balance_type.value,
                BalanceSnapshotModel.as_of <= at,
            )
            .order_by(desc(BalanceSnapshotModel.as_of), desc(BalanceSnapshotModel.created_at))
            .limit(1)
        )
        result = await self.session.execute(stmt)
        model = result.scalars().first()
        return self._to_domain(model) if model is not None else None

    @staticmethod
    def _to_domain(model: BalanceSnapshotModel) -> BalanceSnapshot:
        return BalanceSnapshot(
            id=model.id,
            account_id=model.account_id,
            space_id=model.space_id,
            balance_type=BalanceType(model.balance_type),
            amount=Decimal(model.amount),
            as_of=ensure_utc(model.as_of),
            created_at=ensure_utc(model.created_at),
        )
