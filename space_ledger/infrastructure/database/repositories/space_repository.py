"""SQLAlchemy implementation of the space repository."""

from __future__ import annotations

import dataclasses
from datetime import datetime
from decimal import Decimal
from typing import Any, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from space_ledger.core.clock import ensure_utc
from space_ledger.db.models import Space as SpaceModel
from space_ledger.modules.spaces.exceptions import ConflictError
from space_ledger.modules.spaces.models import AutoTransferConfig, Space, SpaceType, TransferFrequency
from space_ledger.modules.spaces.repository import SpaceRepository


def _money(value: Any) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class SqlSpaceRepository(SpaceRepository):
    """Space repository backed by SQLAlchemy models."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _select(self):
        # Writes go through Core UPDATEs, so reads must refresh the identity map.
        return select(SpaceModel).execution_options(populate_existing=True)

    async def get(self, space_id: str) -> Space | None:
        stmt = self._select().where(SpaceModel.id == space_id)
        result = await self._session.execute(stmt)
        return self._to_domain(result.scalar_one_or_none())

    async def get_many_for_update(self, space_ids: Sequence[str]) -> dict[str, Space]:
        stmt = (
            self._select()
            .where(SpaceModel.id.in_(list(space_ids)))
            .order_by(SpaceModel.id)
            .with_for_update()
        )
        result = await self._session.execute(stmt)
        return {model.id: self._to_domain(model) for model in result.scalars().all()}

    async def list_by_account(
        self,
        account_id: str,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Space]:
        stmt = (
            self._select()
            .where(SpaceModel.account_id == account_id)
            .order_by(SpaceModel.created_at, SpaceModel.id)
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def list_by_type(self, account_id: str, kind: SpaceType) -> list[Space]:
        stmt = (
            self._select()
            .where(SpaceModel.account_id == account_id, SpaceModel.kind == kind.value)
            .order_by(SpaceModel.created_at, SpaceModel.id)
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def list_with_target(self, account_id: str) -> list[Space]:
        stmt = (
            self._select()
            .where(SpaceModel.account_id == account_id, SpaceModel.target_amount.is_not(None))
            .order_by(SpaceModel.created_at, SpaceModel.id)
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def list_with_target_date_between(
        self,
        account_id: str,
        start: datetime,
        end: datetime,
    ) -> list[Space]:
        stmt = (
            self._select()
            .where(
                SpaceModel.account_id == account_id,
                SpaceModel.target_date >= start,
                SpaceModel.target_date < end,
            )
            .order_by(SpaceModel.target_date, SpaceModel.id)
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def list_frozen(self, account_id: str) -> list[Space]:
        stmt = (
            self._select()
            .where(SpaceModel.account_id == account_id, SpaceModel.is_frozen.is_(True))
            .order_by(SpaceModel.frozen_at, SpaceModel.id)
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def list_auto_transfer_accounts(self) -> list[str]:
        stmt = (
            select(SpaceModel.account_id)
            .where(SpaceModel.auto_transfer_enabled.is_(True))
            .distinct()
            .order_by(SpaceModel.account_id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_account(self, account_id: str) -> int:
        stmt = select(func.count()).select_from(SpaceModel).where(SpaceModel.account_id == account_id)
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def sum_balance_by_account(self, account_id: str) -> Decimal:
        # summed in Python: SQLite stores money as text
        stmt = select(SpaceModel.balance).where(SpaceModel.account_id == account_id)
        result = await self._session.execute(stmt)
        return sum((_money(value) for value in result.scalars().all()), Decimal("0"))

    async def create(self, space: Space) -> Space:
        values = {key: value for key, value in self._to_columns(space).items() if value is not None}
        if space.id:
            values["id"] = space.id
        model = SpaceModel(account_id=space.account_id, version=1, **values)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_domain(model)

    async def save(self, space: Space) -> Space:
        stmt = (
            update(SpaceModel)
            .where(SpaceModel.id == space.id, SpaceModel.version == space.version)
            .values(version=space.version + 1, **self._to_columns(space))
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:
            raise ConflictError(space.id, space.version)
        return dataclasses.replace(space, version=space.version + 1)

    async def delete(self, space: Space) -> None:
        stmt = (
            delete(SpaceModel)
            .where(SpaceModel.id == space.id, SpaceModel.version == space.version)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:
            raise ConflictError(space.id, space.version)

    @staticmethod
    def _to_columns(space: Space) -> dict[str, Any]:
        # account_id is deliberately absent: it never changes after creation.
        config = space.auto_transfer
        return {
            "name": space.name,
            "kind": space.kind.value,
            "balance": space.balance,
            "is_visible": space.is_visible,
            "is_frozen": space.is_frozen,
            "frozen_at": space.frozen_at,
            "unfrozen_at": space.unfrozen_at,
            "target_amount": space.target_amount,
            "target_date": space.target_date,
            "description": space.description,
            "icon_id": space.icon_id,
            "color_code": space.color_code,
            "auto_transfer_enabled": config.enabled,
            "transfer_frequency": config.frequency.value if config.frequency else None,
            "transfer_amount": config.amount,
            "source_space_id": config.source_space_id,
            "last_balance_update_reason": space.last_balance_update_reason,
            "last_balance_update_at": space.last_balance_update_at,
            "created_at": space.created_at,
            "updated_at": space.updated_at,
        }

    @staticmethod
    def _to_domain(model: SpaceModel | None) -> Space | None:
        if model is None:
            return None
        return Space(
            id=str(model.id),
            account_id=model.account_id,
            name=model.name,
            kind=SpaceType(model.kind),
            balance=_money(model.balance) or Decimal("0"),
            is_visible=bool(model.is_visible),
            is_frozen=bool(model.is_frozen),
            frozen_at=ensure_utc(model.frozen_at),
            unfrozen_at=ensure_utc(model.unfrozen_at),
            target_amount=_money(model.target_amount),
            target_date=ensure_utc(model.target_date),
            description=model.description,
            icon_id=model.icon_id,
            color_code=model.color_code,
            auto_transfer=AutoTransferConfig(
                enabled=bool(model.auto_transfer_enabled),
                frequency=TransferFrequency(model.transfer_frequency) if model.transfer_frequency else None,
                amount=_money(model.transfer_amount),
                source_space_id=model.source_space_id,
            ),
            last_balance_update_reason=model.last_balance_update_reason,
            last_balance_update_at=ensure_utc(model.last_balance_update_at),
            version=int(model.version),
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )
