"""Public operations of the space ledger.

Every method runs as one unit of work: it either commits all of its
balance changes and snapshots or none of them.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from space_ledger.core.clock import Clock, utcnow
from space_ledger.core.config import Settings, get_settings
from space_ledger.infrastructure.database.session import unit_of_work
from space_ledger.modules.balances import BalanceSnapshot
from space_ledger.modules.spaces import (
    AutoTransferExecutor,
    AutoTransferService,
    ProjectionService,
    Space,
    SpaceAnalytics,
    SpaceCreateInput,
    SpaceService,
    SpaceType,
    SpaceUpdateInput,
    TransferFrequency,
    TransferResult,
    TransferService,
)


class SpaceLedger:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        settings: Settings | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings or get_settings()
        self._clock = clock
        self._executor = AutoTransferExecutor(
            session_factory,
            clock=clock,
            enforce_freeze=self._settings.enforce_freeze,
        )

    def _spaces(self, session: AsyncSession) -> SpaceService:
        return SpaceService.with_session(
            session, clock=self._clock, enforce_freeze=self._settings.enforce_freeze
        )

    def _transfers(self, session: AsyncSession) -> TransferService:
        return TransferService.with_session(
            session, clock=self._clock, enforce_freeze=self._settings.enforce_freeze
        )

    def _projections(self, session: AsyncSession) -> ProjectionService:
        return ProjectionService.with_session(
            session, clock=self._clock, enforce_freeze=self._settings.enforce_freeze
        )

    # ----- lifecycle -----

    async def create_space(self, payload: SpaceCreateInput) -> Space:
        async with unit_of_work(self._session_factory) as session:
            return await self._spaces(session).create_space(payload)

    async def ensure_main_space(self, account_id: str, name: str | None = None) -> Space:
        async with unit_of_work(self._session_factory) as session:
            return await self._spaces(session).ensure_main_space(
                account_id, name or self._settings.ledger.main_space_name
            )

    async def get_space(self, space_id: str) -> Space:
        async with unit_of_work(self._session_factory) as session:
            return await self._spaces(session).get_space(space_id)

    async def list_spaces(self, account_id: str, limit: int | None = None, offset: int = 0) -> Sequence[Space]:
        async with unit_of_work(self._session_factory) as session:
            return await self._spaces(session).list_spaces(account_id, limit=limit, offset=offset)

    async def count_spaces(self, account_id: str) -> int:
        async with unit_of_work(self._session_factory) as session:
            return await self._spaces(session).count_spaces(account_id)

    async def total_balance(self, account_id: str) -> Decimal:
        async with unit_of_work(self._session_factory) as session:
            return await self._spaces(session).total_balance(account_id)

    async def spaces_by_type(self, account_id: str, kind: SpaceType | str) -> Sequence[Space]:
        async with unit_of_work(self._session_factory) as session:
            return await self._spaces(session).spaces_by_type(account_id, kind)

    async def frozen_spaces(self, account_id: str) -> Sequence[Space]:
        async with unit_of_work(self._session_factory) as session:
            return await self._spaces(session).frozen_spaces(account_id)

    async def update_space(self, space_id: str, payload: SpaceUpdateInput) -> Space:
        async with unit_of_work(self._session_factory) as session:
            return await self._spaces(session).update_space(space_id, payload)

    async def delete_space(self, space_id: str) -> None:
        async with unit_of_work(self._session_factory) as session:
            await self._spaces(session).delete_space(space_id)

    async def freeze(self, space_id: str) -> Space:
        async with unit_of_work(self._session_factory) as session:
            return await self._spaces(session).freeze(space_id)

    async def unfreeze(self, space_id: str) -> Space:
        async with unit_of_work(self._session_factory) as session:
            return await self._spaces(session).unfreeze(space_id)

    async def set_balance(self, space_id: str, new_balance: Decimal, reason: str) -> Space:
        async with unit_of_work(self._session_factory) as session:
            return await self._spaces(session).set_balance(space_id, new_balance, reason)

    # ----- transfers -----

    async def transfer(self, from_space_id: str, to_space_id: str, amount: Decimal) -> TransferResult:
        async with unit_of_work(self._session_factory) as session:
            return await self._transfers(session).transfer(from_space_id, to_space_id, amount)

    async def configure_auto_transfer(
        self,
        space_id: str,
        enabled: bool,
        frequency: TransferFrequency | str | None = None,
        amount: Decimal | None = None,
        source_space_id: str | None = None,
    ) -> Space:
        async with unit_of_work(self._session_factory) as session:
            service = AutoTransferService.with_session(session, clock=self._clock)
            return await service.configure(space_id, enabled, frequency, amount, source_space_id)

    async def execute_due_transfers(self, account_id: str) -> int:
        return await self._executor.execute_due(account_id)

    async def execute_all_due_transfers(self) -> int:
        return await self._executor.execute_all_due()

    # ----- projections -----

    async def simulate(self, account_id: str, months: int) -> dict[str, Decimal]:
        async with unit_of_work(self._session_factory) as session:
            return await self._projections(session).simulate(account_id, months)

    async def goal_progress(self, space_id: str) -> Space:
        async with unit_of_work(self._session_factory) as session:
            return await self._projections(session).goal_progress(space_id)

    async def spaces_with_goals(self, account_id: str) -> list[Space]:
        async with unit_of_work(self._session_factory) as session:
            return await self._projections(session).spaces_with_goals(account_id)

    async def spaces_with_upcoming_target_dates(self, account_id: str, days_threshold: int) -> list[Space]:
        async with unit_of_work(self._session_factory) as session:
            return await self._projections(session).spaces_with_upcoming_target_dates(account_id, days_threshold)

    async def balance_distribution(self, account_id: str) -> dict[str, Decimal]:
        async with unit_of_work(self._session_factory) as session:
            return await self._projections(session).balance_distribution(account_id)

    async def growth_rates(self, account_id: str, start: datetime, end: datetime) -> dict[str, Decimal]:
        async with unit_of_work(self._session_factory) as session:
            return await self._projections(session).growth_rates(account_id, start, end)

    async def space_analytics(
        self,
        space_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> SpaceAnalytics:
        async with unit_of_work(self._session_factory) as session:
            return await self._projections(session).space_analytics(space_id, start, end)

    async def balance_history(
        self,
        space_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[BalanceSnapshot]:
        async with unit_of_work(self._session_factory) as session:
            return await self._projections(session).balance_history(
                space_id, start, end, limit=limit, offset=offset
            )

    async def balance_at(self, space_id: str, at: datetime) -> Decimal:
        async with unit_of_work(self._session_factory) as session:
            return await self._projections(session).balance_at(space_id, at)
