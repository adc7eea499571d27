"""Read-only projections over space balances and balance history.

Nothing in this module writes to the space store or the history recorder.
Ratios use ten significant digits with half-up rounding.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from space_ledger.core.clock import Clock, ensure_utc, utcnow, whole_days_between
from space_ledger.core.money import ONE, ZERO, percentage, ratio
from space_ledger.modules.balances import BalanceHistoryService, BalanceSnapshot

from .exceptions import SpaceNotFoundError, ValidationError
from .models import Space, SpaceAnalytics, SpaceType, TimeSeriesPoint
from .repository import SpaceRepository


@dataclass(slots=True)
class ProjectionService:
    repository: SpaceRepository
    history: BalanceHistoryService
    clock: Clock = utcnow
    enforce_freeze: bool = True

    @classmethod
    def with_session(
        cls,
        session: AsyncSession,
        *,
        clock: Clock = utcnow,
        enforce_freeze: bool = True,
    ) -> "ProjectionService":
        # deferred import: the SQL repository imports this package's models
        from space_ledger.infrastructure.database.repositories.space_repository import SqlSpaceRepository

        return cls(
            SqlSpaceRepository(session),
            BalanceHistoryService.with_session(session),
            clock=clock,
            enforce_freeze=enforce_freeze,
        )

    async def _space(self, space_id: str) -> Space:
        space = await self.repository.get(space_id)
        if space is None:
            raise SpaceNotFoundError(space_id)
        return space

    # ----- goals -----

    async def goal_progress(self, space_id: str) -> Space:
        return self.with_goal_progress(await self._space(space_id))

    def with_goal_progress(self, space: Space) -> Space:
        """Copy of ``space`` with the derived goal fields filled in."""
        target = space.target_amount
        if target is None:
            return space

        if target == ZERO:
            # any balance meets a zero target
            return dataclasses.replace(
                space,
                goal_progress_percentage=Decimal("100"),
                remaining_to_target=ZERO,
                is_goal_completed=True,
            )

        progress = percentage(space.balance, target)
        remaining = max(target - space.balance, ZERO)
        completed = space.balance >= target

        estimated = None
        if space.target_date is not None and not completed and space.balance > ZERO:
            now = self.clock()
            days = max(whole_days_between(space.created_at or now, now), 1)
            daily_growth = ratio(space.balance, Decimal(days))
            if daily_growth > ZERO:
                days_needed = ratio(remaining, daily_growth)
                estimated = now + timedelta(days=int(days_needed))

        return dataclasses.replace(
            space,
            goal_progress_percentage=progress,
            remaining_to_target=remaining,
            is_goal_completed=completed,
            estimated_completion_date=estimated,
        )

    async def spaces_with_goals(self, account_id: str) -> list[Space]:
        spaces = await self.repository.list_with_target(account_id)
        return [self.with_goal_progress(space) for space in spaces]

    async def spaces_with_upcoming_target_dates(self, account_id: str, days_threshold: int) -> list[Space]:
        if days_threshold < 0:
            raise ValidationError(f"Days threshold cannot be negative, got: {days_threshold}")
        now = self.clock()
        spaces = await self.repository.list_with_target_date_between(
            account_id, now, now + timedelta(days=days_threshold)
        )
        return [self.with_goal_progress(space) for space in spaces]

    # ----- simulation -----

    async def simulate(self, account_id: str, months: int) -> dict[str, Decimal]:
        """Project balances ``months`` ahead under the configured automatic transfers.

        Works on a private copy of the current balances; the source of each
        transfer is resolved in that copy. Transfers the projected source
        cannot cover are skipped.
        """
        if months <= 0:
            raise ValidationError(f"Months must be positive, got: {months}")

        spaces = await self.repository.list_by_account(account_id)
        balances = {space.id: space.balance for space in spaces}
        by_id = {space.id: space for space in spaces}
        main = next((s for s in spaces if s.kind is SpaceType.MAIN), None)
        scheduled = [space for space in spaces if space.auto_transfer.is_runnable]

        for month in range(months):
            for space in scheduled:
                config = space.auto_transfer
                if not config.frequency.fires_in_month(month):
                    continue
                source = by_id.get(config.source_space_id) if config.source_space_id else main
                if source is None or source.id == space.id:
                    continue
                if self.enforce_freeze and (source.is_frozen or space.is_frozen):
                    continue
                amount = config.frequency.monthly_amount(config.amount)
                if balances[source.id] < amount:
                    continue
                balances[source.id] -= amount
                balances[space.id] += amount

        return balances

    # ----- analytics -----

    async def balance_distribution(self, account_id: str) -> dict[str, Decimal]:
        total = await self.repository.sum_balance_by_account(account_id)
        if total is None or total <= ZERO:
            return {}
        spaces = await self.repository.list_by_account(account_id)
        return {space.id: percentage(space.balance, total) for space in spaces}

    async def growth_rates(self, account_id: str, start: datetime, end: datetime) -> dict[str, Decimal]:
        """Approximate daily growth rate per space over ``[start, end]``.

        The figure is derived from the current balance only:
        ``(balance / days) * 100 / max(balance, 1)``. It is not a true rate of
        change; replacing it with a history-based rate needs product sign-off.
        """
        start, end = ensure_utc(start), ensure_utc(end)
        if start is None or end is None or start >= end:
            raise ValidationError("Invalid date range: start date must be before end date")

        days = Decimal(max(whole_days_between(start, end), 1))
        rates: dict[str, Decimal] = {}
        for space in await self.repository.list_by_account(account_id):
            if space.created_at is not None and space.created_at > start:
                rates[space.id] = ZERO
                continue
            daily = ratio(space.balance, days)
            rates[space.id] = percentage(daily, max(space.balance, ONE))
        return rates

    async def space_analytics(
        self,
        space_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> SpaceAnalytics:
        start, end = ensure_utc(start), ensure_utc(end)
        if start is not None and end is not None and start >= end:
            raise ValidationError("Invalid date range: start date must be before end date")

        space = await self._space(space_id)
        analytics = SpaceAnalytics(
            space_id=space.id,
            account_id=space.account_id,
            name=space.name,
            kind=space.kind,
            start=start,
            end=end,
            closing_balance=space.balance,
        )

        snapshots = await self.history.history(space.account_id, space.id, start=start, end=end)
        if snapshots:
            amounts = [snapshot.amount for snapshot in snapshots]
            analytics.opening_balance = amounts[0]
            analytics.lowest_balance = min(amounts)
            analytics.highest_balance = max(amounts)
            analytics.average_balance = ratio(sum(amounts, ZERO), Decimal(len(amounts)))
            analytics.snapshot_count = len(amounts)
            analytics.net_change = analytics.closing_balance - analytics.opening_balance
            if analytics.opening_balance != ZERO:
                analytics.net_change_percentage = percentage(analytics.net_change, analytics.opening_balance)
            analytics.balance_history = [
                TimeSeriesPoint(timestamp=snapshot.as_of, value=snapshot.amount) for snapshot in snapshots
            ]

        total = await self.repository.sum_balance_by_account(space.account_id)
        if total > ZERO:
            analytics.percentage_of_account_total = percentage(space.balance, total)

        if space.target_amount is not None and space.target_amount > ZERO:
            analytics.goal_progress = percentage(space.balance, space.target_amount)
            analytics.projected_completion_date = space.target_date

        return analytics

    async def balance_history(
        self,
        space_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[BalanceSnapshot]:
        space = await self._space(space_id)
        return await self.history.history(
            space.account_id, space.id, start=start, end=end, limit=limit, offset=offset
        )

    async def balance_at(self, space_id: str, at: datetime) -> Decimal:
        space = await self._space(space_id)
        return await self.history.balance_at(space.account_id, space.id, at)
