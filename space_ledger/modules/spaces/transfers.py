"""Transfers between spaces of the same account."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from space_ledger.core.clock import Clock, utcnow
from space_ledger.core.money import ZERO, to_money
from space_ledger.modules.balances import BalanceHistoryService

from .exceptions import InsufficientFundsError, SpaceFrozenError, SpaceNotFoundError, ValidationError
from .models import TransferResult
from .repository import SpaceRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TransferService:
    """Moves money between two spaces as one read-check-write step.

    Must run inside a single transaction: both rows are read with a row lock
    (where the database supports it) and written with compare-and-save, then
    the two snapshots are appended. Any error leaves nothing behind once the
    surrounding unit of work rolls back.
    """

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
    ) -> "TransferService":
        # deferred import: the SQL repository imports this package's models
        from space_ledger.infrastructure.database.repositories.space_repository import SqlSpaceRepository

        return cls(
            SqlSpaceRepository(session),
            BalanceHistoryService.with_session(session),
            clock=clock,
            enforce_freeze=enforce_freeze,
        )

    async def transfer(self, from_space_id: str, to_space_id: str, amount: Decimal) -> TransferResult:
        if not from_space_id or not to_space_id:
            raise ValidationError("Source and destination space IDs are required")
        if from_space_id == to_space_id:
            raise ValidationError("Cannot transfer funds to the same space")

        try:
            value = to_money(amount)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid transfer amount {amount!r}: {exc}") from exc
        if value is None or value <= ZERO:
            raise ValidationError(f"Transfer amount must be positive, got: {amount}")

        spaces = await self.repository.get_many_for_update([from_space_id, to_space_id])
        for space_id in (from_space_id, to_space_id):
            if space_id not in spaces:
                raise SpaceNotFoundError(space_id)
        source, destination = spaces[from_space_id], spaces[to_space_id]

        if source.account_id != destination.account_id:
            raise ValidationError("Cannot transfer between spaces of different accounts")
        if self.enforce_freeze:
            for space in (source, destination):
                if space.is_frozen:
                    raise SpaceFrozenError(space.id)
        if source.balance < value:
            raise InsufficientFundsError(source.balance, value)

        now = self.clock()
        source = await self.repository.save(
            dataclasses.replace(source, balance=source.balance - value, updated_at=now)
        )
        destination = await self.repository.save(
            dataclasses.replace(destination, balance=destination.balance + value, updated_at=now)
        )
        source_snapshot = await self.history.record(
            account_id=source.account_id,
            space_id=source.id,
            amount=source.balance,
            as_of=now,
        )
        destination_snapshot = await self.history.record(
            account_id=destination.account_id,
            space_id=destination.id,
            amount=destination.balance,
            as_of=now,
        )
        logger.info(
            "Transferred %s from space %s to space %s (account %s)",
            value,
            source.id,
            destination.id,
            source.account_id,
        )
        return TransferResult(
            source=source,
            destination=destination,
            snapshots=(source_snapshot, destination_snapshot),
        )
