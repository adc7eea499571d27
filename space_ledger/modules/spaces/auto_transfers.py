"""Recurring transfers between spaces: configuration and execution."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from space_ledger.core.clock import Clock, utcnow
from space_ledger.core.money import ZERO, to_money
from space_ledger.infrastructure.database.session import unit_of_work

from .exceptions import LedgerError, SpaceNotFoundError, ValidationError
from .models import AutoTransferConfig, PlannedTransfer, Space, SpaceType, TransferFrequency
from .repository import SpaceRepository
from .transfers import TransferService

logger = logging.getLogger(__name__)


def _coerce_frequency(frequency: TransferFrequency | str | None) -> TransferFrequency | None:
    if frequency is None or isinstance(frequency, TransferFrequency):
        return frequency
    try:
        return TransferFrequency(str(frequency).strip().upper())
    except ValueError as exc:
        raise ValidationError(f"Unknown transfer frequency: {frequency}") from exc


@dataclass(slots=True)
class AutoTransferService:
    repository: SpaceRepository
    clock: Clock = utcnow

    @classmethod
    def with_session(cls, session: AsyncSession, *, clock: Clock = utcnow) -> "AutoTransferService":
        # deferred import: the SQL repository imports this package's models
        from space_ledger.infrastructure.database.repositories.space_repository import SqlSpaceRepository

        return cls(SqlSpaceRepository(session), clock=clock)

    async def configure(
        self,
        space_id: str,
        enabled: bool,
        frequency: TransferFrequency | str | None = None,
        amount: Decimal | None = None,
        source_space_id: str | None = None,
    ) -> Space:
        space = await self.repository.get(space_id)
        if space is None:
            raise SpaceNotFoundError(space_id)

        if not enabled:
            # disabling clears the whole configuration
            config = AutoTransferConfig()
        else:
            resolved_frequency = _coerce_frequency(frequency)
            try:
                resolved_amount = to_money(amount)
            except (TypeError, ValueError) as exc:
                raise ValidationError(f"Transfer amount must be a decimal amount: {exc}") from exc
            if resolved_frequency is None or resolved_amount is None or resolved_amount <= ZERO:
                raise ValidationError(
                    "Frequency and amount are required and amount must be positive "
                    "when enabling automatic transfers"
                )
            if source_space_id is not None:
                if source_space_id == space.id:
                    raise ValidationError("Source space must differ from the target space")
                source = await self.repository.get(source_space_id)
                if source is None or source.account_id != space.account_id:
                    raise ValidationError("Source space must belong to the same account")
            config = AutoTransferConfig(
                enabled=True,
                frequency=resolved_frequency,
                amount=resolved_amount,
                source_space_id=source_space_id,
            )

        saved = await self.repository.save(
            dataclasses.replace(space, auto_transfer=config, updated_at=self.clock())
        )
        logger.info(
            "Automatic transfers %s for space %s",
            "enabled" if config.enabled else "disabled",
            space.id,
        )
        return saved

    async def plan_due(self, account_id: str) -> list[PlannedTransfer]:
        """Resolve every runnable configuration of the account to a concrete transfer."""
        spaces = await self.repository.list_by_account(account_id)
        main = next((s for s in spaces if s.kind is SpaceType.MAIN), None)

        plans: list[PlannedTransfer] = []
        for space in spaces:
            config = space.auto_transfer
            if not config.enabled:
                continue
            if not config.is_runnable:
                logger.warning(
                    "Skipping automatic transfer for space %s due to invalid configuration",
                    space.id,
                )
                continue
            source_id = config.source_space_id
            if source_id is None:
                if main is None:
                    logger.warning(
                        "Skipping automatic transfer for space %s: account %s has no main space",
                        space.id,
                        account_id,
                    )
                    continue
                source_id = main.id
            plans.append(
                PlannedTransfer(
                    space_id=space.id,
                    source_space_id=source_id,
                    amount=config.amount,
                    frequency=config.frequency,
                )
            )
        return plans


class AutoTransferExecutor:
    """Runs due automatic transfers, each in its own unit of work.

    Meant to be triggered by an external scheduler; it keeps no timers. A
    failing space is logged and counted as zero without affecting the rest.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Clock = utcnow,
        enforce_freeze: bool = True,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock
        self._enforce_freeze = enforce_freeze

    async def execute_due(self, account_id: str) -> int:
        async with unit_of_work(self._session_factory) as session:
            plans = await AutoTransferService.with_session(session, clock=self._clock).plan_due(account_id)

        succeeded = 0
        for plan in plans:
            if await self._run(plan):
                succeeded += 1
        logger.info(
            "Executed %d of %d automatic transfers for account %s",
            succeeded,
            len(plans),
            account_id,
        )
        return succeeded

    async def execute_all_due(self) -> int:
        async with unit_of_work(self._session_factory) as session:
            service = AutoTransferService.with_session(session, clock=self._clock)
            account_ids: Sequence[str] = await service.repository.list_auto_transfer_accounts()

        total = 0
        for account_id in account_ids:
            total += await self.execute_due(account_id)
        return total

    async def _run(self, plan: PlannedTransfer) -> bool:
        try:
            async with unit_of_work(self._session_factory) as session:
                transfers = TransferService.with_session(
                    session,
                    clock=self._clock,
                    enforce_freeze=self._enforce_freeze,
                )
                await transfers.transfer(plan.source_space_id, plan.space_id, plan.amount)
        except LedgerError as exc:
            logger.error(
                "Error executing automatic transfer from %s to %s: %s",
                plan.source_space_id,
                plan.space_id,
                exc,
            )
            return False
        except SQLAlchemyError:
            logger.exception(
                "Database error executing automatic transfer from %s to %s",
                plan.source_space_id,
                plan.space_id,
            )
            return False
        return True
