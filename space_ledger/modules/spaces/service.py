"""Lifecycle and status management for account spaces."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from space_ledger.core.clock import Clock, ensure_utc, utcnow
from space_ledger.core.money import ZERO, to_money
from space_ledger.modules.balances import BalanceHistoryService

from .exceptions import InvalidStateError, SpaceFrozenError, SpaceNotFoundError, ValidationError
from .models import UNSET, Space, SpaceCreateInput, SpaceType, SpaceUpdateInput
from .repository import SpaceRepository

logger = logging.getLogger(__name__)


def coerce_space_type(kind: SpaceType | str | None) -> SpaceType:
    if kind is None:
        raise ValidationError("Space type is required")
    if isinstance(kind, SpaceType):
        return kind
    try:
        return SpaceType(str(kind).strip().upper())
    except ValueError as exc:
        raise ValidationError(f"Unknown space type: {kind}") from exc


def _amount(value: Any, field_name: str) -> Decimal | None:
    try:
        return to_money(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field_name} must be a decimal amount: {exc}") from exc


def _require_name(name: str | None) -> str:
    if name is None or not name.strip():
        raise ValidationError("Space name is required")
    return name.strip()


def _check_target_amount(target_amount: Decimal | None) -> Decimal | None:
    if target_amount is not None and target_amount < ZERO:
        raise ValidationError("Target amount cannot be negative")
    return target_amount


def _check_target_date(target_date: datetime | None, now: datetime) -> datetime | None:
    target_date = ensure_utc(target_date)
    if target_date is not None and target_date < now:
        raise ValidationError("Target date cannot be in the past")
    return target_date


@dataclass(slots=True)
class SpaceService:
    """Create, update, delete, freeze and administratively adjust spaces."""

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
    ) -> "SpaceService":
        # deferred import: the SQL repository imports this package's models
        from space_ledger.infrastructure.database.repositories.space_repository import SqlSpaceRepository

        return cls(
            SqlSpaceRepository(session),
            BalanceHistoryService.with_session(session),
            clock=clock,
            enforce_freeze=enforce_freeze,
        )

    async def create_space(self, payload: SpaceCreateInput) -> Space:
        if payload.account_id is None or not str(payload.account_id).strip():
            raise ValidationError("Account ID is required for creating a space")
        name = _require_name(payload.name)
        kind = coerce_space_type(payload.kind)
        if kind is SpaceType.MAIN and await self.repository.list_by_type(str(payload.account_id), SpaceType.MAIN):
            raise InvalidStateError("Account already has a main space")

        balance = _amount(payload.balance, "Balance")
        if balance is None:
            balance = ZERO
        elif balance < ZERO:
            raise ValidationError("New balance cannot be negative")

        now = self.clock()
        space = Space(
            id="",
            account_id=str(payload.account_id),
            name=name,
            kind=kind,
            balance=balance,
            is_visible=True if payload.is_visible is None else bool(payload.is_visible),
            target_amount=_check_target_amount(_amount(payload.target_amount, "Target amount")),
            target_date=_check_target_date(payload.target_date, now),
            description=payload.description,
            icon_id=payload.icon_id,
            color_code=payload.color_code,
            created_at=now,
        )
        created = await self.repository.create(space)
        logger.info("Created %s space %s for account %s", created.kind.value, created.id, created.account_id)
        return created

    async def ensure_main_space(self, account_id: str, name: str = "Main") -> Space:
        """Return the account's main space, creating it when missing.

        Two concurrent first calls race on the insert; the unique index on
        MAIN spaces lets only one commit and the other fails with
        ``IntegrityError``. Calling again returns the winner.
        """
        existing = await self.repository.list_by_type(account_id, SpaceType.MAIN)
        if existing:
            return existing[0]
        return await self.create_space(SpaceCreateInput(account_id=account_id, name=name, kind=SpaceType.MAIN))

    async def get_space(self, space_id: str) -> Space:
        if not space_id:
            raise ValidationError("Account space ID is required")
        space = await self.repository.get(space_id)
        if space is None:
            raise SpaceNotFoundError(space_id)
        return space

    async def list_spaces(self, account_id: str, limit: int | None = None, offset: int = 0) -> Sequence[Space]:
        return await self.repository.list_by_account(account_id, limit=limit, offset=offset)

    async def count_spaces(self, account_id: str) -> int:
        return await self.repository.count_by_account(account_id)

    async def total_balance(self, account_id: str) -> Decimal:
        return await self.repository.sum_balance_by_account(account_id)

    async def spaces_by_type(self, account_id: str, kind: SpaceType | str) -> Sequence[Space]:
        return await self.repository.list_by_type(account_id, coerce_space_type(kind))

    async def frozen_spaces(self, account_id: str) -> Sequence[Space]:
        return await self.repository.list_frozen(account_id)

    async def update_space(self, space_id: str, payload: SpaceUpdateInput) -> Space:
        current = await self.get_space(space_id)
        now = self.clock()
        changes: dict[str, Any] = {}

        if payload.name is not UNSET:
            changes["name"] = _require_name(payload.name)
        if payload.kind is not UNSET and payload.kind is not None:
            if coerce_space_type(payload.kind) is not current.kind:
                raise ValidationError("Cannot change the type of an existing space")
        if payload.is_visible is not UNSET and payload.is_visible is not None:
            changes["is_visible"] = bool(payload.is_visible)
        if payload.target_amount is not UNSET:
            changes["target_amount"] = _check_target_amount(_amount(payload.target_amount, "Target amount"))
        if payload.target_date is not UNSET:
            changes["target_date"] = _check_target_date(payload.target_date, now)
        for field_name in ("description", "icon_id", "color_code"):
            value = getattr(payload, field_name)
            if value is not UNSET:
                changes[field_name] = value

        if not changes:
            return current
        # account_id and kind are carried over from the stored record.
        updated = dataclasses.replace(current, updated_at=now, **changes)
        return await self.repository.save(updated)

    async def delete_space(self, space_id: str) -> None:
        space = await self.get_space(space_id)
        if space.is_main:
            raise InvalidStateError("Cannot delete the main account space")
        if space.balance != ZERO:
            raise InvalidStateError("Cannot delete space with non-zero balance. Transfer funds first.")
        await self.repository.delete(space)
        logger.info("Deleted space %s of account %s", space.id, space.account_id)

    async def freeze(self, space_id: str) -> Space:
        space = await self.get_space(space_id)
        if space.is_frozen:
            raise InvalidStateError("Account space is already frozen")
        now = self.clock()
        saved = await self.repository.save(
            dataclasses.replace(space, is_frozen=True, frozen_at=now, updated_at=now)
        )
        logger.info("Froze space %s", space.id)
        return saved

    async def unfreeze(self, space_id: str) -> Space:
        space = await self.get_space(space_id)
        if not space.is_frozen:
            raise InvalidStateError("Account space is not frozen")
        now = self.clock()
        saved = await self.repository.save(
            dataclasses.replace(space, is_frozen=False, unfrozen_at=now, updated_at=now)
        )
        logger.info("Unfroze space %s", space.id)
        return saved

    async def set_balance(self, space_id: str, new_balance: Decimal, reason: str) -> Space:
        """Administrative single-space correction, e.g. after reconciliation.

        Bypasses the two-space transfer rule on purpose but still leaves one
        ``CURRENT`` snapshot with the new amount.
        """
        amount = _amount(new_balance, "New balance")
        if amount is None or amount < ZERO:
            raise ValidationError("New balance cannot be negative")
        if reason is None or not reason.strip():
            raise ValidationError("Reason is required for balance adjustments")

        space = await self.get_space(space_id)
        if self.enforce_freeze and space.is_frozen:
            raise SpaceFrozenError(space.id)

        now = self.clock()
        saved = await self.repository.save(
            dataclasses.replace(
                space,
                balance=amount,
                last_balance_update_reason=reason.strip(),
                last_balance_update_at=now,
                updated_at=now,
            )
        )
        await self.history.record(
            account_id=saved.account_id,
            space_id=saved.id,
            amount=amount,
            as_of=now,
        )
        logger.info(
            "Balance of space %s set from %s to %s: %s",
            space.id,
            space.balance,
            amount,
            reason.strip(),
        )
        return saved
