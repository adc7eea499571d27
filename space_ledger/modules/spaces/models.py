"""Domain models for account spaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from space_ledger.modules.balances.models import BalanceSnapshot


class SpaceType(str, Enum):
    MAIN = "MAIN"
    SAVINGS = "SAVINGS"
    GOAL = "GOAL"
    VACATION = "VACATION"
    EMERGENCY = "EMERGENCY"
    CUSTOM = "CUSTOM"


_DAYS_PER_MONTH = Decimal(30)
_WEEKS_PER_MONTH = Decimal(4)


class TransferFrequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUALLY = "ANNUALLY"

    def fires_in_month(self, month: int) -> bool:
        """Whether a transfer happens in simulated month ``month`` (0-based)."""
        match self:
            case TransferFrequency.DAILY | TransferFrequency.WEEKLY | TransferFrequency.MONTHLY:
                return True
            case TransferFrequency.QUARTERLY:
                return month % 3 == 0
            case TransferFrequency.ANNUALLY:
                return month % 12 == 0
        raise ValueError(f"unhandled transfer frequency: {self!r}")

    def monthly_amount(self, amount: Decimal) -> Decimal:
        """Per-period ``amount`` scaled to what moves in one firing month."""
        match self:
            case TransferFrequency.DAILY:
                return amount * _DAYS_PER_MONTH
            case TransferFrequency.WEEKLY:
                return amount * _WEEKS_PER_MONTH
            case TransferFrequency.MONTHLY | TransferFrequency.QUARTERLY | TransferFrequency.ANNUALLY:
                return amount
        raise ValueError(f"unhandled transfer frequency: {self!r}")


@dataclass(slots=True, frozen=True)
class AutoTransferConfig:
    enabled: bool = False
    frequency: Optional[TransferFrequency] = None
    amount: Optional[Decimal] = None
    source_space_id: Optional[str] = None

    @property
    def is_runnable(self) -> bool:
        return (
            self.enabled
            and self.frequency is not None
            and self.amount is not None
            and self.amount > 0
        )


@dataclass(slots=True)
class Space:
    id: str
    account_id: str
    name: str
    kind: SpaceType
    balance: Decimal
    is_visible: bool = True
    is_frozen: bool = False
    frozen_at: Optional[datetime] = None
    unfrozen_at: Optional[datetime] = None
    target_amount: Optional[Decimal] = None
    target_date: Optional[datetime] = None
    description: Optional[str] = None
    icon_id: Optional[str] = None
    color_code: Optional[str] = None
    auto_transfer: AutoTransferConfig = field(default_factory=AutoTransferConfig)
    last_balance_update_reason: Optional[str] = None
    last_balance_update_at: Optional[datetime] = None
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Derived by goal progress, never persisted.
    goal_progress_percentage: Optional[Decimal] = None
    remaining_to_target: Optional[Decimal] = None
    is_goal_completed: Optional[bool] = None
    estimated_completion_date: Optional[datetime] = None

    @property
    def is_main(self) -> bool:
        return self.kind is SpaceType.MAIN


@dataclass(slots=True)
class SpaceCreateInput:
    account_id: str
    name: str
    kind: SpaceType | str
    balance: Optional[Decimal] = None
    is_visible: Optional[bool] = None
    target_amount: Optional[Decimal] = None
    target_date: Optional[datetime] = None
    description: Optional[str] = None
    icon_id: Optional[str] = None
    color_code: Optional[str] = None


# Sentinel used to differentiate between "not provided" and explicit None.
UNSET = object()


@dataclass(slots=True)
class SpaceUpdateInput:
    name: Optional[str] | object = UNSET
    kind: Optional[SpaceType | str] | object = UNSET
    is_visible: Optional[bool] | object = UNSET
    target_amount: Optional[Decimal] | object = UNSET
    target_date: Optional[datetime] | object = UNSET
    description: Optional[str] | object = UNSET
    icon_id: Optional[str] | object = UNSET
    color_code: Optional[str] | object = UNSET


@dataclass(slots=True, frozen=True)
class TransferResult:
    source: Space
    destination: Space
    snapshots: tuple[BalanceSnapshot, BalanceSnapshot]


@dataclass(slots=True, frozen=True)
class PlannedTransfer:
    """An automatic transfer resolved against current state, ready to run."""

    space_id: str
    source_space_id: str
    amount: Decimal
    frequency: TransferFrequency


@dataclass(slots=True, frozen=True)
class TimeSeriesPoint:
    timestamp: datetime
    value: Decimal


@dataclass(slots=True)
class SpaceAnalytics:
    space_id: str
    account_id: str
    name: str
    kind: SpaceType
    start: Optional[datetime]
    end: Optional[datetime]
    closing_balance: Decimal
    opening_balance: Optional[Decimal] = None
    lowest_balance: Optional[Decimal] = None
    highest_balance: Optional[Decimal] = None
    average_balance: Optional[Decimal] = None
    net_change: Optional[Decimal] = None
    net_change_percentage: Optional[Decimal] = None
    snapshot_count: int = 0
    balance_history: list[TimeSeriesPoint] = field(default_factory=list)
    percentage_of_account_total: Optional[Decimal] = None
    goal_progress: Optional[Decimal] = None
    projected_completion_date: Optional[datetime] = None
