"""Domain models for balance history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class BalanceType(str, Enum):
    CURRENT = "CURRENT"
    AVAILABLE = "AVAILABLE"
    BLOCKED = "BLOCKED"


@dataclass(slots=True, frozen=True)
class BalanceSnapshot:
    id: str
    account_id: str
    space_id: Optional[str]
    balance_type: BalanceType
    amount: Decimal
    as_of: datetime
    created_at: Optional[datetime] = None
