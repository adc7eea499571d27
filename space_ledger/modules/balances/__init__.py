"""Balance history exports"""

from .models import BalanceSnapshot, BalanceType
from .repository import BalanceHistoryRepository
from .service import BalanceHistoryService

__all__ = [
    "BalanceSnapshot",
    "BalanceType",
    "BalanceHistoryRepository",
    "BalanceHistoryService",
]
