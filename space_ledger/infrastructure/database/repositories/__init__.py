"""SQLAlchemy-backed repository implementations."""

from .balance_repository import SqlBalanceHistoryRepository
from .space_repository import SqlSpaceRepository

__all__ = [
    "SqlBalanceHistoryRepository",
    "SqlSpaceRepository",
]
