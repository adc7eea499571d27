"""Exports for account space domain"""

from .auto_transfers import AutoTransferExecutor, AutoTransferService
from .exceptions import (
    ConflictError,
    InsufficientFundsError,
    InvalidStateError,
    LedgerError,
    SpaceFrozenError,
    SpaceNotFoundError,
    ValidationError,
)
from .models import (
    UNSET,
    AutoTransferConfig,
    PlannedTransfer,
    Space,
    SpaceAnalytics,
    SpaceCreateInput,
    SpaceType,
    SpaceUpdateInput,
    TimeSeriesPoint,
    TransferFrequency,
    TransferResult,
)
from .projections import ProjectionService
from .repository import SpaceRepository
from .service import SpaceService
from .transfers import TransferService

__all__ = [
    "UNSET",
    "AutoTransferConfig",
    "AutoTransferExecutor",
    "AutoTransferService",
    "ConflictError",
    "InsufficientFundsError",
    "InvalidStateError",
    "LedgerError",
    "PlannedTransfer",
    "ProjectionService",
    "Space",
    "SpaceAnalytics",
    "SpaceCreateInput",
    "SpaceFrozenError",
    "SpaceNotFoundError",
    "SpaceRepository",
    "SpaceService",
    "SpaceType",
    "SpaceUpdateInput",
    "TimeSeriesPoint",
    "TransferFrequency",
    "TransferResult",
    "TransferService",
    "ValidationError",
]
