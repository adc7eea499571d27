"""Space ledger specific exceptions."""

from __future__ import annotations

from decimal import Decimal


class LedgerError(Exception):
    """Base class for space ledger errors."""


class ValidationError(LedgerError, ValueError):
    """Raised when input is missing, malformed or out of range."""


class SpaceNotFoundError(LedgerError):
    """Raised when the requested space cannot be found."""

    def __init__(self, space_id: str | None) -> None:
        self.space_id = space_id
        super().__init__(f"Account space not found with ID: {space_id}")


class InvalidStateError(LedgerError):
    """Raised when the operation is not allowed in the space's current state."""


class SpaceFrozenError(InvalidStateError):
    """Raised when a balance-changing operation targets a frozen space."""

    def __init__(self, space_id: str) -> None:
        self.space_id = space_id
        super().__init__(f"Account space is frozen: {space_id}")


class InsufficientFundsError(LedgerError):
    """Raised when a transfer exceeds the source space balance."""

    def __init__(self, available: Decimal, requested: Decimal) -> None:
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient funds in source space. Available: {available}, Requested: {requested}"
        )


class ConflictError(LedgerError):
    """Raised when a space changed between read and save."""

    def __init__(self, space_id: str, expected_version: int) -> None:
        self.space_id = space_id
        self.expected_version = expected_version
        super().__init__(
            f"Account space {space_id} was modified concurrently (expected version {expected_version})"
        )
