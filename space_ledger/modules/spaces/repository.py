"""Repository protocol for account spaces."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Protocol, Sequence

from .models import Space, SpaceType


class SpaceRepository(Protocol):
    """Current-state store of spaces with compare-and-save writes.

    ``save`` and ``delete`` only succeed when the stored ``version`` still
    equals the one carried by the given space; otherwise they raise
    ``ConflictError``. A successful ``save`` returns the space with its
    version incremented.
    """

    async def get(self, space_id: str) -> Space | None:
        ...

    async def get_many_for_update(self, space_ids: Sequence[str]) -> dict[str, Space]:
        ...

    async def list_by_account(
        self,
        account_id: str,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[Space]:
        ...

    async def list_by_type(self, account_id: str, kind: SpaceType) -> Sequence[Space]:
        ...

    async def list_with_target(self, account_id: str) -> Sequence[Space]:
        ...

    async def list_with_target_date_between(
        self,
        account_id: str,
        start: datetime,
        end: datetime,
    ) -> Sequence[Space]:
        ...

    async def list_frozen(self, account_id: str) -> Sequence[Space]:
        ...

    async def list_auto_transfer_accounts(self) -> Sequence[str]:
        ...

    async def count_by_account(self, account_id: str) -> int:
        ...

    async def sum_balance_by_account(self, account_id: str) -> Decimal:
        ...

    async def create(self, space: Space) -> Space:
        ...

    async def save(self, space: Space) -> Space:
        ...

    async def delete(self, space: Space) -> None:
        ...
