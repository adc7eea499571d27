"""Simple dependency container for wiring core services."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine

from space_ledger.core.config import Settings, get_settings
from space_ledger.core.logging import configure_logging
from space_ledger.infrastructure.database.session import get_engine, get_session_factory
from space_ledger.ledger import SpaceLedger


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    _ledger: SpaceLedger | None = field(default=None, init=False, repr=False)

    def init_infrastructure(self) -> AsyncEngine:
        """Ensure infrastructure singletons (logging, database engine) are initialised."""
        configure_logging(self.settings)
        return get_engine()

    @property
    def ledger(self) -> SpaceLedger:
        if self._ledger is None:
            self._ledger = SpaceLedger(get_session_factory(), settings=self.settings)
        return self._ledger


@lru_cache()
def get_container() -> ApplicationContainer:
    container = ApplicationContainer(settings=get_settings())
    container.init_infrastructure()
    return container


__all__ = ["ApplicationContainer", "get_container"]
