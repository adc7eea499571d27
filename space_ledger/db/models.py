"""SQLAlchemy ORM models."""
import uuid

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text, text
from sqlalchemy.sql import func

from space_ledger.core.clock import utcnow
from space_ledger.infrastructure.database.base import Base
from space_ledger.infrastructure.database.types import Money


def generate_uuid() -> str:
    return str(uuid.uuid4())


MONEY = Money()


class Space(Base):
    __tablename__ = "spaces"
    __table_args__ = (
        # one MAIN space per account
        Index(
            "uq_spaces_main_per_account",
            "account_id",
            unique=True,
            sqlite_where=text("kind = 'MAIN'"),
            postgresql_where=text("kind = 'MAIN'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    account_id = Column(String(36), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    kind = Column(String(20), nullable=False, index=True)  # MAIN, SAVINGS, GOAL, ...
    balance = Column(MONEY, nullable=False, default=0)
    is_visible = Column(Boolean, nullable=False, default=True)
    is_frozen = Column(Boolean, nullable=False, default=False)
    frozen_at = Column(DateTime(timezone=True))
    unfrozen_at = Column(DateTime(timezone=True))
    target_amount = Column(MONEY)
    target_date = Column(DateTime(timezone=True))
    description = Column(Text)
    icon_id = Column(String(50))
    color_code = Column(String(20))
    auto_transfer_enabled = Column(Boolean, nullable=False, default=False)
    transfer_frequency = Column(String(20))  # DAILY, WEEKLY, MONTHLY, QUARTERLY, ANNUALLY
    transfer_amount = Column(MONEY)
    source_space_id = Column(String(36))
    last_balance_update_reason = Column(String(255))
    last_balance_update_at = Column(DateTime(timezone=True))
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True))


class BalanceSnapshot(Base):
    __tablename__ = "balance_snapshots"
    __table_args__ = (
        Index("ix_balance_snapshots_space_as_of", "space_id", "as_of"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    account_id = Column(String(36), nullable=False, index=True)
    space_id = Column(String(36), nullable=True)
    balance_type = Column(String(30), nullable=False, default="CURRENT")
    amount = Column(MONEY, nullable=False)
    as_of = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
