"""Space ledger: per-account sub-balances, transfers and projections."""

__version__ = "0.1.0"
