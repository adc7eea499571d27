"""Ledger modules and shared exports."""

from . import balances, spaces

__all__ = [
    "balances",
    "spaces",
]
