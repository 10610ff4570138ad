"""
Pure domain layer.

Monetary value objects and the exchange-rate table, with NO dependencies on:
- Persistence
- Time/clock
- I/O (other than structured logging)

All value objects are immutable and deterministic.
"""

from money_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from money_kernel.domain.exchange import Exchange
from money_kernel.domain.values import Currency, ExchangeRate, Money

__all__ = [
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "Exchange",
    "ExchangeRate",
    "Money",
]
