"""
Config → Kernel Bridges.

Functions that turn configuration definitions into kernel and engine
objects. They live in money_config (the producer) because money_kernel and
tax_engines must never import money_config.

Usage:
    from money_config import get_active_config
    from money_config.bridges import build_exchange, build_tax_schedule

    config = get_active_config()
    exchange = build_exchange(config)
    schedule = build_tax_schedule(config.get_schedule("example_progressive"))
"""

from __future__ import annotations

from money_config.schema import MoneyConfigurationSet, TaxScheduleDef
from money_kernel.domain.exchange import Exchange
from money_kernel.domain.values import Currency, ExchangeRate, Money
from tax_engines.progressive import (
    TaxBracket,
    TaxDeductionCategory,
    TaxDeductionRule,
    TaxSchedule,
)


def build_exchange(config: MoneyConfigurationSet) -> Exchange:
    """Build an Exchange holding every configured rate (and its inverse).

    Later definitions of the same pair overwrite earlier ones.
    """
    return Exchange(
        ExchangeRate.of(r.from_currency, r.to_currency, r.rate)
        for r in config.exchange_rates
    )


def build_tax_schedule(schedule_def: TaxScheduleDef) -> TaxSchedule:
    """Build a TaxSchedule with its deduction rules registered.

    Raises:
        InvalidCurrencyError: If the schedule currency is unsupported.
        ValueError: If a deduction category is unknown or a bracket is invalid.
    """
    currency = Currency.of(schedule_def.currency)
    brackets = [
        TaxBracket.of(b.min_amount, b.max_amount, b.rate, currency)
        for b in schedule_def.brackets
    ]
    schedule = TaxSchedule(
        brackets,
        currency,
        jurisdiction=schedule_def.jurisdiction,
        tax_year=schedule_def.tax_year,
    )

    for rule_def in schedule_def.deduction_rules:
        category = TaxDeductionCategory(rule_def.category)
        schedule.set_deduction(
            category,
            TaxDeductionRule(
                category=category,
                max_amount=(
                    Money.of(rule_def.max_amount, currency)
                    if rule_def.max_amount is not None
                    else None
                ),
                inclusion_rate=rule_def.inclusion_rate,
            ),
        )
    return schedule
