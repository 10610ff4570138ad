"""
MoneyConfigurationSet schema.

Defines the human-authored, reviewable source artifact for rate tables and
tax schedules. YAML files are parsed into these types by the loader and
turned into kernel/engine objects by the bridges.

Key distinction:
  MoneyConfigurationSet = source artifact (declarative data, no logic)
  Exchange / TaxSchedule = runtime objects built from it (money_config.bridges)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

# ---------------------------------------------------------------------------
# Exchange rates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExchangeRateDef:
    """One direction of a currency pair; the inverse is implied."""

    from_currency: str
    to_currency: str
    rate: Decimal


# ---------------------------------------------------------------------------
# Tax schedules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaxBracketDef:
    """Bracket bounds in the owning schedule's currency."""

    min_amount: Decimal
    max_amount: Decimal | None
    rate: Decimal


@dataclass(frozen=True)
class DeductionRuleDef:
    """Deduction rule keyed by TaxDeductionCategory value."""

    category: str
    inclusion_rate: Decimal
    max_amount: Decimal | None = None


@dataclass(frozen=True)
class TaxScheduleDef:
    """A named bracket table and its deduction rules."""

    name: str
    currency: str
    brackets: tuple[TaxBracketDef, ...]
    deduction_rules: tuple[DeductionRuleDef, ...] = ()
    jurisdiction: str | None = None
    tax_year: int | None = None


# ---------------------------------------------------------------------------
# Configuration set
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MoneyConfigurationSet:
    """Complete rate and tax configuration loaded from one YAML document."""

    config_id: str
    version: int
    exchange_rates: tuple[ExchangeRateDef, ...] = ()
    tax_schedules: tuple[TaxScheduleDef, ...] = ()
    checksum: str = ""

    @property
    def schedule_names(self) -> list[str]:
        return [s.name for s in self.tax_schedules]

    def get_schedule(self, name: str) -> TaxScheduleDef | None:
        for schedule in self.tax_schedules:
            if schedule.name == name:
                return schedule
        return None
