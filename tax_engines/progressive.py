"""
Progressive Tax Engine - marginal brackets and capped deductions.

Pure functions with no I/O - brackets and deduction rules are supplied by
the caller (or by money_config) and pinned to a single currency.

Each bracket taxes only the slice of income that falls inside it, so the
schedule total is simply the sum over every bracket: brackets below the
income contribute their full width, the bracket containing the income
contributes a partial slice, and brackets above it contribute zero.

Usage:
    from decimal import Decimal
    from money_kernel.domain.values import Currency, Money
    from tax_engines.progressive import TaxBracket, TaxSchedule

    schedule = TaxSchedule(
        [
            TaxBracket.of("0", "10000", "0.10", "CAD"),
            TaxBracket.of("10000", "20000", "0.20", "CAD"),
            TaxBracket.of("20000", None, "0.30", "CAD"),
        ],
        Currency.CAD,
    )
    schedule.calculate_tax(Money.of("15000", "CAD"))  # Money: 2000.00 CAD

Bracket layout:
    Overlapping or gapped brackets are accepted and summed as-is; overlaps
    double-count and gaps go untaxed. Keeping brackets contiguous is the
    caller's responsibility. The schedule logs ``tax_brackets_not_contiguous``
    and exposes ``layout_issues()`` so irregular tables are visible.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from uuid import uuid4

from money_kernel.domain.values import Currency, Money
from money_kernel.exceptions import (
    CurrencyMismatchError,
    DeductionCategoryNotFoundError,
)
from money_kernel.logging_config import LogContext, get_logger
from tax_engines.tracer import traced_engine

logger = get_logger("engines.progressive")


class TaxDeductionCategory(str, Enum):
    """Category of deduction a claim belongs to."""

    CAPITAL_GAINS = "capital_gains"
    EMPLOYEE_STOCK_OPTIONS = "employee_stock_options"


def _as_decimal(value: Decimal | str | int, label: str) -> Decimal:
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except ArithmeticError as e:
            raise ValueError(f"Invalid {label}: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Invalid {label}: {value!r}")
    return result


@dataclass(frozen=True)
class TaxBracket:
    """
    Income interval [min_money, max_money) taxed at one marginal rate.

    max_money of None marks the top, unbounded bracket.
    """

    min_money: Money
    max_money: Money | None
    rate: Decimal  # As decimal fraction (e.g., 0.20 for 20%)

    def __post_init__(self) -> None:
        object.__setattr__(self, "rate", _as_decimal(self.rate, "tax rate"))
        if self.rate < Decimal("0"):
            raise ValueError("Tax rate cannot be negative")

        if self.max_money is not None:
            if self.max_money.currency is not self.min_money.currency:
                raise CurrencyMismatchError(
                    self.min_money.currency.code,
                    self.max_money.currency.code,
                    "tax bracket",
                )
            if self.max_money < self.min_money:
                raise ValueError(
                    f"Bracket upper bound {self.max_money} is below lower bound {self.min_money}"
                )

    @classmethod
    def of(
        cls,
        min_amount: Decimal | str | int,
        max_amount: Decimal | str | int | None,
        rate: Decimal | str,
        currency: Currency | str,
    ) -> TaxBracket:
        """Build a bracket from plain amounts in a single currency."""
        return cls(
            min_money=Money.of(min_amount, currency),
            max_money=Money.of(max_amount, currency) if max_amount is not None else None,
            rate=_as_decimal(rate, "tax rate"),
        )

    @property
    def currency(self) -> Currency:
        return self.min_money.currency

    @property
    def is_unbounded(self) -> bool:
        return self.max_money is None

    @property
    def rate_percent(self) -> Decimal:
        """Rate as percentage (e.g., 20 for 20%)."""
        return self.rate * Decimal("100")

    def taxable_slice(self, taxable_income: Money) -> Money:
        """Portion of taxable_income that falls inside this bracket."""
        if taxable_income < self.min_money:
            return Money.zero(self.currency)
        if self.max_money is not None and taxable_income >= self.max_money:
            # Bracket fully filled
            return self.max_money - self.min_money
        return taxable_income - self.min_money

    def calculate_tax(self, taxable_income: Money) -> Money:
        """Tax contributed by this bracket alone."""
        return self.taxable_slice(taxable_income) * self.rate


@dataclass(frozen=True)
class TaxDeduction:
    """A claim to deduct money under one category."""

    category: TaxDeductionCategory
    money_to_deduct: Money

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", TaxDeductionCategory(self.category))


@dataclass(frozen=True)
class TaxDeductionRule:
    """
    How claims in one category reduce taxable income.

    The deductible amount is the claim (capped at max_amount when set)
    multiplied by inclusion_rate. No currency conversion happens here;
    claims and caps are expected in the schedule currency.
    """

    category: TaxDeductionCategory
    max_amount: Money | None
    inclusion_rate: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", TaxDeductionCategory(self.category))
        object.__setattr__(
            self, "inclusion_rate", _as_decimal(self.inclusion_rate, "inclusion rate")
        )
        if self.inclusion_rate < Decimal("0"):
            raise ValueError("Inclusion rate cannot be negative")

    def apply_deduction(self, deduction: TaxDeduction) -> Money:
        """Deductible amount for one claim."""
        claimed = deduction.money_to_deduct
        if self.max_amount is not None and claimed > self.max_amount:
            return self.max_amount * self.inclusion_rate
        return claimed * self.inclusion_rate


@dataclass(frozen=True)
class BracketTaxLine:
    """Tax attributed to a single bracket in a calculation."""

    bracket: TaxBracket
    taxable_amount: Money  # Slice of income inside the bracket
    tax_amount: Money

    @property
    def rate_applied(self) -> Decimal:
        return self.bracket.rate


@dataclass(frozen=True)
class ProgressiveTaxResult:
    """
    Complete progressive tax calculation.

    Immutable value object with the per-bracket breakdown.
    """

    gross_income: Money
    deductions_total: Money
    taxable_income: Money
    lines: tuple[BracketTaxLine, ...]

    @property
    def tax_total(self) -> Money:
        """Total tax across all brackets."""
        total = Money.zero(self.taxable_income.currency)
        for line in self.lines:
            total = total + line.tax_amount
        return total

    @property
    def effective_tax_rate(self) -> Decimal:
        """Overall effective rate (total tax / gross income)."""
        if self.gross_income.is_zero:
            return Decimal("0")
        return self.tax_total.amount / self.gross_income.amount

    @property
    def marginal_rate(self) -> Decimal:
        """Rate of the highest bracket the taxable income reaches."""
        reached = [
            line for line in self.lines
            if self.taxable_income >= line.bracket.min_money
        ]
        if not reached:
            return Decimal("0")
        return reached[-1].bracket.rate


class TaxSchedule:
    """
    Ordered tax brackets plus deduction rules, pinned to one currency.

    Brackets are immutable after construction and kept sorted by their
    lower bound. Deduction rules can be registered (upserted) at any time
    during setup.

    jurisdiction and tax_year are descriptive only: they do not change any
    amount, but calculate() binds them (with a fresh calculation_id) into
    the log context so every record of one calculation carries them.

    Concurrency:
        Configure once, then query. set_deduction is not synchronized.
    """

    def __init__(
        self,
        brackets: Iterable[TaxBracket],
        currency: Currency | str,
        *,
        jurisdiction: str | None = None,
        tax_year: int | None = None,
    ):
        schedule_currency = Currency.of(currency)
        bracket_list = list(brackets)

        for bracket in bracket_list:
            for bound in (bracket.min_money, bracket.max_money):
                if bound is not None and bound.currency is not schedule_currency:
                    logger.error("tax_schedule_currency_mismatch", extra={
                        "schedule_currency": schedule_currency.code,
                        "bracket_currency": bound.currency.code,
                        "bracket_min": str(bracket.min_money.amount),
                    })
                    raise CurrencyMismatchError(
                        schedule_currency.code, bound.currency.code, "tax schedule"
                    )

        self._currency = schedule_currency
        self._jurisdiction = jurisdiction
        self._tax_year = tax_year
        # sorted() is stable: equal lower bounds keep caller order
        self._brackets: tuple[TaxBracket, ...] = tuple(
            sorted(bracket_list, key=lambda b: b.min_money.amount)
        )
        self._deduction_rules: dict[TaxDeductionCategory, TaxDeductionRule] = {}

        issues = self.layout_issues()
        if issues:
            logger.warning("tax_brackets_not_contiguous", extra={
                "currency": schedule_currency.code,
                "issue_count": len(issues),
                "issues": issues,
            })
        logger.debug("tax_schedule_created", extra={
            "currency": schedule_currency.code,
            "bracket_count": len(self._brackets),
            "schedule_jurisdiction": jurisdiction,
            "schedule_tax_year": tax_year,
        })

    @property
    def currency(self) -> Currency:
        return self._currency

    @property
    def jurisdiction(self) -> str | None:
        return self._jurisdiction

    @property
    def tax_year(self) -> int | None:
        return self._tax_year

    @property
    def brackets(self) -> tuple[TaxBracket, ...]:
        return self._brackets

    @property
    def deduction_rules(self) -> Mapping[TaxDeductionCategory, TaxDeductionRule]:
        """Read-only view of the registered deduction rules."""
        return MappingProxyType(self._deduction_rules)

    def layout_issues(self) -> list[str]:
        """Describe overlaps and gaps between consecutive brackets."""
        issues: list[str] = []
        for current, following in zip(self._brackets, self._brackets[1:]):
            if current.max_money is None:
                issues.append(
                    f"unbounded bracket from {current.min_money} overlaps "
                    f"bracket from {following.min_money}"
                )
            elif following.min_money < current.max_money:
                issues.append(
                    f"overlap: bracket ending {current.max_money} and "
                    f"bracket starting {following.min_money}"
                )
            elif following.min_money > current.max_money:
                issues.append(
                    f"gap: {current.max_money} to {following.min_money} is untaxed"
                )
        return issues

    def set_deduction(
        self,
        category: TaxDeductionCategory,
        rule: TaxDeductionRule,
    ) -> None:
        """Register or replace the rule for a deduction category."""
        category = TaxDeductionCategory(category)
        replaced = category in self._deduction_rules
        self._deduction_rules[category] = rule
        logger.info("tax_deduction_rule_registered", extra={
            "category": category.value,
            "inclusion_rate": str(rule.inclusion_rate),
            "max_amount": str(rule.max_amount) if rule.max_amount is not None else None,
            "replaced": replaced,
        })

    def _require_schedule_currency(self, money: Money, operation: str) -> None:
        if money.currency is not self._currency:
            raise CurrencyMismatchError(
                self._currency.code, money.currency.code, operation
            )

    def calculate_tax(self, taxable_income: Money) -> Money:
        """
        Total tax owed on taxable_income.

        Raises:
            CurrencyMismatchError: If income is not in the schedule currency.
        """
        self._require_schedule_currency(taxable_income, "tax calculation")
        total = Money.zero(self._currency)
        for bracket in self._brackets:
            total = total + bracket.calculate_tax(taxable_income)
        return total

    def determine_deductions_amount(self, deductions: Iterable[TaxDeduction]) -> Money:
        """
        Sum of deductible amounts across all claims.

        Raises:
            DeductionCategoryNotFoundError: On the first claim whose category
                has no registered rule. No partial total is returned.
        """
        total = Money.zero(self._currency)
        for deduction in deductions:
            rule = self._deduction_rules.get(deduction.category)
            if rule is None:
                logger.error("deduction_category_not_found", extra={
                    "category": deduction.category.value,
                    "registered_categories": [c.value for c in self._deduction_rules],
                })
                raise DeductionCategoryNotFoundError(deduction.category.value)
            total = total + rule.apply_deduction(deduction)
        return total

    def calculate_tax_with_deductions(
        self,
        income: Money,
        deductions: Iterable[TaxDeduction],
    ) -> Money:
        """Tax owed on income after subtracting resolved deductions."""
        self._require_schedule_currency(income, "tax calculation")
        deductions_total = self.determine_deductions_amount(deductions)
        return self.calculate_tax(income - deductions_total)

    def calculate(
        self,
        income: Money,
        deductions: Iterable[TaxDeduction] = (),
    ) -> ProgressiveTaxResult:
        """
        Calculate tax with a per-bracket breakdown.

        Args:
            income: Gross income in the schedule currency
            deductions: Claims to resolve against registered rules

        Returns:
            ProgressiveTaxResult whose tax_total equals
            calculate_tax_with_deductions(income, deductions)

        Raises:
            CurrencyMismatchError: If income is not in the schedule currency
            DeductionCategoryNotFoundError: If a claim has no rule
        """
        with LogContext.bind(
            calculation_id=uuid4().hex,
            jurisdiction=self._jurisdiction,
            tax_year=self._tax_year,
        ):
            return self._calculate(income, tuple(deductions))

    @traced_engine("progressive_tax", "1.0", fingerprint_fields=("income", "claims"))
    def _calculate(
        self,
        income: Money,
        claims: tuple[TaxDeduction, ...],
    ) -> ProgressiveTaxResult:
        t0 = time.monotonic()
        logger.info("progressive_tax_calculation_started", extra={
            "income": str(income.amount),
            "currency": income.currency.code,
            "deduction_count": len(claims),
            "bracket_count": len(self._brackets),
        })

        self._require_schedule_currency(income, "tax calculation")
        deductions_total = self.determine_deductions_amount(claims)
        taxable_income = income - deductions_total

        lines = tuple(
            BracketTaxLine(
                bracket=bracket,
                taxable_amount=bracket.taxable_slice(taxable_income),
                tax_amount=bracket.calculate_tax(taxable_income),
            )
            for bracket in self._brackets
        )
        result = ProgressiveTaxResult(
            gross_income=income,
            deductions_total=deductions_total,
            taxable_income=taxable_income,
            lines=lines,
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("progressive_tax_calculation_completed", extra={
            "taxable_income": str(taxable_income.amount),
            "deductions_total": str(deductions_total.amount),
            "tax_total": str(result.tax_total.amount),
            "effective_rate": str(result.effective_tax_rate),
            "marginal_rate": str(result.marginal_rate),
            "duration_ms": duration_ms,
        })
        return result

    def __repr__(self) -> str:
        return (
            f"TaxSchedule({self._currency.code}, {len(self._brackets)} brackets, "
            f"{len(self._deduction_rules)} deduction rules)"
        )
