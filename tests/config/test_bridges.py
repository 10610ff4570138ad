"""
Tests for config-to-kernel bridges and the money_config entrypoint.

Verifies that configuration definitions produce working Exchange and
TaxSchedule objects, and that lookups fail with typed errors.
"""

from decimal import Decimal

import pytest

from money_config import (
    get_active_config,
    load_exchange,
    load_tax_schedule,
)
from money_config.bridges import build_exchange, build_tax_schedule
from money_config.schema import (
    DeductionRuleDef,
    ExchangeRateDef,
    MoneyConfigurationSet,
    TaxBracketDef,
    TaxScheduleDef,
)
from money_kernel.domain.values import Currency, Money
from money_kernel.exceptions import (
    InvalidCurrencyError,
    InvalidExchangeRateError,
    TaxScheduleNotFoundError,
)
from tax_engines.progressive import TaxDeduction, TaxDeductionCategory


def cad(amount) -> Money:
    return Money.of(amount, Currency.CAD)


def schedule_def(**overrides) -> TaxScheduleDef:
    fields = {
        "name": "test",
        "currency": "CAD",
        "brackets": (
            TaxBracketDef(Decimal("0"), Decimal("10000"), Decimal("0.1")),
            TaxBracketDef(Decimal("10000"), None, Decimal("0.2")),
        ),
        "deduction_rules": (
            DeductionRuleDef("capital_gains", Decimal("0.5")),
        ),
    }
    fields.update(overrides)
    return TaxScheduleDef(**fields)


class TestBuildExchange:
    """Exchange built from configured rates."""

    def test_rates_and_inverses(self):
        config = MoneyConfigurationSet(
            config_id="t",
            version=1,
            exchange_rates=(ExchangeRateDef("USD", "CAD", Decimal("1.3")),),
        )
        exchange = build_exchange(config)

        assert exchange.get_rate(Currency.USD, Currency.CAD) == Decimal("1.3")
        assert exchange.get_rate(Currency.CAD, Currency.USD) == Decimal("1") / Decimal("1.3")

    def test_later_definition_wins(self):
        config = MoneyConfigurationSet(
            config_id="t",
            version=1,
            exchange_rates=(
                ExchangeRateDef("USD", "CAD", Decimal("1.3")),
                ExchangeRateDef("CAD", "USD", Decimal("0.8")),
            ),
        )
        exchange = build_exchange(config)

        assert exchange.get_rate(Currency.USD, Currency.CAD) == Decimal("1.25")

    def test_invalid_rate_raises(self):
        config = MoneyConfigurationSet(
            config_id="t",
            version=1,
            exchange_rates=(ExchangeRateDef("USD", "CAD", Decimal("0")),),
        )
        with pytest.raises(InvalidExchangeRateError):
            build_exchange(config)

    def test_no_rates(self):
        exchange = build_exchange(MoneyConfigurationSet(config_id="t", version=1))
        assert exchange.rates() == ()


class TestBuildTaxSchedule:
    """TaxSchedule built from a schedule definition."""

    def test_brackets(self):
        schedule = build_tax_schedule(schedule_def())

        assert schedule.currency is Currency.CAD
        assert len(schedule.brackets) == 2
        # 10000 * 0.1 + 5000 * 0.2
        assert schedule.calculate_tax(cad("15000")) == cad("2000")

    def test_deduction_rules_registered(self):
        schedule = build_tax_schedule(schedule_def())
        claims = [TaxDeduction(TaxDeductionCategory.CAPITAL_GAINS, cad("2000"))]

        assert schedule.determine_deductions_amount(claims) == cad("1000")

    def test_deduction_cap_in_schedule_currency(self):
        rules = (DeductionRuleDef("employee_stock_options", Decimal("0.5"), Decimal("1000")),)
        schedule = build_tax_schedule(schedule_def(deduction_rules=rules))

        rule = schedule.deduction_rules[TaxDeductionCategory.EMPLOYEE_STOCK_OPTIONS]
        assert rule.max_amount == cad("1000")

    def test_unknown_category_raises(self):
        rules = (DeductionRuleDef("lottery_winnings", Decimal("0.5")),)
        with pytest.raises(ValueError):
            build_tax_schedule(schedule_def(deduction_rules=rules))

    def test_unknown_currency_raises(self):
        with pytest.raises(InvalidCurrencyError):
            build_tax_schedule(schedule_def(currency="XYZ"))

    def test_jurisdiction_and_tax_year_carried(self):
        schedule = build_tax_schedule(schedule_def(jurisdiction="CA", tax_year=2024))

        assert schedule.jurisdiction == "CA"
        assert schedule.tax_year == 2024

    def test_calculation_logged_with_schedule_metadata(self, captured_logs):
        schedule = build_tax_schedule(schedule_def(jurisdiction="ON", tax_year=2025))
        schedule.calculate(cad("15000"))

        trace = next(r for r in captured_logs() if r["message"] == "MONEY_ENGINE_TRACE")
        assert trace["jurisdiction"] == "ON"
        assert trace["tax_year"] == "2025"


class TestActiveConfig:
    """The money_config entrypoint with the shipped defaults."""

    def test_get_active_config_logs_trace(self, captured_logs):
        config = get_active_config()

        trace = next(r for r in captured_logs() if r["message"] == "MONEY_CONFIG_TRACE")
        assert trace["config_id"] == config.config_id
        assert trace["checksum"] == config.checksum
        assert trace["tax_schedule_count"] == 2

    def test_load_exchange(self):
        exchange = load_exchange()
        assert exchange.convert(Money.of("10", "USD"), Currency.CAD) == cad("13")

    def test_load_example_schedule(self):
        schedule = load_tax_schedule("example_progressive")

        assert schedule.calculate_tax(cad("25000")) == cad("4500")
        assert schedule.calculate_tax(cad("15000")) == cad("2000")
        assert schedule.calculate_tax(cad("5000")) == cad("500")

    def test_example_schedule_metadata(self):
        schedule = load_tax_schedule("example_progressive")

        assert schedule.jurisdiction == "CA"
        assert schedule.tax_year == 2024

    def test_flat_schedule_has_no_metadata(self):
        schedule = load_tax_schedule("flat_ten_percent")

        assert schedule.jurisdiction is None
        assert schedule.tax_year is None

    def test_load_flat_schedule_with_deductions(self):
        schedule = load_tax_schedule("flat_ten_percent")
        claims = [TaxDeduction(TaxDeductionCategory.CAPITAL_GAINS, cad("5000"))]

        assert schedule.calculate_tax_with_deductions(cad("10000"), claims) == cad("750")

    def test_stock_option_cap_from_defaults(self):
        schedule = load_tax_schedule("example_progressive")
        claims = [TaxDeduction(TaxDeductionCategory.EMPLOYEE_STOCK_OPTIONS, cad("300000"))]

        assert schedule.determine_deductions_amount(claims) == cad("100000")

    def test_unknown_schedule_raises(self):
        with pytest.raises(TaxScheduleNotFoundError) as exc_info:
            load_tax_schedule("atlantis")
        assert exc_info.value.name == "atlantis"
        assert "example_progressive" in exc_info.value.available

    def test_custom_path(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text(
            "config_id: custom\n"
            "exchange_rates:\n"
            "  - {from: EUR, to: USD, rate: '1.1'}\n"
        )
        exchange = load_exchange(path)
        assert exchange.get_rate("EUR", "USD") == Decimal("1.1")
