"""
Tests for the Exchange rate table and currency-independent operations.

Covers:
- Pair symmetry and the implicit identity rate
- All-or-nothing registration
- Comparisons evaluated in the left operand's currency
- Clamp, add and sub with an output currency
- Structured log records
"""

from decimal import Decimal

import pytest

from money_kernel.domain.exchange import Exchange
from money_kernel.domain.values import Currency, ExchangeRate, Money
from money_kernel.exceptions import (
    ExchangeRateNotFoundError,
    InvalidExchangeRateError,
)


def usd(amount) -> Money:
    return Money.of(amount, Currency.USD)


def cad(amount) -> Money:
    return Money.of(amount, Currency.CAD)


def assert_rounded_eq(actual: Money, expected: Money) -> None:
    assert actual.rounded_eq(expected, 2), f"{actual!r} != {expected!r}"


class TestRateTable:
    """Tests for set_rate / get_rate."""

    def test_forward_rate(self, exchange):
        assert exchange.get_rate(Currency.USD, Currency.CAD) == Decimal("1.3")

    def test_inverse_rate_registered(self, exchange):
        assert exchange.get_rate(Currency.CAD, Currency.USD) == Decimal("1") / Decimal("1.3")

    def test_identity_rate_without_registration(self):
        assert Exchange().get_rate(Currency.EUR, Currency.EUR) == Decimal("1")

    def test_accepts_codes(self, exchange):
        assert exchange.get_rate("usd", "cad") == Decimal("1.3")

    def test_missing_pair_raises(self, exchange):
        with pytest.raises(ExchangeRateNotFoundError) as exc_info:
            exchange.get_rate(Currency.USD, Currency.EUR)
        assert exc_info.value.from_currency == "USD"
        assert exc_info.value.to_currency == "EUR"

    def test_no_cross_rate_derivation(self, exchange):
        exchange.set_rate(Currency.EUR, Currency.USD, "1.1")
        with pytest.raises(ExchangeRateNotFoundError):
            exchange.get_rate(Currency.EUR, Currency.CAD)

    def test_overwrite_replaces_both_directions(self, exchange):
        exchange.set_rate(Currency.CAD, Currency.USD, "0.8")
        assert exchange.get_rate(Currency.CAD, Currency.USD) == Decimal("0.8")
        assert exchange.get_rate(Currency.USD, Currency.CAD) == Decimal("1.25")

    def test_set_rate_returns_forward_rate(self):
        rate = Exchange().set_rate("USD", "JPY", "150")
        assert rate == ExchangeRate.of("USD", "JPY", "150")

    def test_has_rate(self, exchange):
        assert exchange.has_rate(Currency.USD, Currency.CAD)
        assert exchange.has_rate(Currency.CAD, Currency.USD)
        assert exchange.has_rate(Currency.GBP, Currency.GBP)
        assert not exchange.has_rate(Currency.USD, Currency.GBP)

    def test_rates_snapshot_sorted(self, exchange):
        pairs = [r.pair for r in exchange.rates()]
        assert pairs == [(Currency.CAD, Currency.USD), (Currency.USD, Currency.CAD)]

    def test_constructed_from_rates(self):
        exchange = Exchange([ExchangeRate.of("USD", "CAD", "1.3")])
        assert exchange.get_rate("CAD", "USD") == Decimal("1") / Decimal("1.3")

    def test_empty_exchange_is_truthy(self):
        assert Exchange()

    def test_repr(self, exchange):
        assert repr(exchange) == "Exchange(2 rates)"


class TestRegistrationIsAllOrNothing:
    """Rejected registrations leave the table untouched."""

    @pytest.mark.parametrize("value", ["0", "-1", "NaN", "Infinity"])
    def test_invalid_rate_writes_nothing(self, value):
        exchange = Exchange()
        with pytest.raises(InvalidExchangeRateError):
            exchange.set_rate(Currency.USD, Currency.CAD, value)
        assert exchange.rates() == ()
        assert not exchange.has_rate(Currency.CAD, Currency.USD)

    def test_rate_without_finite_inverse_writes_nothing(self, captured_logs):
        exchange = Exchange()
        with pytest.raises(InvalidExchangeRateError) as exc_info:
            exchange.set_rate(Currency.USD, Currency.CAD, Decimal("1E-1000000"))
        assert exc_info.value.reason == "rate has no finite inverse"
        assert exchange.rates() == ()
        assert not exchange.has_rate(Currency.USD, Currency.CAD)
        rejected = [r for r in captured_logs() if r["message"] == "exchange_rate_rejected"]
        assert rejected[0]["reason"] == "rate has no finite inverse"

    def test_invalid_rate_keeps_previous_rate(self, exchange):
        with pytest.raises(InvalidExchangeRateError):
            exchange.set_rate(Currency.USD, Currency.CAD, "0")
        assert exchange.get_rate(Currency.USD, Currency.CAD) == Decimal("1.3")

    def test_same_currency_rejected(self):
        exchange = Exchange()
        with pytest.raises(InvalidExchangeRateError):
            exchange.set_rate(Currency.USD, Currency.USD, "2")
        assert exchange.rates() == ()
        assert exchange.get_rate(Currency.USD, Currency.USD) == Decimal("1")

    def test_failed_conversion_does_not_mutate(self, exchange):
        before = exchange.rates()
        with pytest.raises(ExchangeRateNotFoundError):
            exchange.convert(usd("1"), Currency.EUR)
        assert exchange.rates() == before


class TestConversion:
    """Tests for convert()."""

    def test_convert_forward(self, exchange):
        assert exchange.convert(usd("10"), Currency.CAD) == cad("13")

    def test_convert_inverse(self, exchange):
        assert_rounded_eq(exchange.convert(cad("13"), Currency.USD), usd("10"))

    def test_convert_same_currency_is_identity(self, exchange):
        money = usd("10.005")
        assert exchange.convert(money, Currency.USD) is money


class TestComparisons:
    """Comparisons evaluate in the left operand's currency."""

    def test_usd_amount_with_greater_cad_amount(self, exchange):
        one_usd, two_cad = usd("1"), cad("2")

        assert exchange.lt(one_usd, two_cad) is True
        assert exchange.lte(one_usd, two_cad) is True
        assert exchange.eq(one_usd, two_cad) is False
        assert exchange.gte(one_usd, two_cad) is False
        assert exchange.gt(one_usd, two_cad) is False

        assert exchange.lt(two_cad, one_usd) is False
        assert exchange.lte(two_cad, one_usd) is False
        assert exchange.eq(two_cad, one_usd) is False
        assert exchange.gte(two_cad, one_usd) is True
        assert exchange.gt(two_cad, one_usd) is True

    def test_usd_amount_with_less_cad_amount(self, exchange):
        two_usd, one_cad = usd("2"), cad("1")

        assert exchange.lt(two_usd, one_cad) is False
        assert exchange.lte(two_usd, one_cad) is False
        assert exchange.eq(two_usd, one_cad) is False
        assert exchange.gte(two_usd, one_cad) is True
        assert exchange.gt(two_usd, one_cad) is True

        assert exchange.lt(one_cad, two_usd) is True
        assert exchange.lte(one_cad, two_usd) is True
        assert exchange.eq(one_cad, two_usd) is False
        assert exchange.gte(one_cad, two_usd) is False
        assert exchange.gt(one_cad, two_usd) is False

    def test_usd_amount_with_equal_cad_amount(self, exchange):
        one_usd, equivalent_cad = usd("1"), cad("1.3")

        assert exchange.lt(one_usd, equivalent_cad) is False
        assert exchange.lte(one_usd, equivalent_cad) is True
        assert exchange.eq(one_usd, equivalent_cad) is True
        assert exchange.gte(one_usd, equivalent_cad) is True
        assert exchange.gt(one_usd, equivalent_cad) is False

        assert exchange.lt(equivalent_cad, one_usd) is False
        assert exchange.lte(equivalent_cad, one_usd) is True
        assert exchange.eq(equivalent_cad, one_usd) is True
        assert exchange.gte(equivalent_cad, one_usd) is True
        assert exchange.gt(equivalent_cad, one_usd) is False

    def test_same_currency_needs_no_rate(self):
        assert Exchange().lt(usd("1"), usd("2"))

    def test_missing_rate_raises(self, exchange):
        with pytest.raises(ExchangeRateNotFoundError):
            exchange.lt(usd("1"), Money.of("1", "EUR"))


class TestClamp:
    """Tests for clamp() with an output currency."""

    def test_value_less_than_range(self, exchange):
        value, low, high = usd("1"), cad("2"), cad("3")

        assert_rounded_eq(exchange.clamp(value, low, high, Currency.CAD), cad("2"))
        assert_rounded_eq(
            exchange.clamp(value, low, high, Currency.USD),
            usd(Decimal("2") / Decimal("1.3")),
        )

    def test_value_within_range(self, exchange):
        value, low, high = cad("2.5"), cad("2"), cad("3")

        assert_rounded_eq(exchange.clamp(value, low, high, Currency.CAD), cad("2.5"))
        assert_rounded_eq(
            exchange.clamp(value, low, high, Currency.USD),
            usd(Decimal("2.5") / Decimal("1.3")),
        )

    def test_value_greater_than_range(self, exchange):
        value, low, high = cad("2"), usd("0"), usd("0.5")

        assert_rounded_eq(exchange.clamp(value, low, high, Currency.CAD), cad("0.65"))
        assert_rounded_eq(exchange.clamp(value, low, high, Currency.USD), usd("0.5"))

    def test_inverted_range_raises(self, exchange):
        with pytest.raises(ValueError):
            exchange.clamp(cad("1"), usd("2"), cad("1"), Currency.CAD)


class TestArithmetic:
    """Tests for add() and sub() with an output currency."""

    def test_add_different_currencies(self, exchange):
        first, second = cad("1"), usd("1")

        assert_rounded_eq(exchange.add(first, second, Currency.CAD), cad("2.3"))
        assert_rounded_eq(
            exchange.add(first, second, Currency.USD),
            usd(Decimal("1") / Decimal("1.3") + 1),
        )

    def test_add_same_currencies(self, exchange):
        first, second = cad("1"), cad("1")

        assert exchange.add(first, second, Currency.CAD) == cad("2")
        assert_rounded_eq(
            exchange.add(first, second, Currency.USD),
            usd(Decimal("2") / Decimal("1.3")),
        )

    def test_sub_different_currencies(self, exchange):
        first, second = cad("2"), usd("1")

        assert_rounded_eq(exchange.sub(first, second, Currency.CAD), cad("0.7"))
        assert_rounded_eq(
            exchange.sub(first, second, Currency.USD),
            usd(Decimal("2") / Decimal("1.3") - 1),
        )

    def test_sub_same_currencies(self, exchange):
        first, second = cad("2"), cad("1")

        assert exchange.sub(first, second, Currency.CAD) == cad("1")
        assert_rounded_eq(
            exchange.sub(first, second, Currency.USD),
            usd(Decimal("1") / Decimal("1.3")),
        )

    def test_output_currency_without_rate_raises(self, exchange):
        with pytest.raises(ExchangeRateNotFoundError):
            exchange.add(cad("1"), usd("1"), Currency.EUR)


class TestExchangeLogging:
    """Structured log records emitted by the exchange."""

    def test_registration_logged(self, captured_logs):
        Exchange().set_rate(Currency.EUR, Currency.USD, "1.1")

        records = [r for r in captured_logs() if r["message"] == "exchange_rate_registered"]
        assert len(records) == 1
        assert records[0]["from_currency"] == "EUR"
        assert records[0]["to_currency"] == "USD"
        assert records[0]["rate"] == "1.1"

    def test_rejection_logged(self, captured_logs):
        with pytest.raises(InvalidExchangeRateError):
            Exchange().set_rate(Currency.EUR, Currency.USD, "0")

        records = [r for r in captured_logs() if r["message"] == "exchange_rate_rejected"]
        assert len(records) == 1
        assert records[0]["level"] == "WARNING"
        assert records[0]["reason"] == "rate must be positive"

    def test_missing_rate_logged(self, captured_logs):
        with pytest.raises(ExchangeRateNotFoundError):
            Exchange().get_rate(Currency.EUR, Currency.USD)

        records = [r for r in captured_logs() if r["message"] == "exchange_rate_not_found"]
        assert records[0]["from_currency"] == "EUR"
        assert records[0]["registered_pairs"] == 0
