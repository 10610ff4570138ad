"""
Exchange -- symmetric rate table and currency-independent money operations.

Responsibility:
    Owns the mapping (from_currency, to_currency) -> rate and performs
    conversion plus cross-currency comparison, arithmetic and clamping by
    converting operands into a common currency before delegating to the
    same-currency operations on Money.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O beyond logging.
    Depends on money_kernel.domain.values only.

Invariants enforced:
    - Pair symmetry: registering (A, B) = r always registers (B, A) = 1/r
      in the same call. There is no cross-rate derivation through a third
      currency.
    - Same-currency lookups are implicit (rate 1) and never stored.
    - All-or-nothing: set_rate validates before writing either direction;
      every other operation is read-only.

Conventions:
    - Comparisons (lt/lte/eq/gte/gt) evaluate in the LEFT operand's currency:
      the right operand is converted, the left one never is.
    - add/sub/clamp skip conversion for operands already in the output
      currency, so a no-op conversion never introduces rounding.

Concurrency:
    Configure once, then query. set_rate is not synchronized; callers that
    share an Exchange across threads must finish registration first or wrap
    set_rate in their own lock.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from money_kernel.domain.values import Currency, ExchangeRate, Money
from money_kernel.exceptions import (
    ExchangeRateNotFoundError,
    InvalidExchangeRateError,
)
from money_kernel.logging_config import get_logger

logger = get_logger("domain.exchange")

_IDENTITY_RATE = Decimal("1")


class Exchange:
    """
    Symmetric exchange-rate table.

    Usage:
        exchange = Exchange()
        exchange.set_rate(Currency.USD, Currency.CAD, Decimal("1.3"))
        exchange.convert(Money.of("10", "USD"), Currency.CAD)  # 13.0 CAD
        exchange.lt(Money.of("1", "USD"), Money.of("2", "CAD"))  # True
    """

    def __init__(self, rates: Iterable[ExchangeRate] = ()):
        self._rates: dict[tuple[Currency, Currency], ExchangeRate] = {}
        for rate in rates:
            self.set_rate(rate.from_currency, rate.to_currency, rate.rate)

    # ------------------------------------------------------------------
    # Rate table
    # ------------------------------------------------------------------

    def set_rate(
        self,
        from_currency: Currency | str,
        to_currency: Currency | str,
        rate: Decimal | str | int,
    ) -> ExchangeRate:
        """
        Register rate for from->to and 1/rate for to->from.

        Overwrites any prior entries for both directions.

        Raises:
            InvalidExchangeRateError: If rate is zero, negative, non-finite,
                not numeric, or the two currencies are the same. Nothing is
                registered in that case.
        """
        try:
            forward = ExchangeRate.of(from_currency, to_currency, rate)
        except InvalidExchangeRateError as e:
            logger.warning("exchange_rate_rejected", extra={
                "from_currency": str(from_currency),
                "to_currency": str(to_currency),
                "rate": str(rate),
                "reason": e.reason,
            })
            raise
        if forward.from_currency is forward.to_currency:
            logger.warning("exchange_rate_rejected", extra={
                "from_currency": forward.from_currency.code,
                "to_currency": forward.to_currency.code,
                "rate": str(forward.rate),
                "reason": "identical currencies",
            })
            raise InvalidExchangeRateError(
                str(forward.rate),
                f"{forward.from_currency.code} to itself is always 1 and cannot be set",
            )
        inverse = forward.inverse()

        self._rates.update({forward.pair: forward, inverse.pair: inverse})

        logger.info("exchange_rate_registered", extra={
            "from_currency": forward.from_currency.code,
            "to_currency": forward.to_currency.code,
            "rate": str(forward.rate),
            "inverse_rate": str(inverse.rate),
        })
        return forward

    def get_rate(
        self,
        from_currency: Currency | str,
        to_currency: Currency | str,
    ) -> Decimal:
        """
        Rate to multiply a from_currency amount by to obtain to_currency.

        Raises:
            ExchangeRateNotFoundError: If the pair was never registered.
        """
        source = Currency.of(from_currency)
        target = Currency.of(to_currency)
        if source is target:
            return _IDENTITY_RATE

        exchange_rate = self._rates.get((source, target))
        if exchange_rate is None:
            logger.warning("exchange_rate_not_found", extra={
                "from_currency": source.code,
                "to_currency": target.code,
                "registered_pairs": len(self._rates),
            })
            raise ExchangeRateNotFoundError(source.code, target.code)
        return exchange_rate.rate

    def has_rate(
        self,
        from_currency: Currency | str,
        to_currency: Currency | str,
    ) -> bool:
        source = Currency.of(from_currency)
        target = Currency.of(to_currency)
        return source is target or (source, target) in self._rates

    def rates(self) -> tuple[ExchangeRate, ...]:
        """Snapshot of every registered direction, sorted by pair code."""
        return tuple(
            self._rates[pair]
            for pair in sorted(self._rates, key=lambda p: (p[0].code, p[1].code))
        )

    # ------------------------------------------------------------------
    # Conversion and arithmetic
    # ------------------------------------------------------------------

    def convert(self, money: Money, currency: Currency | str) -> Money:
        """Convert money into currency; identity when already there."""
        target = Currency.of(currency)
        if money.currency is target:
            return money
        rate = self.get_rate(money.currency, target)
        return Money(amount=money.amount * rate, currency=target)

    def add(self, first: Money, second: Money, output_currency: Currency | str) -> Money:
        """Sum of first and second expressed in output_currency."""
        target = Currency.of(output_currency)
        if first.currency is target and second.currency is target:
            return first + second
        return self.convert(first, target) + self.convert(second, target)

    def sub(self, first: Money, second: Money, output_currency: Currency | str) -> Money:
        """Difference first - second expressed in output_currency."""
        target = Currency.of(output_currency)
        if first.currency is target and second.currency is target:
            return first - second
        return self.convert(first, target) - self.convert(second, target)

    def clamp(
        self,
        input_money: Money,
        min_money: Money,
        max_money: Money,
        output_currency: Currency | str,
    ) -> Money:
        """Clamp input_money to [min_money, max_money] in output_currency."""
        target = Currency.of(output_currency)
        return self.convert(input_money, target).clamp(
            self.convert(min_money, target),
            self.convert(max_money, target),
        )

    # ------------------------------------------------------------------
    # Currency-independent comparisons (left operand's currency wins)
    # ------------------------------------------------------------------

    def _in_currency_of(self, first: Money, second: Money) -> Money:
        if first.currency is second.currency:
            return second
        return self.convert(second, first.currency)

    def lt(self, first: Money, second: Money) -> bool:
        return first < self._in_currency_of(first, second)

    def lte(self, first: Money, second: Money) -> bool:
        return first <= self._in_currency_of(first, second)

    def eq(self, first: Money, second: Money) -> bool:
        return first == self._in_currency_of(first, second)

    def gte(self, first: Money, second: Money) -> bool:
        return first >= self._in_currency_of(first, second)

    def gt(self, first: Money, second: Money) -> bool:
        return first > self._in_currency_of(first, second)

    def __repr__(self) -> str:
        return f"Exchange({len(self._rates)} rates)"
