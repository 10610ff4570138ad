"""
Values -- Immutable, self-validating monetary value objects.

Responsibility:
    Provides the foundational value types for all monetary computations:
    Currency, Money and ExchangeRate. These replace primitive types
    (Decimal, str) wherever monetary data appears in domain logic.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by the exchange table and the tax engines. No outward
    dependencies except money_kernel.domain.currency (CurrencyRegistry)
    and money_kernel.exceptions.

Invariants enforced:
    - Money always pairs a Decimal amount with a Currency; never a float.
    - No implicit rounding: amounts keep full precision until .round().
    - Same-currency rule: +, -, ordering and clamp refuse mixed currencies
      with CurrencyMismatchError. Cross-currency work goes through Exchange.
    - ExchangeRate values are finite, strictly positive and have a finite
      inverse.

Failure modes:
    - InvalidAmountError for non-numeric or non-finite amounts and factors
    - InvalidCurrencyError for codes outside the Currency enumeration
    - CurrencyMismatchError when arithmetic or ordering mixes currencies
    - InvalidExchangeRateError for zero, negative, non-finite or
      non-invertible rates
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from enum import Enum

from money_kernel.domain.currency import CurrencyRegistry
from money_kernel.exceptions import (
    CurrencyMismatchError,
    InvalidAmountError,
    InvalidCurrencyError,
    InvalidExchangeRateError,
)


class Currency(str, Enum):
    """
    Closed enumeration of supported ISO 4217 currencies.

    Members compare by identity. A new currency is supported by adding a
    member here and its metadata to CurrencyRegistry.
    """

    USD = "USD"
    CAD = "CAD"
    EUR = "EUR"
    GBP = "GBP"
    CHF = "CHF"
    AUD = "AUD"
    NZD = "NZD"
    CNY = "CNY"
    HKD = "HKD"
    SGD = "SGD"
    SEK = "SEK"
    NOK = "NOK"
    DKK = "DKK"
    MXN = "MXN"
    BRL = "BRL"
    INR = "INR"
    ZAR = "ZAR"
    JPY = "JPY"
    KRW = "KRW"
    BHD = "BHD"
    KWD = "KWD"

    @classmethod
    def _missing_(cls, value: object) -> Currency | None:
        # Accept lowercase and padded codes ("usd", " cad ")
        if isinstance(value, str):
            normalized = value.upper().strip()
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @classmethod
    def of(cls, code: str | Currency) -> Currency:
        """
        Resolve a code string or member to a Currency.

        Raises:
            InvalidCurrencyError: If the code is not a supported currency.
            TypeError: If code is neither a string nor a Currency.
        """
        if isinstance(code, Currency):
            return code
        if not isinstance(code, str):
            raise TypeError(f"currency must be Currency or str, got {type(code)}")
        try:
            return cls(code)
        except ValueError as e:
            raise InvalidCurrencyError(code) from e

    @property
    def code(self) -> str:
        """The three-letter ISO 4217 code."""
        return self.value

    @property
    def decimal_places(self) -> int:
        """ISO 4217 standard decimal places for this currency."""
        return CurrencyRegistry.get_info(self.value).decimal_places

    @property
    def rounding_tolerance(self) -> Decimal:
        """One minor unit of this currency."""
        return CurrencyRegistry.get_info(self.value).rounding_tolerance

    @property
    def display_name(self) -> str:
        """Human-readable currency name."""
        return CurrencyRegistry.get_info(self.value).name

    def __str__(self) -> str:
        return self.value


def _to_decimal(value: Decimal | int | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidAmountError(str(value)) from e


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a Decimal amount with its Currency -- they are NEVER separated.

    Guarantees:
        - Immutable and hashable (frozen dataclass with slots)
        - amount is always a finite Decimal (never float)
        - Arithmetic and ordering enforce the same-currency constraint
        - Equality across currencies is always False

    Non-goals:
        - Does NOT perform currency conversion (use Exchange)
        - Does NOT auto-round -- callers must explicitly call .round()
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            try:
                object.__setattr__(self, "amount", Decimal(str(self.amount)))
            except (InvalidOperation, ValueError) as e:
                raise InvalidAmountError(str(self.amount)) from e
        if not self.amount.is_finite():
            raise InvalidAmountError(str(self.amount))

        if not isinstance(self.currency, Currency):
            object.__setattr__(self, "currency", Currency.of(self.currency))

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency) -> Money:
        """
        Factory method for creating Money.

        Args:
            amount: The monetary amount (no float at call sites).
            currency: Currency member or ISO 4217 code.

        Returns:
            Money instance.
        """
        return cls(amount=amount, currency=Currency.of(currency))

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        """Create a zero amount in the given currency."""
        return cls(amount=Decimal("0"), currency=Currency.of(currency))

    @property
    def is_zero(self) -> bool:
        return self.amount == Decimal("0")

    @property
    def is_positive(self) -> bool:
        return self.amount > Decimal("0")

    @property
    def is_negative(self) -> bool:
        return self.amount < Decimal("0")

    def _require_same_currency(self, other: Money, operation: str) -> None:
        if self.currency is not other.currency:
            raise CurrencyMismatchError(
                self.currency.code, other.currency.code, operation
            )

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Round to the currency's ISO 4217 decimal places."""
        return self.round_dp(self.currency.decimal_places, rounding)

    def round_dp(self, decimal_places: int, rounding: str = ROUND_HALF_UP) -> Money:
        """
        Round to an explicit number of decimal places.

        Amounts that already have no more than decimal_places digits after
        the point are returned unchanged, whatever their magnitude.
        """
        if decimal_places >= -self.amount.as_tuple().exponent:
            return self
        with localcontext() as ctx:
            # quantize fails if the result has more digits than the context precision
            ctx.prec = max(ctx.prec, self.amount.adjusted() + decimal_places + 2)
            amount = self.amount.quantize(
                Decimal(1).scaleb(-decimal_places), rounding=rounding
            )
        return Money(amount=amount, currency=self.currency)

    def rounded_eq(self, other: Money, decimal_places: int) -> bool:
        """
        Equality after rounding both amounts half away from zero.

        Money in different currencies is never rounded-equal.
        """
        if self.currency is not other.currency:
            return False
        return (
            self.round_dp(decimal_places).amount
            == other.round_dp(decimal_places).amount
        )

    def clamp(self, min_money: Money, max_money: Money) -> Money:
        """
        Restrict this amount to [min_money, max_money].

        Returns self unchanged when already inside the range.

        Raises:
            CurrencyMismatchError: If any bound is in another currency.
            ValueError: If min_money is greater than max_money.
        """
        self._require_same_currency(min_money, "clamp")
        self._require_same_currency(max_money, "clamp")
        if min_money.amount > max_money.amount:
            raise ValueError(
                f"Clamp lower bound {min_money} exceeds upper bound {max_money}"
            )
        if self.amount < min_money.amount:
            return min_money
        if self.amount > max_money.amount:
            return max_money
        return self

    def multiply(self, factor: Decimal | int | str) -> Money:
        """Scale by a decimal factor, keeping the currency."""
        return Money(amount=self.amount * _to_decimal(factor), currency=self.currency)

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._require_same_currency(other, "addition")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._require_same_currency(other, "subtraction")
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __neg__(self) -> Money:
        return Money(amount=-self.amount, currency=self.currency)

    def __abs__(self) -> Money:
        return Money(amount=abs(self.amount), currency=self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        if not isinstance(factor, (Decimal, int, str)) or isinstance(factor, bool):
            return NotImplemented
        return self.multiply(factor)

    def __rmul__(self, factor: Decimal | int | str) -> Money:
        return self.__mul__(factor)

    def __truediv__(self, divisor: Decimal | int | str) -> Money:
        if not isinstance(divisor, (Decimal, int, str)) or isinstance(divisor, bool):
            return NotImplemented
        return Money(amount=self.amount / _to_decimal(divisor), currency=self.currency)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._require_same_currency(other, "comparison")
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._require_same_currency(other, "comparison")
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._require_same_currency(other, "comparison")
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._require_same_currency(other, "comparison")
        return self.amount >= other.amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency.code!r})"


@dataclass(frozen=True, slots=True)
class ExchangeRate:
    """
    Exchange rate between two currencies.

    Contract:
        Represents: 1 unit of from_currency = rate units of to_currency.
        Validated on construction: rate must be a finite positive Decimal.

    Non-goals:
        - Does NOT store effective dates or sources
        - Does NOT handle triangulation or cross rates
    """

    from_currency: Currency
    to_currency: Currency
    rate: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "from_currency", Currency.of(self.from_currency))
        object.__setattr__(self, "to_currency", Currency.of(self.to_currency))

        if not isinstance(self.rate, Decimal):
            try:
                object.__setattr__(self, "rate", Decimal(str(self.rate)))
            except (InvalidOperation, ValueError) as e:
                raise InvalidExchangeRateError(
                    str(self.rate), "not a decimal number"
                ) from e

        if not self.rate.is_finite():
            raise InvalidExchangeRateError(str(self.rate), "rate must be finite")
        # Zero or negative rates have no meaningful inverse
        if self.rate <= Decimal("0"):
            raise InvalidExchangeRateError(str(self.rate), "rate must be positive")
        try:
            Decimal("1") / self.rate
        except ArithmeticError as e:
            raise InvalidExchangeRateError(
                str(self.rate), "rate has no finite inverse"
            ) from e

    @classmethod
    def of(
        cls,
        from_currency: str | Currency,
        to_currency: str | Currency,
        rate: Decimal | str | int,
    ) -> ExchangeRate:
        """Factory method for creating ExchangeRate."""
        return cls(from_currency=from_currency, to_currency=to_currency, rate=rate)

    def convert(self, money: Money) -> Money:
        """
        Convert money from from_currency into to_currency.

        Raises:
            CurrencyMismatchError: If money is not in from_currency.
        """
        if money.currency is not self.from_currency:
            raise CurrencyMismatchError(
                money.currency.code, self.from_currency.code, "conversion"
            )
        return Money(amount=money.amount * self.rate, currency=self.to_currency)

    def inverse(self) -> ExchangeRate:
        """
        Get the inverse rate.

        If this rate is USD->CAD at 1.3, inverse is CAD->USD at 1/1.3.
        """
        return ExchangeRate(
            from_currency=self.to_currency,
            to_currency=self.from_currency,
            rate=Decimal("1") / self.rate,
        )

    @property
    def pair(self) -> tuple[Currency, Currency]:
        return (self.from_currency, self.to_currency)

    def __str__(self) -> str:
        return f"{self.from_currency.code}/{self.to_currency.code} = {self.rate}"

    def __repr__(self) -> str:
        return (
            f"ExchangeRate({self.from_currency.code!r}, "
            f"{self.to_currency.code!r}, {self.rate!r})"
        )
