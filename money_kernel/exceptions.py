"""
Typed Exception Hierarchy for the Money Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Monetary code must fail precisely. Callers catch by type, never by parsing
messages, and every exception carries:
  1. A TYPED exception class
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

Example:
    try:
        exchange.convert(price, Currency.CAD)
    except ExchangeRateNotFoundError as e:
        log.warning("no rate", extra={"pair": f"{e.from_currency}/{e.to_currency}"})

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from MoneyKernelError:

    MoneyKernelError (base)
    |
    +-- CurrencyError
    |   +-- InvalidCurrencyError
    |   +-- CurrencyMismatchError
    |   +-- ExchangeRateNotFoundError
    |
    +-- AmountError
    |   +-- InvalidAmountError
    |
    +-- ExchangeRateError
    |   +-- InvalidExchangeRateError
    |
    +-- TaxError
    |   +-- DeductionCategoryNotFoundError
    |
    +-- ConfigurationError
        +-- TaxScheduleNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|-----------------------------------
Currency        | INVALID_CURRENCY              | Code not in the Currency enum
                | CURRENCY_MISMATCH             | Same-currency operation got two
                | EXCHANGE_RATE_NOT_FOUND       | No rate registered for the pair
----------------|-------------------------------|-----------------------------------
Amount          | INVALID_AMOUNT                | Amount not convertible to Decimal
----------------|-------------------------------|-----------------------------------
Exchange Rate   | INVALID_EXCHANGE_RATE         | Rate is zero/negative/non-finite
----------------|-------------------------------|-----------------------------------
Tax             | DEDUCTION_CATEGORY_NOT_FOUND  | Claim has no registered rule
----------------|-------------------------------|-----------------------------------
Configuration   | TAX_SCHEDULE_NOT_FOUND        | Named schedule absent from config

===============================================================================
CURRENCY MISMATCHES
===============================================================================

CurrencyMismatchError is raised in two situations:

  - Construction of TaxBracket / TaxSchedule with inconsistent currencies.
    This is a configuration error and callers may catch it.
  - Raw Money arithmetic or ordering across currencies. This is a
    programming error: cross-currency work goes through an Exchange.
    The same type is used so that both cases are handled consistently.
"""


class MoneyKernelError(Exception):
    """
    Base exception for all money kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "MONEY_KERNEL_ERROR"


# Currency-related exceptions


class CurrencyError(MoneyKernelError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    """Currency code is not part of the Currency enumeration."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: '{currency}'")


class CurrencyMismatchError(CurrencyError):
    """Attempted a same-currency operation on mismatched currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, currency1: str, currency2: str, operation: str = ""):
        self.currency1 = currency1
        self.currency2 = currency2
        self.operation = operation
        suffix = f" in {operation}" if operation else ""
        super().__init__(f"Currency mismatch{suffix}: {currency1} vs {currency2}")


class ExchangeRateNotFoundError(CurrencyError):
    """No exchange rate registered for the currency pair."""

    code: str = "EXCHANGE_RATE_NOT_FOUND"

    def __init__(self, from_currency: str, to_currency: str):
        self.from_currency = from_currency
        self.to_currency = to_currency
        super().__init__(
            f"No exchange rate found for {from_currency}/{to_currency}"
        )


# Amount-related exceptions


class AmountError(MoneyKernelError):
    """Base exception for monetary amount errors."""

    code: str = "AMOUNT_ERROR"


class InvalidAmountError(AmountError):
    """Amount cannot be represented as a Decimal."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: str):
        self.amount = amount
        super().__init__(f"Invalid amount: {amount}")


# Exchange rate related exceptions


class ExchangeRateError(MoneyKernelError):
    """Base exception for exchange rate related errors."""

    code: str = "EXCHANGE_RATE_ERROR"


class InvalidExchangeRateError(ExchangeRateError):
    """
    Exchange rate value is invalid (zero, negative, or not invertible).

    Rates must be finite positive values. A zero rate has no inverse, so the
    reverse direction of the pair could not be registered.
    """

    code: str = "INVALID_EXCHANGE_RATE"

    def __init__(self, rate_value: str, reason: str):
        self.rate_value = rate_value
        self.reason = reason
        super().__init__(
            f"Invalid exchange rate value {rate_value}: {reason}"
        )


# Tax-related exceptions


class TaxError(MoneyKernelError):
    """Base exception for tax engine errors."""

    code: str = "TAX_ERROR"


class DeductionCategoryNotFoundError(TaxError):
    """A deduction was claimed for a category with no registered rule."""

    code: str = "DEDUCTION_CATEGORY_NOT_FOUND"

    def __init__(self, category: str):
        self.category = category
        super().__init__(f"No deduction rule registered for category: {category}")


# Configuration-related exceptions


class ConfigurationError(MoneyKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class TaxScheduleNotFoundError(ConfigurationError):
    """Requested tax schedule is not defined in the configuration set."""

    code: str = "TAX_SCHEDULE_NOT_FOUND"

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        super().__init__(
            f"Tax schedule not found: {name} (available: {', '.join(available) or 'none'})"
        )
