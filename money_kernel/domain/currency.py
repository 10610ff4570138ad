"""
Currency metadata -- ISO 4217 minor units and display names.

Backs the properties of values.Currency. Only the currencies in that
enumeration are described here; a code missing from the table is an
InvalidCurrencyError rather than a silent default.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar

from money_kernel.exceptions import InvalidCurrencyError


@dataclass(frozen=True)
class CurrencyInfo:
    """Minor units and name of one supported currency."""

    code: str
    decimal_places: int
    name: str

    @property
    def rounding_tolerance(self) -> Decimal:
        """One minor unit: 0.01 for two decimal places, 1 for none."""
        return Decimal(1).scaleb(-self.decimal_places)


# Grouped by ISO 4217 minor units
_MINOR_UNITS: dict[int, tuple[tuple[str, str], ...]] = {
    2: (
        ("USD", "US Dollar"),
        ("CAD", "Canadian Dollar"),
        ("EUR", "Euro"),
        ("GBP", "Pound Sterling"),
        ("CHF", "Swiss Franc"),
        ("AUD", "Australian Dollar"),
        ("NZD", "New Zealand Dollar"),
        ("CNY", "Chinese Yuan"),
        ("HKD", "Hong Kong Dollar"),
        ("SGD", "Singapore Dollar"),
        ("SEK", "Swedish Krona"),
        ("NOK", "Norwegian Krone"),
        ("DKK", "Danish Krone"),
        ("MXN", "Mexican Peso"),
        ("BRL", "Brazilian Real"),
        ("INR", "Indian Rupee"),
        ("ZAR", "South African Rand"),
    ),
    0: (
        ("JPY", "Japanese Yen"),
        ("KRW", "South Korean Won"),
    ),
    3: (
        ("BHD", "Bahraini Dinar"),
        ("KWD", "Kuwaiti Dinar"),
    ),
}


class CurrencyRegistry:
    """Lookup of CurrencyInfo by ISO 4217 code."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        code: CurrencyInfo(code, places, name)
        for places, entries in _MINOR_UNITS.items()
        for code, name in entries
    }

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo:
        """
        Metadata for a supported currency code.

        Raises:
            InvalidCurrencyError: If the code is not in the table.
        """
        try:
            return cls._CURRENCIES[code]
        except KeyError:
            raise InvalidCurrencyError(code) from None
