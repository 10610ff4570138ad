"""
Pytest fixtures for the money kernel and tax engine test suite.

Provides:
- Structured logging configured for the session
- A captured_logs fixture returning parsed JSON log records
- A USD/CAD exchange and the three-bracket CAD example schedule
"""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from money_kernel.domain.exchange import Exchange
from money_kernel.domain.values import Currency
from money_kernel.logging_config import (
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from tax_engines.progressive import TaxBracket, TaxSchedule


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture
def captured_logs():
    """
    Capture money_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, exchange):
            exchange.set_rate("EUR", "USD", "1.1")
            logs = captured_logs()
            assert any(r["message"] == "exchange_rate_registered" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("money_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def exchange() -> Exchange:
    """Exchange with USD->CAD at 1.3 (and CAD->USD at 1/1.3)."""
    ex = Exchange()
    ex.set_rate(Currency.USD, Currency.CAD, Decimal("1.3"))
    return ex


@pytest.fixture
def example_schedule() -> TaxSchedule:
    """[0,10000)@10%, [10000,20000)@20%, [20000,inf)@30% in CAD."""
    return TaxSchedule(
        [
            TaxBracket.of("0", "10000", "0.1", Currency.CAD),
            TaxBracket.of("10000", "20000", "0.2", Currency.CAD),
            TaxBracket.of("20000", None, "0.3", Currency.CAD),
        ],
        Currency.CAD,
    )
