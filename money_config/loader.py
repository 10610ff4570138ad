"""
Configuration Loader (``money_config.loader``).

Responsibility
--------------
Loads YAML configuration files and parses them into typed
``money_config.schema`` dataclass instances.  Runtime callers go through
``money_config.get_active_config()`` rather than calling this directly.

Invariants enforced
-------------------
* All parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Monetary values are parsed to ``Decimal``; YAML floats are routed through
  ``str`` so ``0.1`` stays ``Decimal("0.1")``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Non-numeric amounts or rates  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from money_config.schema import (
    DeductionRuleDef,
    ExchangeRateDef,
    MoneyConfigurationSet,
    TaxBracketDef,
    TaxScheduleDef,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top-level YAML must be a mapping, got {type(data).__name__}")
    return data


def parse_decimal(value: Any, field: str) -> Decimal:
    """
    Parse a Decimal from a YAML scalar (string, int or float).

    Raises:
        ValueError: if ``value`` is not a finite number.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"{field}: expected a number, got {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"{field}: expected a number, got {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"{field}: expected a finite number, got {value!r}")
    return result


def _optional_decimal(value: Any, field: str) -> Decimal | None:
    return None if value is None else parse_decimal(value, field)


def parse_exchange_rate(data: dict[str, Any]) -> ExchangeRateDef:
    """Parse an ExchangeRateDef from ``{from, to, rate}``."""
    return ExchangeRateDef(
        from_currency=str(data["from"]).upper().strip(),
        to_currency=str(data["to"]).upper().strip(),
        rate=parse_decimal(data["rate"], "exchange_rates.rate"),
    )


def parse_bracket(data: dict[str, Any]) -> TaxBracketDef:
    """Parse a TaxBracketDef from ``{min, max?, rate}``; no max means unbounded."""
    return TaxBracketDef(
        min_amount=parse_decimal(data["min"], "brackets.min"),
        max_amount=_optional_decimal(data.get("max"), "brackets.max"),
        rate=parse_decimal(data["rate"], "brackets.rate"),
    )


def parse_deduction_rule(data: dict[str, Any]) -> DeductionRuleDef:
    """Parse a DeductionRuleDef from ``{category, inclusion_rate, max_amount?}``."""
    return DeductionRuleDef(
        category=str(data["category"]),
        inclusion_rate=parse_decimal(data["inclusion_rate"], "deduction_rules.inclusion_rate"),
        max_amount=_optional_decimal(data.get("max_amount"), "deduction_rules.max_amount"),
    )


def parse_tax_schedule(data: dict[str, Any]) -> TaxScheduleDef:
    """
    Parse a ``TaxScheduleDef`` from a dict.

    Preconditions:
        - ``data`` must contain ``name``, ``currency`` and ``brackets``.
    Raises:
        KeyError: if required keys are missing.
        ValueError: if numeric fields cannot be parsed.
    """
    tax_year = data.get("tax_year")
    return TaxScheduleDef(
        name=str(data["name"]),
        currency=str(data["currency"]).upper().strip(),
        brackets=tuple(parse_bracket(b) for b in data["brackets"]),
        deduction_rules=tuple(
            parse_deduction_rule(r) for r in data.get("deduction_rules", [])
        ),
        jurisdiction=data.get("jurisdiction"),
        tax_year=int(tax_year) if tax_year is not None else None,
    )


def parse_configuration(data: dict[str, Any], checksum: str = "") -> MoneyConfigurationSet:
    """
    Parse a full ``MoneyConfigurationSet``.

    Raises:
        KeyError: if ``config_id`` is missing.
        ValueError: on duplicate schedule names or unparseable values.
    """
    schedules = tuple(parse_tax_schedule(s) for s in data.get("tax_schedules", []))
    names = [s.name for s in schedules]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ValueError(f"Duplicate tax schedule names: {', '.join(duplicates)}")

    return MoneyConfigurationSet(
        config_id=str(data["config_id"]),
        version=int(data.get("version", 1)),
        exchange_rates=tuple(
            parse_exchange_rate(r) for r in data.get("exchange_rates", [])
        ),
        tax_schedules=schedules,
        checksum=checksum,
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def load_configuration(path: Path) -> MoneyConfigurationSet:
    """Load and parse one configuration file, stamping its checksum."""
    data = load_yaml_file(path)
    return parse_configuration(data, checksum=compute_checksum(data))
