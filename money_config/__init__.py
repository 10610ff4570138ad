"""
money_config -- single public entrypoint for rate and tax configuration.

Responsibility:
    Provides the runtime way to obtain configuration through
    ``get_active_config()``, plus conveniences that build a ready-to-use
    ``Exchange`` or ``TaxSchedule``.

Architecture position:
    Configuration -- YAML-driven, sits above ``money_kernel`` and
    ``tax_engines``.  Neither of those packages may import from here;
    ``money_config.bridges`` translates definitions into their objects.

Failure modes:
    - ``FileNotFoundError`` -- configuration file does not exist.
    - ``ValueError`` / ``KeyError`` -- malformed configuration.
    - ``TaxScheduleNotFoundError`` -- requested schedule is not defined.

Audit relevance:
    Every ``get_active_config()`` call emits a ``MONEY_CONFIG_TRACE`` log
    entry with config_id, version, checksum and the rate and schedule
    counts, tying each calculation back to the configuration that drove it.
"""

from __future__ import annotations

from pathlib import Path

from money_config.bridges import build_exchange, build_tax_schedule
from money_config.loader import load_configuration
from money_config.schema import MoneyConfigurationSet
from money_kernel.domain.exchange import Exchange
from money_kernel.exceptions import TaxScheduleNotFoundError
from money_kernel.logging_config import get_logger
from tax_engines.progressive import TaxSchedule

_logger = get_logger("config")

# Default configuration shipped with the package
DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | None = None) -> MoneyConfigurationSet:
    """Load the configuration set.

    Args:
        config_path: Override path to a YAML configuration file.
            Defaults to money_config/sets/default.yaml.

    Returns:
        MoneyConfigurationSet with its checksum populated.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    config = load_configuration(path)

    _logger.info(
        "MONEY_CONFIG_TRACE",
        extra={
            "trace_type": "MONEY_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "source": str(path),
            "exchange_rate_count": len(config.exchange_rates),
            "tax_schedule_count": len(config.tax_schedules),
        },
    )
    return config


def load_exchange(config_path: Path | None = None) -> Exchange:
    """Exchange populated from the active configuration."""
    return build_exchange(get_active_config(config_path))


def load_tax_schedule(name: str, config_path: Path | None = None) -> TaxSchedule:
    """Named TaxSchedule from the active configuration.

    Raises:
        TaxScheduleNotFoundError: If no schedule has that name.
    """
    config = get_active_config(config_path)
    schedule_def = config.get_schedule(name)
    if schedule_def is None:
        _logger.error("tax_schedule_not_found", extra={
            "schedule_name": name,
            "available": config.schedule_names,
        })
        raise TaxScheduleNotFoundError(name, config.schedule_names)
    return build_tax_schedule(schedule_def)


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "MoneyConfigurationSet",
    "build_exchange",
    "build_tax_schedule",
    "get_active_config",
    "load_exchange",
    "load_tax_schedule",
]
