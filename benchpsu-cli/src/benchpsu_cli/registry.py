"""Power supply driver registry.

Maps configuration entries to driver families. The set of families is fixed:
each one contributes a frozen config dataclass with an async ``load()``
returning a driver that satisfies :class:`~benchpsu_core.PowerSupply`.

Adding a family:
    1. Write a package implementing the driver and its config class.
    2. Add the config class to ``PowerSupplyConfig`` and ``SUPPLY_FAMILIES``.
    3. Add an ``isinstance`` arm to :func:`open_power_supply`.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Union

from benchpsu_bk196x import Bk196xConfig
from benchpsu_core.errors import ConfigurationError
from benchpsu_core.interfaces import PowerSupply

logger = logging.getLogger(__name__)

PowerSupplyConfig = Union[Bk196xConfig]

SUPPLY_FAMILIES: dict[str, type[Bk196xConfig]] = {
    "bk_precision_196x": Bk196xConfig,
}


def parse_supply_config(name: str, entry: Any) -> PowerSupplyConfig:
    """Build a driver config from one ``power_supplies`` entry.

    The entry must be a mapping with exactly one key, the family tag, whose
    value holds the family's options::

        {"bk_precision_196x": {"serial_interface": "/dev/ttyUSB0", "address": 2}}

    Args:
        name: Supply name, used in error messages.
        entry: Parsed YAML value for the supply.

    Returns:
        The family's config object.

    Raises:
        ConfigurationError: If the entry is malformed, the family is
            unknown, or the options are invalid.
    """
    if not isinstance(entry, dict) or len(entry) != 1:
        raise ConfigurationError(
            f"Power supply '{name}' must be a mapping with a single driver tag "
            f"(one of: {', '.join(sorted(SUPPLY_FAMILIES))})"
        )

    family, options = next(iter(entry.items()))
    config_cls = SUPPLY_FAMILIES.get(family)
    if config_cls is None:
        raise ConfigurationError(
            f"Power supply '{name}' uses unknown driver '{family}' "
            f"(one of: {', '.join(sorted(SUPPLY_FAMILIES))})"
        )

    if options is None:
        options = {}
    if not isinstance(options, dict):
        raise ConfigurationError(f"Power supply '{name}' options must be a mapping")

    try:
        return config_cls(**options)
    except TypeError as exc:
        raise ConfigurationError(f"Power supply '{name}' has invalid options: {exc}") from exc
    except ConfigurationError as exc:
        raise ConfigurationError(f"Power supply '{name}': {exc}") from exc


async def open_power_supply(config: PowerSupplyConfig) -> PowerSupply:
    """Open a session with the supply described by *config*.

    Args:
        config: A driver family config.

    Returns:
        A driver with its session open.

    Raises:
        ConfigurationError: If *config* is not a known family.
        TransportError: If the serial link cannot be opened.
    """
    if isinstance(config, Bk196xConfig):
        logger.debug("Opening BK Precision 196X at address %02d", config.address)
        return await config.load()
    raise ConfigurationError(f"No driver for configuration {config!r}")


@asynccontextmanager
async def power_supply_session(config: PowerSupplyConfig) -> AsyncIterator[PowerSupply]:
    """Open a supply for the duration of an ``async with`` block.

    The session is closed on every exit path, including when the body
    raises.

    Args:
        config: A driver family config.

    Yields:
        The open driver.
    """
    psu = await open_power_supply(config)
    try:
        yield psu
    finally:
        await psu.close()
