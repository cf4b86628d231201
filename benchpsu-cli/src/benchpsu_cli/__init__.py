"""Command-line front end and driver selection for bench-psu.

This package turns a YAML config file and a command line into calls on a
power supply driver.

Key components:
    - BenchConfig / load_config: Named supplies and the default selection,
      with a ``PSU_NAME`` environment override.
    - Registry: Closed table of driver families, and helpers that open a
      driver from its config.
    - CLI: ``bench-psu on|off|set`` entry point.

Example:
    from benchpsu_cli import load_config, power_supply_session

    config = load_config()
    async with power_supply_session(config.get_supply_config()) as psu:
        await psu.set_voltage_limit(5.0)
        await psu.enable_output(True)
"""

from benchpsu_cli.config import (
    DEFAULT_CONFIG_PATH,
    SUPPLY_ENV_VAR,
    BenchConfig,
    load_config,
    parse_config,
)
from benchpsu_cli.registry import (
    SUPPLY_FAMILIES,
    PowerSupplyConfig,
    open_power_supply,
    parse_supply_config,
    power_supply_session,
)

__all__ = [
    # Config
    "DEFAULT_CONFIG_PATH",
    "SUPPLY_ENV_VAR",
    "BenchConfig",
    "load_config",
    "parse_config",
    # Registry
    "SUPPLY_FAMILIES",
    "PowerSupplyConfig",
    "open_power_supply",
    "parse_supply_config",
    "power_supply_session",
]
