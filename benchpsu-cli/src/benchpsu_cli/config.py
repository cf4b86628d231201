"""YAML configuration loading for bench-psu.

The config file lists named power supplies and picks a default one.
Each supply is tagged with its driver family, either with a YAML tag or as
a single-key mapping; both forms below are equivalent.

Example YAML configuration:
    default_supply: bk_precision
    power_supplies:
      bk_precision: !bk_precision_196x
        serial_interface: /dev/serial/by-id/usb-1453_4026-if00-port0
      bench_two:
        bk_precision_196x:
          serial_interface: /dev/ttyUSB1
          address: 2

The supply actually used is chosen by an explicit name, then the
``PSU_NAME`` environment variable, then ``default_supply``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from benchpsu_core.errors import ConfigurationError

from benchpsu_cli.registry import PowerSupplyConfig, parse_supply_config

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "bench_psu_config.yaml"

SUPPLY_ENV_VAR = "PSU_NAME"


class _ConfigLoader(yaml.SafeLoader):
    """Safe loader that turns ``!family`` tags into ``{family: value}``."""


def _construct_tagged(loader: _ConfigLoader, tag_suffix: str, node: yaml.Node) -> dict[str, Any]:
    value: Any
    if isinstance(node, yaml.MappingNode):
        value = loader.construct_mapping(node, deep=True)
    elif isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    else:
        value = loader.construct_scalar(node) or None
    return {tag_suffix: value}


_ConfigLoader.add_multi_constructor("!", _construct_tagged)


@dataclass(frozen=True)
class BenchConfig:
    """Parsed bench-psu configuration.

    Attributes:
        default_supply: Name of the supply used when none is selected.
        power_supplies: Driver configs keyed by supply name.
        source_path: File the config was loaded from, if any.
    """

    default_supply: str
    power_supplies: dict[str, PowerSupplyConfig] = field(default_factory=dict)
    source_path: Path | None = None

    def select_name(self, name: str | None = None) -> str:
        """Resolve which supply to use.

        Args:
            name: Explicitly requested supply, e.g. from a CLI flag.

        Returns:
            *name* if given, else ``$PSU_NAME`` if set (even to an empty
            string), else the default.
        """
        if name is not None:
            return name
        return os.environ.get(SUPPLY_ENV_VAR, self.default_supply)

    def get_supply_config(self, name: str | None = None) -> PowerSupplyConfig:
        """Get the driver config for the selected supply.

        Args:
            name: Explicitly requested supply.

        Returns:
            The driver config.

        Raises:
            ConfigurationError: If the selected supply is not configured.
        """
        selected = self.select_name(name)
        try:
            return self.power_supplies[selected]
        except KeyError:
            raise ConfigurationError(
                f"Could not find power supply '{selected}' in config"
            ) from None


def parse_config(data: Any, source_path: Path | None = None) -> BenchConfig:
    """Build a :class:`BenchConfig` from parsed YAML.

    Args:
        data: Result of loading the YAML document.
        source_path: File the data came from.

    Returns:
        The parsed configuration.

    Raises:
        ConfigurationError: If a required field is missing or invalid.
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Config must be a YAML mapping")

    default_supply = data.get("default_supply")
    if not default_supply or not isinstance(default_supply, str):
        raise ConfigurationError("Missing required field: default_supply")

    supplies_data = data.get("power_supplies")
    if supplies_data is None:
        raise ConfigurationError("Missing required field: power_supplies")
    if not isinstance(supplies_data, dict):
        raise ConfigurationError("power_supplies must be a mapping")

    power_supplies = {
        str(name): parse_supply_config(str(name), entry) for name, entry in supplies_data.items()
    }

    return BenchConfig(
        default_supply=default_supply,
        power_supplies=power_supplies,
        source_path=source_path,
    )


def load_config(path: str | Path | None = None) -> BenchConfig:
    """Load the configuration file.

    Args:
        path: Path to the YAML file. Defaults to
            ``~/.config/bench_psu_config.yaml``.

    Returns:
        Parsed configuration.

    Raises:
        ConfigurationError: If the file is missing, unreadable, not valid
            YAML, or describes an invalid configuration.
    """
    path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.load(f, Loader=_ConfigLoader)  # nosec B506 - SafeLoader subclass
    except OSError as exc:
        raise ConfigurationError(f"Could not read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse config file {path}: {exc}") from exc

    return parse_config(data, source_path=path)
