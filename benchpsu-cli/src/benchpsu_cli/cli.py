"""Command-line interface for bench-psu.

Usage:
    # Power on, optionally setting limits first
    bench-psu on -V 5.0 -I 0.5

    # Power off
    bench-psu off

    # Change limits without touching the output
    bench-psu set -V 12

    # Use a supply other than the default
    PSU_NAME=bench_two bench-psu off
    bench-psu --supply bench_two off
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from enum import Enum

from benchpsu_core.errors import BenchPsuError
from benchpsu_core.interfaces import PowerSupply

from benchpsu_cli.config import load_config
from benchpsu_cli.registry import open_power_supply

logger = logging.getLogger(__name__)


class UserCommand(Enum):
    """Operations offered on the command line."""

    POWER_ON = "on"
    POWER_OFF = "off"
    SET_LIMITS = "set"


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def execute(
    psu: PowerSupply,
    command: UserCommand,
    voltage_limit: float | None = None,
    current_limit: float | None = None,
) -> None:
    """Run one user command against an open supply.

    Limits are applied before the output is switched on. ``off`` only
    disables the output.

    Args:
        psu: Open power supply driver.
        command: Operation to perform.
        voltage_limit: Voltage limit in volts, if it should be changed.
        current_limit: Current limit in amps, if it should be changed.
    """
    if command is UserCommand.POWER_OFF:
        await psu.enable_output(False)
        return

    if voltage_limit is not None:
        await psu.set_voltage_limit(voltage_limit)
    if current_limit is not None:
        await psu.set_current_limit(current_limit)

    if command is UserCommand.POWER_ON:
        await psu.enable_output(True)


async def run(args: argparse.Namespace) -> int:
    """Load the config, open the supply, run the command and close.

    Returns:
        Process exit status.
    """
    try:
        config = load_config(args.config)
        supply_config = config.get_supply_config(args.supply)
    except BenchPsuError as exc:
        logger.error("Failed to load configuration: %s", exc)
        return 1

    try:
        psu = await open_power_supply(supply_config)
    except BenchPsuError as exc:
        logger.error("Failed to prepare power supply: %s", exc)
        return 1

    status = 0
    try:
        await execute(
            psu,
            UserCommand(args.command),
            getattr(args, "voltage_limit", None),
            getattr(args, "current_limit", None),
        )
    except BenchPsuError as exc:
        logger.error("Command failed: %s", exc)
        status = 1

    try:
        await psu.close()
    except BenchPsuError as exc:
        logger.error("Failed to close power supply interface: %s", exc)
        status = 1

    return status


def _add_limit_options(parser: argparse.ArgumentParser, verb: str) -> None:
    parser.add_argument(
        "-V", "--voltage-limit", type=float, metavar="VOLTS",
        help=f"Voltage limit to set{verb}"
    )
    parser.add_argument(
        "-I", "--current-limit", type=float, metavar="AMPS",
        help=f"Current limit to set{verb}"
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="bench-psu",
        description="Control your power supply.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--config", "-c",
        help="Config file (default: ~/.config/bench_psu_config.yaml)"
    )
    parser.add_argument(
        "--supply", "-s",
        help="Power supply name from the config (default: $PSU_NAME, then default_supply)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    on_parser = subparsers.add_parser("on", help="Power on the power supply")
    _add_limit_options(on_parser, " while powering on")

    subparsers.add_parser("off", help="Power off the power supply")

    set_parser = subparsers.add_parser(
        "set", help="Set the limits without changing the on/off state"
    )
    _add_limit_options(set_parser, "")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    setup_logging(args.debug)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
