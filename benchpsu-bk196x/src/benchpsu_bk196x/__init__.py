"""BK Precision 196X power supply driver and emulator for bench-psu.

This package drives the BK Precision 1696/1697/1698 supplies through their
fixed-width ASCII serial protocol.

Modules:
    commands: Command model and wire encoding.
    transport: PyVISA-backed serial port.
    psu: Driver implementing the PowerSupply protocol, and its config.
    emulator: In-process emulator for testing without hardware.

Example:
    Connect to a real supply::

        from benchpsu_bk196x import Bk196xConfig

        psu = await Bk196xConfig("/dev/ttyUSB0", address=0).load()
        await psu.set_voltage_limit(12.0)
        await psu.enable_output(True)
        await psu.close()

    Use the emulator for testing::

        from benchpsu_bk196x import BkPrecision196x, make_emulator

        emulator = make_emulator()
        psu = await BkPrecision196x.open("emulated", transport_factory=lambda _: emulator)
"""

from benchpsu_bk196x.commands import Command, Opcode, scale_limit, validate_address
from benchpsu_bk196x.emulator import (
    Bk196xEmulator,
    Bk196xEmulatorConfig,
    RecordedWrite,
    make_emulator,
)
from benchpsu_bk196x.psu import PACING_INTERVAL, Bk196xConfig, BkPrecision196x
from benchpsu_bk196x.transport import VisaSerialPort, open_serial_port, to_resource_name

__all__ = [
    # Encoding
    "Command",
    "Opcode",
    "scale_limit",
    "validate_address",
    # Driver
    "PACING_INTERVAL",
    "Bk196xConfig",
    "BkPrecision196x",
    # Transport
    "VisaSerialPort",
    "open_serial_port",
    "to_resource_name",
    # Emulator
    "Bk196xEmulator",
    "Bk196xEmulatorConfig",
    "RecordedWrite",
    "make_emulator",
]
