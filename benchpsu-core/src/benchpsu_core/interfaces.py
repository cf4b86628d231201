"""Driver-facing interfaces for bench power supplies.

Protocols:
    PowerSupply: Capability contract every power supply driver implements.
    SerialTransport: Byte-oriented link a driver writes its commands to.

Both are structural protocols, so drivers and transports do not need to
inherit from anything to satisfy them.
"""

# pylint: disable=unnecessary-ellipsis  # Ellipsis required for Protocol method stubs

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class PowerSupply(Protocol):
    """Protocol for a remotely controlled bench power supply.

    Each driver family implements these four operations with its own wire
    encoding. If a family cannot perform one of them, the driver raises
    :class:`~benchpsu_core.errors.UnsupportedCapabilityError` rather than
    ignoring the call.

    Example:
        >>> psu = await Bk196xConfig("/dev/ttyUSB0").load()
        >>> await psu.set_voltage_limit(5.0)
        >>> await psu.set_current_limit(0.5)
        >>> await psu.enable_output(True)
        >>> await psu.close()
    """

    async def enable_output(self, enabled: bool) -> None:
        """Switch the output on or off without changing the limits.

        Args:
            enabled: True to enable the output, False to disable it.
        """
        ...

    async def set_voltage_limit(self, voltage: float) -> None:
        """Set the voltage limit.

        Args:
            voltage: Voltage in volts. Not clamped by the driver.
        """
        ...

    async def set_current_limit(self, current: float) -> None:
        """Set the current limit.

        Args:
            current: Current in amps. Not clamped by the driver.
        """
        ...

    async def close(self) -> None:
        """Terminate the session and return the supply to front-panel control.

        Must not change the output state. The driver cannot be used again
        afterwards.
        """
        ...


@runtime_checkable
class SerialTransport(Protocol):
    """Protocol for the serial link underneath a driver.

    Callers open the transport before handing it to a driver; the driver
    then owns it and releases it with :meth:`close`.
    """

    def write(self, data: bytes) -> None:
        """Write raw bytes to the device.

        Args:
            data: Encoded command, including its terminator.
        """
        ...

    def close(self) -> None:
        """Close the link and release the port."""
        ...
