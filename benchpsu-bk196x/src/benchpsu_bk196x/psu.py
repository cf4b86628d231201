"""BK Precision 196X power supply driver.

Drives the 1696/1697/1698 family over its ASCII serial protocol. A session
is opened with ``SESS`` when the driver is created and closed with ``ENDS``,
which hands the supply back to front-panel control without touching the
output.

The firmware misreads commands that arrive back to back, so every command is
followed by a fixed quiet interval before the next one may be written.

Configuration options:
    serial_interface: On Linux, the path to the serial device (the user
        usually needs to be in the ``dialout`` group). On Windows, a port
        name such as ``COM3``.
    address: Bus address of the supply, 0-99. Defaults to 0; only needed
        if the address was changed on the front panel.

Example configuration::

    default_supply: bk_precision
    power_supplies:
      bk_precision: !bk_precision_196x
        serial_interface: /dev/serial/by-id/usb-1453_4026-if00-port0
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Callable

from benchpsu_core.errors import ConfigurationError, SessionClosedError
from benchpsu_core.interfaces import SerialTransport

from benchpsu_bk196x.commands import DEFAULT_ROUNDING, Command, validate_address
from benchpsu_bk196x.transport import open_serial_port

logger = logging.getLogger(__name__)

# Quiet time after each command, in seconds.
PACING_INTERVAL = 0.1

TransportFactory = Callable[[str], SerialTransport]


class BkPrecision196x:
    """Driver for the BK Precision 196X family.

    Implements the :class:`~benchpsu_core.interfaces.PowerSupply` protocol.
    Use :meth:`open` (or :meth:`Bk196xConfig.load`) to get an instance with
    a session already started. The constructor sends nothing, and a driver
    built directly refuses every command until a session has been opened.

    The driver owns its transport. After :meth:`close` every further call
    raises :class:`SessionClosedError`.

    Args:
        transport: An open serial transport.
        address: Device address (0-99).
        pacing_interval: Seconds to wait after each command.
        rounding: :mod:`decimal` rounding mode for scaled limits.
    """

    def __init__(
        self,
        transport: SerialTransport,
        address: int = 0,
        *,
        pacing_interval: float = PACING_INTERVAL,
        rounding: str = DEFAULT_ROUNDING,
    ) -> None:
        self._transport = transport
        self._address = validate_address(address)
        self._pacing_interval = pacing_interval
        self._rounding = rounding
        self._lock = asyncio.Lock()
        self._session_open = False
        self._closed = False

    @classmethod
    async def open(
        cls,
        serial_interface: str,
        address: int = 0,
        *,
        transport_factory: TransportFactory = open_serial_port,
        pacing_interval: float = PACING_INTERVAL,
        rounding: str = DEFAULT_ROUNDING,
    ) -> BkPrecision196x:
        """Open the serial port and start a remote session.

        Args:
            serial_interface: Device path or VISA resource string.
            address: Device address (0-99).
            transport_factory: Callable opening the transport for a path.
            pacing_interval: Seconds to wait after each command.
            rounding: Rounding mode for scaled limits.

        Returns:
            A driver with its session open.

        Raises:
            ConfigurationError: If the address is out of range. Raised
                before the port is touched.
            TransportError: If the port cannot be opened or the session
                command cannot be written.
        """
        validate_address(address)
        transport = transport_factory(serial_interface)
        psu = cls(transport, address, pacing_interval=pacing_interval, rounding=rounding)
        try:
            await psu._transmit(Command.open_session())
        except BaseException:
            psu._closed = True
            transport.close()
            raise
        psu._session_open = True
        return psu

    # -- Properties ---------------------------------------------------------

    @property
    def address(self) -> int:
        """Bus address of the supply."""
        return self._address

    @property
    def is_closed(self) -> bool:
        """Return True once :meth:`close` has been called."""
        return self._closed

    # -- PowerSupply --------------------------------------------------------

    async def enable_output(self, enabled: bool) -> None:
        """Switch the output on or off.

        Args:
            enabled: True to enable the output.
        """
        await self._send(Command.set_output_enabled(enabled))

    async def set_voltage_limit(self, voltage: float) -> None:
        """Set the voltage limit, in steps of 0.1 V.

        Args:
            voltage: Voltage in volts.
        """
        await self._send(Command.set_voltage(voltage))

    async def set_current_limit(self, current: float) -> None:
        """Set the current limit, in steps of 0.01 A.

        Args:
            current: Current in amps.
        """
        await self._send(Command.set_current(current))

    async def close(self) -> None:
        """End the session and release the serial port.

        ``ENDS`` is sent even if an earlier command failed, and the port is
        released even if ``ENDS`` itself fails.

        Raises:
            SessionClosedError: If the session was already closed or was
                never opened.
            TransportError: If ``ENDS`` could not be written.
        """
        self._ensure_open()
        self._closed = True
        try:
            await self._transmit(Command.close_session())
        finally:
            self._transport.close()

    # -- Context manager ----------------------------------------------------

    async def __aenter__(self) -> BkPrecision196x:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._session_open and not self._closed:
            await self.close()

    # -- Private helpers ----------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError(f"Session with power supply {self._address:02d} is closed")
        if not self._session_open:
            raise SessionClosedError(
                f"No session open with power supply {self._address:02d}; use open()"
            )

    async def _send(self, command: Command) -> None:
        self._ensure_open()
        await self._transmit(command)

    async def _transmit(self, command: Command) -> None:
        data = command.encode(self._address, rounding=self._rounding)
        async with self._lock:
            logger.debug("SEND: %r", data)
            self._transport.write(data)
            await asyncio.sleep(self._pacing_interval)


@dataclass(frozen=True)
class Bk196xConfig:
    """Configuration for one BK Precision 196X supply.

    Attributes:
        serial_interface: Device path or VISA resource string.
        address: Device address (0-99).
    """

    serial_interface: str
    address: int = 0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not isinstance(self.serial_interface, str) or not self.serial_interface:
            raise ConfigurationError("serial_interface must be a non-empty string")
        validate_address(self.address)

    async def load(
        self,
        *,
        transport_factory: TransportFactory = open_serial_port,
    ) -> BkPrecision196x:
        """Open a session with the configured supply.

        Args:
            transport_factory: Callable opening the transport for a path.

        Returns:
            A driver with its session open.
        """
        return await BkPrecision196x.open(
            self.serial_interface,
            self.address,
            transport_factory=transport_factory,
        )
