"""PyVISA serial transport for BK Precision 196X supplies.

The supply is reached over an RS-232 or USB-serial adapter at 9600 baud,
8 data bits, no parity and one stop bit. The port is opened as a VISA
``ASRL`` resource; plain device paths are converted on the way in:

- ``/dev/ttyUSB0`` becomes ``ASRL/dev/ttyUSB0::INSTR``
- ``COM3`` becomes ``ASRL3::INSTR``
- Strings already containing ``::`` are used as given.

``pyvisa`` is imported lazily so the encoder and the emulator work without
it installed.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from benchpsu_core.errors import TransportError

logger = logging.getLogger(__name__)

BAUD_RATE = 9600
DATA_BITS = 8

_COM_PORT_RE = re.compile(r"^COM(\d+)$", re.IGNORECASE)


def to_resource_name(serial_interface: str) -> str:
    """Convert a serial device path into a VISA resource name.

    Args:
        serial_interface: Device path (``/dev/ttyUSB0``), Windows port
            name (``COM3``) or a complete VISA resource string.

    Returns:
        The VISA ``ASRL`` resource name.

    Raises:
        TransportError: If *serial_interface* is empty.
    """
    name = serial_interface.strip()
    if not name:
        raise TransportError("Serial interface must not be empty")
    if "::" in name:
        return name
    match = _COM_PORT_RE.match(name)
    if match is not None:
        return f"ASRL{match.group(1)}::INSTR"
    return f"ASRL{name}::INSTR"


class VisaSerialPort:
    """Serial transport backed by PyVISA.

    Implements the :class:`~benchpsu_core.interfaces.SerialTransport`
    protocol. Commands are written raw with no termination appended, since
    each encoded command already ends in a carriage return.

    Args:
        serial_interface: Device path or VISA resource string.
        timeout_ms: I/O timeout in milliseconds (applied on open).

    Example:
        >>> port = VisaSerialPort("/dev/ttyUSB0")
        >>> port.open()
        >>> port.write(b"SESS00\\r")
        >>> port.close()
    """

    def __init__(self, serial_interface: str, *, timeout_ms: int = 2000) -> None:
        self._serial_interface = serial_interface
        self._resource_name = to_resource_name(serial_interface)
        self._timeout_ms = timeout_ms
        self._rm: Any = None
        self._resource: Any = None

    # -- Properties ----------------------------------------------------------

    @property
    def serial_interface(self) -> str:
        """The device path this port was created for."""
        return self._serial_interface

    @property
    def resource_name(self) -> str:
        """The VISA resource name derived from the device path."""
        return self._resource_name

    @property
    def is_open(self) -> bool:
        """Return True if the port is currently open."""
        return self._resource is not None

    # -- Lifecycle -----------------------------------------------------------

    def open(self) -> None:
        """Open the serial port with the 196X line settings.

        Raises:
            TransportError: If ``pyvisa`` is not installed or the port
                cannot be opened.
        """
        if self._resource is not None:
            return

        try:
            import pyvisa  # type: ignore[import-not-found]  # pylint: disable=import-outside-toplevel
            from pyvisa.constants import (  # type: ignore[import-not-found]  # pylint: disable=import-outside-toplevel
                Parity,
                StopBits,
            )
        except ImportError as exc:
            raise TransportError(
                "pyvisa library is not installed. Install with: pip install pyvisa pyvisa-py"
            ) from exc

        try:
            self._rm = pyvisa.ResourceManager()
            self._resource = self._rm.open_resource(
                self._resource_name,
                baud_rate=BAUD_RATE,
                data_bits=DATA_BITS,
                parity=Parity.none,
                stop_bits=StopBits.one,
                write_termination="",
                read_termination="\r",
            )
            self._resource.timeout = self._timeout_ms
        except Exception as exc:
            self._resource = None
            if self._rm is not None:
                try:
                    self._rm.close()
                except Exception:  # pylint: disable=broad-except
                    logger.debug("Ignoring error while closing resource manager", exc_info=True)
            self._rm = None
            raise TransportError(
                f"Failed to open serial port {self._serial_interface!r}: {exc}"
            ) from exc

    def close(self) -> None:
        """Close the port and resource manager.

        Safe to call multiple times.
        """
        if self._resource is not None:
            try:
                self._resource.close()
            except Exception:  # pylint: disable=broad-except
                logger.debug("Ignoring error while closing %s", self._resource_name, exc_info=True)
            self._resource = None
        if self._rm is not None:
            try:
                self._rm.close()
            except Exception:  # pylint: disable=broad-except
                logger.debug("Ignoring error while closing resource manager", exc_info=True)
            self._rm = None

    # -- Transport interface -------------------------------------------------

    def write(self, data: bytes) -> None:
        """Write raw bytes to the port.

        Args:
            data: Encoded command including its carriage return.

        Raises:
            TransportError: If the port is not open or the write fails.
        """
        if self._resource is None:
            raise TransportError(f"Serial port {self._serial_interface!r} is not open")
        try:
            self._resource.write_raw(data)
        except Exception as exc:
            raise TransportError(
                f"Failed to write to serial port {self._serial_interface!r}: {exc}"
            ) from exc


def open_serial_port(serial_interface: str) -> VisaSerialPort:
    """Open a serial port configured for a 196X supply.

    Args:
        serial_interface: Device path or VISA resource string.

    Returns:
        The open port.

    Raises:
        TransportError: If the port cannot be opened.
    """
    logger.info("Serial interface: %r", serial_interface)
    port = VisaSerialPort(serial_interface)
    port.open()
    return port
