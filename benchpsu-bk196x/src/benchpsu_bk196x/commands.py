"""BK Precision 196X line protocol encoding.

Every command is a four-letter opcode, the two-digit device address and an
optional fixed-width argument, terminated by a carriage return::

    SESS05\\r       open session
    VOLT05123\\r    voltage limit 12.3 V
    CURR05050\\r    current limit 0.50 A
    SOUT050\\r      output on (0 = on, 1 = off)
    ENDS05\\r       close session

Limits are scaled to integers (volts x10, amps x100) and zero-padded to three
digits. Scaling rounds half away from zero on the shortest decimal form of
the float, so ``1.005`` becomes ``101`` instead of being pulled down by
binary representation error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from benchpsu_core.errors import ConfigurationError, LimitEncodingError

CR = "\r"

MAX_ADDRESS = 99

VOLTAGE_SCALE = 10
CURRENT_SCALE = 100

# Width of the scaled limit field.
LIMIT_DIGITS = 3

DEFAULT_ROUNDING = ROUND_HALF_UP


class Opcode(Enum):
    """Command opcodes understood by the 196X firmware."""

    SESS = "SESS"
    ENDS = "ENDS"
    VOLT = "VOLT"
    CURR = "CURR"
    SOUT = "SOUT"


def validate_address(address: int) -> int:
    """Check that *address* is a usable bus address.

    Args:
        address: Device address.

    Returns:
        The address, unchanged.

    Raises:
        ConfigurationError: If the address is not an integer in 0-99.
    """
    if isinstance(address, bool) or not isinstance(address, int):
        raise ConfigurationError(f"Power supply address must be an integer, got {address!r}")
    if not 0 <= address <= MAX_ADDRESS:
        raise ConfigurationError(
            f"Power supply address {address} is out of range (0-{MAX_ADDRESS})"
        )
    return address


def scale_limit(value: float, scale: int, rounding: str = DEFAULT_ROUNDING) -> int:
    """Scale a limit to its wire integer.

    Args:
        value: Limit in volts or amps.
        scale: Multiplier (10 for voltage, 100 for current).
        rounding: A :mod:`decimal` rounding mode.

    Returns:
        The scaled, rounded integer.

    Raises:
        LimitEncodingError: If the value is not finite, negative, or needs
            more than three digits once scaled.
    """
    if not math.isfinite(value):
        raise LimitEncodingError(f"Limit must be a finite number, got {value!r}")
    if value < 0:
        raise LimitEncodingError(f"Limit must not be negative, got {value!r}")
    scaled = int((Decimal(repr(float(value))) * scale).quantize(Decimal(1), rounding=rounding))
    if scaled >= 10**LIMIT_DIGITS:
        raise LimitEncodingError(
            f"Limit {value!r} scaled by {scale} does not fit in {LIMIT_DIGITS} digits"
        )
    return scaled


@dataclass(frozen=True)
class Command:
    """A single protocol command, held as data until encoded.

    Attributes:
        opcode: Which operation to perform.
        value: Limit in volts/amps for VOLT/CURR, output state for SOUT,
            None for SESS/ENDS.
    """

    opcode: Opcode
    value: float | bool | None = None

    @classmethod
    def open_session(cls) -> Command:
        return cls(Opcode.SESS)

    @classmethod
    def close_session(cls) -> Command:
        return cls(Opcode.ENDS)

    @classmethod
    def set_voltage(cls, voltage: float) -> Command:
        return cls(Opcode.VOLT, voltage)

    @classmethod
    def set_current(cls, current: float) -> Command:
        return cls(Opcode.CURR, current)

    @classmethod
    def set_output_enabled(cls, enabled: bool) -> Command:
        return cls(Opcode.SOUT, enabled)

    def format(self, address: int, *, rounding: str = DEFAULT_ROUNDING) -> str:
        """Render the command as a protocol line.

        Args:
            address: Device address (0-99).
            rounding: Rounding mode for scaled limits.

        Returns:
            The command text including the trailing carriage return.

        Raises:
            ConfigurationError: If the address is out of range.
            LimitEncodingError: If a limit cannot be encoded.
        """
        validate_address(address)
        prefix = f"{self.opcode.value}{address:02d}"

        if self.opcode in (Opcode.SESS, Opcode.ENDS):
            return f"{prefix}{CR}"
        if self.opcode is Opcode.VOLT:
            scaled = scale_limit(float(self.value), VOLTAGE_SCALE, rounding)  # type: ignore[arg-type]
            return f"{prefix}{scaled:03d}{CR}"
        if self.opcode is Opcode.CURR:
            scaled = scale_limit(float(self.value), CURRENT_SCALE, rounding)  # type: ignore[arg-type]
            return f"{prefix}{scaled:03d}{CR}"
        # Inverted on the device: 0 switches the output on.
        flag = "0" if self.value else "1"
        return f"{prefix}{flag}{CR}"

    def encode(self, address: int, *, rounding: str = DEFAULT_ROUNDING) -> bytes:
        """Render the command as the ASCII bytes sent on the wire."""
        return self.format(address, rounding=rounding).encode("ascii")
