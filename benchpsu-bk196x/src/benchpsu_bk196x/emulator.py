"""BK Precision 196X power supply emulator.

Provides an in-process emulator implementing the ``SerialTransport``
protocol. It parses the CR-terminated command stream, tracks the state a
real supply would hold, and records every write with a monotonic timestamp
so tests can check command pacing.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable

from benchpsu_core.errors import TransportError

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Bk196xEmulatorConfig:
    """Configuration for a BK Precision 196X emulator instance.

    Args:
        address: Bus address the emulated supply answers to (0-99).
        max_voltage: Maximum voltage setting in volts (> 0).
        max_current: Maximum current setting in amps (> 0).
    """

    address: int = 0
    max_voltage: float = 60.0
    max_current: float = 9.99

    def __post_init__(self) -> None:
        if not 0 <= self.address <= 99:
            raise ValueError("address must be in 0-99")
        if self.max_voltage <= 0:
            raise ValueError("max_voltage must be > 0")
        if self.max_current <= 0:
            raise ValueError("max_current must be > 0")


@dataclass(frozen=True)
class RecordedWrite:
    """One write seen by the emulator.

    Attributes:
        timestamp: ``time.monotonic()`` at the moment of the write.
        data: Raw bytes written.
    """

    timestamp: float
    data: bytes


@dataclass
class _SupplyState:
    session_open: bool = False
    voltage_limit: float = 0.0
    current_limit: float = 0.0
    output_enabled: bool = False
    errors: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Emulator
# ---------------------------------------------------------------------------


class Bk196xEmulator:
    """In-process BK Precision 196X emulator implementing ``SerialTransport``.

    Args:
        config: Emulator configuration.
    """

    def __init__(self, config: Bk196xEmulatorConfig | None = None) -> None:
        self._config = config or Bk196xEmulatorConfig()
        self._state = _SupplyState()
        self._buffer = ""
        self._writes: list[RecordedWrite] = []
        self._closed = False
        self._fail_after: int | None = None

        self._handlers: dict[str, Callable[[str], None]] = {
            "SESS": self._open_session,
            "ENDS": self._close_session,
            "VOLT": self._set_voltage,
            "CURR": self._set_current,
            "SOUT": self._set_output,
        }

    # -- Transport interface ------------------------------------------------

    def write(self, data: bytes) -> None:
        """Record *data* and process every complete line in it.

        Raises:
            TransportError: If the emulator is closed or a write failure
                was scheduled with :meth:`fail_writes`.
        """
        if self._closed:
            raise TransportError("Emulator transport is closed")
        if self._fail_after is not None:
            if self._fail_after == 0:
                raise TransportError("Emulated write failure")
            self._fail_after -= 1

        self._writes.append(RecordedWrite(time.monotonic(), data))
        self._buffer += data.decode("ascii", errors="replace")
        while "\r" in self._buffer:
            line, self._buffer = self._buffer.split("\r", 1)
            self._process_line(line)

    def close(self) -> None:
        """Mark the transport closed."""
        self._closed = True

    # -- Test helpers -------------------------------------------------------

    def fail_writes(self, after: int = 0) -> None:
        """Make writes fail once *after* more writes have succeeded.

        Args:
            after: Number of writes to accept before failing.
        """
        self._fail_after = after

    def clear_failure(self) -> None:
        """Stop failing writes."""
        self._fail_after = None

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def writes(self) -> tuple[RecordedWrite, ...]:
        """Every successful write, oldest first."""
        return tuple(self._writes)

    @property
    def lines(self) -> list[bytes]:
        """Raw bytes of every successful write, oldest first."""
        return [w.data for w in self._writes]

    @property
    def session_open(self) -> bool:
        return self._state.session_open

    @property
    def voltage_limit(self) -> float:
        return self._state.voltage_limit

    @property
    def current_limit(self) -> float:
        return self._state.current_limit

    @property
    def output_enabled(self) -> bool:
        return self._state.output_enabled

    @property
    def errors(self) -> list[str]:
        """Protocol errors in the order they occurred."""
        return list(self._state.errors)

    # -- Private helpers ----------------------------------------------------

    def _process_line(self, line: str) -> None:
        if len(line) < 6 or not line[4:6].isdigit():
            self._state.errors.append(f"Malformed command: {line!r}")
            return
        opcode, address, args = line[:4], int(line[4:6]), line[6:]
        if address != self._config.address:
            # Addressed to another supply on the same line.
            return
        handler = self._handlers.get(opcode)
        if handler is None:
            self._state.errors.append(f"Unknown command: {line!r}")
            return
        if opcode != "SESS" and not self._state.session_open:
            self._state.errors.append(f"No session open for: {line!r}")
            return
        handler(args)

    def _parse_scaled(self, args: str, scale: int) -> float | None:
        if len(args) != 3 or not args.isdigit():
            self._state.errors.append(f"Bad parameter: {args!r}")
            return None
        return int(args) / scale

    # -- Command handlers ---------------------------------------------------

    def _open_session(self, args: str) -> None:
        if args:
            self._state.errors.append(f"Bad parameter: {args!r}")
            return
        self._state.session_open = True

    def _close_session(self, args: str) -> None:
        if args:
            self._state.errors.append(f"Bad parameter: {args!r}")
            return
        self._state.session_open = False

    def _set_voltage(self, args: str) -> None:
        value = self._parse_scaled(args, 10)
        if value is None:
            return
        if value > self._config.max_voltage:
            self._state.errors.append(f"Voltage out of range: {value}")
            return
        self._state.voltage_limit = value

    def _set_current(self, args: str) -> None:
        value = self._parse_scaled(args, 100)
        if value is None:
            return
        if value > self._config.max_current:
            self._state.errors.append(f"Current out of range: {value}")
            return
        self._state.current_limit = value

    def _set_output(self, args: str) -> None:
        if args == "0":
            self._state.output_enabled = True
        elif args == "1":
            self._state.output_enabled = False
        else:
            self._state.errors.append(f"Bad parameter: {args!r}")


# ---------------------------------------------------------------------------
# Factory functions
# ---------------------------------------------------------------------------


def make_emulator(address: int = 0) -> Bk196xEmulator:
    """Create a 196X emulator answering to *address*.

    Args:
        address: Bus address (0-99).

    Returns:
        Configured emulator instance (60 V, 9.99 A).
    """
    return Bk196xEmulator(Bk196xEmulatorConfig(address=address))
