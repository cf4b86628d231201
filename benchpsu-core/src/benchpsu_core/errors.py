"""Exception types for bench-psu.

This module defines the exception hierarchy used by the power supply drivers
and the command-line front end. All bench-psu exceptions inherit from
BenchPsuError, allowing callers to catch every driver failure with a single
except clause.

Exception hierarchy:
    BenchPsuError (base)
    +-- ConfigurationError: Invalid or missing device configuration
    +-- TransportError: Serial link could not be opened or written
    +-- UnsupportedCapabilityError: Driver family lacks an operation
    +-- SessionClosedError: Operation on a driver that was already closed
    +-- LimitEncodingError: Limit value cannot be represented on the wire
"""


class BenchPsuError(Exception):
    """Base exception for all bench-psu errors.

    This is the root of the bench-psu exception hierarchy. Catch this to
    handle any driver or configuration error.
    """


class ConfigurationError(BenchPsuError):
    """Raised when a device configuration is invalid.

    Covers an address outside 0-99, a missing or unreadable config file, an
    unknown driver family, and a missing required field. Always raised before
    any serial traffic takes place.
    """


class TransportError(BenchPsuError):
    """Raised when the serial transport fails.

    This may occur when the device path cannot be opened or when a write
    fails mid-session. Transport errors are never retried; the device is left
    in whatever state the last successful command put it in.
    """


class UnsupportedCapabilityError(BenchPsuError):
    """Raised when a driver family does not support a requested operation.

    Drivers raise this instead of silently ignoring the call.
    """


class SessionClosedError(BenchPsuError):
    """Raised when a driver is used after its session has been closed."""


class LimitEncodingError(BenchPsuError, ValueError):
    """Raised when a voltage or current limit cannot be encoded.

    The value is negative, not finite, or too large for the fixed-width
    field of the wire protocol.
    """
