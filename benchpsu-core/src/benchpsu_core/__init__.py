"""Core library for bench power supply control.

This package holds the pieces every driver family shares: the exception
hierarchy and the protocols a driver and its transport must satisfy. It has
no third-party dependencies.

Key components:
    - Errors: BenchPsuError and its configuration, transport, capability,
      session and encoding subclasses.
    - Interfaces: PowerSupply (enable output, set voltage limit, set current
      limit, close) and SerialTransport (write, close).
"""

from benchpsu_core.errors import (
    BenchPsuError,
    ConfigurationError,
    LimitEncodingError,
    SessionClosedError,
    TransportError,
    UnsupportedCapabilityError,
)
from benchpsu_core.interfaces import PowerSupply, SerialTransport

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Errors
    "BenchPsuError",
    "ConfigurationError",
    "LimitEncodingError",
    "SessionClosedError",
    "TransportError",
    "UnsupportedCapabilityError",
    # Interfaces
    "PowerSupply",
    "SerialTransport",
]
