"""Tests for VisaSerialPort with mocked pyvisa module."""

from __future__ import annotations

import sys
from unittest.mock import MagicMock, patch

import pytest

from benchpsu_bk196x.transport import VisaSerialPort, open_serial_port, to_resource_name
from benchpsu_core.errors import TransportError


def _make_mock_pyvisa() -> MagicMock:
    """Create a mock pyvisa module with ResourceManager and constants."""
    mock_pyvisa = MagicMock()
    mock_rm = MagicMock()
    mock_resource = MagicMock()
    mock_rm.open_resource.return_value = mock_resource
    mock_pyvisa.ResourceManager.return_value = mock_rm
    return mock_pyvisa


def _modules(mock_pyvisa: MagicMock) -> dict[str, MagicMock]:
    return {"pyvisa": mock_pyvisa, "pyvisa.constants": mock_pyvisa.constants}


# ---------------------------------------------------------------------------
# Resource names
# ---------------------------------------------------------------------------


class TestResourceName:
    def test_posix_path(self) -> None:
        assert to_resource_name("/dev/ttyUSB0") == "ASRL/dev/ttyUSB0::INSTR"

    def test_by_id_path(self) -> None:
        path = "/dev/serial/by-id/usb-1453_4026-if00-port0"
        assert to_resource_name(path) == f"ASRL{path}::INSTR"

    def test_com_port(self) -> None:
        assert to_resource_name("COM3") == "ASRL3::INSTR"

    def test_com_port_lowercase(self) -> None:
        assert to_resource_name("com12") == "ASRL12::INSTR"

    def test_visa_string_passthrough(self) -> None:
        assert to_resource_name("ASRL4::INSTR") == "ASRL4::INSTR"

    def test_empty(self) -> None:
        with pytest.raises(TransportError, match="must not be empty"):
            to_resource_name("  ")


# ---------------------------------------------------------------------------
# open / close lifecycle
# ---------------------------------------------------------------------------


class TestLifecycle:
    """Tests for open/close lifecycle."""

    def test_open_uses_serial_settings(self) -> None:
        mock_pyvisa = _make_mock_pyvisa()
        port = VisaSerialPort("/dev/ttyUSB0")
        with patch.dict(sys.modules, _modules(mock_pyvisa)):
            port.open()
        assert port.is_open
        mock_pyvisa.ResourceManager().open_resource.assert_called_once_with(
            "ASRL/dev/ttyUSB0::INSTR",
            baud_rate=9600,
            data_bits=8,
            parity=mock_pyvisa.constants.Parity.none,
            stop_bits=mock_pyvisa.constants.StopBits.one,
            write_termination="",
            read_termination="\r",
        )

    def test_open_sets_timeout(self) -> None:
        mock_pyvisa = _make_mock_pyvisa()
        port = VisaSerialPort("COM1", timeout_ms=500)
        with patch.dict(sys.modules, _modules(mock_pyvisa)):
            port.open()
        assert mock_pyvisa.ResourceManager().open_resource().timeout == 500

    def test_open_idempotent(self) -> None:
        mock_pyvisa = _make_mock_pyvisa()
        port = VisaSerialPort("/dev/ttyUSB0")
        with patch.dict(sys.modules, _modules(mock_pyvisa)):
            port.open()
            port.open()
        mock_pyvisa.ResourceManager.assert_called_once()

    def test_close_clears_state(self) -> None:
        mock_pyvisa = _make_mock_pyvisa()
        port = VisaSerialPort("/dev/ttyUSB0")
        with patch.dict(sys.modules, _modules(mock_pyvisa)):
            port.open()
        port.close()
        assert not port.is_open
        mock_pyvisa.ResourceManager().close.assert_called_once()

    def test_close_idempotent(self) -> None:
        mock_pyvisa = _make_mock_pyvisa()
        port = VisaSerialPort("/dev/ttyUSB0")
        with patch.dict(sys.modules, _modules(mock_pyvisa)):
            port.open()
        port.close()
        port.close()
        assert not port.is_open

    def test_close_swallows_resource_errors(self) -> None:
        mock_pyvisa = _make_mock_pyvisa()
        port = VisaSerialPort("/dev/ttyUSB0")
        with patch.dict(sys.modules, _modules(mock_pyvisa)):
            port.open()
        mock_pyvisa.ResourceManager().open_resource().close.side_effect = RuntimeError("gone")
        port.close()
        assert not port.is_open

    def test_close_without_open(self) -> None:
        VisaSerialPort("/dev/ttyUSB0").close()

    def test_properties(self) -> None:
        port = VisaSerialPort("COM3")
        assert port.serial_interface == "COM3"
        assert port.resource_name == "ASRL3::INSTR"
        assert not port.is_open


class TestOpenFailure:
    def test_pyvisa_not_installed(self) -> None:
        port = VisaSerialPort("/dev/ttyUSB0")
        with patch.dict(sys.modules, {"pyvisa": None}):
            with pytest.raises(TransportError, match="pyvisa library is not installed"):
                port.open()

    def test_device_missing(self) -> None:
        mock_pyvisa = _make_mock_pyvisa()
        mock_pyvisa.ResourceManager().open_resource.side_effect = RuntimeError("No device")
        port = VisaSerialPort("/dev/ttyUSB9")
        with patch.dict(sys.modules, _modules(mock_pyvisa)):
            with pytest.raises(TransportError, match="Failed to open serial port '/dev/ttyUSB9'"):
                port.open()
        assert not port.is_open
        mock_pyvisa.ResourceManager().close.assert_called_once()


class TestWrite:
    def test_write_raw(self) -> None:
        mock_pyvisa = _make_mock_pyvisa()
        port = VisaSerialPort("/dev/ttyUSB0")
        with patch.dict(sys.modules, _modules(mock_pyvisa)):
            port.open()
        port.write(b"SESS00\r")
        mock_pyvisa.ResourceManager().open_resource().write_raw.assert_called_once_with(
            b"SESS00\r"
        )

    def test_write_not_open(self) -> None:
        with pytest.raises(TransportError, match="is not open"):
            VisaSerialPort("/dev/ttyUSB0").write(b"SESS00\r")

    def test_write_failure_wrapped(self) -> None:
        mock_pyvisa = _make_mock_pyvisa()
        port = VisaSerialPort("/dev/ttyUSB0")
        with patch.dict(sys.modules, _modules(mock_pyvisa)):
            port.open()
        mock_pyvisa.ResourceManager().open_resource().write_raw.side_effect = OSError("EIO")
        with pytest.raises(TransportError, match="Failed to write") as exc_info:
            port.write(b"SOUT000\r")
        assert isinstance(exc_info.value.__cause__, OSError)


class TestOpenSerialPort:
    def test_returns_open_port(self) -> None:
        mock_pyvisa = _make_mock_pyvisa()
        with patch.dict(sys.modules, _modules(mock_pyvisa)):
            port = open_serial_port("/dev/ttyUSB0")
        assert port.is_open
        assert port.resource_name == "ASRL/dev/ttyUSB0::INSTR"
