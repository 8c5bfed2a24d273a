"""
Tests for the serial transport and its message reader.
"""

import logging
import threading
import time
from unittest.mock import Mock, patch

import pytest

from pyarduino import Arduino, ArduinoConfig
from pyarduino.data_types import (
    AnalogMessage,
    DigitalMessage,
    Firmware,
    Pin,
    PinMode,
    QueryFirmware,
    SetPinMode,
    IPin,
)
from pyarduino.transport import MessageReader, SerialTransport


FIRMWARE_BYTES = bytes([0xF0, 0x79, 2, 5, 0x53, 0x00, 0x46, 0x00, 0xF7])


def eventually(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


# =============================================================================
# MESSAGE READER
# =============================================================================

class TestMessageReader:

    def test_three_byte_messages(self):
        reader = MessageReader()
        assert reader.feed(bytes([0x90, 0x04, 0x00, 0xE1, 0x7F, 0x07])) == [
            [0x90, 0x04, 0x00],
            [0xE1, 0x7F, 0x07],
        ]

    def test_sysex(self):
        reader = MessageReader()
        assert reader.feed(FIRMWARE_BYTES) == [list(FIRMWARE_BYTES)]

    def test_split_across_reads(self):
        reader = MessageReader()
        assert reader.feed(FIRMWARE_BYTES[:4]) == []
        assert reader.feed(FIRMWARE_BYTES[4:] + bytes([0xF9, 2])) == [list(FIRMWARE_BYTES)]
        assert reader.feed(bytes([5])) == [[0xF9, 2, 5]]

    def test_stray_data_bytes_dropped(self):
        reader = MessageReader()
        assert reader.feed(bytes([0x01, 0x02, 0x90, 0x00, 0x00])) == [[0x90, 0x00, 0x00]]

    def test_stray_end_sysex_dropped(self):
        reader = MessageReader()
        assert reader.feed(bytes([0xF7, 0x90, 0x00, 0x00])) == [[0x90, 0x00, 0x00]]

    def test_incomplete_message_replaced(self):
        reader = MessageReader()
        assert reader.feed(bytes([0x90, 0x01, 0xE0, 0x10, 0x00])) == [[0xE0, 0x10, 0x00]]

    def test_single_byte_command(self):
        reader = MessageReader()
        assert reader.feed(bytes([0xFF])) == [[0xFF]]


# =============================================================================
# SERIAL TRANSPORT
# =============================================================================

@pytest.fixture
def serial_transport(mock_serial):
    """Transport opened over the mock serial port."""
    with patch('serial.Serial') as mock_serial_class:
        mock_serial_class.return_value = mock_serial
        transport = SerialTransport('/dev/test', timeout=0.01)
        transport.open()
        yield transport, mock_serial
        transport.close()


@pytest.mark.timeout(10)
class TestSerialTransport:

    def test_open_uses_port_settings(self, mock_serial):
        with patch('serial.Serial') as mock_serial_class:
            mock_serial_class.return_value = mock_serial
            transport = SerialTransport('/dev/test', baudrate=115200, timeout=0.05)
            transport.open()
            try:
                mock_serial_class.assert_called_once_with('/dev/test', baudrate=115200, timeout=0.05)
                assert transport.is_open
            finally:
                transport.close()
        assert not transport.is_open
        assert not mock_serial.is_open

    def test_send_writes_encoded_command(self, serial_transport):
        transport, serial = serial_transport
        transport.send(QueryFirmware())
        transport.send(SetPinMode(IPin(13), PinMode.OUTPUT))
        assert serial.written == [b"\xf0\x79\xf7", b"\xf4\x0d\x01"]

    def test_send_when_closed(self):
        transport = SerialTransport('/dev/test')
        with pytest.raises(ConnectionError):
            transport.send(QueryFirmware())

    def test_recv_response(self, serial_transport):
        transport, serial = serial_transport
        serial.inject_bytes(FIRMWARE_BYTES)
        assert transport.recv(timeout=2.0) == Firmware(2, 5, "SF")

    def test_recv_nothing(self, serial_transport):
        transport, _ = serial_transport
        assert transport.recv(timeout=0.01) is None

    def test_reports_go_to_handler(self, serial_transport):
        transport, serial = serial_transport
        handler = Mock()
        transport.on_report = handler
        serial.inject_bytes(bytes([0x90, 0x04, 0x00, 0xE0, 0x10, 0x00]) + FIRMWARE_BYTES)

        assert eventually(lambda: handler.call_count == 2)
        assert [c.args[0] for c in handler.call_args_list] == [
            DigitalMessage(0, 0x04),
            AnalogMessage(0, 0x10),
        ]
        assert transport.recv(timeout=2.0) == Firmware(2, 5, "SF")

    def test_notices_logged_not_queued(self, serial_transport, caplog):
        transport, serial = serial_transport
        with caplog.at_level(logging.INFO, logger="pyarduino.transport"):
            serial.inject_bytes(bytes([0xF9, 2, 5]) + FIRMWARE_BYTES)
            assert transport.recv(timeout=2.0) == Firmware(2, 5, "SF")
        assert "ProtocolVersion(major=2, minor=5)" in caplog.text
        assert transport.recv(timeout=0.01) is None


# =============================================================================
# END TO END
# =============================================================================

@pytest.mark.timeout(10)
class TestArduinoOverSerial:

    def test_handshake_and_input(self, mock_serial):
        mock_serial.inject_bytes(bytes([0xF9, 2, 5]))
        mock_serial.replies[b"\xf0\x79\xf7"] = FIRMWARE_BYTES
        config = ArduinoConfig(port='/dev/test', timeout=0.01, response_poll_interval=0.01)

        with patch('serial.Serial') as mock_serial_class:
            mock_serial_class.return_value = mock_serial
            with Arduino(config) as arduino:
                assert arduino.firmware == Firmware(2, 5, "SF")

                button = Pin.digital(2)
                arduino.set_pin_mode(button, PinMode.INPUT)
                assert mock_serial.written[-2:] == [b"\xf4\x02\x00", b"\xd0\x01"]

                mock_serial.inject_bytes(bytes([0x90, 0x04, 0x00]))
                assert eventually(lambda: arduino.digital_read(button))

    def test_wait_for_over_serial(self, mock_serial):
        config = ArduinoConfig(port='/dev/test', timeout=0.01, handshake=False)

        with patch('serial.Serial') as mock_serial_class:
            mock_serial_class.return_value = mock_serial
            with Arduino(config) as arduino:
                button = Pin.digital(2)
                arduino.set_pin_mode(button, PinMode.INPUT)

                result = {}
                waiter = threading.Thread(
                    target=lambda: result.update(value=arduino.wait_for(button)), daemon=True)
                waiter.start()
                assert eventually(lambda: arduino.board.pending_waiters == 1)

                mock_serial.inject_bytes(bytes([0x90, 0x04, 0x00]))
                waiter.join(2.0)
                assert result == {"value": True}
