"""
Transports
==========

A transport carries commands to the board and responses back.

Inbound value reports (digital port snapshots, analog samples) are handed
to ``on_report`` as soon as they arrive, in arrival order. Unprompted
notices (the protocol version banner, string messages) are logged and
dropped. Every other response is queued for recv().

SerialTransport talks to a real board over pyserial and runs a
background thread that reads the port, splits the byte stream into
messages and decodes them.
"""

import logging
import queue
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

import serial

from .codec import decode_response, encode_command, show_byte_list
from .commands import Command, THREE_BYTE_COMMANDS
from .data_types import Request, Response, is_notice, is_report
from .tools import log_exceptions, make_debug_printer

logger = logging.getLogger(__name__)

ReportHandler = Callable[[Response], None]


class Transport(ABC):
    """Send/receive channel to the board."""

    def __init__(self):
        self.on_report: Optional[ReportHandler] = None
        self._responses: "queue.Queue[Response]" = queue.Queue()

    @abstractmethod
    def open(self) -> None:
        """Open the channel."""

    @abstractmethod
    def close(self) -> None:
        """Close the channel."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass

    @abstractmethod
    def send(self, command: Request) -> None:
        """Send one command, whole."""

    def recv(self, timeout: Optional[float] = None) -> Optional[Response]:
        """
        Next queued response (neither a report nor a notice).

        Args:
            timeout: Seconds to wait; None blocks

        Returns:
            Response, or None if nothing arrived in time
        """
        try:
            return self._responses.get(timeout=timeout)
        except queue.Empty:
            return None

    def clear_responses(self) -> None:
        """Drop queued responses, e.g. late answers to abandoned requests."""
        while True:
            try:
                dropped = self._responses.get_nowait()
            except queue.Empty:
                return
            logger.debug("Discarding stale response: %s", dropped)

    def deliver(self, response: Response) -> None:
        """Route one decoded message from the board."""
        if is_report(response):
            if self.on_report is not None:
                self.on_report(response)
        elif is_notice(response):
            logger.info("Board notice: %s", response)
        else:
            self._responses.put(response)

    def __enter__(self) -> 'Transport':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class MessageReader:
    """
    Split an inbound byte stream into complete messages.

    Messages start with a command byte. Digital, analog and protocol
    version messages are three bytes long; sysex runs to END_SYSEX; other
    command bytes stand alone. Data bytes outside a message are dropped.
    """

    def __init__(self):
        self._buffer: List[int] = []

    def feed(self, data: bytes) -> List[List[int]]:
        messages = []
        for b in data:
            if b & 0x80 and b != Command.END_SYSEX:
                if self._buffer:
                    logger.debug("Dropping incomplete message: %s", show_byte_list(self._buffer))
                self._buffer = [b]
            elif self._buffer:
                self._buffer.append(b)
            else:
                logger.debug("Dropping stray byte: %02x", b)
                continue

            if self._complete():
                messages.append(self._buffer)
                self._buffer = []
        return messages

    def _complete(self) -> bool:
        cmd = self._buffer[0]
        if cmd == Command.START_SYSEX:
            return self._buffer[-1] == Command.END_SYSEX
        if cmd in THREE_BYTE_COMMANDS or (cmd & 0xF0) in THREE_BYTE_COMMANDS:
            return len(self._buffer) == 3
        return True


class SerialTransport(Transport):
    """
    Firmata over a serial port.

    Example:
        >>> transport = SerialTransport('/dev/ttyACM0')
        >>> transport.open()
        >>> transport.send(QueryFirmware())
        >>> transport.recv(timeout=2.0)
        Firmware(major=2, minor=5, name='StandardFirmata.ino')
    """

    def __init__(
        self,
        port: str = "/dev/ttyACM0",
        baudrate: int = 57600,
        timeout: float = 0.1,
        debug: bool = False,
    ):
        """
        Args:
            port: Serial port path (e.g., '/dev/ttyACM0', '/dev/ttyUSB0', 'COM3')
            baudrate: Serial baudrate
            timeout: Serial read timeout in seconds
            debug: Log every message sent and received
        """
        super().__init__()
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout

        self._ser: Optional[serial.Serial] = None
        self._read_thread: Optional[threading.Thread] = None
        self._running = False
        self._write_lock = threading.Lock()
        self._reader = MessageReader()
        self._debug = make_debug_printer(debug)

    # =========================================================================
    # Connection Management
    # =========================================================================

    @log_exceptions
    def open(self) -> None:
        """
        Open serial connection and start reading thread.

        Raises:
            serial.SerialException: If connection fails
        """
        if self.is_open:
            return

        self._ser = serial.Serial(
            self.port,
            baudrate=self.baudrate,
            timeout=self.timeout,
        )
        self._running = True
        self._read_thread = threading.Thread(target=self._read_serial, daemon=True)
        self._read_thread.start()
        logger.info("Opened %s at %d baud", self.port, self.baudrate)

    def close(self) -> None:
        """Stop the reading thread and close the port."""
        self._running = False

        if self._read_thread is not None:
            self._read_thread.join(timeout=1.0)
            self._read_thread = None

        if self._ser is not None and self._ser.is_open:
            self._ser.close()
            logger.info("Closed %s", self.port)
        self._ser = None

    @property
    def is_open(self) -> bool:
        return self._ser is not None and self._ser.is_open

    # =========================================================================
    # Sending / Receiving
    # =========================================================================

    def send(self, command: Request) -> None:
        """
        Encode and write one command.

        Raises:
            ConnectionError: If not connected
        """
        if not self.is_open:
            raise ConnectionError(f"Not connected to {self.port}")

        data = encode_command(command)
        self._debug(f"Sending: {command} {show_byte_list(data)}")
        with self._write_lock:
            self._ser.write(data)  # type: ignore

    def _read_serial(self) -> None:
        """Background thread for reading serial data."""
        while self._running:
            try:
                if self._ser and self._ser.in_waiting:
                    data = self._ser.read(self._ser.in_waiting)
                    for message in self._reader.feed(data):
                        self._dispatch(message)
                else:
                    time.sleep(0.001)
            except (serial.SerialException, OSError) as e:
                if self._running:
                    logger.warning("Serial read failed on %s: %s", self.port, e)
                    time.sleep(0.01)

    def _dispatch(self, message: List[int]) -> None:
        response = decode_response(message)
        self._debug(f"Received: {response} {show_byte_list(message)}")
        self.deliver(response)
