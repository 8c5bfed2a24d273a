"""
Arduino Firmata Session
=======================

High-level pin operations for a board running StandardFirmata.

Every pin operation resolves the logical pin, checks the mode it needs
against the cached mode, and then sends commands and/or returns the last
reported value. Reads never block: a pin the board has not reported yet
reads as False / 0. The wait_* calls block until a value report changes
one of the watched pins; wrap them in time_out() to bound them.

Example:
    >>> from pyarduino import Arduino, ArduinoConfig, Pin, PinMode
    >>>
    >>> led, button = Pin.digital(13), Pin.digital(2)
    >>> with Arduino(ArduinoConfig(port='/dev/ttyACM0')) as board:
    ...     board.set_pin_mode(led, PinMode.OUTPUT)
    ...     board.set_pin_mode(button, PinMode.INPUT)
    ...     while True:
    ...         board.digital_write(led, board.wait_for(button))
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from .board import BoardState, WaitToken
from .codec import encode14
from .commands import MIN_SAMPLING_INTERVAL, MAX_SAMPLING_INTERVAL
from .config import ArduinoConfig
from .data_types import (
    DigitalPortWrite,
    Firmware,
    IPin,
    Pin,
    PinData,
    PinMode,
    QueryFirmware,
    Request,
    Response,
    SamplingInterval,
    SetPinMode,
)
from .exceptions import InvalidArgumentError, PinModeError, ProtocolError
from .timing import (
    check_cancelled,
    delay,
    sleep_cancellable,
    time_action,
    time_out,
    wait_cancellable,
)
from .transport import SerialTransport, Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Arduino:
    """
    Firmata session with one board.

    Args:
        config: Session configuration (defaults to ArduinoConfig())
        transport: Channel to the board; a SerialTransport built from
                   the config if not given
        board: Pin state table; a fresh BoardState if not given
    """

    def __init__(
        self,
        config: Optional[ArduinoConfig] = None,
        transport: Optional[Transport] = None,
        board: Optional[BoardState] = None,
    ):
        self.config = config or ArduinoConfig()
        self.board = board or BoardState(self.config)
        self.transport = transport or SerialTransport(
            self.config.port,
            baudrate=self.config.baudrate,
            timeout=self.config.timeout,
            debug=self.config.debug,
        )
        self.transport.on_report = self.board.apply_report
        self.firmware: Optional[Firmware] = None

    def __enter__(self) -> 'Arduino':
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()

    # =========================================================================
    # Connection Management
    # =========================================================================

    def connect(self) -> None:
        """Open the transport and, if configured, check the firmware."""
        self.transport.open()
        if self.config.handshake:
            major, minor, name = self.query_firmware()
            logger.info("Connected to %s (firmware %d.%d)", name, major, minor)

    def disconnect(self) -> None:
        self.transport.close()

    @property
    def is_connected(self) -> bool:
        return self.transport.is_open

    def _send(self, command: Request) -> None:
        self.transport.send(command)

    def _recv(self) -> Response:
        """Block for the next response, noticing time-outs between slices."""
        while True:
            response = self.transport.recv(timeout=self.config.response_poll_interval)
            if response is not None:
                return response
            check_cancelled()

    # =========================================================================
    # Commands
    # =========================================================================

    def query_firmware(self) -> Tuple[int, int, str]:
        """
        Retrieve the firmware version running on the board.

        Returns:
            (major, minor, board/sketch name)

        Raises:
            ProtocolError: If the board answers with anything else
        """
        self.transport.clear_responses()
        self._send(QueryFirmware())
        response = self._recv()
        if not isinstance(response, Firmware):
            raise ProtocolError(
                "query_firmware: Got unexpected response for query firmware call:", response)
        self.firmware = response
        return response.major, response.minor, response.name

    def set_pin_mode(self, pin: Pin, mode: PinMode) -> None:
        """
        Set the mode of a pin.

        Board-specific follow-up commands (e.g. enabling value reports
        for an input) are sent right after SetPinMode.
        """
        ipin = self.board.convert_to_internal_pin(pin)
        extras = self.board.register_pin_mode(ipin, mode)
        self._send(SetPinMode(ipin, PinMode(mode)))
        for command in extras:
            self._send(command)

    def _pin_data(self, pin: Pin, operation: str, required: PinMode) -> Tuple[IPin, PinData]:
        ipin = self.board.convert_to_internal_pin(pin)
        data = self.board.get_pin_data(ipin)
        if data.mode != required:
            raise PinModeError(operation, pin, data.mode, required)
        return ipin, data

    def digital_write(self, pin: Pin, value: bool) -> None:
        """
        Set or clear a digital output pin.

        Nothing is sent if the pin already holds the value.

        Raises:
            PinModeError: If the pin is not in OUTPUT mode
        """
        ipin, data = self._pin_data(pin, "digital_write", PinMode.OUTPUT)
        value = bool(value)
        if data.value is value:
            return
        lsb, msb = self.board.compute_port_data(ipin, value)
        self._send(DigitalPortWrite(ipin.port, lsb, msb))

    def pull_up_resistor(self, pin: Pin, enable: bool) -> None:
        """
        Turn the internal pull-up resistor of an input pin on or off.

        Always sends, even if the cached value already matches.

        Raises:
            PinModeError: If the pin is not in INPUT mode
        """
        ipin, _ = self._pin_data(pin, "pull_up_resistor", PinMode.INPUT)
        lsb, msb = self.board.compute_port_data(ipin, bool(enable))
        self._send(DigitalPortWrite(ipin.port, lsb, msb))

    def digital_read(self, pin: Pin) -> bool:
        """
        Current value of a digital input pin. Does not block.

        Returns False until the board reports a value. See wait_for()
        for a version that waits for a change.

        Raises:
            PinModeError: If the pin is not in INPUT mode
        """
        _, data = self._pin_data(pin, "digital_read", PinMode.INPUT)
        return data.value if isinstance(data.value, bool) else False

    def analog_read(self, pin: Pin) -> int:
        """
        Last sampled value of an analog pin, 0 (0V) to 1023 (5V). Does not block.

        Returns 0 until the board reports a sample.

        Raises:
            PinModeError: If the pin is not in ANALOG mode
        """
        _, data = self._pin_data(pin, "analog_read", PinMode.ANALOG)
        value = data.value
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return 0

    def set_analog_sampling_interval(self, interval_ms: int) -> None:
        """
        Set the board's analog sampling interval.

        The board defaults to 19ms. 10ms is the fastest it supports and
        16383ms (about 16s) the slowest a 14-bit field can carry.

        Raises:
            InvalidArgumentError: If the interval is outside [10, 16383]
        """
        if not MIN_SAMPLING_INTERVAL <= interval_ms <= MAX_SAMPLING_INTERVAL:
            raise InvalidArgumentError(
                f"set_analog_sampling_interval: Allowed interval is "
                f"[{MIN_SAMPLING_INTERVAL}, {MAX_SAMPLING_INTERVAL}] ms, received: {interval_ms}")
        lsb, msb = encode14(interval_ms)
        self._send(SamplingInterval(lsb, msb))

    # =========================================================================
    # Waiting for changes
    # =========================================================================

    def wait_generic(self, pins: Sequence[Pin]) -> List[Tuple[bool, bool]]:
        """
        Wait for any change on the given pins.

        Reports that leave all watched pins unchanged are slept through.

        Returns:
            (old, new) value pairs, one per pin; at least one differs
        """
        if not pins:
            raise InvalidArgumentError("wait_generic: no pins to wait for")
        current = [self.digital_read(p) for p in pins]
        while True:
            # Registered before the re-read so a report landing in between
            # still wakes us.
            handle = WaitToken()
            self.board.digital_wake_up(handle)
            try:
                new = [self.digital_read(p) for p in pins]
                if new != current:
                    return list(zip(current, new))
                wait_cancellable(handle)
            finally:
                self.board.release(handle)

    def wait_for(self, pin: Pin) -> bool:
        """
        Wait for a change on a digital input pin. Returns the new value.

        This blocks; digital_read() returns the current value immediately.
        """
        return self.wait_any([pin])[0]

    def wait_any(self, pins: Sequence[Pin]) -> List[bool]:
        """Wait for a change on any of the pins. Returns all new values."""
        return [new for _, new in self.wait_generic(pins)]

    def wait_any_high(self, pins: Sequence[Pin]) -> List[bool]:
        """
        Wait for any of the pins to go from low to high.

        If all pins are high to start with, first wait for one of them to
        go low. Returns the new values.
        """
        if not pins:
            raise InvalidArgumentError("wait_any_high: no pins to wait for")
        while True:
            if all(self.digital_read(p) for p in pins):
                self.wait_any_low(pins)
            pairs = self.wait_generic(pins)
            if (False, True) in pairs:
                return [new for _, new in pairs]

    def wait_any_low(self, pins: Sequence[Pin]) -> List[bool]:
        """
        Wait for any of the pins to go from high to low.

        If all pins are low to start with, first wait for one of them to
        go high. Returns the new values.
        """
        if not pins:
            raise InvalidArgumentError("wait_any_low: no pins to wait for")
        while True:
            if not any(self.digital_read(p) for p in pins):
                self.wait_any_high(pins)
            pairs = self.wait_generic(pins)
            if (True, False) in pairs:
                return [new for _, new in pairs]

    # =========================================================================
    # Timing
    # =========================================================================

    def delay(self, ms: int) -> None:
        """Delay for the given number of milliseconds."""
        delay(ms)

    def time(self, action: Callable[[], T]) -> Tuple[int, T]:
        """Run an action; returns (elapsed microseconds, result)."""
        return time_action(action)

    def time_out(self, budget_us: int, action: Callable[[], T]) -> Optional[T]:
        """Run an action with a budget in microseconds; None if it ran out."""
        return time_out(budget_us, action)

    def _wait_till(self, pin: Pin, predicate: Callable[[bool], bool]) -> None:
        while not predicate(self.digital_read(pin)):
            sleep_cancellable(self.config.poll_interval)

    def pulse_in(self, pin: Pin, value: bool, timeout_us: Optional[int] = None,
                 clock: Optional[Callable[[], int]] = None) -> Optional[int]:
        """
        Measure how long a pin holds a value.

        * Waits until the pin reads ``value`` (no wait if it already does).
        * Waits until the pin reads ``not value``.
        * Returns the duration of the second wait in microseconds.

        Args:
            pin: Digital input pin
            value: Level of the pulse to measure
            timeout_us: Budget for the whole measurement; None waits forever
            clock: Nanosecond clock (defaults to time.perf_counter_ns)

        Returns:
            Pulse length in microseconds, or None if timeout_us ran out
        """
        value = bool(value)

        def pulse() -> int:
            self._wait_till(pin, lambda v: v == value)
            elapsed, _ = time_action(lambda: self._wait_till(pin, lambda v: v != value), clock)
            return elapsed

        if timeout_us is None:
            return pulse()
        return time_out(timeout_us, pulse)
