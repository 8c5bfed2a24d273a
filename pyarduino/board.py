"""
Board state
===========

Cached per-pin mode and value, indexed by internal pin, plus the
wake-up registry used by blocking waits.

Values change in two places only: apply_report(), called by the
transport for every inbound value report, and compute_port_data(), which
records what a digital write is about to put on the wire. Readers get
immutable PinData snapshots.

After every report all registered wait handles are signaled and dropped;
a waiter that still cares registers a fresh handle.
"""

import logging
import threading
from typing import Dict, List, Optional, Set, Tuple

from .codec import encode14
from .commands import MAX_ANALOG_VALUE, PORT_WIDTH
from .config import ArduinoConfig
from .data_types import (
    AnalogMessage,
    AnalogReport,
    DigitalMessage,
    DigitalReport,
    IPin,
    Pin,
    PinData,
    PinKind,
    PinMode,
    PinValue,
    Request,
    Response,
)
from .exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

# Modes whose pins are fed by digital port reports
DIGITAL_INPUT_MODES = (PinMode.INPUT, PinMode.INPUT_PULLUP)

# Modes whose cached boolean goes into a port write
PORT_WRITE_MODES = (PinMode.OUTPUT, PinMode.INPUT, PinMode.INPUT_PULLUP)


class WaitToken:
    """One-shot wake-up handle for a single blocking wait."""

    def __init__(self):
        self._event = threading.Event()

    def signal(self) -> None:
        self._event.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

    @property
    def signaled(self) -> bool:
        return self._event.is_set()


class BoardState:
    """
    Pin table and notification hub for one board.

    Args:
        config: Board capabilities (pin counts, PWM pins, INPUT_PULLUP)
    """

    def __init__(self, config: Optional[ArduinoConfig] = None):
        self.config = config or ArduinoConfig()
        self._pins: Dict[int, PinData] = {}
        self._waiters: Set[WaitToken] = set()
        self._lock = threading.Lock()

    # =========================================================================
    # Pin identity
    # =========================================================================

    def convert_to_internal_pin(self, pin: Pin) -> IPin:
        """
        Map a logical pin to its internal number.

        Raises:
            InvalidArgumentError: If the board has no such pin
        """
        cfg = self.config
        if pin.kind is PinKind.DIGITAL:
            if 0 <= pin.number < cfg.num_digital_pins:
                return IPin(pin.number)
        elif pin.kind is PinKind.ANALOG:
            if 0 <= pin.number < cfg.num_analog_pins:
                return IPin(cfg.num_digital_pins + pin.number)
        elif 0 <= pin.number < cfg.num_pins:
            return IPin(pin.number)
        raise InvalidArgumentError(f"No such pin on this board: {pin}",
                                   [f"Board has {cfg.num_digital_pins} digital and "
                                    f"{cfg.num_analog_pins} analog pins"])

    def is_analog(self, ipin: IPin) -> bool:
        return self.config.num_digital_pins <= ipin.number < self.config.num_pins

    def analog_channel(self, ipin: IPin) -> int:
        return ipin.number - self.config.num_digital_pins

    def supports(self, ipin: IPin, mode: PinMode) -> bool:
        if mode is PinMode.ANALOG:
            return self.is_analog(ipin)
        if mode is PinMode.PWM:
            return ipin.number in self.config.pwm_pins
        if mode is PinMode.INPUT_PULLUP:
            return self.config.enable_input_pullup
        return True

    # =========================================================================
    # Pin state
    # =========================================================================

    def get_pin_data(self, ipin: IPin) -> PinData:
        with self._lock:
            return self._pins.get(ipin.number, PinData())

    def register_pin_mode(self, ipin: IPin, mode: PinMode) -> List[Request]:
        """
        Record a new mode for a pin.

        Returns:
            Follow-up commands to send after SetPinMode (report enables/disables)

        Raises:
            InvalidArgumentError: If the pin does not support the mode
        """
        mode = PinMode(mode)
        if not self.supports(ipin, mode):
            raise InvalidArgumentError(f"Pin {ipin} does not support mode {mode.name}")

        with self._lock:
            old = self._pins.get(ipin.number, PinData())
            port_before = self._port_reporting(ipin.port)
            # A mode change invalidates whatever value we had cached
            value = old.value if old.mode == mode else None
            self._pins[ipin.number] = PinData(mode=mode, value=value)
            port_after = self._port_reporting(ipin.port)

        extras: List[Request] = []
        analog_before = old.mode is PinMode.ANALOG
        analog_after = mode is PinMode.ANALOG
        if analog_before != analog_after:
            extras.append(AnalogReport(self.analog_channel(ipin), analog_after))
        if port_before != port_after:
            extras.append(DigitalReport(ipin.port, port_after))
        logger.debug("Pin %s mode %s -> %s, extras: %s", ipin, old.mode, mode.name, extras)
        return extras

    def _port_reporting(self, port: int) -> bool:
        # Caller holds the lock
        start = port * PORT_WIDTH
        return any(self._pins.get(n, PinData()).mode in DIGITAL_INPUT_MODES
                   for n in range(start, start + PORT_WIDTH))

    def compute_port_data(self, ipin: IPin, value: bool) -> Tuple[int, int]:
        """
        Store a digital value and compute the full port byte for a write.

        Every OUTPUT/INPUT pin of the same port contributes its cached value.

        Returns:
            (lsb, msb) of the port byte
        """
        with self._lock:
            self._store(ipin.number, bool(value))
            port_value = 0
            start = ipin.port * PORT_WIDTH
            for bit, n in enumerate(range(start, start + PORT_WIDTH)):
                data = self._pins.get(n)
                if data is not None and data.mode in PORT_WRITE_MODES and data.value is True:
                    port_value |= 1 << bit
        return encode14(port_value)

    def _store(self, number: int, value: PinValue) -> None:
        # Caller holds the lock
        old = self._pins.get(number, PinData())
        self._pins[number] = PinData(mode=old.mode, value=value)

    def apply_report(self, response: Response) -> None:
        """
        Apply an inbound value report and wake all waiters.

        DigitalMessage updates the INPUT pins of its port; AnalogMessage
        updates the ANALOG pin of its channel. Pins in other modes keep
        their cached value.
        """
        with self._lock:
            if isinstance(response, DigitalMessage):
                start = response.port * PORT_WIDTH
                for bit in range(PORT_WIDTH):
                    data = self._pins.get(start + bit)
                    if data is not None and data.mode in DIGITAL_INPUT_MODES:
                        self._store(start + bit, response.bit(bit))
            elif isinstance(response, AnalogMessage):
                number = self.config.num_digital_pins + response.channel
                data = self._pins.get(number)
                if data is not None and data.mode is PinMode.ANALOG:
                    self._store(number, min(response.value, MAX_ANALOG_VALUE))
            else:
                logger.debug("Ignoring non-report response: %r", response)
                return
            waiters = list(self._waiters)
            self._waiters.clear()

        for handle in waiters:
            handle.signal()

    # =========================================================================
    # Wake-ups
    # =========================================================================

    def digital_wake_up(self, handle: WaitToken) -> None:
        """Register a handle to be signaled on the next value report."""
        with self._lock:
            self._waiters.add(handle)

    def release(self, handle: WaitToken) -> None:
        """Drop a handle that is no longer waited on."""
        with self._lock:
            self._waiters.discard(handle)

    @property
    def pending_waiters(self) -> int:
        with self._lock:
            return len(self._waiters)
