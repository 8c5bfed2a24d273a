"""
pyarduino - Firmata Host Library
================================

A Python library for driving Arduino boards running the StandardFirmata
sketch: pin modes, digital/analog reads and writes, blocking waits for
value changes, and pulse measurement with time-outs.

Example:
    >>> from pyarduino import Arduino, Pin, PinMode
    >>>
    >>> with Arduino() as board:
    ...     board.set_pin_mode(Pin.digital(13), PinMode.OUTPUT)
    ...     board.digital_write(Pin.digital(13), True)
"""

from .arduino import Arduino
from .board import BoardState, WaitToken
from .config import ArduinoConfig
from .data_types import (
    Pin,
    IPin,
    PinKind,
    PinMode,
    PinData,
    QueryFirmware,
    SetPinMode,
    DigitalPortWrite,
    SamplingInterval,
    DigitalReport,
    AnalogReport,
    Firmware,
    ProtocolVersion,
    StringMessage,
    DigitalMessage,
    AnalogMessage,
    Unimplemented,
)
from .exceptions import (
    ArduinoError,
    PinModeError,
    InvalidArgumentError,
    ProtocolError,
)
from .timing import time_action, time_out, delay
from .transport import Transport, SerialTransport

__version__ = "0.1.0"
__all__ = [
    "Arduino",
    "ArduinoConfig",
    "BoardState",
    "WaitToken",
    "Pin",
    "IPin",
    "PinKind",
    "PinMode",
    "PinData",
    "QueryFirmware",
    "SetPinMode",
    "DigitalPortWrite",
    "SamplingInterval",
    "DigitalReport",
    "AnalogReport",
    "Firmware",
    "ProtocolVersion",
    "StringMessage",
    "DigitalMessage",
    "AnalogMessage",
    "Unimplemented",
    "ArduinoError",
    "PinModeError",
    "InvalidArgumentError",
    "ProtocolError",
    "time_action",
    "time_out",
    "delay",
    "Transport",
    "SerialTransport",
]
