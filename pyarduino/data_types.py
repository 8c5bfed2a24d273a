"""
Data Types for pyarduino
========================

This module contains the value types used across the library: pins,
pin modes, cached pin state, and the outbound commands and inbound
responses exchanged with the board.

All of them are immutable dataclasses. Commands are created fresh for
every call and consumed once by the transport; responses are created by
the decoder and either answer a pending request or update pin state.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Union

from .commands import PORT_WIDTH


class PinMode(IntEnum):
    """Pin modes, numbered as on the wire."""
    INPUT = 0x00
    OUTPUT = 0x01
    ANALOG = 0x02
    PWM = 0x03
    SERVO = 0x04
    SHIFT = 0x05
    I2C = 0x06
    INPUT_PULLUP = 0x0B     # Reserved, disabled unless the config enables it


class PinKind(Enum):
    """How a logical pin number should be interpreted."""
    DIGITAL = "digital"
    ANALOG = "analog"
    ANY = "any"


@dataclass(frozen=True)
class Pin:
    """
    Logical pin, as the user numbers it on the board silkscreen.

    Example:
        >>> led = Pin.digital(13)
        >>> pot = Pin.analog(0)
    """
    number: int
    kind: PinKind = PinKind.ANY

    @classmethod
    def digital(cls, number: int) -> 'Pin':
        return cls(number, PinKind.DIGITAL)

    @classmethod
    def analog(cls, number: int) -> 'Pin':
        return cls(number, PinKind.ANALOG)

    @classmethod
    def any(cls, number: int) -> 'Pin':
        return cls(number, PinKind.ANY)

    def __str__(self) -> str:
        if self.kind is PinKind.ANALOG:
            return f"A{self.number}"
        if self.kind is PinKind.DIGITAL:
            return f"D{self.number}"
        return f"Pin{self.number}"


@dataclass(frozen=True)
class IPin:
    """Internal (board) pin number. Digital writes go through its port."""
    number: int

    @property
    def port(self) -> int:
        return self.number // PORT_WIDTH

    @property
    def bit(self) -> int:
        return self.number % PORT_WIDTH

    def __str__(self) -> str:
        return f"IPin{self.number}"


# Digital pins cache a bool, analog pins an int in [0, 1023]
PinValue = Union[bool, int]


@dataclass(frozen=True)
class PinData:
    """
    Snapshot of a pin's cached state.

    Attributes:
        mode: Mode set via set_pin_mode (None if never set)
        value: Last reported/written value (None until the board reports)
    """
    mode: Optional[PinMode] = None
    value: Optional[PinValue] = None


# =============================================================================
# Commands (Host -> Device)
# =============================================================================

@dataclass(frozen=True)
class QueryFirmware:
    """Ask the board for its firmware name and version."""


@dataclass(frozen=True)
class SetPinMode:
    pin: IPin
    mode: PinMode


@dataclass(frozen=True)
class DigitalPortWrite:
    """Write a whole port; lsb holds pins 0-6, msb pin 7."""
    port: int
    lsb: int
    msb: int


@dataclass(frozen=True)
class SamplingInterval:
    lsb: int
    msb: int


@dataclass(frozen=True)
class DigitalReport:
    """Enable or disable digital value reports for a port."""
    port: int
    enable: bool


@dataclass(frozen=True)
class AnalogReport:
    """Enable or disable analog value reports for a channel."""
    channel: int
    enable: bool


Request = Union[
    QueryFirmware,
    SetPinMode,
    DigitalPortWrite,
    SamplingInterval,
    DigitalReport,
    AnalogReport,
]


# =============================================================================
# Responses (Device -> Host)
# =============================================================================

@dataclass(frozen=True)
class Firmware:
    major: int
    minor: int
    name: str

    def __str__(self) -> str:
        return f"{self.name} v{self.major}.{self.minor}"


@dataclass(frozen=True)
class ProtocolVersion:
    major: int
    minor: int


@dataclass(frozen=True)
class StringMessage:
    text: str


@dataclass(frozen=True)
class DigitalMessage:
    """Snapshot of a digital port (one bit per pin)."""
    port: int
    value: int

    def bit(self, index: int) -> bool:
        return bool((self.value >> index) & 1)


@dataclass(frozen=True)
class AnalogMessage:
    """Analog sample of a channel."""
    channel: int
    value: int


@dataclass(frozen=True)
class Unimplemented:
    """Anything we do not decode; kept for diagnostics."""
    command: Optional[int]
    payload: tuple = ()


Response = Union[
    Firmware,
    ProtocolVersion,
    StringMessage,
    DigitalMessage,
    AnalogMessage,
    Unimplemented,
]

# Responses that update pin state instead of answering a request
REPORT_TYPES = (DigitalMessage, AnalogMessage)

# Sent unprompted by the firmware (e.g. the version banner at boot)
NOTICE_TYPES = (ProtocolVersion, StringMessage)


def is_report(response: Response) -> bool:
    """Check if a response is an asynchronous value report."""
    return isinstance(response, REPORT_TYPES)


def is_notice(response: Response) -> bool:
    return isinstance(response, NOTICE_TYPES)
