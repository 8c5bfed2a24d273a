"""
Firmata message codec

Maps commands to their wire bytes and wire bytes back to responses.
Also holds the small pure helpers the protocol needs: 14-bit lsb/msb
packing, lo/hi string decoding, and byte formatting for debug output.

Framing (finding message boundaries in the serial stream) is the
transport's job; decode_response() receives one complete message.
"""

from typing import Iterable, List, Sequence, Tuple

from .commands import Command, Sysex, NIBBLE_COMMANDS
from .data_types import (
    AnalogMessage,
    AnalogReport,
    DigitalMessage,
    DigitalPortWrite,
    DigitalReport,
    Firmware,
    ProtocolVersion,
    QueryFirmware,
    Request,
    Response,
    SamplingInterval,
    SetPinMode,
    StringMessage,
    Unimplemented,
)


# =============================================================================
# 14-bit values
# =============================================================================

def encode14(n: int) -> Tuple[int, int]:
    """Split a 14-bit integer into (lsb, msb), 7 bits each."""
    return n & 0x7F, (n >> 7) & 0x7F


def decode14(lsb: int, msb: int) -> int:
    """Join two 7-bit bytes back into a 14-bit integer."""
    return (lsb & 0x7F) | ((msb & 0x7F) << 7)


# =============================================================================
# Strings
# =============================================================================

def get_string(data: Sequence[int]) -> str:
    """
    Decode a lo/hi encoded string constant.

    Each character travels as a lo/hi byte pair, low byte first. An odd
    trailing byte is decoded on its own as a raw character.

    Example:
        >>> get_string([0x53, 0x00, 0x74, 0x00])
        'St'
    """
    chars = []
    for i in range(0, len(data) - 1, 2):
        chars.append(chr(data[i] | data[i + 1] << 8))
    if len(data) % 2:
        chars.append(chr(data[-1]))
    return "".join(chars)


# =============================================================================
# Diagnostics
# =============================================================================

def show_byte(b: int) -> str:
    """Show a byte as its character if it is a visible letter/digit, else as hex."""
    c = chr(b)
    if c.isascii() and c.isalnum():
        return c
    return f"{b:02x}"


def show_byte_list(data: Iterable[int]) -> str:
    return "[" + ", ".join(show_byte(b) for b in data) + "]"


def show_bin(n: int) -> str:
    """Show a non-negative integer in binary, without prefix."""
    return format(n, "b")


def show_hex(n: int) -> str:
    return format(n, "x")


# =============================================================================
# Encoding (Host -> Device)
# =============================================================================

def _nibble(command: int, low: int) -> int:
    return command | (low & 0x0F)


def encode_command(command: Request) -> bytes:
    """
    Encode a command to its wire bytes.

    Raises:
        TypeError: If the object is not a known command
    """
    if isinstance(command, QueryFirmware):
        data = [Command.START_SYSEX, Sysex.REPORT_FIRMWARE, Command.END_SYSEX]
    elif isinstance(command, SetPinMode):
        data = [Command.SET_PIN_MODE, command.pin.number & 0x7F, int(command.mode)]
    elif isinstance(command, DigitalPortWrite):
        data = [_nibble(Command.DIGITAL_MESSAGE, command.port), command.lsb, command.msb]
    elif isinstance(command, SamplingInterval):
        data = [Command.START_SYSEX, Sysex.SAMPLING_INTERVAL,
                command.lsb, command.msb, Command.END_SYSEX]
    elif isinstance(command, DigitalReport):
        data = [_nibble(Command.REPORT_DIGITAL, command.port), int(command.enable)]
    elif isinstance(command, AnalogReport):
        data = [_nibble(Command.REPORT_ANALOG, command.channel), int(command.enable)]
    else:
        raise TypeError(f"Cannot encode {command!r}")
    return bytes(data)


# =============================================================================
# Decoding (Device -> Host)
# =============================================================================

def _decode_sysex(data: List[int]) -> Response:
    # data is everything between START_SYSEX and END_SYSEX
    if not data:
        return Unimplemented(Command.START_SYSEX)
    sub, body = data[0], data[1:]
    if sub == Sysex.REPORT_FIRMWARE and len(body) >= 2:
        return Firmware(body[0], body[1], get_string(body[2:]))
    if sub == Sysex.STRING_DATA:
        return StringMessage(get_string(body))
    return Unimplemented(sub, tuple(body))


def decode_response(message: Sequence[int]) -> Response:
    """
    Decode one complete inbound message.

    Args:
        message: Message bytes, starting with the command byte

    Returns:
        Decoded response; Unimplemented for anything not understood
    """
    data = list(message)
    if not data:
        return Unimplemented(None)

    cmd = data[0]
    if cmd == Command.START_SYSEX:
        body = data[1:]
        if body and body[-1] == Command.END_SYSEX:
            body = body[:-1]
        return _decode_sysex(body)

    if cmd == Command.PROTOCOL_VERSION and len(data) == 3:
        return ProtocolVersion(data[1], data[2])

    base = cmd & 0xF0
    if base in NIBBLE_COMMANDS and len(data) == 3:
        if base == Command.DIGITAL_MESSAGE:
            return DigitalMessage(cmd & 0x0F, decode14(data[1], data[2]))
        if base == Command.ANALOG_MESSAGE:
            return AnalogMessage(cmd & 0x0F, decode14(data[1], data[2]))

    return Unimplemented(cmd, tuple(data[1:]))
