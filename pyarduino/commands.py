"""
Firmata Command Protocol
========================

This module defines the byte-level constants of the Firmata protocol
spoken by the board (StandardFirmata sketch).

Protocol Overview
-----------------
Every message starts with a command byte (high bit set). Data bytes
that follow are 7-bit, so 14-bit quantities travel as lsb/msb pairs.
Longer messages are wrapped in a sysex envelope (START_SYSEX ... END_SYSEX).

Output (Host -> Device):
    F0 79 F7                  - Query firmware name and version
    F4 pin mode               - Set pin mode
    9p lsb msb                - Digital port write (p = port)
    F0 7A lsb msb F7          - Analog sampling interval (ms)
    Dp 0/1                    - Enable/disable digital port reporting
    Cc 0/1                    - Enable/disable analog channel reporting

Input (Device -> Host):
    F0 79 major minor name F7 - Firmware report
    9p lsb msb                - Digital port snapshot
    Ec lsb msb                - Analog sample (c = channel)
    F9 major minor            - Protocol version
    F0 71 text F7             - String data
"""


class Command:
    """Command bytes, host to device and device to host."""
    DIGITAL_MESSAGE = 0x90      # 0x90 | port
    ANALOG_MESSAGE = 0xE0       # 0xE0 | channel
    REPORT_ANALOG = 0xC0        # 0xC0 | channel
    REPORT_DIGITAL = 0xD0       # 0xD0 | port
    SET_PIN_MODE = 0xF4
    PROTOCOL_VERSION = 0xF9
    START_SYSEX = 0xF0
    END_SYSEX = 0xF7
    SYSTEM_RESET = 0xFF


class Sysex:
    """Sysex sub-commands."""
    STRING_DATA = 0x71
    REPORT_FIRMWARE = 0x79
    SAMPLING_INTERVAL = 0x7A


# Commands carrying the port/channel in their low nibble
NIBBLE_COMMANDS = (
    Command.DIGITAL_MESSAGE,
    Command.ANALOG_MESSAGE,
    Command.REPORT_ANALOG,
    Command.REPORT_DIGITAL,
)

# Inbound messages with a fixed length of three bytes
THREE_BYTE_COMMANDS = (
    Command.DIGITAL_MESSAGE,
    Command.ANALOG_MESSAGE,
    Command.PROTOCOL_VERSION,
)

# Pins per digital port
PORT_WIDTH = 8

# Analog samples are 10-bit
MAX_ANALOG_VALUE = 1023

# Sampling interval limits (ms); 16383 is the largest 14-bit value
MIN_SAMPLING_INTERVAL = 10
MAX_SAMPLING_INTERVAL = 16383
