"""
Session configuration.

Example:
    >>> from pyarduino import Arduino, ArduinoConfig
    >>>
    >>> config = ArduinoConfig(port="/dev/ttyUSB0", debug=True)
    >>> with Arduino(config) as board:
    ...     print(board.query_firmware())
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass
class ArduinoConfig:
    """
    Configuration for an Arduino session.

    Attributes
    ----------
    port : str
        Serial port the board is attached to
    baudrate : int
        Serial baudrate (StandardFirmata uses 57600)
    timeout : float
        Serial read timeout in seconds
    debug : bool
        Log every command and response, with sequence numbers
    handshake : bool
        Query the firmware on connect
    num_digital_pins : int
        Digital pins on the board; analog pin n is internal pin
        num_digital_pins + n
    num_analog_pins : int
        Analog input channels on the board
    pwm_pins : tuple of int
        Digital pins capable of PWM
    enable_input_pullup : bool
        Allow the (reserved) INPUT_PULLUP pin mode
    poll_interval : float
        Sleep between reads while pulse_in busy-polls a pin (seconds)
    response_poll_interval : float
        Slice used while blocking on a response, so time-outs are noticed
    """
    port: str = "/dev/ttyACM0"
    baudrate: int = 57600
    timeout: float = 0.1
    debug: bool = False
    handshake: bool = True
    num_digital_pins: int = 14
    num_analog_pins: int = 6
    pwm_pins: Tuple[int, ...] = (3, 5, 6, 9, 10, 11)
    enable_input_pullup: bool = False
    poll_interval: float = 0.0
    response_poll_interval: float = 0.05

    @property
    def num_pins(self) -> int:
        return self.num_digital_pins + self.num_analog_pins
