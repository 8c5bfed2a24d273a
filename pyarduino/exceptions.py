"""
Exceptions raised by pyarduino.

All of them are fatal for the session: a pin used in the wrong mode or a
board answering out of protocol means our view of the hardware can no
longer be trusted. Time-outs are not errors; they show up as ``None``.
"""

from typing import Iterable, Optional


class ArduinoError(RuntimeError):
    """
    Base class for all library errors.

    The message is a headline followed by indented detail lines.
    """

    def __init__(self, message: str, details: Iterable[str] = ()):
        self.message = message
        self.details = list(details)
        super().__init__("\n".join([message] + ["    " + d for d in self.details]))


class PinModeError(ArduinoError):
    """Operation requires a pin mode other than the one currently set."""

    def __init__(self, operation: str, pin, current, required):
        self.operation = operation
        self.pin = pin
        self.current = current
        self.required = required
        super().__init__(
            f"Invalid {operation} call on pin {pin}",
            [
                f"The current mode for this pin is: {_mode_name(current)}",
                f"For {operation}, it must be set to: {_mode_name(required)}",
                "via a proper call to set_pin_mode",
            ],
        )


class InvalidArgumentError(ArduinoError, ValueError):
    """Argument outside of what the protocol or the board supports."""


class ProtocolError(ArduinoError):
    """Board sent something other than what the exchange expects."""

    def __init__(self, message: str, response: Optional[object] = None):
        self.response = response
        super().__init__(message, [repr(response)] if response is not None else [])


def _mode_name(mode) -> str:
    return "unset" if mode is None else getattr(mode, "name", str(mode))
