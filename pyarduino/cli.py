"""
Command-line tool: print the firmware of a connected board.

Entry point for the `pyarduino-info` command.
"""

import argparse
import logging
import sys

from .arduino import Arduino
from .config import ArduinoConfig
from .tools import log_exceptions


@log_exceptions
def query(config: ArduinoConfig) -> str:
    with Arduino(config) as board:
        major, minor, name = board.query_firmware()
    return f"{name} (Firmata {major}.{minor})"


def run_info_cli(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Query the Firmata firmware of a connected board",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example:
    pyarduino-info --port /dev/ttyACM0
        """
    )
    parser.add_argument('--port', '-p', default='/dev/ttyACM0',
                        help='Serial port (default: /dev/ttyACM0)')
    parser.add_argument('--baudrate', '-b', type=int, default=57600,
                        help='Baudrate (default: 57600)')
    parser.add_argument('--debug', action='store_true',
                        help='Log every message sent and received')

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING)

    config = ArduinoConfig(port=args.port, baudrate=args.baudrate,
                           debug=args.debug, handshake=False)
    try:
        print(query(config))
    except Exception as e:
        print(f"ERROR: Could not query board on {args.port}: {e}")
        return 1
    return 0


def main() -> None:
    sys.exit(run_info_cli())


if __name__ == '__main__':
    main()
