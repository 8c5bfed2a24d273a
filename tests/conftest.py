"""
Shared fixtures and fakes for the pyarduino test suite.
"""

import threading
import time
from io import BytesIO
from typing import Optional

import pytest

from pyarduino import Arduino, ArduinoConfig
from pyarduino.transport import Transport


# =============================================================================
# FAKES
# =============================================================================

class FakeTransport(Transport):
    """In-memory transport: records commands, lets tests inject responses."""

    def __init__(self):
        super().__init__()
        self.sent = []
        self.replies = {}
        self._open = False

    def open(self):
        self._open = True

    def close(self):
        self._open = False

    @property
    def is_open(self):
        return self._open

    def send(self, command):
        if not self._open:
            raise ConnectionError("Not connected")
        self.sent.append(command)
        if command in self.replies:
            self.inject(self.replies[command])

    def inject(self, response):
        """Deliver a response as if the board had sent it."""
        self.deliver(response)

    def clear_sent(self):
        self.sent.clear()


class MockSerial:
    """Mock serial port for testing without hardware."""

    def __init__(self):
        self.written = []
        self.replies = {}
        self.read_buffer = BytesIO()
        self.is_open = True
        self._lock = threading.Lock()

    def write(self, data: bytes) -> int:
        with self._lock:
            self.written.append(bytes(data))
        if bytes(data) in self.replies:
            self.inject_bytes(self.replies[bytes(data)])
        return len(data)

    def read(self, size: int = 1) -> bytes:
        with self._lock:
            data = self.read_buffer.read(size)
            remaining = self.read_buffer.read()
            self.read_buffer = BytesIO(remaining)
            return data

    def inject_bytes(self, data: bytes):
        """Inject bytes to be read."""
        with self._lock:
            remaining = self.read_buffer.read()
            self.read_buffer = BytesIO(remaining + bytes(data))

    @property
    def in_waiting(self) -> int:
        with self._lock:
            return self.read_buffer.getbuffer().nbytes - self.read_buffer.tell()

    def close(self):
        self.is_open = False


class Waiter(threading.Thread):
    """Run a blocking call in the background and keep its outcome."""

    def __init__(self, func, *args):
        super().__init__(daemon=True)
        self.func = func
        self.args = args
        self.result = None
        self.error: Optional[BaseException] = None

    def run(self):
        try:
            self.result = self.func(*self.args)
        except BaseException as e:
            self.error = e


def wait_for_waiters(board, count: int = 1, timeout: float = 2.0):
    """Block until `count` wait handles are registered with the board."""
    deadline = time.monotonic() + timeout
    while board.pending_waiters < count:
        if time.monotonic() > deadline:
            raise AssertionError("waiter never registered")
        time.sleep(0.001)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def config():
    return ArduinoConfig(handshake=False, response_poll_interval=0.01)


@pytest.fixture
def transport():
    t = FakeTransport()
    t.open()
    return t


@pytest.fixture
def arduino(config, transport):
    """Session over a fake transport (already connected)."""
    return Arduino(config, transport=transport)


@pytest.fixture
def mock_serial():
    return MockSerial()
