"""
Tests for timing, time-outs and pulse measurement.
"""

import time
from unittest.mock import Mock, patch

import pytest

from pyarduino import InvalidArgumentError, PinModeError
from pyarduino.board import WaitToken
from pyarduino.data_types import DigitalMessage, Pin, PinMode
from pyarduino.timing import (
    CancelToken,
    check_cancelled,
    delay,
    time_action,
    time_out,
    wait_cancellable,
)


class FakeClock:
    """Nanosecond clock that only moves when told to."""

    def __init__(self, start_ns: int = 0):
        self.now_ns = start_ns

    def __call__(self) -> int:
        return self.now_ns

    def advance_us(self, us: int):
        self.now_ns += us * 1000


# =============================================================================
# time_action
# =============================================================================

class TestTimeAction:

    def test_returns_elapsed_and_result(self):
        clock = Mock(side_effect=[1_000_000, 3_500_999])
        assert time_action(lambda: "done", clock) == (2500, "done")

    def test_real_clock(self):
        elapsed, result = time_action(lambda: time.sleep(0.01) or 7)
        assert result == 7
        assert elapsed >= 10_000

    def test_session_method(self, arduino):
        elapsed, result = arduino.time(lambda: 3)
        assert result == 3
        assert elapsed >= 0


# =============================================================================
# time_out
# =============================================================================

@pytest.mark.timeout(10)
class TestTimeOut:

    def test_completes_in_time(self):
        assert time_out(1_000_000, lambda: 42) == 42

    def test_completes_too_late(self):
        assert time_out(10_000, lambda: time.sleep(0.05) or "late") is None

    def test_cancels_blocking_wait(self):
        start = time.monotonic()
        assert time_out(50_000, lambda: wait_cancellable(WaitToken())) is None
        assert time.monotonic() - start < 1.0

    def test_signaled_wait_completes(self):
        handle = WaitToken()
        handle.signal()
        assert time_out(1_000_000, lambda: wait_cancellable(handle) or "woke") == "woke"

    def test_outer_expires_first(self):
        def inner():
            return time_out(5_000_000, lambda: wait_cancellable(WaitToken()))

        assert time_out(30_000, inner) is None

    def test_inner_expires_first(self):
        def inner():
            return time_out(20_000, lambda: wait_cancellable(WaitToken())), "outer"

        assert time_out(5_000_000, inner) == (None, "outer")

    def test_errors_propagate(self):
        def fail():
            raise KeyError("boom")

        with pytest.raises(KeyError):
            time_out(1_000_000, fail)

    def test_negative_budget(self):
        with pytest.raises(InvalidArgumentError):
            time_out(-1, lambda: 1)

    def test_no_token_outside_time_out(self):
        check_cancelled()

    def test_session_method(self, arduino):
        assert arduino.time_out(1_000_000, lambda: "ok") == "ok"


class TestCancelToken:

    def test_callbacks_run_on_cancel(self):
        token = CancelToken()
        callback = Mock()
        token.add_callback(callback)
        token.cancel()
        token.cancel()
        callback.assert_called_once_with()

    def test_late_callback_runs_immediately(self):
        token = CancelToken()
        token.cancel()
        callback = Mock()
        token.add_callback(callback)
        callback.assert_called_once_with()

    def test_removed_callback_not_run(self):
        token = CancelToken()
        callback = Mock()
        token.add_callback(callback)
        token.remove_callback(callback)
        token.cancel()
        callback.assert_not_called()


# =============================================================================
# delay
# =============================================================================

class TestDelay:

    def test_milliseconds(self):
        with patch("pyarduino.timing.time.sleep") as sleep:
            delay(250)
        sleep.assert_called_once_with(0.25)


# =============================================================================
# pulse_in
# =============================================================================

PIN = Pin.digital(2)


@pytest.fixture
def scripted(arduino):
    """Session whose pin reads come from a script; each read takes 100us."""
    arduino.set_pin_mode(PIN, PinMode.INPUT)
    clock = FakeClock()

    def script(levels):
        levels = iter(levels)

        def read(pin):
            clock.advance_us(100)
            return next(levels)

        arduino.digital_read = Mock(side_effect=read)

    return arduino, clock, script


class TestPulseIn:

    def test_measures_high_pulse(self, scripted):
        arduino, clock, script = scripted
        script([False, False, True, True, True, False])
        assert arduino.pulse_in(PIN, True, clock=clock) == 300

    def test_duration_follows_pulse_length(self, scripted):
        arduino, clock, script = scripted
        script([False, True, True, True, True, True, False])
        assert arduino.pulse_in(PIN, True, clock=clock) == 500

    def test_already_at_level(self, scripted):
        arduino, clock, script = scripted
        script([True, True, False])
        assert arduino.pulse_in(PIN, True, clock=clock) == 200

    def test_low_pulse(self, scripted):
        arduino, clock, script = scripted
        script([True, False, False, True])
        assert arduino.pulse_in(PIN, False, clock=clock) == 200

    @pytest.mark.timeout(10)
    def test_time_out_while_waiting_for_start(self, arduino):
        arduino.set_pin_mode(PIN, PinMode.INPUT)
        assert arduino.pulse_in(PIN, True, timeout_us=50_000) is None

    @pytest.mark.timeout(10)
    def test_time_out_while_pulse_lasts(self, arduino, transport):
        arduino.set_pin_mode(PIN, PinMode.INPUT)
        transport.inject(DigitalMessage(0, 0b100))
        assert arduino.pulse_in(PIN, True, timeout_us=50_000) is None

    @pytest.mark.timeout(10)
    def test_completes_within_time_out(self, scripted):
        arduino, clock, script = scripted
        script([True, True, False])
        assert arduino.pulse_in(PIN, True, timeout_us=5_000_000, clock=clock) == 200

    def test_requires_input(self, arduino):
        arduino.set_pin_mode(PIN, PinMode.OUTPUT)
        with pytest.raises(PinModeError):
            arduino.pulse_in(PIN, True)
