"""
Timing and time-outs
====================

Wall-clock measurement and cooperative time-outs for session actions.

time_out() runs the action in the calling thread under a CancelToken.
When the budget runs out a timer cancels the token; every blocking point
in the library (wait handles, response polling, pin polling) checks the
active tokens and unwinds with Cancelled. time_out() catches its own
Cancelled and returns None, so by the time it returns the action has
already stopped and released whatever it was waiting on.

Cancellation is only noticed at those blocking points. A command that
has started going out is always sent whole.

Example:
    >>> from pyarduino.timing import time_action, time_out
    >>>
    >>> elapsed_us, value = time_action(lambda: sum(range(1000)))
    >>> time_out(500_000, lambda: board.wait_for(button)) is None  # no press in 0.5s
"""

import threading
import time
from typing import Callable, List, Optional, Tuple, TypeVar

from .exceptions import InvalidArgumentError

T = TypeVar("T")

_local = threading.local()


class Cancelled(BaseException):
    """Raised at a blocking point once an enclosing time_out has expired."""

    def __init__(self, token: 'CancelToken'):
        super().__init__("operation timed out")
        self.token = token


class CancelToken:
    """One-shot cancellation flag with wake-up callbacks."""

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Register a callback run on cancel (immediately if already cancelled)."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)


def _active_tokens() -> List[CancelToken]:
    stack = getattr(_local, "tokens", None)
    if stack is None:
        stack = _local.tokens = []
    return stack


def check_cancelled() -> None:
    """Raise Cancelled if any enclosing time_out in this thread has expired."""
    for token in reversed(_active_tokens()):
        if token.cancelled:
            raise Cancelled(token)


def wait_cancellable(handle) -> None:
    """
    Block on a wait handle until it is signaled or a time_out expires.

    Args:
        handle: Object with wait() and signal() (see board.WaitToken)

    Raises:
        Cancelled: If an enclosing time_out expired while waiting
    """
    tokens = list(_active_tokens())
    for token in tokens:
        token.add_callback(handle.signal)
    try:
        handle.wait()
    finally:
        for token in tokens:
            token.remove_callback(handle.signal)
    check_cancelled()


def sleep_cancellable(seconds: float) -> None:
    """Sleep (or just yield, for 0) and then honour pending cancellation."""
    time.sleep(seconds)
    check_cancelled()


def time_action(action: Callable[[], T],
                clock: Optional[Callable[[], int]] = None) -> Tuple[int, T]:
    """
    Run an action and measure how long it took.

    Args:
        action: Callable with no arguments
        clock: Monotonic clock returning nanoseconds (time.perf_counter_ns)

    Returns:
        (elapsed microseconds, action result)
    """
    clock = clock or time.perf_counter_ns
    start = clock()
    result = action()
    end = clock()
    return (end - start) // 1000, result


def time_out(budget_us: int, action: Callable[[], T]) -> Optional[T]:
    """
    Run an action with a time budget.

    Args:
        budget_us: Budget in microseconds
        action: Callable with no arguments

    Returns:
        The action's result, or None if the budget ran out first
    """
    if budget_us < 0:
        raise InvalidArgumentError(f"time_out: budget must be non-negative, received: {budget_us}")

    token = CancelToken()
    timer = threading.Timer(budget_us / 1_000_000, token.cancel)
    timer.daemon = True
    stack = _active_tokens()
    stack.append(token)
    timer.start()
    try:
        result = action()
    except Cancelled as e:
        if e.token is token:
            return None
        raise
    finally:
        timer.cancel()
        stack.remove(token)

    # Finished, but too late
    if token.cancelled:
        return None
    return result


def delay(ms: int) -> None:
    """Delay the calling thread for the given number of milliseconds."""
    time.sleep(ms / 1000)
