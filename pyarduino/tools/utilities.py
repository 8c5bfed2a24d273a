"""Logging helpers shared across pyarduino."""

from typing import Callable
import functools
import itertools
import logging


def log_exceptions(func: Callable) -> Callable:
    """
    Decorator that logs exceptions with full traceback and re-raises them.

    Example:
    >>> from pyarduino.tools import log_exceptions
    >>>
    >>> class NewTransport:
    ...
    ...     @log_exceptions
    ...     def open(self):
    ...         ...

    What happens:
    - Exception is caught
    - Logged with traceback
    - Re-raised (caller still sees it)
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            # Logger of the module where the function is defined
            logger = logging.getLogger(func.__module__)
            logger.error(
                f"Exception in {func.__name__}: {e}",
                exc_info=True
            )
            raise

    return wrapper


def make_debug_printer(enabled: bool, name: str = "pyarduino") -> Callable[[str], None]:
    """
    Build a debug printer that numbers its messages.

    Messages go to the ``<name>.debug`` logger at DEBUG level as
    ``[n] <name>: message``. A disabled printer does nothing.
    """
    if not enabled:
        return lambda message: None

    logger = logging.getLogger(f"{name}.debug")
    counter = itertools.count(1)

    def printer(message: str) -> None:
        logger.debug("[%d] %s: %s", next(counter), name, message)

    return printer
