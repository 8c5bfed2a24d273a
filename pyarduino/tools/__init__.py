from .utilities import log_exceptions, make_debug_printer

__all__ = ["log_exceptions", "make_debug_printer"]
