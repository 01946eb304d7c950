"""
Exception handling utilities for the transmitter.

Provides exception handler functions and type definitions for managing errors
raised by a widget's update() while a configuration snapshot is fanned out.
Includes built-in handlers for common patterns: logging and continuing with
the remaining widgets (the default), stopping delivery with logging, silently
continuing, and collecting exceptions for batch processing.
"""

import logging
import sys
from typing import Callable

from transmitter import widget


logger = logging.getLogger(__name__)


WIDGET_EXCEPTION_HANDLER = Callable[[widget.Widget, Exception], bool]
"""
Signature for exception handlers.

Exception handlers receive the failing widget and the exception, then return
True to stop delivery or False to continue with the remaining widgets.
"""

STOP = True
CONTINUE = False


def get_widget_name(widget_: object) -> str:
    """
    Returns a readable name for a widget: the __name__ of callables that have
    one, otherwise the class name.
    """
    if hasattr(widget_, "__name__"):
        return widget_.__name__
    return widget_.__class__.__name__


def stop_and_log_widget_exception(
    widget_: widget.Widget, exception: Exception
) -> bool:
    """Handler that stops delivery and logs the raised exception."""
    logger.error(
        f"Exception in transmitter widget:\n"
        f"  Widget:    {get_widget_name(widget_)}\n"
        f"  Exception: {exception.__class__.__name__}: {exception}",
        exc_info=True,
    )

    return STOP


def log_and_continue_widget_exception(
    widget_: widget.Widget, exception: Exception
) -> bool:
    """Log widget errors but keep delivering to the remaining widgets."""
    logger.warning(
        f"Widget error (continuing): {get_widget_name(widget_)}: {exception}"
    )
    return CONTINUE


def silent_widget_exception(_: widget.Widget, __: Exception) -> bool:
    """Silently ignore all exceptions."""
    return CONTINUE


exceptions_caught = []


def collect_widget_exception(widget_: widget.Widget, exception: Exception) -> bool:
    """
    Collect exceptions for batch processing.
    This appends exceptions caught to transmitter.handlers.exceptions_caught
    which is a list.
    Either manage the list manually or use this function as an example to
    create a more robust exception collector.
    """
    exceptions_caught.append(
        {
            "widget": get_widget_name(widget_),
            "exception": f"{exception.__class__.__name__}: {exception}",
            "exc_info": sys.exc_info(),
        }
    )
    return CONTINUE
