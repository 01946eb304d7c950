"""
Unit tests for transmitter exception handling.

Tests verify that errors raised by a widget's update() during fan-out are
routed through the configured exception handler policy (continue, stop,
silent, collecting, or re-raise) and that the default never lets a broken
widget starve the others.
"""

import logging
from typing import Any

import pytest

from transmitter import Transmitter
from transmitter import handlers


class FailingWidget(object):
    """Raises on every non-empty snapshot."""

    def __init__(self, exception: Exception) -> None:
        self.exception = exception

    def update(self, config: dict[str, Any]) -> None:
        if config:
            raise self.exception

    def on_changed(self, callback: Any) -> None:
        pass


def test_default_handler_logs_and_continues(make_widget, caplog) -> None:
    """Test that the default handler keeps delivering to remaining widgets."""
    t = Transmitter()
    t.join(FailingWidget(ValueError("boom")))
    widget = make_widget()
    t.join(widget)

    with caplog.at_level(logging.WARNING, logger="transmitter.handlers"):
        t.update({"a": 1})

    assert widget.last == {"a": 1}
    assert "FailingWidget: boom" in caplog.text


def test_stop_handler_stops_delivery(make_widget, caplog) -> None:
    """Test that the stop handler logs and skips the remaining widgets."""
    t = Transmitter()
    t.set_widget_exception_handler(handlers.stop_and_log_widget_exception)
    t.join(FailingWidget(ValueError("boom")))
    widget = make_widget()
    t.join(widget)

    with caplog.at_level(logging.ERROR, logger="transmitter.handlers"):
        t.update({"a": 1})

    assert widget.received == [{}]
    assert "Exception in transmitter widget" in caplog.text


def test_handler_none_reraises() -> None:
    """Test that without a handler the widget's exception propagates."""
    t = Transmitter()
    t.set_widget_exception_handler(None)
    t.join(FailingWidget(ValueError("Test exception")))

    with pytest.raises(ValueError, match="Test exception"):
        t.update({"a": 1})


def test_silent_handler_continues(make_widget) -> None:
    """Test that the silent handler keeps delivering without logging."""
    t = Transmitter()
    t.set_widget_exception_handler(handlers.silent_widget_exception)
    t.join(FailingWidget(ValueError("boom")))
    widget = make_widget()
    t.join(widget)

    t.update({"a": 1})

    assert widget.last == {"a": 1}


def test_collecting_handler() -> None:
    """Test that the collecting handler records the widget and its exception."""
    handlers.exceptions_caught.clear()
    t = Transmitter()
    t.set_widget_exception_handler(handlers.collect_widget_exception)
    t.join(FailingWidget(ValueError("First error")))
    t.join(FailingWidget(TypeError("Second error")))

    t.update({"a": 1})

    assert len(handlers.exceptions_caught) == 2
    assert "ValueError: First error" in handlers.exceptions_caught[0]["exception"]
    assert "TypeError: Second error" in handlers.exceptions_caught[1]["exception"]
    assert handlers.exceptions_caught[0]["widget"] == "FailingWidget"
    handlers.exceptions_caught.clear()


def test_join_failure_goes_through_handler(make_widget) -> None:
    """Test that a widget failing on its initial snapshot still joins."""
    t = Transmitter()
    t.update({"a": 1})
    failing = FailingWidget(ValueError("boom"))

    t.join(failing)

    assert t.widgets == [failing]


def test_get_widget_name() -> None:
    """Test that widget names come from __name__ or the class name."""
    def widget_function() -> None:
        pass

    assert handlers.get_widget_name(widget_function) == "widget_function"
    assert handlers.get_widget_name(FailingWidget(ValueError())) == "FailingWidget"
