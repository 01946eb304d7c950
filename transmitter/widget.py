"""
Widget protocol and membership records for the transmitter registry.

A widget is anything that can receive a full configuration snapshot through
update() and report its own changes through on_changed(). The transmitter
wraps every joined widget in a Membership so it can be detached again.
"""

from dataclasses import dataclass
from typing import Any
from typing import Callable
from typing import Optional
from typing import Protocol

from transmitter.config import Config


CHANGE_CALLBACK = Callable[[Any], None]
"""
Receives a change a widget wants to push upstream. The change is a Config or
its encoded text.
"""

UNSUBSCRIBE = Callable[[], None]
"""Handle that detaches a listener or a widget when called."""


class Widget(Protocol):
    def update(self, config: Config) -> None:
        """Receive the full merged configuration snapshot."""

    def on_changed(self, callback: CHANGE_CALLBACK) -> Optional[UNSUBSCRIBE]:
        """
        Register a callback the widget invokes when it wants to push a change.
        May return a callable that removes the callback again.
        """


@dataclass(eq=False)
class Membership(object):
    """A widget joined to a transmitter."""

    widget: Widget
    """The joined widget, held strongly for as long as it stays joined."""

    active: bool = True
    """
    Cleared when the widget leaves. Change notifications arriving from an
    inactive membership are dropped.
    """

    release: Optional[UNSUBSCRIBE] = None
    """Whatever the widget's on_changed() returned, if it was callable."""

    def close(self) -> None:
        """Deactivate and hand the change listener back to the widget."""
        if not self.active:
            return

        self.active = False
        if self.release is not None:
            self.release()
            self.release = None


def noop() -> None:
    """Unsubscribe handle for subscriptions that never happened."""
