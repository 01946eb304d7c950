"""
Persistence capability behind a transmitter.

The broadcaster algorithm is the same for every transmitter; what differs is
where the configuration lives outside the process. A Store supplies that
difference: the initial configuration, a subscription to changes made by
other code, and a write that only happens when the stored text would change.
"""

from typing import Callable
from typing import Optional
from typing import Protocol

from transmitter.config import Config
from transmitter import widget


EXTERNAL_CHANGE_CALLBACK = Callable[[Config], None]
"""Receives the explicit configuration re-derived from the backing store."""


class Store(Protocol):
    @property
    def pinned(self) -> Optional[str]:
        """
        Serialized text the store is locked to, or None while unlocked.
        A pinned store freezes the explicit configuration.
        """

    @property
    def mirrors_writes(self) -> bool:
        """
        True if every write comes back as a change notification. Such stores
        fan out from the notification instead of from update().
        """

    def load(self) -> Config:
        """The explicit configuration found in the store at construction."""

    def attach(self, on_change: EXTERNAL_CHANGE_CALLBACK) -> widget.UNSUBSCRIBE:
        """Subscribe to out-of-band changes. Returns a detach handle."""

    def read(self) -> Optional[str]:
        """The text currently held by the store."""

    def write_if_changed(self, text: str) -> bool:
        """Store text unless it equals read(). Returns True if written."""


class MemoryStore(object):
    """No backing store; the transmitter lives entirely in-process."""

    pinned = None
    mirrors_writes = False

    @staticmethod
    def load() -> Config:
        return {}

    @staticmethod
    def attach(on_change: EXTERNAL_CHANGE_CALLBACK) -> widget.UNSUBSCRIBE:
        return widget.noop

    @staticmethod
    def read() -> Optional[str]:
        return None

    @staticmethod
    def write_if_changed(text: str) -> bool:
        return False
