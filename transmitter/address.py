"""
Address state: configuration mirrored into a navigable location.

Configuration is read from the query parameters and the fragment of the
location (fragment values win) and written back into the fragment. A
"state=<token>" marker in the initial fragment locks the transmitter to a
shared snapshot for its whole lifetime: updates are dropped, serialization
yields only the marker, and any navigation that would drop the marker is
vetoed.
"""

import logging
import re
from dataclasses import dataclass
from dataclasses import field
from typing import Callable
from typing import Optional

from transmitter import codec as codec_
from transmitter import widget
from transmitter.config import Config
from transmitter.store import EXTERNAL_CHANGE_CALLBACK


logger = logging.getLogger(__name__)


LOCK_KEY = "state"
# Anchored to a pair boundary so keys such as "mystate" never lock.
_LOCK_PATTERN = re.compile(r"(?:^|&)state=([^&#+]+)")


# -----Location Parsing--------------------------------------------------------


def get_fragment(href: Optional[str]) -> Optional[str]:
    """Text after the last '#', or None if the location has no fragment."""
    if not href:
        return None
    parts = href.split("#")
    return None if len(parts) < 2 else parts[-1]


def get_query(href: Optional[str]) -> Optional[str]:
    """Text after the first '?' of the part preceding the fragment."""
    if not href:
        return None
    part = href
    parts = href.split("#")
    if len(parts) > 1:
        part = parts[-2]
    parts = part.split("?")
    return None if len(parts) < 2 else parts[1]


def with_fragment(href: str, fragment: str) -> str:
    """Returns href with its fragment replaced. An empty fragment is dropped."""
    base = href.split("#")[0]
    return f"{base}#{fragment}" if fragment else base


def extract_lock_token(fragment: Optional[str]) -> Optional[str]:
    """The token of the first 'state=<token>' pair in the fragment, if any."""
    if not fragment:
        return None
    match = _LOCK_PATTERN.search(fragment)
    return match.group(1) if match else None


def has_lock_token(fragment: Optional[str], token: str) -> bool:
    """True if some 'state=<token>' pair of the fragment carries exactly token."""
    if not fragment:
        return False
    return any(m.group(1) == token for m in _LOCK_PATTERN.finditer(fragment))


def parse_location(href: Optional[str], codec: codec_.Codec) -> Config:
    """Query parameters overlaid by fragment parameters."""
    config: Config = {}
    config.update(codec.decode(get_query(href)))
    config.update(codec.decode(get_fragment(href)))
    return config


# -----Change Source-----------------------------------------------------------


@dataclass
class NavigationEvent(object):
    """A pending or completed change of a Location's href."""

    old_href: str
    new_href: str
    cancelled: bool = field(default=False)

    @property
    def new_fragment(self) -> str:
        return get_fragment(self.new_href) or ""

    def prevent_default(self) -> None:
        """Veto a pending navigation. Has no effect once it has completed."""
        self.cancelled = True


NAVIGATION_LISTENER = Callable[[NavigationEvent], None]


class Location(object):
    """
    An in-process navigable location.

    Guards registered with intercept() see every navigation before it is
    applied and may veto it. Listeners registered with subscribe() are told
    about every navigation that went through.
    """

    def __init__(self, href: str = "about:blank") -> None:
        self._href = href
        self._guards: list[NAVIGATION_LISTENER] = []
        self._listeners: list[NAVIGATION_LISTENER] = []

    def __repr__(self) -> str:
        return f"Location({self._href!r})"

    @property
    def href(self) -> str:
        return self._href

    @property
    def fragment(self) -> str:
        return get_fragment(self._href) or ""

    @property
    def query(self) -> str:
        return get_query(self._href) or ""

    def intercept(self, guard: NAVIGATION_LISTENER) -> widget.UNSUBSCRIBE:
        """Register a guard that may veto pending navigations."""
        self._guards.append(guard)
        return lambda: self._remove(self._guards, guard)

    def subscribe(self, listener: NAVIGATION_LISTENER) -> widget.UNSUBSCRIBE:
        """Register a listener for completed navigations."""
        self._listeners.append(listener)
        return lambda: self._remove(self._listeners, listener)

    @staticmethod
    def _remove(
        listeners: list[NAVIGATION_LISTENER], listener: NAVIGATION_LISTENER
    ) -> None:
        if listener in listeners:
            listeners.remove(listener)

    def navigate(self, href: str) -> bool:
        """
        Move to href.

        Returns:
            bool: False if the location already was at href or a guard vetoed
                the navigation, True otherwise.
        """
        if href == self._href:
            return False

        event = NavigationEvent(old_href=self._href, new_href=href)
        for guard in list(self._guards):
            guard(event)
            if event.cancelled:
                return False

        self._href = href
        for listener in list(self._listeners):
            listener(event)

        return True

    def set_fragment(self, fragment: str) -> bool:
        """Navigate to the current location with a new fragment."""
        return self.navigate(with_fragment(self._href, fragment))


# -----Store-------------------------------------------------------------------


class AddressStore(object):
    """Persists configuration in the fragment of a Location."""

    mirrors_writes = False

    def __init__(
        self, location: Location, codec: Optional[codec_.Codec] = None
    ) -> None:
        self._location = location
        self._codec = codec or codec_.QueryCodec()
        self._token = extract_lock_token(location.fragment)
        self._writing = False

        if self._token:
            logger.debug(f"Address state locked to token {self._token!r}")

    @property
    def token(self) -> Optional[str]:
        """The lock token found at construction, if any."""
        return self._token

    @property
    def pinned(self) -> Optional[str]:
        if not self._token:
            return None
        return f"{LOCK_KEY}={self._token}"

    def load(self) -> Config:
        config = parse_location(self._location.href, self._codec)
        if self._token:
            config[LOCK_KEY] = self._token
        return config

    def attach(self, on_change: EXTERNAL_CHANGE_CALLBACK) -> widget.UNSUBSCRIBE:
        def on_navigated(event: NavigationEvent) -> None:
            self._on_navigated(on_change)

        detach_guard = self._location.intercept(self._guard)
        detach_listener = self._location.subscribe(on_navigated)

        def detach() -> None:
            detach_guard()
            detach_listener()

        return detach

    def read(self) -> Optional[str]:
        return self._location.fragment

    def write_if_changed(self, text: str) -> bool:
        if self._token:
            return False

        if text == self.read():
            logger.debug("Address fragment unchanged, skipping write")
            return False

        self._writing = True
        try:
            return self._location.set_fragment(text)
        finally:
            self._writing = False

    def _guard(self, event: NavigationEvent) -> None:
        if not self._token:
            return

        marker = f"{LOCK_KEY}={self._token}"
        if not has_lock_token(event.new_fragment, self._token):
            logger.info(
                f"Vetoed navigation to {event.new_href!r}: "
                f"it would drop locked {marker!r}"
            )
            event.prevent_default()

    def _on_navigated(self, on_change: EXTERNAL_CHANGE_CALLBACK) -> None:
        if self._writing:
            logger.debug("Ignoring navigation caused by own fragment write")
            return

        # The event only carries hrefs; re-derive from the location itself.
        if extract_lock_token(self._location.fragment) is not None:
            return

        on_change(parse_location(self._location.href, self._codec))
