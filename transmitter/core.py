"""
# Configuration Transmitter

A transmitter lets several widgets share one logical configuration. When a
widget joins, it receives the current configuration. When a joined widget
reports a change, the transmitter merges it and hands the merged result to
every joined widget, the originator included, in join order.

Where the configuration lives between changes is up to the transmitter's
Store: nowhere (MemoryStore), the fragment of a navigable location
(AddressStore), or an attribute of a host element (AttributeStore). The
algorithm here is the same for all of them.

Default values set with with_defaults() underlay the explicit configuration
in every snapshot but are left out of the serialized form.
"""

import logging
from typing import Any
from typing import Optional

from transmitter import codec as codec_
from transmitter import handlers
from transmitter import store as store_
from transmitter import widget
from transmitter.address import AddressStore
from transmitter.address import Location
from transmitter.attribute import AttributeStore
from transmitter.attribute import Document
from transmitter.config import Config
from transmitter.config import ConfigInput
from transmitter.config import is_none
from transmitter.config import non_defaults
from transmitter.config import overlay


logger = logging.getLogger(__name__)


class Transmitter(object):
    """
    Shares configuration updates between joined widgets.

    To manage widgets use join() and leave(), or call the handle join()
    returns. Push changes with update() or update_if_absent(). Read the merged
    configuration with get() and its persistable text with serialize().
    """

    def __init__(
        self,
        store: Optional[store_.Store] = None,
        codec: Optional[codec_.Codec] = None,
    ) -> None:
        self._store = store if store is not None else store_.MemoryStore()
        self._codec = codec or codec_.QueryCodec()

        self._members: list[widget.Membership] = []
        self._generation = 0
        self._defaults: Optional[Config] = None
        self._config: Config = dict(self._store.load())

        # -----Exception Handlers-----
        self._widget_exception_handler: Optional[
            handlers.WIDGET_EXCEPTION_HANDLER
        ] = handlers.log_and_continue_widget_exception

        self._detach_store = self._store.attach(self._on_external_change)

    # -----Constructors--------------------------------------------------------

    @classmethod
    def in_memory(cls, codec: Optional[codec_.Codec] = None) -> "Transmitter":
        """A transmitter without a backing store."""
        return cls(store_.MemoryStore(), codec)

    @classmethod
    def from_location(
        cls, location: Location, codec: Optional[codec_.Codec] = None
    ) -> "Transmitter":
        """A transmitter reading and writing the fragment of location."""
        codec = codec or codec_.QueryCodec()
        return cls(AddressStore(location, codec), codec)

    @classmethod
    def from_attribute(
        cls,
        document: Document,
        selector: str,
        attribute: str,
        codec: Optional[codec_.Codec] = None,
    ) -> "Transmitter":
        """
        A transmitter reading and writing one attribute of the first element
        in document matching selector.
        """
        codec = codec or codec_.QueryCodec()
        return cls(AttributeStore(document, selector, attribute, codec), codec)

    # -----Properties----------------------------------------------------------

    @property
    def store(self) -> store_.Store:
        return self._store

    @property
    def defaults(self) -> Config:
        return dict(self._defaults or {})

    @property
    def locked(self) -> bool:
        """True if the store pins this transmitter to a shared snapshot."""
        return self._store.pinned is not None

    @property
    def widgets(self) -> list[widget.Widget]:
        """Joined widgets in join order."""
        return [member.widget for member in self._members]

    def set_widget_exception_handler(
        self, handler: Optional[handlers.WIDGET_EXCEPTION_HANDLER]
    ) -> None:
        """
        Set the exception handler for widget errors.
        The handler is called when a widget's update() raises during fan-out.

        Args:
            Optional[handlers.WIDGET_EXCEPTION_HANDLER]:
                Callable with signature (Widget, Exception) -> bool.
                Returns True to stop delivery, False to continue.
                Pass None to re-raise exceptions to the caller.
        """
        self._widget_exception_handler = handler

    # -----Configuration-------------------------------------------------------

    def _coerce(self, input_: ConfigInput) -> Config:
        if not input_:
            return {}
        if isinstance(input_, str):
            return self._codec.decode(input_)
        return dict(input_)

    def get(self) -> Config:
        """Returns a copy of the current configuration including defaults."""
        return overlay(self._defaults, self._config)

    def with_defaults(self, input_: ConfigInput) -> None:
        """
        Set the default configuration of this transmitter. Defaults are passed
        to joined widgets but are not serialized. Set them before any widget
        joins.
        """
        config = self._coerce(input_)
        if not config:
            return
        self._defaults = config

    def update(self, input_: ConfigInput) -> None:
        """
        Merge input into the configuration and update all joined widgets.

        Args:
            input_ (ConfigInput): The change, as a mapping or encoded text.
        Notes:
            -Locked transmitters drop every update.
            -If the store reports its own writes back (attribute state), the
            widgets are updated from that report, and only if the stored text
            actually changed.
        """
        change = self._coerce(input_)
        if not change:
            return

        if self._store.pinned is not None:
            logger.debug(f"Transmitter is locked, dropping update {change!r}")
            return

        if self._store.mirrors_writes:
            self._config = overlay(self._config, change)
            self._store.write_if_changed(self.serialize())
            return

        self._config = overlay(self.get(), change)
        self._store.write_if_changed(self.serialize())
        self._broadcast()

    def update_if_absent(self, input_: ConfigInput) -> None:
        """
        Update only the keys that are not set yet. Fires at most one update,
        and only if at least one key was filled.
        """
        config = self._coerce(input_)
        if not config:
            return

        should_update = False
        current = self.get()
        for key, value in config.items():
            if is_none(value):
                continue
            if is_none(current.get(key)):
                current[key] = value
                should_update = True

        if should_update:
            self.update(current)

    def serialize(self) -> str:
        """
        Returns the text form of the explicit configuration. Values equal to
        their default are left out. A locked transmitter always returns its
        lock marker.
        """
        pinned = self._store.pinned
        if pinned is not None:
            return pinned

        if not self._defaults:
            return self._codec.encode(self._config)

        return self._codec.encode(non_defaults(self._defaults, self._config))

    def _on_external_change(self, config: Config) -> None:
        """Called by the store when other code changed the stored config."""
        self._config = dict(config)
        self._broadcast()

    # -----Widget Management---------------------------------------------------

    def join(self, widget_: Optional[widget.Widget]) -> widget.UNSUBSCRIBE:
        """
        Let widget join this transmitter. It is updated right away with the
        current configuration, and its future changes are forwarded to
        update().

        Returns:
            UNSUBSCRIBE: Handle that makes the widget leave again.
        """
        if widget_ is None:
            return widget.noop

        member = widget.Membership(widget=widget_)
        self._members.append(member)
        self._deliver(member, self.get())

        def forward(change: Any) -> None:
            if member.active:
                self.update(change)

        release = widget_.on_changed(forward)
        if callable(release):
            member.release = release

        # The initial update may already have made the widget leave.
        if not member.active and member.release is not None:
            member.release()
            member.release = None

        return lambda: self._remove(member)

    def leave(self, widget_: Optional[widget.Widget]) -> None:
        """Detach every membership of widget."""
        for member in [m for m in self._members if m.widget is widget_]:
            self._remove(member)

    def _remove(self, member: widget.Membership) -> None:
        if member in self._members:
            self._members.remove(member)
        member.close()

    def close(self) -> None:
        """Detach from the store and drop all widgets."""
        self._detach_store()
        self._detach_store = widget.noop
        for member in list(self._members):
            self._remove(member)

    def _deliver(self, member: widget.Membership, config: Config) -> bool:
        """Hand config to one widget. Returns True if delivery should stop."""
        try:
            member.widget.update(dict(config))
        except Exception as e:
            if self._widget_exception_handler is None:
                raise

            return self._widget_exception_handler(member.widget, e)

        return handlers.CONTINUE

    def _broadcast(self) -> None:
        """
        Hand the current snapshot to every widget in join order. A widget
        pushing a change while it is updated starts a newer fan-out that
        reaches every widget, so this one stops there.
        """
        self._generation += 1
        generation = self._generation

        for member in list(self._members):
            if generation != self._generation:
                break

            if not member.active:
                continue

            if self._deliver(member, self.get()):
                break
