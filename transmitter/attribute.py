"""
Attribute state: configuration mirrored into one attribute of a host element.

The element is looked up once, at construction. If nothing matches, the
transmitter keeps working purely in memory. Otherwise the attribute is the
source of truth: updates are written to it (only when the text changes, so a
write never loops back into another write) and every mutation of it, whether
caused by the transmitter or by other code, is decoded and fanned out.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable
from typing import Iterable
from typing import Optional

from transmitter import codec as codec_
from transmitter import widget
from transmitter.config import Config
from transmitter.store import EXTERNAL_CHANGE_CALLBACK


logger = logging.getLogger(__name__)


_ATTRIBUTE_SELECTOR = re.compile(r"\[([^\]=\s]+)\]")


# -----Change Source-----------------------------------------------------------


@dataclass(frozen=True)
class MutationRecord(object):
    """A change of one attribute on one element."""

    target: "Element"
    attribute_name: str
    old_value: Optional[str]


MUTATION_CALLBACK = Callable[[MutationRecord], None]


@dataclass
class _Observer(object):
    callback: MUTATION_CALLBACK
    attribute_filter: Optional[frozenset[str]]

    def wants(self, name: str) -> bool:
        return self.attribute_filter is None or name in self.attribute_filter


class Element(object):
    """A DOM-like element holding string attributes, with mutation observers."""

    def __init__(
        self,
        tag: str,
        id: Optional[str] = None,
        classes: Iterable[str] = (),
        attributes: Optional[dict[str, str]] = None,
    ) -> None:
        self.tag = tag.lower()
        self.id = id
        self.classes = frozenset(classes)
        self._attributes: dict[str, str] = dict(attributes or {})
        self._observers: list[_Observer] = []

    def __repr__(self) -> str:
        ident = f"#{self.id}" if self.id else ""
        return f"<{self.tag}{ident}>"

    def has_attribute(self, name: str) -> bool:
        return name in self._attributes

    def get_attribute(self, name: str) -> Optional[str]:
        return self._attributes.get(name)

    def set_attribute(self, name: str, value: str) -> None:
        old_value = self._attributes.get(name)
        self._attributes[name] = str(value)
        if old_value != self._attributes[name]:
            self._notify(name, old_value)

    def remove_attribute(self, name: str) -> None:
        if name not in self._attributes:
            return
        old_value = self._attributes.pop(name)
        self._notify(name, old_value)

    def observe(
        self,
        callback: MUTATION_CALLBACK,
        attribute_filter: Optional[Iterable[str]] = None,
    ) -> widget.UNSUBSCRIBE:
        """
        Register a callback for attribute changes on this element.

        Args:
            callback (MUTATION_CALLBACK): Called synchronously after each
                change.
            attribute_filter (Optional[Iterable[str]]): Only report these
                attribute names. None reports every attribute.
        Returns:
            UNSUBSCRIBE: Handle that stops the observation.
        """
        filter_ = None if attribute_filter is None else frozenset(attribute_filter)
        observer = _Observer(callback=callback, attribute_filter=filter_)
        self._observers.append(observer)

        def disconnect() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return disconnect

    def _notify(self, name: str, old_value: Optional[str]) -> None:
        record = MutationRecord(target=self, attribute_name=name, old_value=old_value)
        for observer in list(self._observers):
            if observer.wants(name):
                observer.callback(record)

    def matches(self, selector: str) -> bool:
        """Supports '#id', '.class', '[attribute]' and bare tag names."""
        selector = selector.strip()
        if not selector:
            return False
        if selector.startswith("#"):
            return self.id == selector[1:]
        if selector.startswith("."):
            return selector[1:] in self.classes
        match = _ATTRIBUTE_SELECTOR.fullmatch(selector)
        if match:
            return self.has_attribute(match.group(1))
        return self.tag == selector.lower()


class Document(object):
    """An ordered collection of elements that can be searched by selector."""

    def __init__(self, *elements: Element) -> None:
        self._elements: list[Element] = list(elements)

    def add(self, element: Element) -> Element:
        self._elements.append(element)
        return element

    def query_selector(self, selector: Optional[str]) -> Optional[Element]:
        """First element matching selector in insertion order, or None."""
        if not selector:
            return None
        for element in self._elements:
            if element.matches(selector):
                return element
        return None


# -----Store-------------------------------------------------------------------


class AttributeStore(object):
    """Persists configuration in one attribute of one element."""

    pinned = None

    def __init__(
        self,
        document: Document,
        selector: str,
        attribute: str,
        codec: Optional[codec_.Codec] = None,
    ) -> None:
        self._element = document.query_selector(selector)
        self._attribute = attribute
        self._codec = codec or codec_.QueryCodec()

        if self._element is None:
            logger.warning(
                f"No element matches {selector!r}; "
                f"attribute {attribute!r} will not be persisted"
            )

    @property
    def element(self) -> Optional[Element]:
        return self._element

    @property
    def mirrors_writes(self) -> bool:
        return self._element is not None

    def load(self) -> Config:
        if self._element is None:
            return {}
        value = self._element.get_attribute(self._attribute)
        return self._codec.decode(value) if value else {}

    def attach(self, on_change: EXTERNAL_CHANGE_CALLBACK) -> widget.UNSUBSCRIBE:
        if self._element is None:
            return widget.noop

        def on_mutation(record: MutationRecord) -> None:
            if record.attribute_name != self._attribute:
                return
            on_change(self._codec.decode(self.read()))

        return self._element.observe(on_mutation, attribute_filter=[self._attribute])

    def read(self) -> Optional[str]:
        if self._element is None:
            return None
        return self._element.get_attribute(self._attribute)

    def write_if_changed(self, text: str) -> bool:
        if self._element is None:
            return False

        if self.read() == text:
            logger.debug(f"Attribute {self._attribute!r} unchanged, skipping write")
            return False

        self._element.set_attribute(self._attribute, text)
        return True
