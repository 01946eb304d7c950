"""
# Configuration Transmitter

Shares one logical configuration between several independent widgets and
keeps it persisted in an external medium: nowhere, the fragment of a page
address, or an attribute of a host element.

    >>> import transmitter
    >>> t = transmitter.Transmitter.in_memory()
    >>> t.with_defaults({"units": "kg"})
    >>> t.update("year=2020")
    >>> t.get()
    {'units': 'kg', 'year': 2020}

For a complete breakdown of transmitter functionality, read transmitter.core.
"""

from transmitter import codec
from transmitter import handlers
from transmitter.address import AddressStore
from transmitter.address import Location
from transmitter.address import NavigationEvent
from transmitter.attribute import AttributeStore
from transmitter.attribute import Document
from transmitter.attribute import Element
from transmitter.attribute import MutationRecord
from transmitter.codec import Codec
from transmitter.codec import QueryCodec
from transmitter.config import Config
from transmitter.config import ConfigInput
from transmitter.core import Transmitter
from transmitter.store import MemoryStore
from transmitter.store import Store
from transmitter.widget import Widget


version_major = 0
version_minor = 3
version_patch = 0
__version__ = f"{version_major}.{version_minor}.{version_patch}"

__all__ = [
    "AddressStore",
    "AttributeStore",
    "Codec",
    "Config",
    "ConfigInput",
    "Document",
    "Element",
    "Location",
    "MemoryStore",
    "MutationRecord",
    "NavigationEvent",
    "QueryCodec",
    "Store",
    "Transmitter",
    "Widget",
    "codec",
    "handlers",
]
