"""
Text codec for configuration mappings.

The transmitter treats the codec as an opaque, reversible collaborator: it
only needs decode(text) -> Config and encode(Config) -> text. Any object with
those two methods satisfies the Codec protocol.

QueryCodec is the default. It writes query-string style text
(key=value&key=value) that is safe inside a URL fragment or an HTML
attribute. Values that would read back as another type are JSON-quoted, so
anything encode() produces decodes to an equivalent mapping.
"""

import json
import logging
import re
from typing import Any
from typing import Optional
from typing import Protocol
from urllib.parse import quote
from urllib.parse import unquote_plus

from transmitter.config import Config


logger = logging.getLogger(__name__)


_NUMBER = re.compile(r"-?\d+(\.\d+)?([eE][+-]?\d+)?")
_LITERALS = {"true", "false", "null"}
_SAFE_KEY_CHARS = ""
_SAFE_VALUE_CHARS = ",:[]"


class Codec(Protocol):
    def decode(self, text: Optional[str]) -> Config: ...

    def encode(self, config: Config) -> str: ...


def _looks_typed(token: str) -> bool:
    """True if a raw token would be read back as something other than str."""
    if not token:
        return False
    return (
        token[0] in '["'
        or token in _LITERALS
        or _NUMBER.fullmatch(token) is not None
    )


def _decode_value(token: str) -> Any:
    if not _looks_typed(token):
        return token

    try:
        value = json.loads(token)
    except ValueError:
        return token

    if isinstance(value, list):
        if any(isinstance(elem, (list, dict)) for elem in value):
            return token
        return value

    if isinstance(value, dict):
        return token

    return value


def _encode_value(value: Any) -> str:
    if isinstance(value, str):
        return json.dumps(value) if _looks_typed(value) else value

    if isinstance(value, (list, tuple)):
        return json.dumps(list(value), separators=(",", ":"))

    return json.dumps(value)


class QueryCodec(object):
    """Query-string style codec: percent-encoded key=value pairs."""

    def decode(self, text: Optional[str]) -> Config:
        """
        Parse text into a configuration mapping.

        Args:
            text (Optional[str]): Encoded configuration. A leading '?' or '#'
                is ignored.
        Returns:
            Config: The parsed mapping, or an empty one for None, empty or
                unparseable input.
        """
        if not text or not isinstance(text, str):
            return {}

        try:
            return self._decode(text)
        except (ValueError, TypeError) as e:
            logger.warning(f"Could not decode configuration {text!r}: {e}")
            return {}

    @staticmethod
    def _decode(text: str) -> Config:
        if text[0] in "?#":
            text = text[1:]

        config: Config = {}
        for pair in text.split("&"):
            if not pair:
                continue

            raw_key, _, raw_value = pair.partition("=")
            key = unquote_plus(raw_key)
            if not key:
                continue

            config[key] = _decode_value(unquote_plus(raw_value))

        return config

    def encode(self, config: Config) -> str:
        """
        Render a configuration mapping as text.

        Keys holding None are omitted, so absent and unset keys render the
        same.
        """
        if not config:
            return ""

        pairs = []
        for key, value in config.items():
            if value is None:
                continue

            pairs.append(
                f"{quote(str(key), safe=_SAFE_KEY_CHARS)}"
                f"={quote(_encode_value(value), safe=_SAFE_VALUE_CHARS)}"
            )

        return "&".join(pairs)


_DEFAULT_CODEC = QueryCodec()

decode = _DEFAULT_CODEC.decode
encode = _DEFAULT_CODEC.encode
