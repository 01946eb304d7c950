"""
Configuration mapping types and the merge/diff helpers shared by every
transmitter.

A Config is a plain dict from string keys to scalars or flat sequences of
scalars. A key holding None (or an empty string or sequence) counts as unset
for merge purposes, the same as a missing key.
"""

from typing import Any
from typing import Optional
from typing import Union


SCALAR = Union[str, int, float, bool]
VALUE = Union[SCALAR, list[SCALAR], tuple[SCALAR, ...], None]

Config = dict[str, VALUE]
"""A configuration mapping. Keys are unique, insertion ordered."""

ConfigInput = Union[Config, str, None]
"""Anything the transmitter accepts as configuration: a mapping or its text."""


def is_none(value: Any) -> bool:
    """True for None, empty strings and empty sequences."""
    if value is None:
        return True
    if isinstance(value, (str, list, tuple)):
        return len(value) == 0
    return False


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _scalars_equal(v1: Any, v2: Any) -> bool:
    # True == 1 in Python; a flag and a number are different settings.
    if isinstance(v1, bool) != isinstance(v2, bool):
        return False
    return v1 == v2


def values_equal(v1: Any, v2: Any) -> bool:
    """
    Compare two configuration values.

    Scalars compare by value. Two sequences are equal when they contain the
    same elements with the same multiplicities, in any order. A sequence is
    never equal to a scalar.
    """
    if v1 is v2:
        return True

    if _is_sequence(v1) and _is_sequence(v2):
        if len(v1) != len(v2):
            return False

        remaining = list(v2)
        for elem in v1:
            for i, candidate in enumerate(remaining):
                if _scalars_equal(elem, candidate):
                    del remaining[i]
                    break
            else:
                return False
        return True

    if _is_sequence(v1) or _is_sequence(v2):
        return False

    return _scalars_equal(v1, v2)


def overlay(base: Optional[Config], top: Optional[Config]) -> Config:
    """Returns a new mapping of base overlaid by top, top winning."""
    merged: Config = dict(base or {})
    merged.update(top or {})
    return merged


def non_defaults(defaults: Config, explicit: Config) -> Config:
    """
    Returns the explicit entries that differ from their default.

    Keys are visited over the union of both mappings, defaults first. Keys
    absent from the explicit mapping are never returned.
    """
    result: Config = {}
    keys = list(defaults.keys()) + [k for k in explicit if k not in defaults]
    for key in keys:
        if key not in explicit:
            continue

        if values_equal(defaults.get(key), explicit[key]):
            continue

        result[key] = explicit[key]

    return result
