"""UHL segments and their canonical string form."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, unquote

from hydra_fragments.schema_management import (
    SINGLETON_KEY,
    TAG_FIELD,
    HydratableRegistry,
    UniqueKeyError,
    encode_value,
)

KeyValue = str | int | float

FAMILY_SEPARATOR = "@"
PROPERTY_SEPARATOR = "!"
KEY_VALUE_SEPARATOR = "@"

_NUMBER = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
_INTEGER = re.compile(r"-?(?:0|[1-9][0-9]*)")
_ESCAPED_TEXT = re.compile(r"[A-Za-z0-9~%-]*")


class UhlError(Exception):
    """Raised for malformed or unrecognized UHLs."""


@dataclass(frozen=True)
class Segment:
    """One hydratable in a UHL path: its tag and the values of its unique keys."""

    tag: str
    unique_keys: Mapping[str, KeyValue] = field(default_factory=dict)
    family: str | None = None

    def __post_init__(self) -> None:
        if not self.tag:
            raise UhlError("Segment tag must not be empty.")
        if not self.family or self.family == self.tag:
            # a family equal to the tag is not rendered, keep equality canonical
            object.__setattr__(self, "family", None)
        object.__setattr__(self, "unique_keys", dict(self.unique_keys))
        for key, value in self.unique_keys.items():
            if not key:
                raise UhlError(f"Segment {self.tag} has an empty key name.")
            check_key_value(value, f"{self.tag}.{key}")

    def __hash__(self) -> int:
        return hash((self.tag, frozenset(self.unique_keys.items()), self.family))


def check_key_value(value: Any, label: str) -> KeyValue:
    """Return ``value`` if it can be part of an address."""
    if isinstance(value, bool) or not isinstance(value, str | int | float):
        raise UniqueKeyError(
            f"Unique key {label} must be a string or number, got {type(value).__name__}."
        )
    if isinstance(value, float) and not math.isfinite(value):
        raise UniqueKeyError(f"Unique key {label} must be a finite number.")
    return value


def segment_for(registry: HydratableRegistry, value: Mapping[str, Any]) -> Segment:
    """Build the segment of a hydrated or dehydrated value of a registered tag.

    Key values are taken in their encoded form, so a transformed field (a
    date, say) can serve as a unique key. A hydratable without unique keys is
    addressed by its content hash.
    """
    tag = value[TAG_FIELD]
    entry = registry.get(tag)
    if entry is None:
        raise UhlError(f"Tag {tag} is not a registered hydratable.")
    unique_keys: dict[str, KeyValue] = {}
    if entry.singleton:
        unique_keys[SINGLETON_KEY] = registry.singleton_hash(value)
        return Segment(tag=tag, unique_keys=unique_keys, family=entry.family)

    for key in entry.unique_keys:
        if key not in value:
            raise UniqueKeyError(f"{entry.tag} value is missing unique key {key}.")
        encoded = encode_value(entry.key_schema(key), value[key])
        unique_keys[key] = check_key_value(encoded, f"{entry.tag}.{key}")
    return Segment(tag=tag, unique_keys=unique_keys, family=entry.family)


def encode_segment(segment: Segment) -> str:
    """Render ``{family@}TAG{!key@value}*`` with keys in declared order."""
    text = _escape(segment.tag)
    if segment.family and segment.family != segment.tag:
        text = f"{_escape(segment.family)}{FAMILY_SEPARATOR}{text}"
    for key, value in segment.unique_keys.items():
        text += f"{PROPERTY_SEPARATOR}{_escape(key)}{KEY_VALUE_SEPARATOR}{_encode_key_value(value)}"
    return text


def decode_segment(text: str) -> Segment:
    """Parse the output of :func:`encode_segment`."""
    identifier, *properties = text.split(PROPERTY_SEPARATOR)
    names = identifier.split(FAMILY_SEPARATOR)
    if len(names) > 2 or not all(names):
        raise UhlError(f"Invalid segment identifier: {identifier!r}")
    tag = _unescape(names[-1])
    family = _unescape(names[0]) if len(names) == 2 else None

    unique_keys: dict[str, KeyValue] = {}
    for part in properties:
        key, separator, raw_value = part.partition(KEY_VALUE_SEPARATOR)
        if not separator or not key or KEY_VALUE_SEPARATOR in raw_value:
            raise UhlError(f"Invalid segment property: {part!r}")
        name = _unescape(key)
        if name in unique_keys:
            raise UhlError(f"Duplicate segment property: {name!r}")
        unique_keys[name] = _decode_key_value(raw_value)
    return Segment(tag=tag, unique_keys=unique_keys, family=family)


def _encode_key_value(value: KeyValue) -> str:
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if _NUMBER.fullmatch(value):
        # numeric-looking strings must not read back as numbers
        return f"%{ord(value[0]):02X}{_escape(value[1:])}"
    return _escape(value)


def _decode_key_value(text: str) -> KeyValue:
    if _INTEGER.fullmatch(text):
        return int(text)
    if _NUMBER.fullmatch(text):
        return float(text)
    return _unescape(text)


def _escape(text: str) -> str:
    return quote(text, safe="").replace("_", "%5F").replace(".", "%2E")


def _unescape(text: str) -> str:
    if not _ESCAPED_TEXT.fullmatch(text):
        raise UhlError(f"Invalid UHL component: {text!r}")
    try:
        return unquote(text, errors="strict")
    except UnicodeDecodeError as exc:
        raise UhlError(f"Invalid UHL component: {text!r}") from exc
