"""Registry of the hydratable definitions reachable from a schema."""

from __future__ import annotations

import hashlib
import json
import weakref
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from .schema_decoding import encode_value
from .schema_models import (
    DEHYDRATED_FIELD,
    SINGLETON_KEY,
    TAG_FIELD,
    ArrayOf,
    Primitive,
    SchemaError,
    SchemaNode,
    Struct,
    Transform,
    Union,
    is_dehydrated,
    is_tagged,
    resolve,
)

SINGLETON_HASH_LENGTH = 16


class UniqueKeyError(SchemaError):
    """Raised when a hydratable value lacks a usable unique key."""


@dataclass(frozen=True, eq=False)
class RegistryEntry:
    """Schema and ordered unique keys of one hydratable tag."""

    tag: str
    schema: Struct
    unique_keys: tuple[str, ...]
    family: str | None = None

    @property
    def singleton(self) -> bool:
        return not self.unique_keys

    @property
    def address_keys(self) -> tuple[str, ...]:
        """Keys that appear in the UHL segment and in placeholders."""
        return (SINGLETON_KEY,) if self.singleton else self.unique_keys

    def key_schema(self, key: str) -> SchemaNode:
        if self.singleton and key == SINGLETON_KEY:
            return Primitive("string")
        declared = self.schema.field_named(key)
        if declared is None:  # pragma: no cover - guarded when the struct is marked
            raise UniqueKeyError(f"{self.tag} has no field {key}.")
        return declared.schema


class HydratableRegistry(Mapping[str, RegistryEntry]):
    """Read-only mapping of tag to :class:`RegistryEntry`."""

    def __init__(self, entries: Mapping[str, RegistryEntry] | None = None) -> None:
        self._entries = dict(entries or {})

    def __getitem__(self, tag: str) -> RegistryEntry:
        return self._entries[tag]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"HydratableRegistry({sorted(self._entries)})"

    def unique_keys(self, tag: str) -> tuple[str, ...]:
        """Address keys of ``tag``: its declared unique keys, or the singleton hash."""
        entry = self._entries.get(tag)
        return entry.address_keys if entry else ()

    def dehydrated_form(self, value: Mapping[str, Any]) -> dict[str, Any]:
        """Return the placeholder for a registered hydratable value."""
        tag = value[TAG_FIELD]
        entry = self[tag]
        placeholder: dict[str, Any] = {TAG_FIELD: tag, DEHYDRATED_FIELD: True}
        if entry.singleton:
            placeholder[SINGLETON_KEY] = self.singleton_hash(value)
            return placeholder
        for key in entry.unique_keys:
            if key not in value:
                raise UniqueKeyError(f"{tag} value is missing unique key {key}.")
            placeholder[key] = value[key]
        return placeholder

    def singleton_hash(self, value: Mapping[str, Any]) -> str:
        """Content hash addressing a value of a hydratable without unique keys.

        Nested hydratables count by their placeholder, so the hash is the same
        whether they are hydrated or not. A placeholder returns its own hash.

        Raises:
          UniqueKeyError: If the placeholder has no hash or the value has a
            leaf that cannot be encoded as JSON.
        """
        if is_dehydrated(value):
            recorded = value.get(SINGLETON_KEY)
            if not isinstance(recorded, str) or not recorded:
                raise UniqueKeyError(f"{value[TAG_FIELD]} placeholder is missing {SINGLETON_KEY}.")
            return recorded
        entry = self[value[TAG_FIELD]]
        return self._hash_encoded(encode_value(entry.schema, value))

    def _hash_encoded(self, encoded: Mapping[str, Any]) -> str:
        canonical = self._collapse_nested(encoded, top=True)
        try:
            text = json.dumps(
                canonical,
                sort_keys=True,
                separators=(",", ":"),
                ensure_ascii=False,
                allow_nan=False,
            )
        except (TypeError, ValueError) as exc:
            raise UniqueKeyError(f"Cannot hash {encoded[TAG_FIELD]} value: {exc}") from exc
        return hashlib.sha256(text.encode("utf-8")).hexdigest()[:SINGLETON_HASH_LENGTH]

    def _collapse_nested(self, encoded: Any, *, top: bool = False) -> Any:
        if isinstance(encoded, list):
            return [self._collapse_nested(item) for item in encoded]
        if not isinstance(encoded, Mapping):
            return encoded
        if not top and is_tagged(encoded) and encoded[TAG_FIELD] in self._entries:
            entry = self._entries[encoded[TAG_FIELD]]
            placeholder: dict[str, Any] = {TAG_FIELD: entry.tag, DEHYDRATED_FIELD: True}
            for key in entry.address_keys:
                if entry.singleton and not is_dehydrated(encoded):
                    placeholder[key] = self._hash_encoded(encoded)
                else:
                    placeholder[key] = encode_value(entry.key_schema(key), encoded.get(key))
            return placeholder
        return {key: self._collapse_nested(item) for key, item in encoded.items()}


_REGISTRY_CACHE: weakref.WeakKeyDictionary[Any, HydratableRegistry] = weakref.WeakKeyDictionary()


def registry_for(schema: SchemaNode) -> HydratableRegistry:
    """Return the registry of a schema, building it once per schema object."""
    cached = _REGISTRY_CACHE.get(schema)
    if cached is None:
        cached = build_hydratable_registry(schema)
        _REGISTRY_CACHE[schema] = cached
    return cached


def build_hydratable_registry(schema: SchemaNode) -> HydratableRegistry:
    """Collect every hydratable tagged struct reachable from ``schema``."""
    entries: dict[str, RegistryEntry] = {}
    _collect(schema, entries, set())
    return HydratableRegistry(entries)


def tagged_structs(schema: SchemaNode) -> dict[str, Struct]:
    """Collect every tagged struct reachable from ``schema``, hydratable or not."""
    found: dict[str, Struct] = {}
    visited: set[int] = set()
    pending = [schema]
    while pending:
        node = resolve(pending.pop())
        if id(node) in visited:
            continue
        visited.add(id(node))
        if isinstance(node, Struct):
            if node.tag is not None:
                found.setdefault(node.tag, node)
            pending.extend(reversed([struct_field.schema for struct_field in node.fields]))
        elif isinstance(node, ArrayOf):
            pending.append(node.item)
        elif isinstance(node, Union):
            pending.extend(reversed(node.members))
        elif isinstance(node, Transform):
            pending.append(node.encoded)
    return found


def _collect(node: SchemaNode, entries: dict[str, RegistryEntry], visited: set[int]) -> None:
    node = resolve(node)
    if id(node) in visited:
        return
    visited.add(id(node))

    if isinstance(node, Struct):
        if node.hydratable is not None and node.tag is not None:
            existing = entries.get(node.tag)
            if existing is not None and existing.schema is not node:
                raise SchemaError(f"Tag {node.tag} is declared hydratable more than once.")
            entries[node.tag] = RegistryEntry(
                tag=node.tag,
                schema=node,
                unique_keys=node.hydratable.unique_keys,
                family=node.hydratable.family,
            )
        for struct_field in node.fields:
            _collect(struct_field.schema, entries, visited)
    elif isinstance(node, ArrayOf):
        _collect(node.item, entries, visited)
    elif isinstance(node, Union):
        for member in node.members:
            _collect(member, entries, visited)
    elif isinstance(node, Transform):
        _collect(node.encoded, entries, visited)
