"""Resolve placeholders back to full values through a lookup hook."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from hydra_fragments.schema_management import (
    TAG_FIELD,
    HydratableRegistry,
    SchemaNode,
    is_dehydrated,
    registry_for,
)

GetHydratable = Callable[[str, dict[str, Any]], Any]
Hydrate = Callable[[Any, GetHydratable], Any]


def hydrate(schema: SchemaNode) -> Hydrate:
    """Return a hydrate function bound to the hydratables of ``schema``.

    The returned function takes ``(value, get_hydratable)``, where
    ``get_hydratable(tag, unique_keys)`` returns the hydrated value or None.
    A placeholder the hook cannot resolve stays in place; partially hydrated
    results are valid.
    """
    registry = registry_for(schema)

    def hydrate_for_schema(value: Any, get_hydratable: GetHydratable) -> Any:
        return hydrate_value(value, registry, get_hydratable)

    return hydrate_for_schema


def hydrate_value(
    value: Any,
    registry: HydratableRegistry,
    get_hydratable: GetHydratable,
) -> Any:
    """Return a copy of ``value`` with every resolvable placeholder expanded."""
    return _hydrate(value, registry, get_hydratable, frozenset())


def placeholder_keys(value: Mapping[str, Any], registry: HydratableRegistry) -> dict[str, Any]:
    """Address keys of a placeholder: its declared unique keys, or the singleton hash.

    Nested objects are dropped even under a declared key name: a malformed
    placeholder can carry another placeholder where a key is expected.
    """
    keys = {}
    for key in registry.unique_keys(value[TAG_FIELD]):
        if key in value and not isinstance(value[key], Mapping | list):
            keys[key] = value[key]
    return keys


def _hydrate(
    value: Any,
    registry: HydratableRegistry,
    get_hydratable: GetHydratable,
    expanding: frozenset[tuple[str, tuple[tuple[str, Any], ...]]],
) -> Any:
    if isinstance(value, list):
        return [_hydrate(item, registry, get_hydratable, expanding) for item in value]
    if not isinstance(value, Mapping):
        return value

    if is_dehydrated(value) and value[TAG_FIELD] in registry:
        tag = value[TAG_FIELD]
        keys = placeholder_keys(value, registry)
        marker = (tag, tuple(keys.items()))
        # a placeholder already being expanded higher up stays a placeholder
        if marker not in expanding:
            found = get_hydratable(tag, keys)
            if found is not None:
                return _hydrate(found, registry, get_hydratable, expanding | {marker})

    return {key: _hydrate(item, registry, get_hydratable, expanding) for key, item in value.items()}
