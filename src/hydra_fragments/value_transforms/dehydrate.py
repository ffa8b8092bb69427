"""Replace nested hydratables with placeholders."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from hydra_fragments.schema_management import (
    TAG_FIELD,
    HydratableRegistry,
    SchemaNode,
    is_dehydrated,
    is_tagged,
    registry_for,
)

DehydrateTracker = Callable[[Mapping[str, Any]], None]


def dehydrate(schema: SchemaNode) -> Callable[[Any], Any]:
    """Return a dehydrate function bound to the hydratables of ``schema``."""
    registry = registry_for(schema)

    def dehydrate_for_schema(value: Any) -> Any:
        return dehydrate_value(value, registry)

    return dehydrate_for_schema


def dehydrate_value(
    value: Any,
    registry: HydratableRegistry,
    track: DehydrateTracker | None = None,
) -> Any:
    """Dehydrate every registered hydratable in ``value``, including ``value`` itself.

    ``track`` is called with each registered hydratable reached, whether it
    gets replaced or already is a placeholder.
    """
    if isinstance(value, list):
        return [dehydrate_value(item, registry, track) for item in value]
    if isinstance(value, Mapping):
        if is_tagged(value) and value[TAG_FIELD] in registry:
            if track is not None:
                track(value)
            if not is_dehydrated(value):
                return registry.dehydrated_form(value)
        return {key: dehydrate_value(item, registry, track) for key, item in value.items()}
    return value


def dehydrate_nested(
    value: Mapping[str, Any],
    registry: HydratableRegistry,
    track: DehydrateTracker | None = None,
) -> dict[str, Any]:
    """Dehydrate the hydratables inside ``value`` while keeping ``value`` hydrated."""
    return {key: dehydrate_value(item, registry, track) for key, item in value.items()}


def is_hydrated_hydratable(value: Any, registry: HydratableRegistry) -> bool:
    return is_tagged(value) and value[TAG_FIELD] in registry and not is_dehydrated(value)
