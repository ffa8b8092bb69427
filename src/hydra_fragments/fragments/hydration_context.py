"""Everything derived from a root schema that the fragment codecs need."""

from __future__ import annotations

import weakref
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import partial
from typing import Any

from hydra_fragments.schema_management import (
    DehydratedVariantTransformer,
    HydratableRegistry,
    HydratablesPathsTree,
    SchemaNode,
    Struct,
    encode_value,
    registry_for,
    tagged_structs,
    tree_for,
)

Encoder = Callable[[Any], Any]


@dataclass(frozen=True)
class HydrationContext:
    """Schema-derived lookup tables, built once per root schema."""

    schema: SchemaNode
    tree: HydratablesPathsTree
    registry: HydratableRegistry
    schemas: Mapping[str, Struct]
    transformed_schemas: Mapping[str, Struct]
    encoders: Mapping[str, Encoder]


_CONTEXT_CACHE: weakref.WeakKeyDictionary[Any, HydrationContext] = weakref.WeakKeyDictionary()


def create_context(
    schema: SchemaNode,
    *,
    admit_dehydrated: bool = True,
    encoders: Mapping[str, Encoder] | None = None,
) -> HydrationContext:
    """Build the hydration context of a root schema.

    With ``admit_dehydrated`` (the default) every tagged struct gets a
    transformed schema that accepts placeholders wherever a hydratable may
    appear. ``encoders`` override the schema-derived encoder of a tag.
    Contexts built with default arguments are cached per schema object.
    """
    use_cache = admit_dehydrated and encoders is None
    if use_cache and schema in _CONTEXT_CACHE:
        return _CONTEXT_CACHE[schema]

    registry = registry_for(schema)
    schemas = tagged_structs(schema)
    transformed: dict[str, Struct] = {}
    if admit_dehydrated:
        transformer = DehydratedVariantTransformer(registry)
        transformed = {tag: transformer.transform_struct(node) for tag, node in schemas.items()}

    resolved_encoders: dict[str, Encoder] = {
        tag: partial(encode_value, transformed.get(tag, node)) for tag, node in schemas.items()
    }
    resolved_encoders.update(encoders or {})

    context = HydrationContext(
        schema=schema,
        tree=tree_for(schema),
        registry=registry,
        schemas=schemas,
        transformed_schemas=transformed,
        encoders=resolved_encoders,
    )
    if use_cache:
        _CONTEXT_CACHE[schema] = context
    return context
