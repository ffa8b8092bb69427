"""Schema management exports."""

from .hydratable_registry import (
    HydratableRegistry,
    RegistryEntry,
    UniqueKeyError,
    build_hydratable_registry,
    registry_for,
    tagged_structs,
)
from .paths_tree import (
    ARRAY_MARKER,
    HydratablesPathsTree,
    SegmentTemplate,
    build_hydratables_paths_tree,
    tree_for,
)
from .schema_decoding import (
    DehydratedVariantTransformer,
    admit_dehydrated,
    decode_value,
    dehydrated_variant,
    encode_value,
)
from .schema_models import (
    DEHYDRATED_FIELD,
    SINGLETON_KEY,
    TAG_FIELD,
    ArrayOf,
    Field,
    HydratableConfig,
    Lazy,
    Literal,
    Primitive,
    SchemaDecodeError,
    SchemaDocument,
    SchemaError,
    SchemaNode,
    Struct,
    Transform,
    Union,
    hydratable,
    hydratable_adt,
    is_dehydrated,
    is_tagged,
    optional,
    resolve,
    struct,
    tagged_struct,
)
from .schema_projection import date_transform, datetime_transform, load_schema_document

__all__ = [
    "ARRAY_MARKER",
    "DEHYDRATED_FIELD",
    "SINGLETON_KEY",
    "TAG_FIELD",
    "ArrayOf",
    "DehydratedVariantTransformer",
    "Field",
    "HydratableConfig",
    "HydratableRegistry",
    "HydratablesPathsTree",
    "Lazy",
    "Literal",
    "Primitive",
    "RegistryEntry",
    "SchemaDecodeError",
    "SchemaDocument",
    "SchemaError",
    "SchemaNode",
    "SegmentTemplate",
    "Struct",
    "Transform",
    "Union",
    "UniqueKeyError",
    "admit_dehydrated",
    "build_hydratable_registry",
    "build_hydratables_paths_tree",
    "date_transform",
    "datetime_transform",
    "decode_value",
    "dehydrated_variant",
    "encode_value",
    "hydratable",
    "hydratable_adt",
    "is_dehydrated",
    "is_tagged",
    "load_schema_document",
    "optional",
    "registry_for",
    "resolve",
    "struct",
    "tagged_struct",
    "tagged_structs",
    "tree_for",
]
