"""Schema-based decoding and encoding of JSON-shaped values."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from .schema_models import (
    DEHYDRATED_FIELD,
    SINGLETON_KEY,
    TAG_FIELD,
    ArrayOf,
    Field,
    Lazy,
    Literal,
    Primitive,
    SchemaDecodeError,
    SchemaNode,
    Struct,
    Transform,
    Union,
    is_dehydrated,
    is_tagged,
    resolve,
)

if TYPE_CHECKING:
    from .hydratable_registry import HydratableRegistry


def decode_value(schema: SchemaNode, raw: Any, *, path: str = "") -> Any:
    """Validate raw JSON data against ``schema`` and apply transform decoders.

    Structs are strict: unknown keys are rejected, so a placeholder never
    decodes as its hydrated struct.

    Raises:
      SchemaDecodeError: If ``raw`` does not conform, naming the failing path.
    """
    node = resolve(schema)
    if isinstance(node, Primitive):
        if not _primitive_matches(node.kind, raw):
            raise SchemaDecodeError(f"expected {node.kind}, got {_describe(raw)}", path)
        return raw
    if isinstance(node, Literal):
        if not _literal_matches(node.value, raw):
            raise SchemaDecodeError(f"expected {node.value!r}, got {_describe(raw)}", path)
        return raw
    if isinstance(node, Transform):
        encoded = decode_value(node.encoded, raw, path=path)
        try:
            return node.decode(encoded)
        except (TypeError, ValueError) as exc:
            raise SchemaDecodeError(f"cannot decode {node.name}: {exc}", path) from exc
    if isinstance(node, ArrayOf):
        if not isinstance(raw, list):
            raise SchemaDecodeError(f"expected array, got {_describe(raw)}", path)
        return [
            decode_value(node.item, item, path=f"{path}[{index}]") for index, item in enumerate(raw)
        ]
    if isinstance(node, Struct):
        return _decode_struct(node, raw, path)
    if isinstance(node, Union):
        return _decode_union(node, raw, path)
    raise SchemaDecodeError(f"unsupported schema node {type(node).__name__}", path)


def encode_value(schema: SchemaNode, value: Any) -> Any:
    """Apply transform encoders so that ``value`` becomes JSON-serializable.

    Encoding does not validate; parts of the value the schema does not
    describe are copied through unchanged.
    """
    node = resolve(schema)
    if isinstance(node, Transform):
        if node.decoded_types and isinstance(value, node.decoded_types):
            return node.encode(value)
        return value
    if isinstance(node, ArrayOf) and isinstance(value, list):
        return [encode_value(node.item, item) for item in value]
    if isinstance(node, Struct) and isinstance(value, Mapping):
        encoded = {}
        for key, item in value.items():
            declared = node.field_named(key)
            encoded[key] = encode_value(declared.schema, item) if declared else item
        return encoded
    if isinstance(node, Union):
        member = _member_for(node, value)
        return encode_value(member, value) if member is not None else value
    return value


class DehydratedVariantTransformer:
    """Rewrites schemas so hydratable references also accept placeholders.

    Every reference to a registered hydratable struct becomes a union of the
    (rewritten) struct and its dehydrated variant. Rewritten nodes are
    memoized and ``Lazy`` references stay lazy, so cyclic schemas terminate.
    """

    def __init__(self, registry: HydratableRegistry) -> None:
        self._registry = registry
        self._structs: dict[SchemaNode, Struct] = {}
        self._nodes: dict[SchemaNode, SchemaNode] = {}

    def transform(self, schema: SchemaNode) -> SchemaNode:
        cached = self._nodes.get(schema)
        if cached is not None:
            return cached
        if isinstance(schema, Lazy):
            target = schema
            result: SchemaNode = Lazy(
                lambda: self.transform(resolve(target)), name=schema.name
            )
        elif isinstance(schema, Struct):
            rewritten = self.transform_struct(schema)
            result = rewritten
            if schema.tag is not None and self._registers(schema):
                result = Union(
                    members=(rewritten, dehydrated_variant(schema)),
                    name=f"{schema.tag}OrDehydrated",
                )
        elif isinstance(schema, ArrayOf):
            result = ArrayOf(self.transform(schema.item))
        elif isinstance(schema, Union):
            result = Union(
                members=tuple(self.transform(member) for member in schema.members),
                name=schema.name,
            )
        else:
            result = schema
        self._nodes[schema] = result
        return result

    def transform_struct(self, schema: Struct) -> Struct:
        """Rewrite the fields of a struct, keeping the struct itself hydrated."""
        cached = self._structs.get(schema)
        if cached is None:
            cached = replace(
                schema,
                fields=tuple(
                    struct_field
                    if struct_field.name == TAG_FIELD
                    else replace(struct_field, schema=self.transform(struct_field.schema))
                    for struct_field in schema.fields
                ),
            )
            self._structs[schema] = cached
        return cached

    def _registers(self, schema: Struct) -> bool:
        entry = self._registry.get(schema.tag) if schema.tag else None
        return entry is not None and entry.schema is schema


def admit_dehydrated(schema: SchemaNode, registry: HydratableRegistry) -> SchemaNode:
    """Return ``schema`` rewritten to accept placeholders at hydratable positions."""
    return DehydratedVariantTransformer(registry).transform(schema)


def dehydrated_variant(schema: Struct) -> Struct:
    """Struct describing the placeholder of a hydratable struct."""
    if schema.tag is None or schema.hydratable is None:
        raise SchemaDecodeError(f"{schema.name or 'struct'} is not hydratable")
    fields = [
        Field(TAG_FIELD, Literal(schema.tag)),
        Field(DEHYDRATED_FIELD, Literal(True)),
    ]
    if not schema.hydratable.unique_keys:
        fields.append(Field(SINGLETON_KEY, Primitive("string")))
    for key in schema.hydratable.unique_keys:
        declared = schema.field_named(key)
        if declared is not None:
            fields.append(Field(key, declared.schema))
    return Struct(fields=tuple(fields), tag=schema.tag, name=f"{schema.tag}Dehydrated")


def _decode_struct(node: Struct, raw: Any, path: str) -> dict[str, Any]:
    if not isinstance(raw, Mapping):
        raise SchemaDecodeError(f"expected object, got {_describe(raw)}", path)
    known = {struct_field.name for struct_field in node.fields}
    unknown = [key for key in raw if key not in known]
    if unknown:
        raise SchemaDecodeError(f"unexpected keys {sorted(map(str, unknown))}", path)

    decoded: dict[str, Any] = {}
    for struct_field in node.fields:
        field_path = f"{path}.{struct_field.name}" if path else struct_field.name
        if struct_field.name not in raw:
            if struct_field.optional:
                continue
            raise SchemaDecodeError("missing required field", field_path)
        decoded[struct_field.name] = decode_value(
            struct_field.schema, raw[struct_field.name], path=field_path
        )
    return decoded


def _decode_union(node: Union, raw: Any, path: str) -> Any:
    members = [resolve(member) for member in node.members]
    # tag-matching members first so their error is the one reported
    if is_tagged(raw):
        members.sort(key=lambda member: not _tag_matches(member, raw))
    first_error: SchemaDecodeError | None = None
    for member in members:
        try:
            return decode_value(member, raw, path=path)
        except SchemaDecodeError as exc:
            first_error = first_error or exc
    if first_error is not None and is_tagged(raw) and _tag_matches(members[0], raw):
        raise first_error
    raise SchemaDecodeError(f"{_describe(raw)} matches no member of {node.name or 'union'}", path)


def _member_for(node: Union, value: Any) -> SchemaNode | None:
    for member in node.members:
        resolved = resolve(member)
        if _shallow_matches(resolved, value):
            return resolved
    return None


def _shallow_matches(node: SchemaNode, value: Any) -> bool:
    if isinstance(node, Struct):
        if node.tag is None:
            return isinstance(value, Mapping) and not is_tagged(value)
        placeholder_schema = node.field_named(DEHYDRATED_FIELD) is not None
        return _tag_matches(node, value) and is_dehydrated(value) == placeholder_schema
    if isinstance(node, ArrayOf):
        return isinstance(value, list)
    if isinstance(node, Transform):
        return bool(node.decoded_types) and isinstance(value, node.decoded_types)
    if isinstance(node, Primitive):
        return _primitive_matches(node.kind, value)
    if isinstance(node, Literal):
        return _literal_matches(node.value, value)
    if isinstance(node, Union):
        return _member_for(node, value) is not None
    return False


def _tag_matches(node: SchemaNode, value: Any) -> bool:
    return (
        isinstance(node, Struct)
        and node.tag is not None
        and isinstance(value, Mapping)
        and value.get(TAG_FIELD) == node.tag
    )


def _primitive_matches(kind: str, raw: Any) -> bool:
    if kind == "any":
        return True
    if kind == "null":
        return raw is None
    if kind == "boolean":
        return isinstance(raw, bool)
    if isinstance(raw, bool):
        return False
    if kind == "string":
        return isinstance(raw, str)
    if kind == "integer":
        return isinstance(raw, int)
    return isinstance(raw, int | float)


def _literal_matches(expected: Any, raw: Any) -> bool:
    return isinstance(raw, bool) == isinstance(expected, bool) and raw == expected


def _describe(raw: Any) -> str:
    if raw is None:
        return "null"
    if isinstance(raw, Mapping):
        return f"object tagged {raw[TAG_FIELD]!r}" if is_tagged(raw) else "object"
    return type(raw).__name__
