"""Schema management entities."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

TAG_FIELD = "_tag"
DEHYDRATED_FIELD = "_dehydrated"
SINGLETON_KEY = "hash"

PRIMITIVE_KINDS = ("string", "number", "integer", "boolean", "null", "any")


class SchemaError(Exception):
    """Raised for schema parsing or structural failures."""


class SchemaDecodeError(SchemaError):
    """Raised when a value does not conform to a schema."""

    def __init__(self, message: str, path: str = "") -> None:
        self.path = path
        super().__init__(f"{path or '<root>'}: {message}")


# Schema nodes compare and hash by identity: the tree builder and registry
# memoize on the node object, which is what makes cyclic schemas terminate.


@dataclass(frozen=True, eq=False)
class Primitive:
    """JSON primitive type."""

    kind: str

    def __post_init__(self) -> None:
        if self.kind not in PRIMITIVE_KINDS:
            raise SchemaError(f"Unsupported primitive kind: {self.kind}")


@dataclass(frozen=True, eq=False)
class Literal:
    """Exactly one JSON value."""

    value: Any


@dataclass(frozen=True, eq=False)
class Field:
    """One named struct field."""

    name: str
    schema: SchemaNode
    optional: bool = False


@dataclass(frozen=True)
class HydratableConfig:
    """Declares a tagged struct hydratable.

    ``unique_keys`` is ordered; the order is the order keys appear in the
    struct's UHL segment. ``family`` names the ADT the struct belongs to.
    A struct without unique keys is a singleton hydratable: it is addressed
    by a content hash stored under ``SINGLETON_KEY``.
    """

    unique_keys: tuple[str, ...] = ()
    family: str | None = None


@dataclass(frozen=True, eq=False)
class Struct:
    """Record with named fields, optionally tagged and hydratable."""

    fields: tuple[Field, ...]
    tag: str | None = None
    hydratable: HydratableConfig | None = None
    name: str | None = None

    def field_named(self, name: str) -> Field | None:
        for candidate in self.fields:
            if candidate.name == name:
                return candidate
        return None


@dataclass(frozen=True, eq=False)
class ArrayOf:
    """Homogeneous list."""

    item: SchemaNode


@dataclass(frozen=True, eq=False)
class Union:
    """Value matching any member."""

    members: tuple[SchemaNode, ...]
    name: str | None = None


@dataclass(frozen=True, eq=False)
class Lazy:
    """Deferred schema reference. Cycles in a schema must pass through one."""

    resolve_target: Callable[[], SchemaNode]
    name: str | None = None


@dataclass(frozen=True, eq=False)
class Transform:
    """Leaf conversion between an encoded JSON form and a decoded Python value."""

    encoded: SchemaNode
    decode: Callable[[Any], Any]
    encode: Callable[[Any], Any]
    name: str = "transform"
    decoded_types: tuple[type, ...] = field(default=())


SchemaNode = Primitive | Literal | Struct | ArrayOf | Union | Lazy | Transform


@dataclass(frozen=True)
class SchemaDocument:
    """Structured representation of a loaded schema document."""

    root: SchemaNode
    definitions: Mapping[str, SchemaNode]


def tagged_struct(tag: str, fields: Mapping[str, SchemaNode | Field]) -> Struct:
    """Build a struct whose ``_tag`` field is the literal ``tag``."""
    built = [Field(TAG_FIELD, Literal(tag))]
    for name, definition in fields.items():
        if name == TAG_FIELD:
            raise SchemaError(f"Field name {TAG_FIELD} is reserved.")
        built.append(_as_field(name, definition))
    return Struct(fields=tuple(built), tag=tag, name=tag)


def struct(fields: Mapping[str, SchemaNode | Field]) -> Struct:
    """Build an untagged struct."""
    return Struct(fields=tuple(_as_field(name, definition) for name, definition in fields.items()))


def optional(schema: SchemaNode) -> Field:
    """Optional field helper for use with :func:`tagged_struct` and :func:`struct`."""
    return Field("", schema, optional=True)


def hydratable(
    schema: Struct,
    keys: tuple[str, ...] | list[str] = (),
    family: str | None = None,
) -> Struct:
    """Mark a tagged struct hydratable on the given ordered unique keys."""
    if not isinstance(schema, Struct) or schema.tag is None:
        raise SchemaError("Only tagged structs can be hydratable.")
    _check_declared_keys(schema, tuple(keys))
    return replace(
        schema,
        hydratable=HydratableConfig(unique_keys=tuple(keys), family=family or None),
    )


def hydratable_adt(
    family: str,
    *members: Struct,
    keys: Mapping[str, tuple[str, ...] | list[str]] | None = None,
) -> Union:
    """Mark a union of tagged structs as one hydratable family."""
    keys = keys or {}
    marked = []
    for member in members:
        if not isinstance(member, Struct) or member.tag is None:
            raise SchemaError(f"ADT {family} members must be tagged structs.")
        marked.append(hydratable(member, tuple(keys.get(member.tag, ())), family))
    unknown = set(keys) - {member.tag for member in marked}
    if unknown:
        raise SchemaError(f"ADT {family} declares keys for unknown members: {sorted(unknown)}")
    return Union(members=tuple(marked), name=family)


def resolve(node: SchemaNode) -> SchemaNode:
    """Follow ``Lazy`` references until a concrete node is reached."""
    seen: set[int] = set()
    while isinstance(node, Lazy):
        if id(node) in seen:
            raise SchemaError(f"Unresolvable cyclic reference: {node.name or '<lazy>'}")
        seen.add(id(node))
        node = node.resolve_target()
    return node


def resolve_leaf(node: SchemaNode) -> SchemaNode:
    """Like :func:`resolve` but also looks through transforms."""
    node = resolve(node)
    while isinstance(node, Transform):
        node = resolve(node.encoded)
    return node


def is_tagged(value: Any) -> bool:
    """Return True for mappings carrying a string ``_tag``."""
    return isinstance(value, Mapping) and isinstance(value.get(TAG_FIELD), str)


def is_dehydrated(value: Any) -> bool:
    """Return True for placeholder values."""
    return is_tagged(value) and value.get(DEHYDRATED_FIELD) is True


def _as_field(name: str, definition: SchemaNode | Field) -> Field:
    if isinstance(definition, Field):
        return replace(definition, name=name)
    return Field(name, definition)


def _check_declared_keys(schema: Struct, keys: tuple[str, ...]) -> None:
    if len(set(keys)) != len(keys):
        raise SchemaError(f"Duplicate unique keys for {schema.tag}: {list(keys)}")
    if not keys and schema.field_named(SINGLETON_KEY) is not None:
        raise SchemaError(
            f"{schema.tag} has no unique keys, so its field {SINGLETON_KEY} would clash with"
            " the content hash of its placeholder."
        )
    for key in keys:
        if key in (TAG_FIELD, DEHYDRATED_FIELD):
            raise SchemaError(f"{key} cannot be a unique key.")
        declared = schema.field_named(key)
        if declared is None:
            raise SchemaError(f"Unique key {key} is not a field of {schema.tag}.")
