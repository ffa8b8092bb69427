"""Schema document loading service."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any

import yaml

from .schema_models import (
    PRIMITIVE_KINDS,
    TAG_FIELD,
    ArrayOf,
    Field,
    Lazy,
    Literal,
    Primitive,
    SchemaDocument,
    SchemaError,
    SchemaNode,
    Struct,
    Transform,
    Union,
    hydratable,
)

REF_KEY = "$ref"


def date_transform() -> Transform:
    """ISO-8601 date string <-> ``datetime.date``."""
    return Transform(
        encoded=Primitive("string"),
        decode=_decode_date,
        encode=lambda value: value.isoformat(),
        name="date",
        decoded_types=(date,),
    )


def datetime_transform() -> Transform:
    """ISO-8601 timestamp string <-> ``datetime.datetime``."""
    return Transform(
        encoded=Primitive("string"),
        decode=datetime.fromisoformat,
        encode=lambda value: value.isoformat(),
        name="datetime",
        decoded_types=(datetime,),
    )


_TRANSFORMS = {"date": date_transform, "datetime": datetime_transform}


def load_schema_document(text: str) -> SchemaDocument:
    """Parse YAML or JSON schema text into a structured document."""
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SchemaError(f"Invalid schema document: {exc}") from exc
    if not isinstance(parsed, Mapping):
        raise SchemaError("Schema document root must be a mapping.")
    if "root" not in parsed:
        raise SchemaError("Schema document requires a root entry.")

    raw_definitions = parsed.get("definitions") or {}
    if not isinstance(raw_definitions, Mapping):
        raise SchemaError("Schema definitions must be a mapping.")

    builder = _DocumentBuilder(raw_definitions)
    definitions = {name: builder.definition(name) for name in raw_definitions}
    root = builder.node(parsed["root"], path="root")
    return SchemaDocument(root=root, definitions=definitions)


class _DocumentBuilder:
    """Builds each named definition once so ``$ref`` cycles share nodes."""

    def __init__(self, raw_definitions: Mapping[str, Any]) -> None:
        self._raw = raw_definitions
        self._built: dict[str, SchemaNode] = {}
        self._in_progress: set[str] = set()
        self._refs: dict[str, Lazy] = {}

    def definition(self, name: str) -> SchemaNode:
        if name in self._built:
            return self._built[name]
        if name not in self._raw:
            raise SchemaError(f"Unknown schema definition: {name}")
        if name in self._in_progress:
            raise SchemaError(f"Definition {name} refers to itself without a $ref.")
        self._in_progress.add(name)
        node = self.node(self._raw[name], path=f"definitions.{name}", name=name)
        self._in_progress.discard(name)
        self._built[name] = node
        return node

    def ref(self, name: str, path: str) -> Lazy:
        if name not in self._raw:
            raise SchemaError(f"{path}: unknown $ref {name}")
        if name not in self._refs:
            self._refs[name] = Lazy(lambda: self.definition(name), name=name)
        return self._refs[name]

    def node(self, spec: Any, *, path: str, name: str | None = None) -> SchemaNode:
        if isinstance(spec, str):
            return _shorthand(spec, path)
        if not isinstance(spec, Mapping):
            raise SchemaError(f"{path}: schema entries must be strings or mappings.")
        if REF_KEY in spec:
            return self.ref(str(spec[REF_KEY]), path)

        kind = spec.get("type")
        if kind == "struct":
            return self._struct(spec, path=path, name=name)
        if kind == "array":
            if "items" not in spec:
                raise SchemaError(f"{path}: array requires items.")
            return ArrayOf(self.node(spec["items"], path=f"{path}.items"))
        if kind == "union":
            return self._union(spec, path=path, name=name)
        if kind == "literal":
            if "value" not in spec:
                raise SchemaError(f"{path}: literal requires value.")
            return Literal(spec["value"])
        if isinstance(kind, str):
            return _shorthand(kind, path)
        raise SchemaError(f"{path}: schema entry requires a type or $ref.")

    def _struct(self, spec: Mapping[str, Any], *, path: str, name: str | None) -> Struct:
        raw_fields = spec.get("fields") or {}
        if not isinstance(raw_fields, Mapping):
            raise SchemaError(f"{path}: struct fields must be a mapping.")
        tag = spec.get("tag")
        if tag is not None and not isinstance(tag, str):
            raise SchemaError(f"{path}: struct tag must be a string.")

        fields: list[Field] = []
        if tag is not None:
            fields.append(Field(TAG_FIELD, Literal(tag)))
        for field_name, field_spec in raw_fields.items():
            if field_name == TAG_FIELD:
                raise SchemaError(f"{path}: field name {TAG_FIELD} is reserved.")
            optional = isinstance(field_spec, Mapping) and bool(field_spec.get("optional"))
            if optional:
                field_spec = {key: value for key, value in field_spec.items() if key != "optional"}
            fields.append(
                Field(
                    str(field_name),
                    self.node(field_spec, path=f"{path}.fields.{field_name}"),
                    optional=optional,
                )
            )
        built = Struct(fields=tuple(fields), tag=tag, name=name or tag)

        declaration = spec.get("hydratable")
        if declaration is None or declaration is False:
            return built
        if tag is None:
            raise SchemaError(f"{path}: only tagged structs can be hydratable.")
        try:
            return hydratable(built, *_declared_keys_and_family(declaration, path))
        except SchemaError as exc:
            raise SchemaError(f"{path}: {exc}") from exc

    def _union(self, spec: Mapping[str, Any], *, path: str, name: str | None) -> Union:
        raw_members = spec.get("members")
        if not isinstance(raw_members, Sequence) or isinstance(raw_members, str) or not raw_members:
            raise SchemaError(f"{path}: union requires a non-empty members list.")
        return Union(
            members=tuple(
                self.node(member, path=f"{path}.members[{index}]")
                for index, member in enumerate(raw_members)
            ),
            name=name,
        )


def _declared_keys_and_family(declaration: Any, path: str) -> tuple[tuple[str, ...], str | None]:
    if declaration is True:
        return (), None
    if not isinstance(declaration, Mapping):
        raise SchemaError(f"{path}: hydratable must be true or a mapping with keys.")
    keys = declaration.get("keys") or []
    if isinstance(keys, str) or not isinstance(keys, Sequence):
        raise SchemaError(f"{path}: hydratable keys must be a list of field names.")
    if not all(isinstance(key, str) for key in keys):
        raise SchemaError(f"{path}: hydratable keys must be strings.")
    family = declaration.get("family")
    if family is not None and not isinstance(family, str):
        raise SchemaError(f"{path}: hydratable family must be a string.")
    return tuple(keys), family


def _shorthand(kind: str, path: str) -> SchemaNode:
    if kind in PRIMITIVE_KINDS:
        return Primitive(kind)
    if kind in _TRANSFORMS:
        return _TRANSFORMS[kind]()
    raise SchemaError(f"{path}: unsupported schema type {kind}")


def _decode_date(value: str) -> date:
    return date.fromisoformat(value)
