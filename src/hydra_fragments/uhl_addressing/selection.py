"""Selections: a nested mapping notation for naming hydratables by tag and keys.

``{"User": {"id": "u1"}}`` names the fragment ``User!id@u1``. A key starting
with ``$`` names the hydratable the selected one lives under, so

    {"Book": {"isbn": "978-0141439518", "$Author": {"id": "a1"}}}

names ``Author!id@a1___Book!isbn@978-0141439518``. ADT members carry their
family without it being spelled out. Several top-level tags, or a list of
selections, name several fragments.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from hydra_fragments.schema_management import HydratableRegistry, UniqueKeyError, encode_value

from .segments import KeyValue, Segment, UhlError, check_key_value
from .uhl_codec import Uhl

PARENT_PREFIX = "$"

Selection = Mapping[str, Any] | Sequence[Mapping[str, Any]]


class SelectionError(UhlError):
    """Raised for selections that do not name hydratables of the schema."""


def selection_to_uhls(selection: Selection, registry: HydratableRegistry) -> list[Uhl]:
    """Convert a selection into the UHLs it names, in selection order.

    Raises:
      SelectionError: If a tag is not hydratable, a unique key is missing or
        unknown, or a key value cannot be part of an address.
    """
    if isinstance(selection, Mapping):
        uhls: list[Uhl] = []
        for tag, spec in selection.items():
            uhls.extend(_entry_uhls(tag, spec, registry))
        return uhls
    if isinstance(selection, Sequence) and not isinstance(selection, str):
        return [uhl for item in selection for uhl in selection_to_uhls(item, registry)]
    raise SelectionError(
        f"A selection must be a mapping or a list, got {type(selection).__name__}."
    )


def selection_tags(
    selection: Mapping[str, Any], registry: HydratableRegistry
) -> list[tuple[str, Uhl]]:
    """Pair every hydratable a selection names, parents included, with its UHL.

    Parents come before the hydratables selected under them.
    """
    named: dict[tuple[str, Uhl], None] = {}
    for tag, spec in selection.items():
        if isinstance(spec, Mapping):
            for key, value in spec.items():
                if key.startswith(PARENT_PREFIX):
                    parent = {key[len(PARENT_PREFIX) :]: value}
                    named.update(dict.fromkeys(selection_tags(parent, registry)))
        for uhl in _entry_uhls(tag, spec, registry):
            named.setdefault((tag, uhl), None)
    return list(named)


def _entry_uhls(tag: str, spec: Any, registry: HydratableRegistry) -> list[Uhl]:
    entry = registry.get(tag)
    if entry is None:
        raise SelectionError(f"{tag} is not a hydratable of this schema.")
    if not isinstance(spec, Mapping):
        raise SelectionError(
            f"Selection of {tag} must be a mapping of its unique keys, got {type(spec).__name__}."
        )

    given: dict[str, Any] = {}
    parents: list[Uhl] = []
    for key, value in spec.items():
        if key.startswith(PARENT_PREFIX):
            parents.extend(_entry_uhls(key[len(PARENT_PREFIX) :], value, registry))
        elif key in entry.address_keys:
            given[key] = value
        else:
            raise SelectionError(f"{key} is not a unique key of {tag}.")

    unique_keys: dict[str, KeyValue] = {}
    for key in entry.address_keys:
        if key not in given:
            raise SelectionError(f"Selection of {tag} is missing unique key {key}.")
        encoded = encode_value(entry.key_schema(key), given[key])
        try:
            unique_keys[key] = check_key_value(encoded, f"{tag}.{key}")
        except UniqueKeyError as exc:
            raise SelectionError(str(exc)) from exc
    segment = Segment(tag=tag, unique_keys=unique_keys, family=entry.family)

    if not parents:
        return [(segment,)]
    return [(*parent, segment) for parent in parents]
