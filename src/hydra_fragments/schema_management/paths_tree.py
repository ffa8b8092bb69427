"""Derives where hydratable boundaries occur in the shape of a schema."""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from typing import Any

from .schema_models import (
    TAG_FIELD,
    ArrayOf,
    SchemaNode,
    Struct,
    Union,
    is_tagged,
    resolve_leaf,
)

ARRAY_MARKER = "[array]"


@dataclass(frozen=True)
class SegmentTemplate:
    """Tag information of a hydratable boundary, without key values."""

    tag: str
    unique_keys: tuple[str, ...]
    family: str | None = None


@dataclass(eq=False)
class HydratablesPathsTree:
    """One node of the paths tree.

    ``children`` is keyed by field name, or by :data:`ARRAY_MARKER` for the
    elements of a list. ``variants`` holds the per-tag subtrees of a union.
    Trees built from cyclic schemas are themselves cyclic.
    """

    segment_template: SegmentTemplate | None = None
    children: dict[str, HydratablesPathsTree] = field(default_factory=dict)
    variants: dict[str, HydratablesPathsTree] = field(default_factory=dict)
    adt_family: str | None = None

    def variant_for(self, value: Any) -> HydratablesPathsTree:
        """Return the subtree matching a tagged value, or this node."""
        if self.variants and is_tagged(value):
            return self.variants.get(value[TAG_FIELD], self)
        return self


_TREE_CACHE: weakref.WeakKeyDictionary[Any, HydratablesPathsTree] = weakref.WeakKeyDictionary()


def tree_for(schema: SchemaNode) -> HydratablesPathsTree:
    """Return the paths tree for a schema, building it once per schema object."""
    cached = _TREE_CACHE.get(schema)
    if cached is None:
        cached = build_hydratables_paths_tree(schema)
        _TREE_CACHE[schema] = cached
    return cached


def build_hydratables_paths_tree(
    schema: SchemaNode,
    visited: dict[SchemaNode, HydratablesPathsTree] | None = None,
) -> HydratablesPathsTree:
    """Build the paths tree of a schema.

    Nodes are memoized by schema-node identity before their children are
    visited, so a schema that refers to itself yields a tree that refers to
    itself instead of recursing forever.
    """
    visited = {} if visited is None else visited
    node = resolve_leaf(schema)
    cached = visited.get(node)
    if cached is not None:
        return cached

    tree = HydratablesPathsTree()
    visited[node] = tree

    if isinstance(node, Struct):
        if node.hydratable is not None and node.tag is not None:
            tree.segment_template = SegmentTemplate(
                tag=node.tag,
                unique_keys=node.hydratable.unique_keys,
                family=node.hydratable.family,
            )
        for struct_field in node.fields:
            if struct_field.name == TAG_FIELD:
                continue
            tree.children[struct_field.name] = build_hydratables_paths_tree(
                struct_field.schema, visited
            )
    elif isinstance(node, ArrayOf):
        tree.children[ARRAY_MARKER] = build_hydratables_paths_tree(node.item, visited)
    elif isinstance(node, Union):
        _build_union(node, tree, visited)
    return tree


def _build_union(
    node: Union,
    tree: HydratablesPathsTree,
    visited: dict[SchemaNode, HydratablesPathsTree],
) -> None:
    members = [resolve_leaf(member) for member in node.members]
    tree.adt_family = _adt_family(members)
    for member in members:
        subtree = build_hydratables_paths_tree(member, visited)
        if isinstance(member, Struct) and member.tag is not None:
            tree.variants.setdefault(member.tag, subtree)
            continue
        # untagged alternatives share this node's addressing
        for name, child in subtree.children.items():
            tree.children.setdefault(name, child)
        for tag, variant in subtree.variants.items():
            tree.variants.setdefault(tag, variant)


def _adt_family(members: list[SchemaNode]) -> str | None:
    families = set()
    for member in members:
        if not isinstance(member, Struct) or member.hydratable is None:
            return None
        families.add(member.hydratable.family)
    if len(families) != 1:
        return None
    return families.pop()
