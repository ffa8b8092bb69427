"""Tree-guided traversal that reports every hydratable in a value with its UHL."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from hydra_fragments.schema_management import (
    ARRAY_MARKER,
    TAG_FIELD,
    HydratableRegistry,
    HydratablesPathsTree,
    is_dehydrated,
    is_tagged,
)
from hydra_fragments.uhl_addressing import ROOT_UHL, Uhl, segment_for

HydratableVisitor = Callable[[Mapping[str, Any], Uhl], None]


@dataclass(frozen=True)
class Located:
    """A hydratable found in a value, and where."""

    value: Mapping[str, Any]
    uhl: Uhl


def visit_hydratables(
    value: Any,
    tree: HydratablesPathsTree,
    registry: HydratableRegistry,
    visitor: HydratableVisitor,
) -> None:
    """Call ``visitor`` for each hydratable boundary in ``value``, depth first.

    The walk follows ``tree`` rather than the value, so only schema-declared
    positions are inspected. A hydratable root is reported at the root UHL;
    every deeper boundary appends its segment to the enclosing UHL. Arrays
    add no segment. Placeholders are reported but not descended into.
    """
    _visit(value, tree, registry, visitor, ROOT_UHL, is_root=True, active=set())


def locate_hydratables(
    value: Any,
    tree: HydratablesPathsTree,
    registry: HydratableRegistry,
) -> list[Located]:
    """Every hydratable, hydrated or not, reachable in ``value``."""
    found: list[Located] = []
    visit_hydratables(value, tree, registry, lambda item, uhl: found.append(Located(item, uhl)))
    return found


def locate_hydrated_hydratables(
    value: Any,
    tree: HydratablesPathsTree,
    registry: HydratableRegistry,
) -> list[Located]:
    """Like :func:`locate_hydratables`, without placeholders."""
    return [
        located
        for located in locate_hydratables(value, tree, registry)
        if not is_dehydrated(located.value)
    ]


def _visit(
    value: Any,
    tree: HydratablesPathsTree,
    registry: HydratableRegistry,
    visitor: HydratableVisitor,
    uhl: Uhl,
    *,
    is_root: bool,
    active: set[int],
) -> None:
    if not isinstance(value, Mapping | list) or id(value) in active:
        return
    active.add(id(value))
    try:
        tree = tree.variant_for(value)
        template = tree.segment_template
        if template is not None and is_tagged(value) and value[TAG_FIELD] == template.tag:
            if not is_root:
                uhl = (*uhl, segment_for(registry, value))
            visitor(value, uhl)
            if is_dehydrated(value):
                return

        if isinstance(value, list):
            element_tree = tree.children.get(ARRAY_MARKER)
            if element_tree is None:
                return
            for item in value:
                _visit(item, element_tree, registry, visitor, uhl, is_root=False, active=active)
            return

        for name, child_tree in tree.children.items():
            child = value.get(name)
            if name == ARRAY_MARKER or child is None:
                continue
            _visit(child, child_tree, registry, visitor, uhl, is_root=False, active=active)
    finally:
        active.discard(id(value))
