"""Split a root value into one fragment per hydratable boundary."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from hydra_fragments.uhl_addressing import ROOT_UHL, Uhl, segment_for
from hydra_fragments.value_transforms import dehydrate_nested, visit_hydratables

from .hydration_context import HydrationContext


@dataclass(frozen=True)
class Fragment:
    """A value addressed by its UHL."""

    uhl: Uhl
    value: Any


def fragments_from_root_value(root_value: Any, context: HydrationContext) -> list[Fragment]:
    """Return the root fragment followed by every nested hydratable, depth first.

    Fragment values are the objects found in ``root_value``; use
    :func:`fragment_content` for the form that gets persisted.
    """
    fragments = [Fragment(ROOT_UHL, root_value)]

    def collect(value: Mapping[str, Any], uhl: Uhl) -> None:
        if uhl:
            fragments.append(Fragment(uhl, value))

    visit_hydratables(root_value, context.tree, context.registry, collect)
    return fragments


def fragment_content(fragment: Fragment, context: HydrationContext) -> Any:
    """The fragment's value with nested hydratables dehydrated and its own root kept."""
    if not isinstance(fragment.value, Mapping):
        return fragment.value
    return dehydrate_nested(fragment.value, context.registry)


def fragment_references(fragment: Fragment, context: HydrationContext) -> list[Uhl]:
    """UHLs of the hydratables directly referenced by a fragment, in order."""
    if not isinstance(fragment.value, Mapping):
        return []
    references: dict[Uhl, None] = {}

    def track(value: Mapping[str, Any]) -> None:
        references.setdefault((*fragment.uhl, segment_for(context.registry, value)), None)

    dehydrate_nested(fragment.value, context.registry, track)
    return list(references)
