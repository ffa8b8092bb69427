"""In-memory fragment index keyed by canonical UHL string."""

from __future__ import annotations

import logging
from collections.abc import Iterable, MutableMapping
from dataclasses import dataclass, field
from typing import Any

from hydra_fragments.fragments import (
    Fragment,
    FragmentAsset,
    HydrationContext,
    fragment_asset_from_fragment,
    fragment_asset_to_fragment,
    fragment_references,
    fragments_from_root_value,
)
from hydra_fragments.schema_management import (
    DEHYDRATED_FIELD,
    TAG_FIELD,
    UniqueKeyError,
    is_dehydrated,
    is_tagged,
)
from hydra_fragments.uhl_addressing import (
    ROOT_STRING,
    Uhl,
    encode_segment,
    encode_uhl,
    last_segment_key,
    segment_for,
)
from hydra_fragments.value_transforms import GetHydratable

from .dependency_graph import DependencyGraph

LOGGER = logging.getLogger(__name__)


@dataclass
class FragmentIndex:
    """Fragments by UHL string, in insertion order, plus their reference graph.

    ``by_segment`` maps the encoded final segment of every non-root UHL to
    the UHL strings ending in it, which is what placeholder lookups need.
    """

    fragments: dict[str, Any] = field(default_factory=dict)
    uhls: dict[str, Uhl] = field(default_factory=dict)
    by_segment: dict[str, list[str]] = field(default_factory=dict)
    graph: DependencyGraph = field(default_factory=DependencyGraph)

    def __len__(self) -> int:
        return len(self.fragments)


def create_index() -> FragmentIndex:
    return FragmentIndex()


def add_fragment(index: FragmentIndex, fragment: Fragment) -> None:
    """Insert a fragment, or upgrade a stored placeholder in place.

    A hydrated fragment never gets replaced, and a placeholder never
    replaces anything.
    """
    key = encode_uhl(fragment.uhl)
    if key not in index.fragments:
        index.fragments[key] = fragment.value
        index.uhls[key] = fragment.uhl
        segment_key = last_segment_key(fragment.uhl)
        if segment_key is not None:
            index.by_segment.setdefault(segment_key, []).append(key)
        return

    existing = index.fragments[key]
    if (
        is_dehydrated(existing)
        and not is_dehydrated(fragment.value)
        and isinstance(existing, MutableMapping)
    ):
        LOGGER.debug("Upgrading placeholder %s with its hydrated value", key)
        for name in [name for name in existing if name != TAG_FIELD]:
            del existing[name]
        existing.update(fragment.value)


def add_fragments(index: FragmentIndex, fragments: Iterable[Fragment]) -> None:
    for fragment in fragments:
        add_fragment(index, fragment)


def add_fragment_assets(
    index: FragmentIndex,
    assets: Iterable[FragmentAsset],
    context: HydrationContext,
) -> None:
    """Decode ``assets`` and add them; nothing is added if any asset fails to decode."""
    fragments = [fragment_asset_to_fragment(asset, context) for asset in assets]
    add_fragments(index, fragments)
    rebuild_graph(index, context)


def add_root_value(index: FragmentIndex, root_value: Any, context: HydrationContext) -> None:
    """Add the root value and every hydratable inside it, then rebuild the graph."""
    add_fragments(index, fragments_from_root_value(root_value, context))
    rebuild_graph(index, context)


def rebuild_graph(index: FragmentIndex, context: HydrationContext) -> None:
    """Recompute the reference graph from every hydrated entry."""
    graph = DependencyGraph()
    for key, value in index.fragments.items():
        graph.add_node(key)
        if is_dehydrated(value):
            continue
        for reference in fragment_references(Fragment(index.uhls[key], value), context):
            graph.add_edge(key, encode_uhl(reference))
    index.graph = graph


def get_value(index: FragmentIndex, uhl: Uhl | str) -> Any | None:
    key = uhl if isinstance(uhl, str) else encode_uhl(uhl)
    return index.fragments.get(key)


def get_root_value(index: FragmentIndex) -> Any | None:
    return index.fragments.get(ROOT_STRING)


def has_root(index: FragmentIndex) -> bool:
    return ROOT_STRING in index.fragments


def make_lookup(index: FragmentIndex, context: HydrationContext) -> GetHydratable:
    """Build a ``get_hydratable`` hook backed by ``index``.

    A placeholder resolves to the first hydrated fragment whose final UHL
    segment matches its tag and keys, or to the root value when the root is
    that very hydratable.
    """

    def get_hydratable(tag: str, unique_keys: dict[str, Any]) -> Any | None:
        if tag not in context.registry:
            return None
        placeholder = {TAG_FIELD: tag, DEHYDRATED_FIELD: True, **unique_keys}
        try:
            segment = segment_for(context.registry, placeholder)
        except UniqueKeyError:
            return None

        for key in index.by_segment.get(encode_segment(segment), ()):
            value = index.fragments[key]
            if not is_dehydrated(value):
                return value

        root = get_root_value(index)
        if is_tagged(root) and root[TAG_FIELD] == tag and not is_dehydrated(root):
            try:
                if segment_for(context.registry, root) == segment:
                    return root
            except UniqueKeyError:
                return None
        return None

    return get_hydratable


def to_fragment_assets(index: FragmentIndex, context: HydrationContext) -> list[FragmentAsset]:
    """Assets for every hydrated entry, in insertion order."""
    return [
        fragment_asset_from_fragment(Fragment(index.uhls[key], value), context)
        for key, value in index.fragments.items()
        if not is_dehydrated(value)
    ]
