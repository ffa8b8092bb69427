"""Fragment index and reference graph."""

from .dependency_graph import DependencyGraph
from .index_operations import (
    FragmentIndex,
    add_fragment,
    add_fragment_assets,
    add_fragments,
    add_root_value,
    create_index,
    get_root_value,
    get_value,
    has_root,
    make_lookup,
    rebuild_graph,
    to_fragment_assets,
)

__all__ = [
    "DependencyGraph",
    "FragmentIndex",
    "add_fragment",
    "add_fragment_assets",
    "add_fragments",
    "add_root_value",
    "create_index",
    "get_root_value",
    "get_value",
    "has_root",
    "make_lookup",
    "rebuild_graph",
    "to_fragment_assets",
]
