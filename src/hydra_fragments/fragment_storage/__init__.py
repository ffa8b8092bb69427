"""Fragment storage exports."""

from .fragment_stores import (
    DirectoryFragmentStore,
    FragmentStore,
    FragmentStoreError,
    MemoryFragmentStore,
    read_assets,
    write_assets,
)

__all__ = [
    "DirectoryFragmentStore",
    "FragmentStore",
    "FragmentStoreError",
    "MemoryFragmentStore",
    "read_assets",
    "write_assets",
]
