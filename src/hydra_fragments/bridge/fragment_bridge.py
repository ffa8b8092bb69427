"""Bridge between a root schema, its fragment index, and a fragment store."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from hydra_fragments.fragment_index import (
    FragmentIndex,
    add_fragment_assets,
    add_root_value,
    create_index,
    get_root_value,
    make_lookup,
    to_fragment_assets,
)
from hydra_fragments.fragment_storage import FragmentStore, read_assets, write_assets
from hydra_fragments.fragments import FragmentAsset, HydrationContext, create_context
from hydra_fragments.schema_management import SchemaNode
from hydra_fragments.uhl_addressing import (
    FILENAME_SUFFIX,
    Uhl,
    UhlError,
    encode_uhl,
    selection_tags,
)
from hydra_fragments.value_transforms import dehydrate_value, hydrate_value

LOGGER = logging.getLogger(__name__)


class BridgeError(Exception):
    """Raised when the bridge cannot produce the requested value."""


class FragmentBridge:
    """Persist a root value as fragments and assemble it back.

    Args:
      schema: Root schema of the managed values.
      store: Where fragment assets are read from and written to.
    """

    def __init__(self, schema: SchemaNode, store: FragmentStore) -> None:
        self._context = create_context(schema)
        self._store = store
        self._index = create_index()

    @property
    def context(self) -> HydrationContext:
        return self._context

    @property
    def index(self) -> FragmentIndex:
        return self._index

    def add_root_value(self, root_value: Any) -> None:
        add_root_value(self._index, root_value, self._context)

    def export_to_memory(self) -> list[FragmentAsset]:
        return to_fragment_assets(self._index, self._context)

    def export(self) -> list[FragmentAsset]:
        """Write every hydrated fragment to the store and return the written assets."""
        assets = self.export_to_memory()
        write_assets(self._store, assets)
        LOGGER.info("Exported %d fragments", len(assets))
        return assets

    def import_fragments(self) -> None:
        """Read every stored fragment into the index."""
        assets = read_assets(self._store)
        add_fragment_assets(self._index, assets, self._context)
        LOGGER.info("Imported %d fragments", len(assets))

    def view(self) -> Any:
        """Import the stored fragments and return the fully hydrated root value.

        Raises:
          BridgeError: If no root fragment is stored or indexed.
        """
        self.import_fragments()
        root_value = get_root_value(self._index)
        if root_value is None:
            raise BridgeError("No root fragment found; export a root value before viewing it.")
        return hydrate_value(
            root_value,
            self._context.registry,
            make_lookup(self._index, self._context),
        )

    def peek(self, target: Uhl | str | Mapping[str, Any]) -> Any:
        """Return stored fragment JSON as is, placeholders included.

        ``target`` is a UHL, its string form, or a selection such as
        ``{"Book": {"isbn": "1", "$Author": {"id": "a1"}}}``. A selection
        returns a mapping of every tag it names, parents included, to the
        stored JSON of that fragment.

        Raises:
          BridgeError: If a fragment is not stored, the selection is invalid,
            or a selection names one tag at more than one UHL.
        """
        if isinstance(target, Mapping):
            return self._peek_selection(target)
        key = target if isinstance(target, str) else encode_uhl(target)
        return self._read_fragment(key)

    def _peek_selection(self, selection: Mapping[str, Any]) -> dict[str, Any]:
        try:
            named = selection_tags(selection, self._context.registry)
        except UhlError as exc:
            raise BridgeError(f"Invalid selection: {exc}") from exc
        peeked: dict[str, Any] = {}
        for tag, uhl in named:
            if tag in peeked:
                raise BridgeError(
                    f"Selection names more than one {tag} fragment; peek them by UHL."
                )
            peeked[tag] = self._read_fragment(encode_uhl(uhl))
        return peeked

    def _read_fragment(self, key: str) -> Any:
        name = f"{key}{FILENAME_SUFFIX}"
        if name not in self._store.list_names():
            raise BridgeError(f"No fragment stored at {key}.")
        try:
            return json.loads(self._store.read(name))
        except json.JSONDecodeError as exc:
            raise BridgeError(f"Fragment {name} is not valid JSON: {exc}") from exc

    def dehydrate(self, value: Any) -> Any:
        return dehydrate_value(value, self._context.registry)

    def clear(self) -> None:
        """Remove every stored fragment and reset the index."""
        for name in self._store.list_names():
            self._store.remove(name)
        self._index = create_index()
