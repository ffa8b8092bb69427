"""Encode fragments as named JSON assets and decode them back."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from hydra_fragments.schema_management import (
    DEHYDRATED_FIELD,
    TAG_FIELD,
    SchemaDecodeError,
    decode_value,
    is_dehydrated,
    is_tagged,
)
from hydra_fragments.uhl_addressing import from_filename, to_filename

from .fragment_extraction import Fragment, fragment_content, fragments_from_root_value
from .hydration_context import HydrationContext

LOGGER = logging.getLogger(__name__)


class FragmentAssetError(Exception):
    """Raised when a fragment cannot be turned into an asset or read back."""


@dataclass(frozen=True)
class FragmentAsset:
    """The persisted form of a fragment: a filename and its JSON text."""

    filename: str
    content: str


def fragment_asset_from_fragment(fragment: Fragment, context: HydrationContext) -> FragmentAsset:
    """Serialize one fragment.

    Raises:
      FragmentAssetError: If the fragment value is a placeholder, is not a
        tagged struct, or does not serialize to JSON.
    """
    value = fragment.value
    if is_dehydrated(value):
        raise FragmentAssetError(
            f"Cannot create a fragment asset from dehydrated value {value.get(TAG_FIELD)!r}."
        )
    if not is_tagged(value):
        raise FragmentAssetError("Fragment value must be a tagged struct.")

    content = fragment_content(fragment, context)
    encoder = context.encoders.get(content[TAG_FIELD])
    if encoder is not None:
        content = encoder(content)
    try:
        text = json.dumps(content, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise FragmentAssetError(
            f"Fragment {content[TAG_FIELD]} is not JSON serializable: {exc}"
        ) from exc
    return FragmentAsset(filename=to_filename(fragment.uhl, context.registry), content=text)


def fragment_assets_from_root_value(
    root_value: Any, context: HydrationContext
) -> list[FragmentAsset]:
    """One asset per hydrated fragment of ``root_value``.

    Placeholders found in the value are skipped, and a UHL seen twice keeps
    its first asset.
    """
    assets: dict[str, FragmentAsset] = {}
    for fragment in fragments_from_root_value(root_value, context):
        if is_dehydrated(fragment.value):
            continue
        asset = fragment_asset_from_fragment(fragment, context)
        assets.setdefault(asset.filename, asset)
    return list(assets.values())


def fragment_asset_to_fragment(asset: FragmentAsset, context: HydrationContext) -> Fragment:
    """Parse an asset back into a fragment.

    The content is decoded with the tag's placeholder-admitting schema when
    there is one. When decoding fails and the content carries dehydrated
    markers, the raw JSON is kept and a warning is logged; circular
    references can produce such content.

    Raises:
      FragmentAssetError: If the content is not JSON or not a tagged struct.
      SchemaDecodeError: If the content does not match its schema and holds
        no dehydrated markers.
      UhlError: If the filename is not a valid UHL of the schema.
    """
    uhl = from_filename(asset.filename, context.registry)
    try:
        raw = json.loads(asset.content)
    except json.JSONDecodeError as exc:
        raise FragmentAssetError(f"Fragment {asset.filename} is not valid JSON: {exc}") from exc
    if not is_tagged(raw):
        raise FragmentAssetError(f"Fragment {asset.filename} is not a tagged struct.")

    tag = raw[TAG_FIELD]
    schema = context.transformed_schemas.get(tag) or context.schemas.get(tag)
    if schema is None:
        LOGGER.debug("No schema for tag %s in %s, keeping raw JSON", tag, asset.filename)
        return Fragment(uhl, raw)

    try:
        value = decode_value(schema, raw)
    except SchemaDecodeError as exc:
        if not contains_dehydrated_marker(raw):
            raise
        LOGGER.warning(
            "Could not decode fragment %s, keeping raw JSON with dehydrated references: %s",
            asset.filename,
            exc,
        )
        value = raw
    return Fragment(uhl, value)


def contains_dehydrated_marker(value: Any) -> bool:
    if isinstance(value, list):
        return any(contains_dehydrated_marker(item) for item in value)
    if isinstance(value, Mapping):
        if value.get(DEHYDRATED_FIELD) is True:
            return True
        return any(contains_dehydrated_marker(item) for item in value.values())
    return False
