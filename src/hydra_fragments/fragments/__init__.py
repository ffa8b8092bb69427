"""Fragment extraction and the JSON asset codec."""

from .fragment_asset_codec import (
    FragmentAsset,
    FragmentAssetError,
    contains_dehydrated_marker,
    fragment_asset_from_fragment,
    fragment_asset_to_fragment,
    fragment_assets_from_root_value,
)
from .fragment_extraction import (
    Fragment,
    fragment_content,
    fragment_references,
    fragments_from_root_value,
)
from .hydration_context import Encoder, HydrationContext, create_context

__all__ = [
    "Encoder",
    "Fragment",
    "FragmentAsset",
    "FragmentAssetError",
    "HydrationContext",
    "contains_dehydrated_marker",
    "create_context",
    "fragment_asset_from_fragment",
    "fragment_asset_to_fragment",
    "fragment_assets_from_root_value",
    "fragment_content",
    "fragment_references",
    "fragments_from_root_value",
]
