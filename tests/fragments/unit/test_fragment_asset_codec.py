"""Fragment asset encoding and decoding tests."""

from __future__ import annotations

import json
import logging
from datetime import date

import pytest
from hydra_fragments.fragments import (
    Fragment,
    FragmentAsset,
    FragmentAssetError,
    contains_dehydrated_marker,
    create_context,
    fragment_asset_from_fragment,
    fragment_asset_to_fragment,
    fragment_assets_from_root_value,
)
from hydra_fragments.schema_management import (
    ArrayOf,
    Primitive,
    SchemaDecodeError,
    date_transform,
    hydratable,
    hydratable_adt,
    optional,
    tagged_struct,
)
from hydra_fragments.uhl_addressing import ROOT_UHL, Segment, UhlError


def _schema():
    user = hydratable(
        tagged_struct(
            "User",
            {"id": Primitive("integer"), "name": Primitive("string"), "joined": date_transform()},
        ),
        keys=("id",),
    )
    image = tagged_struct("Image", {"id": Primitive("string")})
    video = tagged_struct("Video", {"id": Primitive("string")})
    media = hydratable_adt("Media", image, video, keys={"Image": ["id"], "Video": ["id"]})
    return tagged_struct(
        "Root",
        {"owner": user, "members": ArrayOf(user), "cover": optional(media)},
    )


def _ada():
    return {"_tag": "User", "id": 1, "name": "Ada", "joined": date(2020, 1, 2)}


def test_asset_holds_dehydrated_nested_values_and_encoded_dates() -> None:
    context = create_context(_schema())
    root = {"_tag": "Root", "owner": _ada(), "members": [_ada()]}

    asset = fragment_asset_from_fragment(Fragment(ROOT_UHL, root), context)

    assert asset.filename == "__root__.json"
    assert json.loads(asset.content) == {
        "_tag": "Root",
        "owner": {"_tag": "User", "_dehydrated": True, "id": 1},
        "members": [{"_tag": "User", "_dehydrated": True, "id": 1}],
    }


def test_hydratable_fragment_encodes_transformed_fields() -> None:
    context = create_context(_schema())

    asset = fragment_asset_from_fragment(Fragment((Segment("User", {"id": 1}),), _ada()), context)

    assert asset.filename == "User!id@1.json"
    assert json.loads(asset.content)["joined"] == "2020-01-02"
    assert asset.content.startswith("{\n  ")


def test_adt_member_filename_carries_the_family() -> None:
    context = create_context(_schema())
    root = {"_tag": "Root", "owner": _ada(), "members": [], "cover": {"_tag": "Video", "id": "v1"}}

    filenames = [asset.filename for asset in fragment_assets_from_root_value(root, context)]

    assert filenames == ["__root__.json", "User!id@1.json", "Media@Video!id@v1.json"]


def test_root_value_assets_skip_placeholders_and_repeated_uhls() -> None:
    context = create_context(_schema())
    root = {
        "_tag": "Root",
        "owner": _ada(),
        "members": [_ada(), {"_tag": "User", "_dehydrated": True, "id": 2}],
    }

    filenames = [asset.filename for asset in fragment_assets_from_root_value(root, context)]

    assert filenames == ["__root__.json", "User!id@1.json"]


def test_dehydrated_value_cannot_become_an_asset() -> None:
    context = create_context(_schema())
    placeholder = {"_tag": "User", "_dehydrated": True, "id": 1}

    with pytest.raises(FragmentAssetError, match="dehydrated value 'User'"):
        fragment_asset_from_fragment(Fragment((Segment("User", {"id": 1}),), placeholder), context)


def test_untagged_value_cannot_become_an_asset() -> None:
    context = create_context(_schema())

    with pytest.raises(FragmentAssetError, match="tagged struct"):
        fragment_asset_from_fragment(Fragment(ROOT_UHL, {"owner": None}), context)


def test_unserializable_value_is_reported() -> None:
    context = create_context(_schema())
    root = {"_tag": "Root", "owner": _ada(), "members": [], "extra": object()}

    with pytest.raises(FragmentAssetError, match="not JSON serializable"):
        fragment_asset_from_fragment(Fragment(ROOT_UHL, root), context)


def test_asset_decodes_back_to_typed_values() -> None:
    context = create_context(_schema())
    asset = fragment_asset_from_fragment(Fragment((Segment("User", {"id": 1}),), _ada()), context)

    fragment = fragment_asset_to_fragment(asset, context)

    assert fragment.uhl == (Segment("User", {"id": 1}),)
    assert fragment.value == _ada()


def test_placeholders_inside_an_asset_decode_as_placeholders() -> None:
    context = create_context(_schema())
    content = {
        "_tag": "Root",
        "owner": {"_tag": "User", "_dehydrated": True, "id": 1},
        "members": [],
    }
    asset = FragmentAsset("__root__.json", json.dumps(content))

    fragment = fragment_asset_to_fragment(asset, context)

    assert fragment.uhl == ROOT_UHL
    assert fragment.value == content


def test_invalid_json_is_rejected() -> None:
    context = create_context(_schema())

    with pytest.raises(FragmentAssetError, match="not valid JSON"):
        fragment_asset_to_fragment(FragmentAsset("__root__.json", "{"), context)


def test_untagged_content_is_rejected() -> None:
    context = create_context(_schema())

    with pytest.raises(FragmentAssetError, match="not a tagged struct"):
        fragment_asset_to_fragment(FragmentAsset("__root__.json", "[1, 2]"), context)


def test_unknown_filename_tag_is_rejected() -> None:
    context = create_context(_schema())

    with pytest.raises(UhlError, match="Unrecognized hydratable tag"):
        fragment_asset_to_fragment(FragmentAsset("Team!id@1.json", "{}"), context)


def test_undecodable_content_with_placeholders_keeps_raw_json(caplog) -> None:
    context = create_context(_schema())
    content = {
        "_tag": "Root",
        "owner": {"_tag": "User", "_dehydrated": True, "id": "not-a-number"},
        "members": [],
    }

    with caplog.at_level(logging.WARNING, logger="hydra_fragments.fragments"):
        fragment = fragment_asset_to_fragment(
            FragmentAsset("__root__.json", json.dumps(content)), context
        )

    assert fragment.value == content
    assert "keeping raw JSON" in caplog.text


def test_undecodable_content_without_placeholders_fails() -> None:
    context = create_context(_schema())
    content = {"_tag": "User", "id": 1, "name": 7, "joined": "2020-01-02"}

    with pytest.raises(SchemaDecodeError, match="expected string"):
        fragment_asset_to_fragment(FragmentAsset("User!id@1.json", json.dumps(content)), context)


def test_content_with_an_unknown_tag_is_kept_raw() -> None:
    context = create_context(_schema())
    content = {"_tag": "Legacy", "anything": [1, 2]}
    asset = FragmentAsset("__root__.json", json.dumps(content))

    fragment = fragment_asset_to_fragment(asset, context)

    assert fragment.value == content


def test_contains_dehydrated_marker_searches_nested_values() -> None:
    assert contains_dehydrated_marker({"a": [{"b": {"_dehydrated": True}}]})
    assert not contains_dehydrated_marker({"a": [{"_dehydrated": "yes"}]})
    assert not contains_dehydrated_marker("_dehydrated")
