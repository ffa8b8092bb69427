"""Fragment index tests."""

from __future__ import annotations

import json

import pytest
from hydra_fragments.fragment_index import (
    add_fragment,
    add_fragment_assets,
    add_root_value,
    create_index,
    get_root_value,
    get_value,
    has_root,
    make_lookup,
    to_fragment_assets,
)
from hydra_fragments.fragments import (
    Fragment,
    FragmentAsset,
    FragmentAssetError,
    create_context,
    fragment_assets_from_root_value,
)
from hydra_fragments.schema_management import ArrayOf, Primitive, hydratable, tagged_struct
from hydra_fragments.uhl_addressing import ROOT_UHL, Segment


def _schema():
    user = hydratable(
        tagged_struct("User", {"id": Primitive("string"), "name": Primitive("string")}),
        keys=("id",),
    )
    team = hydratable(
        tagged_struct("Team", {"slug": Primitive("string"), "members": ArrayOf(user)}),
        keys=("slug",),
    )
    return tagged_struct("Root", {"owner": user, "teams": ArrayOf(team)})


def _user(user_id, name):
    return {"_tag": "User", "id": user_id, "name": name}


def _placeholder(user_id):
    return {"_tag": "User", "_dehydrated": True, "id": user_id}


def _root():
    return {
        "_tag": "Root",
        "owner": _user("u1", "Ada"),
        "teams": [
            {"_tag": "Team", "slug": "core", "members": [_placeholder("u1"), _user("u2", "Grace")]}
        ],
    }


def test_add_root_value_indexes_every_fragment_in_order() -> None:
    context = create_context(_schema())
    index = create_index()
    root = _root()

    add_root_value(index, root, context)

    assert list(index.fragments) == [
        "__root__",
        "User!id@u1",
        "Team!slug@core",
        "Team!slug@core___User!id@u1",
        "Team!slug@core___User!id@u2",
    ]
    assert has_root(index)
    assert get_root_value(index) is root
    assert get_value(index, (Segment("User", {"id": "u1"}),)) is root["owner"]
    assert len(index) == 5


def test_placeholder_is_upgraded_in_place() -> None:
    index = create_index()
    uhl = (Segment("User", {"id": "u3"}),)
    placeholder = _placeholder("u3")

    add_fragment(index, Fragment(uhl, placeholder))
    add_fragment(index, Fragment(uhl, _user("u3", "Linus")))

    assert get_value(index, uhl) is placeholder
    assert placeholder == _user("u3", "Linus")


def test_hydrated_entry_is_never_replaced() -> None:
    index = create_index()
    uhl = (Segment("User", {"id": "u1"}),)
    first = _user("u1", "Ada")

    add_fragment(index, Fragment(uhl, first))
    add_fragment(index, Fragment(uhl, _user("u1", "Someone else")))
    add_fragment(index, Fragment(uhl, _placeholder("u1")))

    assert get_value(index, "User!id@u1") is first
    assert first["name"] == "Ada"


def test_lookup_returns_the_first_hydrated_match_by_final_segment() -> None:
    context = create_context(_schema())
    index = create_index()
    add_root_value(index, _root(), context)
    lookup = make_lookup(index, context)

    assert lookup("User", {"id": "u1"})["name"] == "Ada"
    assert lookup("User", {"id": "u2"})["name"] == "Grace"
    assert lookup("User", {"id": "missing"}) is None
    assert lookup("Unknown", {"id": "u1"}) is None
    assert lookup("User", {}) is None


def test_lookup_skips_placeholder_entries() -> None:
    context = create_context(_schema())
    index = create_index()
    add_fragment(index, Fragment((Segment("User", {"id": "u1"}),), _placeholder("u1")))
    add_fragment(
        index,
        Fragment(
            (Segment("Team", {"slug": "core"}), Segment("User", {"id": "u1"})),
            _user("u1", "Ada"),
        ),
    )

    assert make_lookup(index, context)("User", {"id": "u1"})["name"] == "Ada"


def test_lookup_falls_back_to_a_hydratable_root() -> None:
    schema = _schema()
    user_schema = schema.field_named("owner").schema
    context = create_context(user_schema)
    index = create_index()
    root = _user("u9", "Root user")
    add_fragment(index, Fragment(ROOT_UHL, root))

    lookup = make_lookup(index, context)

    assert lookup("User", {"id": "u9"}) is root
    assert lookup("User", {"id": "u1"}) is None


def test_graph_records_references_between_fragments() -> None:
    context = create_context(_schema())
    index = create_index()

    add_root_value(index, _root(), context)

    assert index.graph.dependencies_of("__root__") == ["User!id@u1", "Team!slug@core"]
    assert index.graph.dependencies_of("Team!slug@core") == [
        "Team!slug@core___User!id@u1",
        "Team!slug@core___User!id@u2",
    ]
    assert index.graph.dependencies_of("Team!slug@core___User!id@u1") == []
    assert index.graph.dependents_of("User!id@u1") == ["__root__"]


def test_assets_are_decoded_before_any_is_added() -> None:
    context = create_context(_schema())
    index = create_index()
    assets = [
        FragmentAsset("User!id@u1.json", json.dumps(_user("u1", "Ada"))),
        FragmentAsset("__root__.json", "not json"),
    ]

    with pytest.raises(FragmentAssetError):
        add_fragment_assets(index, assets, context)

    assert len(index) == 0


def test_assets_round_trip_through_the_index() -> None:
    context = create_context(_schema())
    assets = fragment_assets_from_root_value(_root(), context)
    index = create_index()

    add_fragment_assets(index, assets, context)

    assert get_value(index, "Team!slug@core___User!id@u2") == _user("u2", "Grace")
    assert index.graph.dependencies_of("__root__") == ["User!id@u1", "Team!slug@core"]
    assert to_fragment_assets(index, context) == assets


def test_export_skips_placeholder_entries() -> None:
    context = create_context(_schema())
    index = create_index()
    add_root_value(index, _root(), context)

    filenames = [asset.filename for asset in to_fragment_assets(index, context)]

    assert "Team!slug@core___User!id@u1.json" not in filenames
    assert filenames[0] == "__root__.json"
