"""Fragment store tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from hydra_fragments.fragment_storage import (
    DirectoryFragmentStore,
    FragmentStoreError,
    MemoryFragmentStore,
    read_assets,
    write_assets,
)
from hydra_fragments.fragments import FragmentAsset


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_directory_store_lists_json_files_only(tmp_path) -> None:
    _write_file(tmp_path / "b.json", "{}")
    _write_file(tmp_path / "a.json", "{}")
    _write_file(tmp_path / "notes.txt", "ignored")
    (tmp_path / "nested.json").mkdir()

    assert DirectoryFragmentStore(tmp_path).list_names() == ["a.json", "b.json"]


def test_directory_store_missing_directory_is_empty(tmp_path) -> None:
    assert DirectoryFragmentStore(tmp_path / "absent").list_names() == []


def test_directory_store_writes_and_reads_utf8(tmp_path) -> None:
    store = DirectoryFragmentStore(tmp_path / "fragments")

    store.write("User!id@u1.json", '{"name": "Zoë"}')

    assert store.directory == tmp_path / "fragments"
    assert store.read("User!id@u1.json") == '{"name": "Zoë"}'
    assert (tmp_path / "fragments" / "User!id@u1.json").read_text(encoding="utf-8") == (
        '{"name": "Zoë"}'
    )


def test_directory_store_remove_ignores_missing_files(tmp_path) -> None:
    store = DirectoryFragmentStore(tmp_path)
    store.write("a.json", "{}")

    store.remove("a.json")
    store.remove("a.json")

    assert store.list_names() == []


def test_directory_store_read_failure_is_wrapped(tmp_path) -> None:
    with pytest.raises(FragmentStoreError, match="Failed to read fragment missing.json"):
        DirectoryFragmentStore(tmp_path).read("missing.json")


def test_directory_store_rejects_names_with_directories(tmp_path) -> None:
    with pytest.raises(FragmentStoreError, match="Invalid fragment name"):
        DirectoryFragmentStore(tmp_path).write("../escape.json", "{}")


def test_memory_store_behaves_like_a_directory() -> None:
    store = MemoryFragmentStore({"b.json": "2"})
    store.write("a.json", "1")

    assert store.list_names() == ["a.json", "b.json"]
    assert store.read("a.json") == "1"

    store.remove("a.json")
    store.remove("a.json")

    with pytest.raises(FragmentStoreError, match="Fragment not found: a.json"):
        store.read("a.json")


def test_assets_are_written_and_read_back_by_name() -> None:
    store = MemoryFragmentStore()
    assets = [FragmentAsset("__root__.json", "{}"), FragmentAsset("User!id@u1.json", "[]")]

    write_assets(store, assets)

    assert read_assets(store) == sorted(assets, key=lambda asset: asset.filename)
