"""Places where fragment assets are kept between runs."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from hydra_fragments.fragments import FragmentAsset
from hydra_fragments.uhl_addressing import FILENAME_SUFFIX


class FragmentStoreError(Exception):
    """Raised when a store cannot read or write a fragment."""


class FragmentStore(Protocol):
    """Protocol implemented by directory and in-memory stores."""

    def list_names(self) -> list[str]: ...

    def read(self, name: str) -> str: ...

    def write(self, name: str, content: str) -> None: ...

    def remove(self, name: str) -> None: ...


class DirectoryFragmentStore:
    """Fragment assets as UTF-8 ``*.json`` files in one directory."""

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def list_names(self) -> list[str]:
        if not self._directory.is_dir():
            return []
        return sorted(
            path.name
            for path in self._directory.iterdir()
            if path.is_file() and path.name.endswith(FILENAME_SUFFIX)
        )

    def read(self, name: str) -> str:
        try:
            return self._path(name).read_text(encoding="utf-8")
        except OSError as exc:
            raise FragmentStoreError(f"Failed to read fragment {name}: {exc}") from exc

    def write(self, name: str, content: str) -> None:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            self._path(name).write_text(content, encoding="utf-8")
        except OSError as exc:
            raise FragmentStoreError(f"Failed to write fragment {name}: {exc}") from exc

    def remove(self, name: str) -> None:
        try:
            self._path(name).unlink(missing_ok=True)
        except OSError as exc:
            raise FragmentStoreError(f"Failed to remove fragment {name}: {exc}") from exc

    def _path(self, name: str) -> Path:
        if not name or Path(name).name != name:
            raise FragmentStoreError(f"Invalid fragment name: {name!r}")
        return self._directory / name


class MemoryFragmentStore:
    """Fragment assets kept in a dictionary, mostly for tests."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._contents: dict[str, str] = dict(initial or {})

    def list_names(self) -> list[str]:
        return sorted(self._contents)

    def read(self, name: str) -> str:
        try:
            return self._contents[name]
        except KeyError as exc:
            raise FragmentStoreError(f"Fragment not found: {name}") from exc

    def write(self, name: str, content: str) -> None:
        self._contents[name] = content

    def remove(self, name: str) -> None:
        self._contents.pop(name, None)


def read_assets(store: FragmentStore) -> list[FragmentAsset]:
    return [FragmentAsset(filename=name, content=store.read(name)) for name in store.list_names()]


def write_assets(store: FragmentStore, assets: list[FragmentAsset]) -> None:
    for asset in assets:
        store.write(asset.filename, asset.content)
