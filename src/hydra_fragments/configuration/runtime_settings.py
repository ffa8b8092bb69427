"""Configuration domain entities."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SchemaConfig:
    """Normalized schema settings."""

    text: str
    source_path: Path | None


@dataclass(frozen=True)
class StorageSettings:
    """Where fragment files are kept."""

    directory: Path


@dataclass(frozen=True)
class LoggingSettings:
    level: str


@dataclass(frozen=True)
class Configuration:
    """Top-level configuration aggregate."""

    path: Path
    schema: SchemaConfig
    storage: StorageSettings
    logging: LoggingSettings
