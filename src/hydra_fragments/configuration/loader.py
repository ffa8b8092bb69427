"""Configuration loader service."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from hydra_fragments.schema_management import SchemaError, load_schema_document

from .runtime_settings import Configuration, LoggingSettings, SchemaConfig, StorageSettings

DEFAULT_STORAGE_DIRECTORY = "fragments"
DEFAULT_LOG_LEVEL = "WARNING"


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


def load_configuration(config_path: Path | str) -> Configuration:
    """Load and validate the configuration file.

    The schema section is parsed eagerly so that an invalid schema is
    reported as a configuration problem.
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    schema = _parse_schema_section(parsed.get("schema"), path.parent)
    try:
        load_schema_document(schema.text)
    except SchemaError as exc:
        raise ConfigurationError(str(exc)) from exc

    storage = _parse_storage_section(parsed.get("storage"), path.parent)
    logging_settings = _parse_logging_section(parsed.get("logging"))

    return Configuration(path=path, schema=schema, storage=storage, logging=logging_settings)


def _parse_schema_section(value: Any, base_path: Path) -> SchemaConfig:
    section = _require_mapping(value, "schema")
    inline = section.get("inline")
    path_value = section.get("path")
    if inline and path_value:
        raise ConfigurationError("Schema section must not set both inline and path.")
    if inline:
        if not isinstance(inline, str):
            raise ConfigurationError("schema.inline must be a string.")
        text, source_path = inline, None
    elif path_value:
        if not isinstance(path_value, str):
            raise ConfigurationError("schema.path must be a string.")
        schema_path = _resolve_path(base_path, path_value)
        if not schema_path.exists():
            raise ConfigurationError(f"Schema file not found: {schema_path}")
        text, source_path = schema_path.read_text(encoding="utf-8"), schema_path
    else:
        raise ConfigurationError("Schema section requires either inline or path.")
    if not text.strip():
        raise ConfigurationError("Schema text cannot be empty.")
    return SchemaConfig(text=text, source_path=source_path)


def _parse_storage_section(value: Any, base_path: Path) -> StorageSettings:
    section = _optional_mapping(value, "storage")
    directory = _require_non_empty_string(
        section.get("directory", DEFAULT_STORAGE_DIRECTORY), "storage.directory"
    )
    return StorageSettings(directory=_resolve_path(base_path, directory))


def _parse_logging_section(value: Any) -> LoggingSettings:
    section = _optional_mapping(value, "logging")
    level = _require_non_empty_string(section.get("level", DEFAULT_LOG_LEVEL), "logging.level")
    level = level.upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigurationError(f"logging.level '{level}' is not a known log level.")
    return LoggingSettings(level=level)


def _resolve_path(base_path: Path, raw_path: str) -> Path:
    candidate = Path(raw_path)
    if not candidate.is_absolute():
        return (base_path / candidate).resolve()
    return candidate


def _require_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' is required.")
    return value


def _optional_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' must be a mapping.")
    return value


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped
