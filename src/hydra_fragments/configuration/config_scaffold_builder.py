"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "hydra.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Configuration template for hydra-fragments.
# Replace every <REQUIRED> placeholder before running split or assemble.

schema:
  # Provide either a schema file path or inline schema YAML/JSON text.
  path: "<REQUIRED>"
  # inline: |
  #   root:
  #     $ref: Catalog
  #   definitions:
  #     Catalog:
  #       type: struct
  #       tag: Catalog
  #       fields: {}

storage:
  # Directory holding one JSON file per fragment, relative to this file.
  directory: fragments

logging:
  # One of DEBUG, INFO, WARNING, ERROR.
  level: WARNING
"""


def build_placeholder_configuration() -> str:
    """Build a YAML configuration template with placeholders and inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the placeholder configuration template to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
