"""Command line interface entry point."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import click

from hydra_fragments.bridge import BridgeError, FragmentBridge
from hydra_fragments.configuration import (
    DEFAULT_CONFIG_FILENAME,
    Configuration,
    ConfigurationError,
    load_configuration,
    write_placeholder_configuration,
)
from hydra_fragments.fragment_storage import DirectoryFragmentStore, FragmentStoreError
from hydra_fragments.fragments import FragmentAssetError
from hydra_fragments.schema_management import (
    SchemaError,
    admit_dehydrated,
    decode_value,
    encode_value,
    load_schema_document,
)
from hydra_fragments.uhl_addressing import UhlError, encode_uhl
from hydra_fragments.value_transforms import locate_hydratables, locate_hydrated_hydratables

_DOMAIN_ERRORS = (
    ConfigurationError,
    SchemaError,
    UhlError,
    FragmentAssetError,
    FragmentStoreError,
    BridgeError,
    OSError,
    ValueError,
)

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class CliError(Exception):
    """Custom CLI error."""


_config_option = click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON configuration file",
)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="hydra-fragments")
@click.option("--verbose", is_flag=True, default=False, help="Log debug messages to stderr.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Split schema-described JSON documents into fragment files and assemble them back."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML configuration template to write",
)
def generate_config(output_path: str) -> None:
    """Generate a placeholder YAML configuration with guidance comments."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(name="split")
@_config_option
@click.option(
    "--input",
    "input_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to the root JSON document to split",
)
@click.pass_context
def split(ctx: click.Context, config_path: str, input_path: str) -> None:
    """Write one fragment file per hydratable of the input document."""
    try:
        configuration = _load(ctx, config_path)
        bridge = _bridge_for(configuration)
        bridge.add_root_value(_read_root_value(bridge, input_path))
        assets = bridge.export()
    except _DOMAIN_ERRORS as exc:
        raise CliError(str(exc)) from exc
    for asset in assets:
        click.echo(str(configuration.storage.directory / asset.filename))


@cli.command(name="assemble")
@_config_option
@click.option(
    "--output",
    "output_path",
    required=False,
    type=click.Path(path_type=str),
    help="Optional path for the assembled JSON document; stdout when omitted",
)
@click.pass_context
def assemble(ctx: click.Context, config_path: str, output_path: str | None) -> None:
    """Import the stored fragments and write the fully hydrated document."""
    try:
        configuration = _load(ctx, config_path)
        bridge = _bridge_for(configuration)
        value = bridge.view()
        schema = admit_dehydrated(bridge.context.schema, bridge.context.registry)
        try:
            text = json.dumps(encode_value(schema, value), indent=2, ensure_ascii=False)
        except TypeError as exc:
            raise CliError(f"Assembled document is not JSON-serializable: {exc}") from exc
        if output_path is not None:
            Path(output_path).write_text(text + "\n", encoding="utf-8")
    except _DOMAIN_ERRORS as exc:
        raise CliError(str(exc)) from exc
    if output_path is None:
        click.echo(text)
    else:
        click.echo(str(Path(output_path).resolve()))


@cli.command(name="locate")
@_config_option
@click.option(
    "--input",
    "input_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to the root JSON document to inspect",
)
@click.option(
    "--hydrated-only",
    is_flag=True,
    default=False,
    help="Skip hydratables that are already placeholders.",
)
@click.pass_context
def locate(ctx: click.Context, config_path: str, input_path: str, hydrated_only: bool) -> None:
    """Print the UHL of every hydratable in the input document."""
    try:
        configuration = _load(ctx, config_path)
        bridge = _bridge_for(configuration)
        value = _read_root_value(bridge, input_path)
        finder = locate_hydrated_hydratables if hydrated_only else locate_hydratables
        located = finder(value, bridge.context.tree, bridge.context.registry)
        lines = [encode_uhl(item.uhl) for item in located]
    except _DOMAIN_ERRORS as exc:
        raise CliError(str(exc)) from exc
    for line in lines:
        click.echo(line)


@cli.command(name="clear")
@_config_option
@click.pass_context
def clear(ctx: click.Context, config_path: str) -> None:
    """Remove every stored fragment file."""
    try:
        configuration = _load(ctx, config_path)
        _bridge_for(configuration).clear()
    except _DOMAIN_ERRORS as exc:
        raise CliError(str(exc)) from exc
    click.echo(f"cleared {configuration.storage.directory}")


def _load(ctx: click.Context, config_path: str) -> Configuration:
    configuration = load_configuration(config_path)
    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    level = logging.DEBUG if verbose else configuration.logging.level
    logging.basicConfig(level=level, format=_LOG_FORMAT, stream=sys.stderr, force=True)
    return configuration


def _bridge_for(configuration: Configuration) -> FragmentBridge:
    document = load_schema_document(configuration.schema.text)
    return FragmentBridge(document.root, DirectoryFragmentStore(configuration.storage.directory))


def _read_root_value(bridge: FragmentBridge, input_path: str) -> Any:
    raw = json.loads(Path(input_path).read_text(encoding="utf-8"))
    schema = admit_dehydrated(bridge.context.schema, bridge.context.registry)
    return decode_value(schema, raw)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
