"""CLI entry point - Click commands for rulesmith."""

from __future__ import annotations

import asyncio
import sys

import click

from rulesmith import __version__
from rulesmith.cli._output import (
    format_infos_json,
    format_infos_text,
    format_operators_json,
    format_operators_text,
)
from rulesmith.core._types import Side
from rulesmith.core.catalog import CatalogError, load_catalog
from rulesmith.core.config import ConfigError, RulesConfig, load_config
from rulesmith.core.model import ValueDescriptor
from rulesmith.core.operators import allowed_operators
from rulesmith.core.resolver import resolve_asset_infos


def _load_config_or_exit(config_path: str | None) -> RulesConfig:
    try:
        return load_config(config_path)
    except ConfigError as exc:
        click.echo(f"Error: invalid config: {exc}", err=True)
        sys.exit(2)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "-V", "--version", message="rulesmith %(version)s")
def cli() -> None:
    """rulesmith - rule authoring configuration resolver."""


@cli.command()
@click.argument("catalog_path", type=click.Path(exists=False))
@click.option(
    "--side",
    type=click.Choice([s.value for s in Side]),
    default=Side.WHEN.value,
    help="Editing context to resolve for.",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
@click.option("--no-color", is_flag=True, envvar="NO_COLOR", help="Disable ANSI colors.")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=False),
    help="Path to .rulesmith.toml or pyproject.toml config file.",
)
def resolve(
    catalog_path: str,
    side: str,
    fmt: str,
    no_color: bool,
    config_path: str | None,
) -> None:
    """Show the asset types and attributes available on one side of a rule."""
    try:
        catalog = load_catalog(catalog_path)
    except CatalogError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    config = _load_config_or_exit(config_path)
    resolved_side = Side(side)
    infos = asyncio.run(resolve_asset_infos(catalog, config, resolved_side))

    if fmt == "json":
        click.echo(format_infos_json(infos, side=resolved_side))
    else:
        click.echo(
            format_infos_text(
                infos, side=resolved_side, catalog_path=catalog_path, no_color=no_color
            )
        )


@cli.command()
@click.option("--value-type", required=True, help="Value descriptor name, e.g. 'positiveInteger'.")
@click.option("--json-type", default="", help="JSON type of the value, e.g. 'number'.")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
@click.option("--no-color", is_flag=True, envvar="NO_COLOR", help="Disable ANSI colors.")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=False),
    help="Path to .rulesmith.toml or pyproject.toml config file.",
)
def operators(
    value_type: str,
    json_type: str,
    fmt: str,
    no_color: bool,
    config_path: str | None,
) -> None:
    """List the query operators allowed for a value type."""
    config = _load_config_or_exit(config_path)
    value = ValueDescriptor(name=value_type, json_type=json_type)
    ops = allowed_operators(config.controls, value)

    if fmt == "json":
        click.echo(format_operators_json(value, ops))
    else:
        click.echo(format_operators_text(value, ops, no_color=no_color))
