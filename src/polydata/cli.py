"""Root CLI group for polydata with global flags and the describe command."""

from __future__ import annotations

import importlib
import json
import sys

import click
import structlog

from polydata import __version__
from polydata.config.logging import configure_logging
from polydata.config.settings import PolydataSettings, activate_settings
from polydata.core.base import Constructor
from polydata.errors import PolydataError
from polydata.output.console import render_description
from polydata.output.describe import describe_constructor

log = structlog.get_logger("polydata.cli")


def load_target(target: str) -> Constructor:
    """Import ``module.path:attribute`` and return it as a constructor.

    Raises:
        click.BadParameter: the target is malformed, missing, or not a
            polydata constructor.
    """
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        msg = f"Expected MODULE:ATTRIBUTE, got {target!r}"
        raise click.BadParameter(msg, param_hint="TARGET")
    try:
        obj: object = importlib.import_module(module_name)
    except ImportError as exc:
        msg = f"Cannot import {module_name!r}: {exc}"
        raise click.BadParameter(msg, param_hint="TARGET") from exc
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            msg = f"{module_name!r} has no attribute {attr_path!r}"
            raise click.BadParameter(msg, param_hint="TARGET") from exc
    if not isinstance(obj, Constructor):
        msg = f"{target!r} is not a polydata constructor"
        raise click.BadParameter(msg, param_hint="TARGET")
    return obj


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="polydata")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging to stderr.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """polydata: inspect schema-validated data classes."""
    overrides = {"verbose": True} if verbose else {}
    if log_json:
        overrides["log_json"] = True
    settings = activate_settings(PolydataSettings.load(config_path=config_path, **overrides))
    configure_logging(settings)
    ctx.obj = {"settings": settings, "json_output": json_output}
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("target")
@click.option("--schema", "include_schema", is_flag=True, help="Include the JSON schema.")
@click.pass_obj
def describe(obj: dict[str, object], target: str, include_schema: bool) -> None:
    """Describe the constructor at TARGET (``package.module:Name``)."""
    json_output = bool(obj.get("json_output"))
    ctor = load_target(target)
    log.debug("describe", target=target, kind=ctor.kind)
    try:
        description = describe_constructor(
            ctor, include_json_schema=include_schema or json_output
        )
    except PolydataError as exc:
        click.echo(f"ERROR: describe: {exc}", err=True)
        sys.exit(1)

    if json_output:
        click.echo(json.dumps(description, indent=2, default=str))
    else:
        click.echo(render_description(description), nl=False)
