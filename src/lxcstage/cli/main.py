#!/usr/bin/env python3
"""
lxcstage CLI - Main entry point.

Usage:
    lxcstage [OPTIONS] COMMAND [ARGS]...

Provision minimal Gentoo guests for LXC from the newest stage archive.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.logging import RichHandler
from rich.markup import escape

from .. import __version__
from ..config import ConfigError, Settings, apply_config_file, load_config
from ..instance import InstanceSpec, load_params_file
from ..output import out
from ..provisioner import Provisioner
from .decorators import handle_provision_errors, require_root


# Create the main Typer app
app = typer.Typer(
    name="lxcstage",
    help="Provision minimal Gentoo LXC guests from stage archives",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        out.info(f"lxcstage version {__version__}")
        raise typer.Exit()


def _settings(ctx: typer.Context) -> Settings:
    settings: Settings = ctx.find_root().obj
    return settings


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Extra settings file, applied on top of the system and user config.",
        exists=True,
        dir_okay=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging.",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    lxcstage - LXC guest provisioning.

    Fetches and caches the newest stage archive, clones it into a named
    root filesystem, adapts it to run as a container and registers it
    with LXC.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=out.err_console, show_time=False)],
    )
    try:
        settings = load_config()
        if config is not None:
            settings = apply_config_file(settings, config)
    except ConfigError as e:
        out.error(escape(str(e)))
        raise typer.Exit(1)
    ctx.obj = settings


def _gather_params(settings: Settings, params_file: Optional[Path]) -> InstanceSpec:
    """Build the instance spec from a parameter file or interactive prompts."""
    if params_file is not None:
        try:
            raw = load_params_file(params_file)
        except (OSError, ValueError) as e:
            out.error(escape(str(e)))
            raise typer.Exit(1)
    else:
        raw = {}
        raw["name"] = typer.prompt("Container name")
        raw["hostname"] = typer.prompt("Hostname", default=raw["name"])
        raw["ipv4"] = typer.prompt("IPv4 address (e.g. 10.0.0.5/24)")
        raw["gateway"] = typer.prompt("Gateway address")

    try:
        return InstanceSpec.build(
            settings,
            name=raw.get("name", ""),
            hostname=raw.get("hostname"),
            ipv4=raw.get("ipv4", ""),
            gateway=raw.get("gateway", ""),
        )
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(p) for p in err["loc"])
            out.error(escape(f"Invalid {field}: {err['msg']}"))
        raise typer.Exit(1)


@app.command()
@require_root
@handle_provision_errors
def create(
    ctx: typer.Context,
    params_file: Optional[Path] = typer.Option(
        None,
        "--file",
        "-f",
        help="Read name, hostname, ipv4 and gateway from the [container] section of this file.",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """Create and register a new container.

    Prompts for the container name, hostname, address, gateway and root
    password, downloads the base image on first use and writes
    <hostname>.conf to the current directory.
    """
    settings = _settings(ctx)
    spec = _gather_params(settings, params_file)

    password = typer.prompt("Root password", hide_input=True)
    confirmation = typer.prompt("Repeat root password", hide_input=True)

    provisioner = Provisioner(settings, progress=out)
    result = provisioner.create(spec, password, confirmation)

    out.info(f"Runtime descriptor: [bold]{escape(str(result.descriptor))}[/bold]")
    out.info("Next steps:")
    for command in result.next_steps:
        out.info(f"  {escape(command)}")


@app.command()
@require_root
@handle_provision_errors
def destroy(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Name of the container to destroy"),
) -> None:
    """Destroy a container and optionally delete its root filesystem."""
    settings = _settings(ctx)
    if name is None:
        name = typer.prompt("Container name")

    provisioner = Provisioner(settings, progress=out)
    root = settings.instances_dir / name
    remove = root.exists() and typer.confirm(f"Also delete {root}?", default=False)
    provisioner.destroy(name, remove_rootfs=remove)


@app.command()
@require_root
@handle_provision_errors
def purge(ctx: typer.Context) -> None:
    """Delete the cached stage archive and extracted tree."""
    Provisioner(_settings(ctx), progress=out).purge()


@app.command(name="help")
def help_cmd(ctx: typer.Context) -> None:
    """Show this message and exit."""
    typer.echo(ctx.find_root().get_help())


def cli() -> None:
    """CLI entry point for setuptools.

    Usage errors such as an unknown command exit with status 1 rather
    than the usual 2.
    """
    prog_name = os.environ.get("LXCSTAGE_PROG_NAME", "lxcstage")
    command = typer.main.get_command(app)
    try:
        command.main(prog_name=prog_name, standalone_mode=True)
    except SystemExit as e:
        sys.exit(1 if e.code == 2 else e.code)


if __name__ == "__main__":
    cli()
