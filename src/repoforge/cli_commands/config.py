"""CLI command for user preferences: config-init."""

from __future__ import annotations

import shutil
from pathlib import Path

import click

from repoforge.cli_common import COMMAND_ERRORS, fail
from repoforge.core import CONFIG_FILENAMES, DEFAULT_CONFIG, PACK_NAMES, SPEC_FILENAME, write_config


@click.command("config-init")
@click.option("--policy", type=click.Choice(PACK_NAMES), default="saas", help="Default policy pack")
@click.option("--owner", default=None, help="GitHub organization or user")
@click.option("--spec", "spec_path", default=SPEC_FILENAME, help="Default spec path")
@click.option("--auto-fix", is_flag=True, help="Enable auto-fix by default")
@click.option("--verbose", is_flag=True, help="Enable verbose output by default")
def config_init(policy: str, owner: str | None, spec_path: str, auto_fix: bool, verbose: bool) -> None:
    """Create or replace .repoforgerc.yaml in the current directory."""
    config_path = Path.cwd() / CONFIG_FILENAMES[0]
    config: dict[str, object] = {
        **DEFAULT_CONFIG,
        "spec_path": spec_path,
        "default_policy": policy,
        "auto_fix": auto_fix,
        "verbose": verbose,
    }
    # Tokens come from GITHUB_TOKEN, never the config file.
    if owner:
        config["github"] = {"owner": owner}

    try:
        if config_path.exists():
            backup = config_path.with_name(config_path.name + ".bak")
            shutil.copyfile(config_path, backup)
            click.echo(f"Backed up existing config to {backup.name}")
        write_config(config_path, config)
    except COMMAND_ERRORS as e:
        fail(str(e))

    click.echo(f"Wrote {config_path.name}")
    click.echo(f"  Spec path:      {spec_path}")
    click.echo(f"  Default policy: {policy}")
    click.echo(f"  Auto-fix:       {auto_fix}")
    click.echo(f"  Verbose:        {verbose}")
    if owner:
        click.echo(f"  GitHub owner:   {owner}")
    click.echo("\nREPOFORGE_* environment variables override these values.")


def register(cli: click.Group) -> None:
    """Register config commands with the CLI group."""
    cli.add_command(config_init)
