"""CLI for repoforge, policy-driven repository governance.

Convention-based: reads repoforge.yaml from the working directory and keeps
its state (drift baseline, structured log) in .repoforge/.

Usage:
    repoforge analyze                              # Fingerprint the project
    repoforge init --policy saas                   # Generate spec + artifacts
    repoforge validate --strict                    # Check required workflows
    repoforge local-fix                            # Generate missing workflows
    repoforge baseline                             # Record workflow contents
    repoforge drift                                # Compare against the baseline
    repoforge upgrade --to 2.0.0 --dry-run         # Plan a standards upgrade
    repoforge policy-list                          # Show policy packs
    repoforge policy-apply --repo-spec repoforge.yaml --org-policy org.yaml
    repoforge github-validate --owner acme --repo api
"""

from __future__ import annotations

import logging
import time

import click

from repoforge import __version__
from repoforge.core import find_repoforge_dir, get_config
from repoforge.logging import enable_verbose, setup_logging

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="repoforge")
@click.option("--verbose", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """RepoForge: policy-driven repository governance."""
    ctx.ensure_object(dict)
    config = get_config()
    ctx.obj["config"] = config

    if (verbose or config.get("verbose")) and not config.get("quiet"):
        enable_verbose()
    try:
        setup_logging(find_repoforge_dir())
    except FileNotFoundError:
        pass  # No .repoforge/ yet: no file log

    command = ctx.invoked_subcommand
    started = time.monotonic()

    def _log_finished() -> None:
        logger.info(
            "command finished",
            extra={"command": command, "duration_ms": round((time.monotonic() - started) * 1000, 1)},
        )

    ctx.call_on_close(_log_finished)


# ---------------------------------------------------------------------------
# Register commands from domain modules
# ---------------------------------------------------------------------------

from repoforge.cli_commands import config as _config_cmds  # noqa: E402
from repoforge.cli_commands import local as _local_cmds  # noqa: E402
from repoforge.cli_commands import policy as _policy_cmds  # noqa: E402
from repoforge.cli_commands import remote as _remote_cmds  # noqa: E402

_local_cmds.register(cli)
_policy_cmds.register(cli)
_remote_cmds.register(cli)
_config_cmds.register(cli)


if __name__ == "__main__":
    cli()
