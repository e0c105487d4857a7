"""CLI commands that act on GitHub: github-init, github-validate, github-upgrade, github-auto-fix, scan.

Each command talks to the repository through ``open_gateway``; the only
changes ever made remotely arrive as pull requests.
"""

from __future__ import annotations

import json as json_mod
import logging
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import click
import httpx

from repoforge.artifacts import generate_artifacts, workflow_artifacts
from repoforge.cli_commands.local import generate_project_spec
from repoforge.cli_common import COMMAND_ERRORS, fail, get_config, report_validation
from repoforge.core import PACK_NAMES, SPEC_FILENAME, WORKFLOWS_DIR
from repoforge.diff import file_diff, format_diff
from repoforge.github import GitHubClient, RepositoryGateway
from repoforge.spec import Spec, dump_spec, parse_spec_document
from repoforge.upgrader import VersionManager, attach_content
from repoforge.validator import SpecValidator

logger = logging.getLogger(__name__)

REMOTE_ERRORS: tuple[type[Exception], ...] = (*COMMAND_ERRORS, httpx.HTTPError)


@contextmanager
def open_gateway(token: str, owner: str, repo: str) -> Iterator[RepositoryGateway]:
    """Yield a gateway for owner/repo, closed on exit."""
    with GitHubClient(token, owner, repo) as client:
        yield client


def _github_options(func: Callable[..., Any]) -> Callable[..., Any]:
    func = click.option("--token", envvar="GITHUB_TOKEN", required=True,
                        help="GitHub token (default: $GITHUB_TOKEN)")(func)
    func = click.option("--repo", required=True, help="Repository name")(func)
    func = click.option("--owner", default=None, help="GitHub organization or user (default: config github.owner)")(func)
    return func


def _resolve_owner(ctx: click.Context, owner: str | None) -> str:
    owner = owner or (get_config(ctx).get("github") or {}).get("owner")
    if not owner:
        fail("Missing --owner (or github.owner in .repoforgerc)")
    return owner


def _require_access(gateway: RepositoryGateway) -> None:
    if not gateway.validate_access():
        fail("Cannot access repository - check token and permissions")


def _fetch_spec(gateway: RepositoryGateway) -> dict[str, Any] | None:
    content = gateway.fetch_file(SPEC_FILENAME)
    if content is None:
        return None
    return parse_spec_document(content, source=SPEC_FILENAME)


def _existing_workflows(gateway: RepositoryGateway) -> set[str]:
    return set(gateway.list_files(WORKFLOWS_DIR))


@click.command("github-init")
@_github_options
@click.option("--policy", type=click.Choice(PACK_NAMES), default=None, help="Policy pack supplying standards")
@click.option("--dir", "directory", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Local checkout to analyze (default: cwd)")
@click.pass_context
def github_init(
    ctx: click.Context, owner: str | None, repo: str, token: str, policy: str | None, directory: Path | None
) -> None:
    """Open a pull request that adds repoforge.yaml and its artifacts."""
    owner = _resolve_owner(ctx, owner)
    try:
        spec, confidence = generate_project_spec(directory or Path.cwd(), policy)
        click.echo(f"Detected: {spec.project.type} ({spec.project.language}), {round(confidence * 100)}% confidence")
        spec_yaml = dump_spec(spec)
        files = {SPEC_FILENAME: spec_yaml, **generate_artifacts(spec)}

        with open_gateway(token, owner, repo) as gateway:
            _require_access(gateway)
            url = gateway.create_pull_request(
                "repoforge: initialize repository standards",
                _init_body(spec_yaml, files),
                files,
            )
    except REMOTE_ERRORS as e:
        fail(str(e))
    click.echo(f"Pull request created: {url}")


def _init_body(spec_yaml: str, files: dict[str, str]) -> str:
    listing = "\n".join(f"- `{path}`" for path in files)
    return (
        "## RepoForge Initialization\n\n"
        "This pull request sets up the repository standards described by `repoforge.yaml`.\n\n"
        f"### Files\n\n{listing}\n\n"
        f"### Spec\n\n```yaml\n{spec_yaml}```\n\n"
        "### Next Steps\n\n1. Review this PR\n2. Merge to apply standards\n3. Run `repoforge validate` locally\n"
    )


@click.command("github-validate")
@_github_options
@click.option("--strict", is_flag=True, help="Fail on warnings")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def github_validate(ctx: click.Context, owner: str | None, repo: str, token: str, strict: bool, as_json: bool) -> None:
    """Check a GitHub repository against its repoforge.yaml."""
    owner = _resolve_owner(ctx, owner)
    try:
        with open_gateway(token, owner, repo) as gateway:
            _require_access(gateway)
            raw = _fetch_spec(gateway)
            if raw is None:
                fail("No repoforge.yaml found in repository", as_json=as_json)
            result = SpecValidator().validate(raw, _existing_workflows(gateway))
    except REMOTE_ERRORS as e:
        fail(str(e), as_json=as_json)
    if not as_json:
        click.echo(f"Checked {owner}/{repo} against spec version {raw.get('version', 'unknown')}")
    report_validation(result, strict=strict, as_json=as_json, ok_message="Repository is compliant")


@click.command("github-upgrade")
@_github_options
@click.option("--to", "target", default=None, help="Target version (default: latest)")
@click.pass_context
def github_upgrade(ctx: click.Context, owner: str | None, repo: str, token: str, target: str | None) -> None:
    """Open a pull request that upgrades a repository's repoforge standards."""
    owner = _resolve_owner(ctx, owner)
    manager = VersionManager()
    target = target or manager.get_latest_version()
    try:
        with open_gateway(token, owner, repo) as gateway:
            _require_access(gateway)
            raw = _fetch_spec(gateway)
            if raw is None:
                fail("No repoforge.yaml found in repository")
            spec = Spec.from_dict(raw)
            click.echo(f"Current: {spec.version}")
            click.echo(f"Target: {target}")
            if spec.version == target:
                click.echo(f"Already at {target}")
                return

            guide = manager.plan_upgrade(spec.version, target)
            upgraded = Spec.from_dict({**spec.to_dict(), "version": target})
            new_files = {**generate_artifacts(upgraded), SPEC_FILENAME: dump_spec(upgraded)}
            old_files = {}
            for step in guide.steps:
                content = gateway.fetch_file(step.file)
                if content is not None:
                    old_files[step.file] = content
            guide = attach_content(guide, new_files, old_files)

            files = {SPEC_FILENAME: new_files[SPEC_FILENAME]}
            for step in guide.steps:
                if step.action in ("create", "modify") and step.new_content is not None:
                    files[step.file] = step.new_content

            changes = "\n".join(f"- {s.action.upper()}: {s.file} - {s.reason}" for s in guide.steps) or "- none"
            diffs = "".join(
                format_diff(file_diff(s.file, s.old_content, s.new_content))
                for s in guide.steps
                if s.old_content and s.new_content
            )
            notice = (
                "**Breaking changes**: this is a major version upgrade. Please review carefully."
                if guide.backup_required
                else "Minor update, backward compatible."
            )
            body = f"## RepoForge Upgrade\n\nUpgrades repoforge standards to v{target}.\n\n{notice}\n\n### Changes\n\n{changes}\n"
            if diffs:
                body += f"\n### Diff\n\n```diff{diffs}```\n"
            url = gateway.create_pull_request(
                f"repoforge: upgrade specs from {spec.version} to {target}", body, files
            )
    except REMOTE_ERRORS as e:
        fail(str(e))
    click.echo(f"Upgrade pull request created: {url}")


@click.command("github-auto-fix")
@_github_options
@click.option("--dry-run", is_flag=True, help="Preview fixes without opening a pull request")
@click.option("--dir", "directory", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Local checkout to analyze when the repository has no spec (default: cwd)")
@click.pass_context
def github_auto_fix(
    ctx: click.Context, owner: str | None, repo: str, token: str, dry_run: bool, directory: Path | None
) -> None:
    """Open a pull request adding the workflow files a repository is missing."""
    owner = _resolve_owner(ctx, owner)
    try:
        with open_gateway(token, owner, repo) as gateway:
            _require_access(gateway)
            raw = _fetch_spec(gateway)
            files: dict[str, str] = {}
            if raw is None:
                click.echo("No spec found, generating one from the local project")
                spec, _ = generate_project_spec(directory or Path.cwd(), None)
                files[SPEC_FILENAME] = dump_spec(spec)
            else:
                spec = Spec.from_dict(raw)

            existing = _existing_workflows(gateway)
            result = SpecValidator().validate(spec, existing)
            missing = [v for v in result.violations if v.rule == "required-workflow"]
            if not missing:
                click.echo("No fixable violations found")
                return

            files.update({p: c for p, c in workflow_artifacts(spec).items() if p not in existing})
            if dry_run:
                click.echo("Files to be created:")
                for path in files:
                    click.echo(f"  + {path}")
                click.echo("\n(run without --dry-run to open a pull request)")
                return

            fixed = "\n".join(f"- [{v.severity}] {v.file}: {v.message}" for v in missing)
            added = "\n".join(f"- `{p}`" for p in files)
            body = f"## Auto-Fix Violations\n\n### Violations Fixed\n\n{fixed}\n\n### Files Added\n\n{added}\n"
            url = gateway.create_pull_request("repoforge: auto-fix spec violations", body, files)
    except REMOTE_ERRORS as e:
        fail(str(e))
    click.echo(f"Auto-fix pull request created: {url}")


@click.command()
@click.option("--owner", default=None, help="GitHub organization or user (default: config github.owner)")
@click.option("--token", envvar="GITHUB_TOKEN", required=True, help="GitHub token (default: $GITHUB_TOKEN)")
@click.option("--repos", required=True, help="Comma-separated repository names")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def scan(ctx: click.Context, owner: str | None, token: str, repos: str, as_json: bool) -> None:
    """Report which repositories carry a repoforge spec and whether they comply."""
    owner = _resolve_owner(ctx, owner)
    names = [r.strip() for r in repos.split(",") if r.strip()]
    results = [_scan_one(token, owner, name) for name in names]

    if as_json:
        click.echo(json_mod.dumps(results, indent=2))
    else:
        with_spec = sum(1 for r in results if r["has_spec"])
        errors = sum(1 for r in results if r["status"] == "error")
        click.echo(f"Scanned {len(results)} repositories: {with_spec} with spec, {errors} error(s)")
        for r in results:
            if r["status"] == "error":
                click.echo(f"  x {r['owner']}/{r['repo']}: {r['error']}")
            elif not r["has_spec"]:
                click.echo(f"  o {r['owner']}/{r['repo']}: no repoforge.yaml")
            else:
                state = "compliant" if r["compliant"] else "non-compliant"
                click.echo(f"  + {r['owner']}/{r['repo']}: {state}")
    if any(r["status"] == "error" for r in results):
        sys.exit(1)


def _scan_one(token: str, owner: str, repo: str) -> dict[str, Any]:
    result: dict[str, Any] = {
        "owner": owner,
        "repo": repo,
        "url": f"https://github.com/{owner}/{repo}",
        "has_spec": False,
        "compliant": None,
        "status": "success",
    }
    try:
        with open_gateway(token, owner, repo) as gateway:
            if not gateway.validate_access():
                result.update(status="error", error="Cannot access repository")
                return result
            raw = _fetch_spec(gateway)
            if raw is not None:
                validation = SpecValidator().validate(raw, _existing_workflows(gateway))
                result.update(has_spec=True, compliant=validation.valid)
    except REMOTE_ERRORS as e:
        logger.warning("Scan of %s/%s failed: %s", owner, repo, e)
        result.update(status="error", error=str(e))
    return result


def register(cli: click.Group) -> None:
    """Register GitHub commands with the CLI group."""
    cli.add_command(github_init)
    cli.add_command(github_validate)
    cli.add_command(github_upgrade)
    cli.add_command(github_auto_fix)
    cli.add_command(scan)
