"""CLI commands for policy packs and policy inheritance: policy-list, policy-apply."""

from __future__ import annotations

import json as json_mod
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import click

from repoforge.cli_common import COMMAND_ERRORS, fail
from repoforge.core import PACK_NAMES
from repoforge.inheritance import PolicyResolver, apply_policy, check_compliance
from repoforge.policies import PolicyPackRegistry
from repoforge.spec import (
    STANDARDS_FIELDS,
    SpecError,
    read_spec_document,
    validate_policy_data,
    validate_spec_data,
    write_spec,
)


@click.command("policy-list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def policy_list(as_json: bool) -> None:
    """List the available policy packs."""
    packs = PolicyPackRegistry().list_packs()
    if as_json:
        click.echo(json_mod.dumps([p.to_dict() for p in packs], indent=2))
        return
    for pack in packs:
        click.echo(f"{pack.name} (v{pack.version})")
        click.echo(f"  {pack.description}")
        for name in STANDARDS_FIELDS:
            click.echo(f"  {name}: {pack.standard(name) or 'not set'}")
        click.echo("")
    click.echo("Usage: repoforge init --policy <pack-name>")


def _read_policy(path: Path) -> dict[str, Any]:
    data = read_spec_document(path)
    errors = validate_policy_data(data)
    if errors:
        raise SpecError(f"Invalid policy {path}: {'; '.join(errors)}", errors)
    return data


def _echo_level(label: str, policy: Mapping[str, Any]) -> None:
    standards = policy.get("standards")
    if not isinstance(standards, Mapping):
        standards = {}
    click.echo(f"  {label}:")
    for name in STANDARDS_FIELDS:
        click.echo(f"    {name}: {standards.get(name) or 'unset'}")


@click.command("policy-apply")
@click.option("--repo-spec", required=True, type=click.Path(path_type=Path), help="Repository spec (repoforge.yaml)")
@click.option("--org-policy", type=click.Path(path_type=Path), default=None, help="Organization policy file")
@click.option("--team-policy", type=click.Path(path_type=Path), default=None, help="Team policy file")
@click.option("--pack", type=click.Choice(PACK_NAMES), default=None, help="Policy pack beneath the organization policy")
@click.option("--check-only", is_flag=True, help="Report compliance without modifying the spec")
@click.option("--out", type=click.Path(path_type=Path), default=None, help="Output file (default: update --repo-spec)")
def policy_apply(
    repo_spec: Path,
    org_policy: Path | None,
    team_policy: Path | None,
    pack: str | None,
    check_only: bool,
    out: Path | None,
) -> None:
    """Check a repository spec against organization and team policy, and apply it."""
    for label, path in (("Repository spec", repo_spec), ("Organization policy", org_policy),
                        ("Team policy", team_policy)):
        if path is not None and not path.exists():
            fail(f"{label} not found: {path}")

    resolver = PolicyResolver()
    try:
        spec_data = read_spec_document(repo_spec)
        errors = [e for e in validate_spec_data(spec_data) if e != "Missing project definition"]
        if errors:
            raise SpecError(f"Invalid spec: {'; '.join(errors)}", errors)
        pack_def = PolicyPackRegistry().get(pack) if pack else None
        if pack_def is not None:
            resolver.register("organization", dict(pack_def.spec), f"pack:{pack}")
        org_data = _read_policy(org_policy) if org_policy else None
        if org_data is not None:
            resolver.register("organization", org_data, str(org_policy))
        team_data = _read_policy(team_policy) if team_policy else None
        if team_data is not None:
            resolver.register("team", team_data, str(team_policy))
    except COMMAND_ERRORS as e:
        fail(str(e))

    effective = resolver.resolve_policy()
    compliance = check_compliance(spec_data, effective)

    if compliance.compliant:
        click.echo("Repository spec complies with policies")
    else:
        click.echo(f"Found {len(compliance.violations)} compliance issue(s):")
        for violation in compliance.violations:
            click.echo(f"  - {violation}")

    applied_to: Path | None = None
    if not compliance.compliant and not check_only:
        applied = apply_policy(spec_data, effective)
        errors = validate_spec_data(applied)
        if errors:
            fail(f"Applied spec is invalid: {'; '.join(errors)}")
        applied_to = out or repo_spec
        write_spec(applied_to, applied)
        click.echo(f"Policies applied and saved to {applied_to}")

    click.echo("\nPolicy hierarchy:")
    for layer in resolver.layers:
        _echo_level(f"{layer.level.capitalize()} ({layer.source})", layer.policy)
    _echo_level("Repository (current)", spec_data)

    if not compliance.compliant and applied_to is None:
        sys.exit(1)


def register(cli: click.Group) -> None:
    """Register policy commands with the CLI group."""
    cli.add_command(policy_list)
    cli.add_command(policy_apply)
