"""CLI commands that operate on the local checkout: analyze, init, apply, validate, local-fix, baseline, drift, upgrade."""

from __future__ import annotations

import json as json_mod
import shutil
import sys
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

import click

from repoforge.analyzer import ProjectAnalyzer
from repoforge.artifacts import generate_artifacts, workflow_artifacts, write_artifacts
from repoforge.cli_common import (
    COMMAND_ERRORS,
    check_schema_or_exit,
    echo_paths,
    fail,
    get_config,
    load_spec_or_exit,
    read_spec_or_exit,
    report_validation,
    resolve_spec_path,
)
from repoforge.core import PACK_NAMES, REPOFORGE_DIR_NAME, SPEC_FILENAME, ensure_gitignore
from repoforge.diff import file_diff, format_diff
from repoforge.plugins import check_rules, run_plugins
from repoforge.policies import PolicyPackRegistry
from repoforge.spec import Spec, SpecMetadata, dump_spec, write_spec
from repoforge.spec_generator import SpecGenerator
from repoforge.upgrader import VersionManager, attach_content
from repoforge.validator import (
    SpecValidator,
    ValidationResult,
    collect_existing_files,
    read_baseline,
    read_current_files,
    write_baseline,
)


def generate_project_spec(root: Path, policy: str | None) -> tuple[Spec, float]:
    """Fingerprint root and build a spec, with the named pack filling in standards."""
    analysis = ProjectAnalyzer(root).analyze()
    standards = None
    if policy:
        partial = PolicyPackRegistry().apply({"project": analysis.project}, policy)
        standards = partial["standards"]
    spec = SpecGenerator().generate_spec(analysis.project, standards)
    return spec, analysis.confidence


def missing_workflows(root: Path, spec: Spec) -> dict[str, str]:
    """Workflow artifacts for spec whose files do not exist under root."""
    return {rel: content for rel, content in workflow_artifacts(spec).items() if not (root / rel).exists()}


def record_baseline(root: Path, spec: Spec) -> Path:
    """Snapshot the on-disk content of the spec's workflow files into .repoforge/baseline.json."""
    current = read_current_files(root, workflow_artifacts(spec))
    return write_baseline(root / REPOFORGE_DIR_NAME, current)


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def analyze(as_json: bool) -> None:
    """Analyze the project and print the detected configuration."""
    result = ProjectAnalyzer(Path.cwd()).analyze()
    if as_json:
        click.echo(json_mod.dumps(result.to_dict(), indent=2))
        return
    project = result.project
    click.echo(f"Type: {project['type']} ({round(result.confidence * 100)}% confidence)")
    click.echo(f"Language: {project['language']}")
    click.echo(f"Runtime: {project['runtime']}")
    click.echo(f"Deployment: {project['deployment']}")
    if result.patterns:
        click.echo("\nDetected patterns:")
        echo_paths(result.patterns, prefix="  - ")


@click.command()
@click.option("--dry-run", is_flag=True, help="Preview changes without writing files")
@click.option("--policy", type=click.Choice(PACK_NAMES), default=None, help="Policy pack supplying standards")
@click.option("--dir", "directory", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Project directory (default: cwd)")
@click.pass_context
def init(ctx: click.Context, dry_run: bool, policy: str | None, directory: Path | None) -> None:
    """Generate repoforge.yaml and the artifacts it requires."""
    root = directory or Path.cwd()
    policy = policy or get_config(ctx).get("default_policy")
    try:
        spec, confidence = generate_project_spec(root, policy)
    except COMMAND_ERRORS as e:
        fail(str(e))

    click.echo(f"Detected: {spec.project.type} ({spec.project.language})")
    click.echo(f"  Confidence: {round(confidence * 100)}%")
    if policy:
        click.echo(f"  Policy pack: {policy}")
    artifacts = generate_artifacts(spec)

    if dry_run or get_config(ctx).get("dry_run"):
        click.echo("\nWould write:")
        echo_paths([SPEC_FILENAME, *artifacts])
        click.echo("\nNo changes applied.")
        return

    spec_file = root / SPEC_FILENAME
    if spec_file.exists():
        backup = spec_file.with_name(spec_file.name + ".bak")
        shutil.copyfile(spec_file, backup)
        click.echo(f"Backed up existing spec to {backup.name}")
    write_spec(spec_file, spec)
    written = write_artifacts(root, artifacts, overwrite=False)
    (root / REPOFORGE_DIR_NAME).mkdir(exist_ok=True)
    record_baseline(root, spec)
    _, gitignore_msg = ensure_gitignore(root)

    click.echo(f"\nWrote {SPEC_FILENAME} and {len(written)} artifact(s):")
    echo_paths(written)
    skipped = [p for p in artifacts if p not in written]
    if skipped:
        click.echo(f"Kept {len(skipped)} existing file(s):")
        echo_paths(skipped)
    click.echo(gitignore_msg)
    click.echo("\nNext: repoforge validate")


@click.command()
@click.option("--spec", "spec_option", default=None, help="Path to spec file (default: repoforge.yaml)")
@click.option("--dry-run", is_flag=True, help="Preview changes without writing files")
@click.pass_context
def apply(ctx: click.Context, spec_option: str | None, dry_run: bool) -> None:
    """Regenerate workflows from the spec and create any missing artifacts."""
    spec_path = resolve_spec_path(ctx, spec_option)
    spec = load_spec_or_exit(spec_path)
    root = spec_path.parent
    artifacts = generate_artifacts(spec)
    workflows = workflow_artifacts(spec)

    changes: list[tuple[str, str]] = []
    for rel, content in artifacts.items():
        target = root / rel
        if not target.exists():
            changes.append(("+", rel))
        elif rel in workflows and target.read_text(encoding="utf-8") != content:
            changes.append(("~", rel))

    if not changes:
        click.echo("Repository already matches the spec")
        return
    if dry_run:
        for marker, rel in changes:
            click.echo(f"  {marker} {rel}")
        click.echo("\nNo changes applied.")
        return

    to_write = {rel: artifacts[rel] for _, rel in changes}
    write_artifacts(root, to_write)
    (root / REPOFORGE_DIR_NAME).mkdir(exist_ok=True)
    record_baseline(root, spec)
    click.echo(f"Applied {len(to_write)} change(s):")
    for marker, rel in changes:
        click.echo(f"  {marker} {rel}")


@click.command()
@click.option("--spec", "spec_option", default=None, help="Path to spec file (default: repoforge.yaml)")
@click.option("--strict", is_flag=True, help="Fail on warnings")
@click.option("--plugin-rules", is_flag=True, help="Also check language plugin rules")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def validate(ctx: click.Context, spec_option: str | None, strict: bool, plugin_rules: bool, as_json: bool) -> None:
    """Validate the repository against its spec."""
    spec_path = resolve_spec_path(ctx, spec_option)
    raw = read_spec_or_exit(spec_path, as_json=as_json)
    check_schema_or_exit(raw, as_json=as_json)
    root = spec_path.parent
    result = SpecValidator().validate(raw, collect_existing_files(root))

    config = get_config(ctx)
    if config.get("auto_fix") and not config.get("dry_run") and raw.get("project"):
        if any(v.rule == "required-workflow" for v in result.violations):
            fixes = missing_workflows(root, load_spec_or_exit(spec_path, as_json=as_json))
            write_artifacts(root, fixes)
            if not as_json:
                click.echo(f"Auto-fixed {len(fixes)} missing workflow(s)")
            result = SpecValidator().validate(raw, collect_existing_files(root))

    if plugin_rules and raw.get("project"):
        spec = load_spec_or_exit(spec_path, as_json=as_json)
        rules = run_plugins(spec).rules
        files = read_current_files(root, {rule.file for rule in rules})
        extra = check_rules(rules, files)
        violations = [*result.violations, *extra]
        result = ValidationResult(valid=not any(v.severity == "error" for v in violations), violations=violations)

    report_validation(result, strict=strict, as_json=as_json, ok_message="Repository is compliant")


@click.command("local-fix")
@click.option("--spec", "spec_option", default=None, help="Path to spec file (default: repoforge.yaml)")
@click.option("--dry-run", is_flag=True, help="Preview fixes without writing files")
@click.pass_context
def local_fix(ctx: click.Context, spec_option: str | None, dry_run: bool) -> None:
    """Generate the workflow files the spec requires but the repository lacks."""
    spec_path = resolve_spec_path(ctx, spec_option)
    spec = load_spec_or_exit(spec_path)
    root = spec_path.parent
    validator = SpecValidator()
    result = validator.validate(spec, collect_existing_files(root))

    missing = [v for v in result.violations if v.rule == "required-workflow"]
    if not missing:
        click.echo("No fixable violations found")
        return

    click.echo(f"Found {len(missing)} missing workflow(s)")
    fixes = missing_workflows(root, spec)
    if dry_run:
        click.echo("Files to be created:")
        echo_paths(fixes, prefix="  + ")
        click.echo("\n(run without --dry-run to apply fixes)")
        return

    write_artifacts(root, fixes)
    click.echo(f"Applied {len(fixes)} fix(es)")
    revalidation = validator.validate(spec, collect_existing_files(root))
    if revalidation.violations:
        click.echo(f"{len(revalidation.violations)} violation(s) remain:")
        for v in revalidation.violations:
            click.echo(f"  {v.file}: {v.message}")
        sys.exit(1)
    click.echo("All violations fixed")


@click.command()
@click.option("--spec", "spec_option", default=None, help="Path to spec file (default: repoforge.yaml)")
@click.pass_context
def baseline(ctx: click.Context, spec_option: str | None) -> None:
    """Record the current workflow files as the drift baseline."""
    spec_path = resolve_spec_path(ctx, spec_option)
    spec = load_spec_or_exit(spec_path)
    root = spec_path.parent
    (root / REPOFORGE_DIR_NAME).mkdir(exist_ok=True)
    path = record_baseline(root, spec)
    recorded = read_baseline(path.parent)
    click.echo(f"Recorded {len(recorded)} file(s) in {path}")


@click.command()
@click.option("--spec", "spec_option", default=None, help="Path to spec file (default: repoforge.yaml)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def drift(ctx: click.Context, spec_option: str | None, as_json: bool) -> None:
    """Compare workflow files against the recorded baseline."""
    spec_path = resolve_spec_path(ctx, spec_option)
    raw = read_spec_or_exit(spec_path, as_json=as_json)
    check_schema_or_exit(raw, as_json=as_json)
    root = spec_path.parent
    recorded = read_baseline(root / REPOFORGE_DIR_NAME)
    if not recorded:
        fail("No baseline recorded. Run 'repoforge baseline' first.", as_json=as_json)
    current = read_current_files(root, recorded)
    result = SpecValidator().check_drift(raw, recorded, current)
    report_validation(result, strict=False, as_json=as_json, ok_message="No drift from baseline")


@click.command()
@click.option("--to", "target", default=None, help="Target version (default: latest)")
@click.option("--dry-run", is_flag=True, help="Preview changes without applying")
@click.option("--auto-backup", is_flag=True, help="Back up repoforge.yaml before a major upgrade")
@click.pass_context
def upgrade(ctx: click.Context, target: str | None, dry_run: bool, auto_backup: bool) -> None:
    """Upgrade the repository to newer repoforge standards."""
    spec_path = resolve_spec_path(ctx, None)
    spec = load_spec_or_exit(spec_path)
    root = spec_path.parent
    manager = VersionManager()
    latest = manager.get_latest_version()
    target = target or latest

    click.echo(f"Current: {spec.version}")
    click.echo(f"Latest: {latest}")
    if spec.version == target:
        click.echo(f"Already at {target}")
        return

    try:
        guide = manager.plan_upgrade(spec.version, target)
    except ValueError as e:
        fail(str(e))

    upgraded = replace(
        spec,
        version=target,
        metadata=SpecMetadata(
            generated=datetime.now(UTC).isoformat(),
            generated_by=spec.metadata.generated_by if spec.metadata else None,
        ),
    )
    new_files = {**generate_artifacts(upgraded), SPEC_FILENAME: dump_spec(upgraded)}
    old_files = read_current_files(root, [step.file for step in guide.steps])
    guide = attach_content(guide, new_files, old_files)

    if guide.backup_required and auto_backup:
        backup = spec_path.with_name(f"{spec_path.name}.backup-{spec.version}")
        shutil.copyfile(spec_path, backup)
        click.echo(f"Backup created: {backup}")

    if not guide.steps:
        click.echo("No file changes required")
    else:
        click.echo(f"\nChanges required ({len(guide.steps)} steps):\n")
    for step in guide.steps:
        click.echo(f"{step.action.upper()}: {step.file}")
        click.echo(f"  Reason: {step.reason}")
        if step.old_content and step.new_content:
            click.echo(format_diff(file_diff(step.file, step.old_content, step.new_content)))
    if guide.backup_required:
        click.echo("This is a major version upgrade. Backup recommended.")

    if dry_run:
        click.echo("\nDry run complete. No changes applied.")
        return

    write_spec(spec_path, upgraded)
    for step in guide.steps:
        if step.file == SPEC_FILENAME:
            continue
        target_path = root / step.file
        if step.action in ("create", "modify") and step.new_content is not None:
            write_artifacts(root, {step.file: step.new_content})
            click.echo(f"{'Created' if step.action == 'create' else 'Modified'}: {step.file}")
        elif step.action == "delete" and target_path.exists():
            target_path.unlink()
            click.echo(f"Deleted: {step.file}")
    click.echo(f"\nUpgraded to {target}")


def register(cli: click.Group) -> None:
    """Register local-checkout commands with the CLI group."""
    cli.add_command(analyze)
    cli.add_command(init)
    cli.add_command(apply)
    cli.add_command(validate)
    cli.add_command(local_fix)
    cli.add_command(baseline)
    cli.add_command(drift)
    cli.add_command(upgrade)
