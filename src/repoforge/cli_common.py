"""Shared CLI helpers used by cli.py and the cli_commands/*.py modules.

Kept separate so command modules can import them without importing the
click group itself.
"""

from __future__ import annotations

import json as json_mod
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any, NoReturn

import click

from repoforge.core import SPEC_FILENAME
from repoforge.spec import Spec, read_spec_document, validate_spec_data
from repoforge.types.core import RepoForgeConfig
from repoforge.validator import ValidationResult, Violation

# Exceptions a command reports as "Error: ..." and exit 1, rather than a traceback.
COMMAND_ERRORS: tuple[type[Exception], ...] = (ValueError, LookupError, OSError)


def fail(message: str, *, as_json: bool = False) -> NoReturn:
    """Report an error and exit 1."""
    if as_json:
        click.echo(json_mod.dumps({"error": message}))
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def get_config(ctx: click.Context) -> RepoForgeConfig:
    obj = ctx.find_root().obj or {}
    config: RepoForgeConfig = obj.get("config", {})
    return config


def resolve_spec_path(ctx: click.Context, spec_option: str | None) -> Path:
    """--spec when given, else the configured spec_path, else repoforge.yaml, relative to cwd."""
    name = spec_option or get_config(ctx).get("spec_path") or SPEC_FILENAME
    return Path.cwd() / name


def read_spec_or_exit(path: Path, *, as_json: bool = False) -> dict[str, Any]:
    """Raw spec mapping from path; exits 1 if missing or unparseable."""
    if not path.exists():
        fail(f"Spec file not found: {path}", as_json=as_json)
    try:
        return read_spec_document(path)
    except COMMAND_ERRORS as e:
        fail(str(e), as_json=as_json)


def check_schema_or_exit(raw: dict[str, Any], *, as_json: bool = False) -> None:
    """Exit 1 on schema problems other than a missing project (reported as a violation instead)."""
    errors = [e for e in validate_spec_data(raw) if e != "Missing project definition"]
    if errors:
        fail(f"Invalid spec: {'; '.join(errors)}", as_json=as_json)


def load_spec_or_exit(path: Path, *, as_json: bool = False) -> Spec:
    raw = read_spec_or_exit(path, as_json=as_json)
    try:
        return Spec.from_dict(raw)
    except ValueError as e:
        fail(str(e), as_json=as_json)


def echo_violations(violations: Iterable[Violation]) -> None:
    for v in violations:
        click.echo(f"[{v.severity.upper()}] {v.file}")
        click.echo(f"  Rule: {v.rule}")
        click.echo(f"  {v.message}")


def report_validation(result: ValidationResult, *, strict: bool, as_json: bool, ok_message: str) -> None:
    """Print a validation result and exit 1 on errors (or on any violation with strict)."""
    failed = not result.valid or (strict and bool(result.violations))
    if as_json:
        click.echo(json_mod.dumps(result.to_dict(), indent=2))
    elif not result.violations:
        click.echo(ok_message)
    else:
        click.echo(f"Found {len(result.violations)} violation(s):\n")
        echo_violations(result.violations)
        if not failed:
            click.echo("\nWarnings present (use --strict to fail)")
    if failed:
        sys.exit(1)


def echo_paths(paths: Iterable[str], prefix: str = "  ") -> None:
    for p in paths:
        click.echo(f"{prefix}{p}")
