"""Fixtures for CLI interface tests."""

from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from repoforge.cli import cli


@pytest.fixture
def cli_in_project(ts_project: Path, cli_runner: CliRunner) -> Generator[tuple[CliRunner, Path], None, None]:
    """Run ``repoforge init`` in a TypeScript project and return (runner, project_root)."""
    original_cwd = os.getcwd()
    os.chdir(str(ts_project))
    result = cli_runner.invoke(cli, ["init"])
    assert result.exit_code == 0, result.output
    yield cli_runner, ts_project
    os.chdir(original_cwd)


def _workflow(root: Path, name: str) -> Path:
    return root / ".github" / "workflows" / name
