"""Shared pytest fixtures for repoforge tests."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from repoforge.spec import Project, Spec, Standards


@pytest.fixture(autouse=True)
def _reset_repoforge_logger() -> Generator[None, None, None]:
    """Drop handlers the CLI attaches to the package logger so tests stay isolated."""
    yield
    logger = logging.getLogger("repoforge")
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def _clean_repoforge_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in (
        "REPOFORGE_SPEC_PATH",
        "REPOFORGE_POLICY",
        "REPOFORGE_AUTO_FIX",
        "REPOFORGE_DRY_RUN",
        "REPOFORGE_VERBOSE",
        "REPOFORGE_QUIET",
        "GITHUB_TOKEN",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def in_tmp_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """chdir into tmp_path for the duration of the test."""
    original_cwd = os.getcwd()
    os.chdir(str(tmp_path))
    yield tmp_path
    os.chdir(original_cwd)


@pytest.fixture
def ts_spec() -> Spec:
    """The canonical TypeScript backend spec with default standards."""
    return Spec(
        project=Project(type="backend-api", language="typescript", runtime="node20", deployment="container"),
    )


def make_spec(language: str = "typescript", runtime: str = "node20", **standards: str) -> Spec:
    return Spec(
        project=Project(type="backend-api", language=language, runtime=runtime, deployment="container"),  # type: ignore[arg-type]
        standards=Standards(**standards),  # type: ignore[arg-type]
    )


@pytest.fixture
def ts_project(tmp_path: Path) -> Path:
    """A tmp directory that looks like a TypeScript API (package.json + tsconfig.json)."""
    (tmp_path / "package.json").write_text(
        json.dumps({"name": "orders-api", "version": "1.0.0", "type": "module", "engines": {"node": ">=20"}})
    )
    (tmp_path / "tsconfig.json").write_text("{}")
    (tmp_path / "Dockerfile").write_text("FROM node:20\n")
    return tmp_path
