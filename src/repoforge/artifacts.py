"""Combine workflow, repository-file, and plugin generators into one path -> content map."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from repoforge.core import write_atomic, workflow_path
from repoforge.files import FileGenerator
from repoforge.plugins import BUILT_IN_PLUGINS, LanguagePlugin, run_plugins
from repoforge.spec import Spec
from repoforge.workflows import WorkflowGenerator

logger = logging.getLogger(__name__)


def generate_artifacts(spec: Spec, plugins: Iterable[LanguagePlugin] = BUILT_IN_PLUGINS) -> dict[str, str]:
    """Every artifact the spec calls for, keyed by repo-relative path."""
    artifacts: dict[str, str] = {}
    for workflow in WorkflowGenerator().generate_all(spec):
        artifacts[workflow_path(workflow.name)] = workflow.content
    for generated in FileGenerator().generate_files(spec):
        artifacts[generated.path] = generated.content
    artifacts.update(run_plugins(spec, plugins).files)
    return artifacts


def workflow_artifacts(spec: Spec) -> dict[str, str]:
    """Only the workflow files, keyed by repo-relative path."""
    return {workflow_path(w.name): w.content for w in WorkflowGenerator().generate_all(spec)}


def write_artifacts(root: Path, artifacts: dict[str, str], *, overwrite: bool = True) -> list[str]:
    """Write artifacts under root. Returns the paths written, in map order.

    With overwrite=False, paths that already exist are left untouched.
    """
    written: list[str] = []
    for rel, content in artifacts.items():
        target = root / rel
        if not overwrite and target.exists():
            logger.debug("Skipping existing %s", rel)
            continue
        write_atomic(target, content)
        written.append(rel)
    logger.info("Wrote %d artifact(s) under %s", len(written), root)
    return written
