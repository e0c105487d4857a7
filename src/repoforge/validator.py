"""Compliance validation and drift detection against a governance spec.

Violations are values, not exceptions: callers decide whether a result is
fatal. A result is valid when no violation carries ``error`` severity.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Collection, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from repoforge.core import BASELINE_FILENAME, SPEC_FILENAME, WORKFLOWS_DIR, workflow_path, write_atomic
from repoforge.spec import DEFAULT_STANDARDS, Spec, spec_as_dict
from repoforge.types.results import ViolationDict

logger = logging.getLogger(__name__)

Severity = Literal["error", "warn"]

# Workflow files required per CI standards level. strict and enforced share a
# file set and differ only in the severity of a missing file.
REQUIRED_FILES: dict[str, tuple[str, ...]] = {
    "permissive": (workflow_path("ci.yml"),),
    "strict": (workflow_path("ci.yml"), workflow_path("security.yml")),
    "enforced": (workflow_path("ci.yml"), workflow_path("security.yml")),
}


@dataclass(frozen=True)
class Violation:
    """A single compliance finding."""

    file: str
    rule: str
    severity: Severity
    message: str

    def to_dict(self) -> ViolationDict:
        return {"file": self.file, "rule": self.rule, "severity": self.severity, "message": self.message}


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    violations: list[Violation] = field(default_factory=list)

    @property
    def errors(self) -> list[Violation]:
        return [v for v in self.violations if v.severity == "error"]

    @property
    def warnings(self) -> list[Violation]:
        return [v for v in self.violations if v.severity == "warn"]

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "violations": [v.to_dict() for v in self.violations]}


def _result(violations: list[Violation]) -> ValidationResult:
    return ValidationResult(valid=not any(v.severity == "error" for v in violations), violations=violations)


def _ci_level(data: Mapping[str, Any]) -> str:
    standards = data.get("standards")
    level = standards.get("ci") if isinstance(standards, Mapping) else None
    return level or DEFAULT_STANDARDS["ci"]


def _severity(level: str) -> Severity:
    return "error" if level == "enforced" else "warn"


class SpecValidator:
    """Checks required artifacts and baseline drift for a spec."""

    def validate(self, spec: Spec | Mapping[str, Any], existing_files: Collection[str]) -> ValidationResult:
        data = spec_as_dict(spec)
        violations: list[Violation] = []

        if data.get("project") is None:
            violations.append(
                Violation(
                    file=SPEC_FILENAME,
                    rule="project-defined",
                    severity="error",
                    message="Project configuration is required",
                )
            )

        level = _ci_level(data)
        present = set(existing_files)
        for required in REQUIRED_FILES.get(level, ()):
            if required not in present:
                violations.append(
                    Violation(
                        file=required,
                        rule="required-workflow",
                        severity=_severity(level),
                        message=f"Required workflow file missing: {required}",
                    )
                )

        result = _result(violations)
        logger.debug("Validated spec at ci=%s: %d violation(s)", level, len(violations))
        return result

    def check_drift(
        self,
        spec: Spec | Mapping[str, Any],
        baseline: Mapping[str, str],
        current: Mapping[str, str],
    ) -> ValidationResult:
        """Compare current file contents to a recorded baseline.

        Files added since the baseline are never reported.
        """
        severity = _severity(_ci_level(spec_as_dict(spec)))
        violations: list[Violation] = []
        for path, expected in baseline.items():
            if path not in current:
                violations.append(
                    Violation(path, "file-deleted", severity, f"Required file was deleted: {path}")
                )
            elif current[path] != expected:
                violations.append(
                    Violation(path, "file-modified", severity, f"File was modified from baseline: {path}")
                )
        return _result(violations)


# ---------------------------------------------------------------------------
# Baseline store (.repoforge/baseline.json)
# ---------------------------------------------------------------------------


def read_baseline(repoforge_dir: Path) -> dict[str, str]:
    """Read the recorded baseline. Returns an empty mapping if missing or corrupt."""
    path = repoforge_dir / BASELINE_FILENAME
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Failed to read baseline %s: %s", path, exc)
        return {}
    files = data.get("files") if isinstance(data, dict) else None
    if not isinstance(files, dict):
        return {}
    return {str(k): str(v) for k, v in files.items()}


def write_baseline(repoforge_dir: Path, files: Mapping[str, str]) -> Path:
    path = repoforge_dir / BASELINE_FILENAME
    write_atomic(path, json.dumps({"files": dict(sorted(files.items()))}, indent=2) + "\n")
    logger.info("Recorded baseline of %d file(s) at %s", len(files), path)
    return path


def collect_existing_files(root: Path) -> set[str]:
    """Repo-relative paths of the files under .github/workflows/."""
    workflows = root / WORKFLOWS_DIR
    if not workflows.is_dir():
        return set()
    return {f"{WORKFLOWS_DIR}/{p.name}" for p in workflows.iterdir() if p.is_file()}


def read_current_files(root: Path, paths: Collection[str]) -> dict[str, str]:
    """Read the current content of each path that still exists under root."""
    current: dict[str, str] = {}
    for rel in paths:
        target = root / rel
        if target.is_file():
            current[rel] = target.read_text(encoding="utf-8")
    return current
