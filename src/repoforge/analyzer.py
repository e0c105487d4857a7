"""Project fingerprinting -- guess type/language/runtime/deployment from top-level files."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from repoforge.core import WORKFLOWS_DIR
from repoforge.types.results import AnalysisDict

logger = logging.getLogger(__name__)

_MAX_ENTRIES = 50
_IGNORED_ENTRIES = frozenset({"node_modules"})

# Marker file (top-level entry) -> detected pattern, in report order.
_PATTERN_MARKERS: tuple[tuple[str, str], ...] = (
    ("package.json", "nodejs"),
    ("requirements.txt", "python"),
    ("pyproject.toml", "python"),
    ("go.mod", "golang"),
    ("Cargo.toml", "rust"),
    ("Dockerfile", "containerized"),
    ("docker-compose.yml", "containerized"),
    ("serverless.yml", "serverless"),
    ("terraform", "iac-terraform"),
)

_PYTHON_RUNTIMES = {"3.9": "python39", "3.10": "python310", "3.11": "python311"}


@dataclass(frozen=True)
class AnalysisResult:
    """Fingerprint of a project directory."""

    project: dict[str, str]
    confidence: float
    files: list[str] = field(default_factory=list)
    patterns: list[str] = field(default_factory=list)

    def to_dict(self) -> AnalysisDict:
        return {
            "project": dict(self.project),
            "confidence": self.confidence,
            "detected": {"files": list(self.files), "patterns": list(self.patterns)},
        }


class ProjectAnalyzer:
    """Inspects a directory's top-level entries and guesses its project facts."""

    def __init__(self, root_dir: Path | str | None = None) -> None:
        self.root_dir = Path(root_dir) if root_dir is not None else Path.cwd()
        self._package_json: dict[str, Any] | None = None
        self._package_json_loaded = False

    def analyze(self) -> AnalysisResult:
        files = self.list_files()
        patterns = self.detect_patterns(files)
        language = self.detect_language(files)
        recognized = any(
            marker in files for marker in ("package.json", "requirements.txt", "pyproject.toml", "go.mod", "Cargo.toml")
        )
        project = {
            "type": self.detect_project_type(files),
            "language": language,
            "runtime": self.detect_runtime(files),
            "deployment": self.detect_deployment(files),
            "risk": "internal",
        }
        result = AnalysisResult(
            project=project,
            confidence=0.8 if recognized else 0.5,
            files=files,
            patterns=patterns,
        )
        logger.info("Analyzed %s: %s/%s (confidence %.1f)", self.root_dir, project["type"], language, result.confidence)
        return result

    # -- Detection ------------------------------------------------------------

    def list_files(self) -> list[str]:
        try:
            entries = sorted(p.name for p in self.root_dir.iterdir())
        except OSError as exc:
            logger.warning("Cannot list %s: %s", self.root_dir, exc)
            return []
        visible = [e for e in entries if not e.startswith(".") and e not in _IGNORED_ENTRIES]
        return visible[:_MAX_ENTRIES]

    def detect_patterns(self, files: list[str]) -> list[str]:
        patterns: list[str] = []
        for marker, pattern in _PATTERN_MARKERS:
            if marker in files and pattern not in patterns:
                patterns.append(pattern)
        if (self.root_dir / WORKFLOWS_DIR).is_dir():
            patterns.append("github-actions")
        return patterns

    def detect_language(self, files: list[str]) -> str:
        if "package.json" in files:
            if "tsconfig.json" in files or self._has_node_dependency("typescript"):
                return "typescript"
            return "javascript"
        if "requirements.txt" in files or "pyproject.toml" in files:
            return "python"
        if "go.mod" in files:
            return "go"
        if "Cargo.toml" in files:
            return "rust"
        return "javascript"

    def detect_project_type(self, files: list[str]) -> str:
        if "package.json" not in files:
            return "backend-api"
        pkg = self._read_package_json() or {}
        name = pkg.get("name")
        if isinstance(name, str) and "cli" in name:
            return "cli"
        if self._has_node_dependency("react", dev=False):
            return "frontend"
        if pkg.get("type") == "module":
            return "backend-api"
        return "library"

    def detect_runtime(self, files: list[str]) -> str:
        if "package.json" in files:
            engines = (self._read_package_json() or {}).get("engines")
            node = engines.get("node") if isinstance(engines, dict) else None
            if isinstance(node, str):
                for major in ("20", "18", "16"):
                    if major in node:
                        return f"node{major}"
            return "node20"
        version_file = self.root_dir / ".python-version"
        if version_file.is_file():
            try:
                pinned = version_file.read_text(encoding="utf-8").strip()
            except OSError:
                pinned = ""
            for prefix, runtime in _PYTHON_RUNTIMES.items():
                if pinned == prefix or pinned.startswith(prefix + "."):
                    return runtime
        return "python311"

    def detect_deployment(self, files: list[str]) -> str:
        if "Dockerfile" in files:
            return "container"
        if "serverless.yml" in files:
            return "serverless"
        return "container"

    # -- Helpers --------------------------------------------------------------

    def _read_package_json(self) -> dict[str, Any] | None:
        if not self._package_json_loaded:
            self._package_json_loaded = True
            try:
                data = json.loads((self.root_dir / "package.json").read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                logger.debug("Ignoring unreadable package.json in %s: %s", self.root_dir, exc)
                data = None
            self._package_json = data if isinstance(data, dict) else None
        return self._package_json

    def _has_node_dependency(self, name: str, *, dev: bool = True) -> bool:
        pkg = self._read_package_json() or {}
        sections = ("dependencies", "devDependencies") if dev else ("dependencies",)
        for section in sections:
            deps = pkg.get(section)
            if isinstance(deps, dict) and name in deps:
                return True
        return False
