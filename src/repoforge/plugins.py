"""Language plugins: per-language tooling files and repository rules.

A plugin is a plain record, not a subclass. BUILT_IN_PLUGINS is an ordered
tuple; when two applicable plugins emit the same path, the later one wins.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from repoforge import templates_data
from repoforge.spec import Spec
from repoforge.validator import Severity, Violation
from repoforge.workflows import runtime_version

logger = logging.getLogger(__name__)

FileMap = Mapping[str, str]


@dataclass(frozen=True)
class Rule:
    """A check over repository file contents, keyed by repo-relative path."""

    name: str
    description: str
    severity: Severity
    file: str
    check: Callable[[FileMap], bool]


@dataclass(frozen=True)
class LanguagePlugin:
    name: str
    version: str
    languages: tuple[str, ...]
    project_types: tuple[str, ...]
    generate: Callable[[Spec], dict[str, str]]
    rules: tuple[Rule, ...] = ()

    def applicable(self, spec: Spec) -> bool:
        return spec.project.language in self.languages


@dataclass
class PluginOutput:
    files: dict[str, str] = field(default_factory=dict)
    rules: list[Rule] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Rule helpers
# ---------------------------------------------------------------------------


def _json_file(files: FileMap, path: str) -> dict[str, Any] | None:
    raw = files.get(path)
    if raw is None:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _has(path: str) -> Callable[[FileMap], bool]:
    return lambda files: path in files


def _contains(path: str, *needles: str) -> Callable[[FileMap], bool]:
    def check(files: FileMap) -> bool:
        content = files.get(path)
        return content is not None and all(n in content for n in needles)

    return check


def _package_json_complete(files: FileMap) -> bool:
    pkg = _json_file(files, "package.json")
    return bool(pkg and pkg.get("name") and pkg.get("version") and pkg.get("description"))


def _package_json_engines(files: FileMap) -> bool:
    pkg = _json_file(files, "package.json")
    engines = pkg.get("engines") if pkg else None
    return isinstance(engines, dict) and bool(engines.get("node"))


# ---------------------------------------------------------------------------
# Built-in plugins
# ---------------------------------------------------------------------------


def _node_files(spec: Spec) -> dict[str, str]:
    return {
        ".npmrc": templates_data.NPMRC,
        ".eslintrc.json": json.dumps(templates_data.ESLINTRC, indent=2) + "\n",
    }


def _python_files(spec: Spec) -> dict[str, str]:
    runtime = spec.project.runtime if spec.project.runtime.startswith("python") else "python311"
    version = runtime_version(runtime)
    return {
        "pyproject.toml": templates_data.PYPROJECT_TEMPLATE.format(version=version, target=version.replace(".", "")),
        ".python-version": version + "\n",
        "requirements.txt": templates_data.PYTHON_REQUIREMENTS,
    }


def _go_files(spec: Spec) -> dict[str, str]:
    return {
        "go.mod": templates_data.GO_MOD,
        ".golangci.yml": templates_data.GOLANGCI,
        "Makefile": templates_data.GO_MAKEFILE,
    }


def _rust_files(spec: Spec) -> dict[str, str]:
    return {
        "Cargo.toml": templates_data.CARGO_TOML,
        "rustfmt.toml": templates_data.RUSTFMT,
        ".clippy.toml": templates_data.CLIPPY,
        "Makefile": templates_data.RUST_MAKEFILE,
    }


NODE_PLUGIN = LanguagePlugin(
    name="node",
    version="1.0.0",
    languages=("typescript", "javascript"),
    project_types=("backend-api", "frontend", "cli", "library"),
    generate=_node_files,
    rules=(
        Rule("node-package-json", "Ensure package.json has required fields", "error", "package.json",
             _package_json_complete),
        Rule("node-engines", "Specify Node.js version in package.json", "warn", "package.json",
             _package_json_engines),
    ),
)

PYTHON_PLUGIN = LanguagePlugin(
    name="python",
    version="1.0.0",
    languages=("python",),
    project_types=("backend-api", "cli", "library"),
    generate=_python_files,
    rules=(
        Rule("python-pyproject-toml", "Ensure pyproject.toml exists", "error", "pyproject.toml",
             _has("pyproject.toml")),
        Rule("python-version-file", "Specify Python version in .python-version", "warn", ".python-version",
             _has(".python-version")),
    ),
)

GO_PLUGIN = LanguagePlugin(
    name="go",
    version="1.0.0",
    languages=("go",),
    project_types=("backend-api", "cli", "library"),
    generate=_go_files,
    rules=(
        Rule("go-module-defined", "Ensure go.mod exists and is valid", "error", "go.mod",
             _contains("go.mod", "module ")),
        Rule("go-lint-config", "Ensure .golangci.yml exists for linting", "warn", ".golangci.yml",
             _has(".golangci.yml")),
        Rule("go-makefile", "Ensure Makefile exists for build automation", "warn", "Makefile",
             _contains("Makefile", "build", "test")),
    ),
)

RUST_PLUGIN = LanguagePlugin(
    name="rust",
    version="1.0.0",
    languages=("rust",),
    project_types=("backend-api", "cli", "library"),
    generate=_rust_files,
    rules=(
        Rule("rust-cargo-toml", "Ensure Cargo.toml exists and is valid", "error", "Cargo.toml",
             _contains("Cargo.toml", "[package]")),
        Rule("rust-format-config", "Ensure rustfmt.toml exists for code formatting", "warn", "rustfmt.toml",
             _has("rustfmt.toml")),
        Rule("rust-lint-config", "Ensure .clippy.toml exists for linting", "warn", ".clippy.toml",
             _has(".clippy.toml")),
        Rule("rust-makefile", "Ensure Makefile exists for build automation", "warn", "Makefile",
             _contains("Makefile", "build", "test")),
    ),
)

BUILT_IN_PLUGINS: tuple[LanguagePlugin, ...] = (NODE_PLUGIN, PYTHON_PLUGIN, GO_PLUGIN, RUST_PLUGIN)


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def applicable_plugins(spec: Spec, plugins: Iterable[LanguagePlugin] = BUILT_IN_PLUGINS) -> list[LanguagePlugin]:
    return [p for p in plugins if p.applicable(spec)]


def run_plugins(spec: Spec, plugins: Iterable[LanguagePlugin] = BUILT_IN_PLUGINS) -> PluginOutput:
    """Merge the files and rules of every applicable plugin.

    A plugin whose generator raises is logged and skipped; the rest still run.
    """
    output = PluginOutput()
    for plugin in applicable_plugins(spec, plugins):
        try:
            files = plugin.generate(spec)
        except Exception:
            logger.exception("Plugin %s failed", plugin.name)
            continue
        output.files.update(files)
        output.rules.extend(plugin.rules)
    return output


def check_rules(rules: Iterable[Rule], files: FileMap) -> list[Violation]:
    violations: list[Violation] = []
    for rule in rules:
        if not rule.check(files):
            violations.append(
                Violation(
                    file=rule.file,
                    rule=f"plugin:{rule.name}",
                    severity=rule.severity,
                    message=rule.description,
                )
            )
    return violations
