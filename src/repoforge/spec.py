"""Governance spec schema -- the shape of repoforge.yaml.

A spec pins the project's facts (type, language, runtime, deployment, risk)
and the standards level for each of CI, security, and releases. Specs are
frozen: policies, packs, and upgrades produce new values via
``dataclasses.replace`` or ``Spec.from_dict``, never mutate in place.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml

from repoforge.core import write_atomic
from repoforge.types.core import MetadataDict

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

ProjectType = Literal["backend-api", "frontend", "cli", "library", "monorepo", "static-site"]
Language = Literal["typescript", "javascript", "python", "go", "rust"]
Runtime = Literal["node16", "node18", "node20", "python39", "python310", "python311"]
Deployment = Literal["container", "serverless", "static", "vm"]
RiskProfile = Literal["public", "internal", "regulated", "oss"]
StandardsLevel = Literal["permissive", "strict", "enforced"]

PROJECT_TYPES: tuple[str, ...] = ("backend-api", "frontend", "cli", "library", "monorepo", "static-site")
LANGUAGES: tuple[str, ...] = ("typescript", "javascript", "python", "go", "rust")
RUNTIMES: tuple[str, ...] = ("node16", "node18", "node20", "python39", "python310", "python311")
DEPLOYMENTS: tuple[str, ...] = ("container", "serverless", "static", "vm")
RISK_PROFILES: tuple[str, ...] = ("public", "internal", "regulated", "oss")
STANDARDS_LEVELS: tuple[str, ...] = ("permissive", "strict", "enforced")

PROJECT_FIELDS: dict[str, tuple[str, ...]] = {
    "type": PROJECT_TYPES,
    "language": LANGUAGES,
    "runtime": RUNTIMES,
    "deployment": DEPLOYMENTS,
    "risk": RISK_PROFILES,
}
STANDARDS_FIELDS: tuple[str, ...] = ("ci", "security", "releases")

DEFAULT_VERSION = "1.0.0"
DEFAULT_STANDARDS: dict[str, StandardsLevel] = {"ci": "strict", "security": "enforced", "releases": "strict"}


class SpecError(ValueError):
    """Raised when a spec document fails schema validation."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.errors = errors or [message]
        super().__init__(message)


def _check_choice(kind: str, value: object, allowed: tuple[str, ...]) -> None:
    if value not in allowed:
        msg = f"Invalid {kind} '{value}': must be one of {list(allowed)}"
        raise ValueError(msg)


# ---------------------------------------------------------------------------
# Frozen dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Project:
    """The facts a spec records about the governed project."""

    type: ProjectType
    language: Language
    runtime: Runtime
    deployment: Deployment
    risk: RiskProfile = "internal"

    def __post_init__(self) -> None:
        for name, allowed in PROJECT_FIELDS.items():
            _check_choice(f"project {name}", getattr(self, name), allowed)

    def to_dict(self) -> dict[str, str]:
        return {name: getattr(self, name) for name in PROJECT_FIELDS}


@dataclass(frozen=True)
class Standards:
    """Independently selectable standards level per dimension."""

    ci: StandardsLevel = "strict"
    security: StandardsLevel = "enforced"
    releases: StandardsLevel = "strict"

    def __post_init__(self) -> None:
        for name in STANDARDS_FIELDS:
            _check_choice(f"{name} standard", getattr(self, name), STANDARDS_LEVELS)

    def to_dict(self) -> dict[str, str]:
        return {name: getattr(self, name) for name in STANDARDS_FIELDS}


@dataclass(frozen=True)
class SpecMetadata:
    generated: str | None = None
    generated_by: str | None = None

    def to_dict(self) -> MetadataDict:
        result: MetadataDict = {}
        if self.generated is not None:
            result["generated"] = self.generated  # type: ignore[typeddict-item]
        if self.generated_by is not None:
            result["generatedBy"] = self.generated_by
        return result


@dataclass(frozen=True)
class Spec:
    """A complete, validated governance spec."""

    project: Project
    standards: Standards = field(default_factory=Standards)
    version: str = DEFAULT_VERSION
    metadata: SpecMetadata | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "version": self.version,
            "project": self.project.to_dict(),
            "standards": self.standards.to_dict(),
        }
        if self.metadata is not None:
            result["metadata"] = self.metadata.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Spec:
        """Build a Spec from a raw document, applying defaults.

        Raises:
            SpecError: listing every schema problem found.
        """
        errors = validate_spec_data(data)
        if errors:
            raise SpecError(f"Invalid spec: {'; '.join(errors)}", errors)

        project_raw = data["project"]
        standards_raw = data.get("standards") or {}
        standards = {name: standards_raw.get(name) or DEFAULT_STANDARDS[name] for name in STANDARDS_FIELDS}
        metadata_raw = data.get("metadata")
        metadata = None
        if isinstance(metadata_raw, Mapping):
            metadata = SpecMetadata(
                generated=_optional_str(metadata_raw.get("generated")),
                generated_by=_optional_str(metadata_raw.get("generatedBy")),
            )
        return cls(
            project=Project(
                type=project_raw["type"],
                language=project_raw["language"],
                runtime=project_raw["runtime"],
                deployment=project_raw["deployment"],
                risk=project_raw.get("risk") or "internal",
            ),
            standards=Standards(**standards),
            version=str(data.get("version") or DEFAULT_VERSION),
            metadata=metadata,
        )


def _optional_str(value: object) -> str | None:
    # YAML turns unquoted ISO timestamps into datetime objects.
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _project_errors(project: Mapping[str, Any], *, required: bool) -> list[str]:
    errors: list[str] = []
    for name, allowed in PROJECT_FIELDS.items():
        value = project.get(name)
        if value is None:
            if required and name != "risk":
                errors.append(f"Missing project.{name}")
        elif value not in allowed:
            errors.append(f"Invalid project.{name} '{value}': must be one of {list(allowed)}")
    return errors


def _standards_errors(standards: object) -> list[str]:
    if not isinstance(standards, Mapping):
        return [f"standards must be a mapping, got {type(standards).__name__}"]
    errors: list[str] = []
    for name in STANDARDS_FIELDS:
        value = standards.get(name)
        if value is not None and value not in STANDARDS_LEVELS:
            errors.append(f"Invalid standards.{name} '{value}': must be one of {list(STANDARDS_LEVELS)}")
    return errors


def validate_spec_data(data: object) -> list[str]:
    """Return every schema problem in a raw spec document (empty list when valid)."""
    if not isinstance(data, Mapping):
        return [f"Spec must be a mapping, got {type(data).__name__}"]

    errors: list[str] = []
    version = data.get("version")
    if version is not None and not isinstance(version, str):
        errors.append(f"version must be a string, got {type(version).__name__}")

    project = data.get("project")
    if project is None:
        errors.append("Missing project definition")
    elif not isinstance(project, Mapping):
        errors.append(f"project must be a mapping, got {type(project).__name__}")
    else:
        errors.extend(_project_errors(project, required=True))

    standards = data.get("standards")
    if standards is not None:
        errors.extend(_standards_errors(standards))

    metadata = data.get("metadata")
    if metadata is not None and not isinstance(metadata, Mapping):
        errors.append(f"metadata must be a mapping, got {type(metadata).__name__}")
    return errors


def validate_policy_data(data: object) -> list[str]:
    """Return every schema problem in a policy document.

    Policies are partial specs: every section and field is optional, but the
    values a policy pins must be valid spec values.
    """
    if not isinstance(data, Mapping):
        return [f"Policy must be a mapping, got {type(data).__name__}"]

    errors: list[str] = []
    project = data.get("project")
    if project is not None:
        if isinstance(project, Mapping):
            errors.extend(_project_errors(project, required=False))
        else:
            errors.append(f"project must be a mapping, got {type(project).__name__}")
    standards = data.get("standards")
    if standards is not None:
        errors.extend(_standards_errors(standards))
    return errors


# ---------------------------------------------------------------------------
# YAML persistence
# ---------------------------------------------------------------------------


def read_spec_document(path: Path) -> dict[str, Any]:
    """Read a YAML spec or policy document as a raw mapping (no schema check).

    Raises:
        FileNotFoundError: if path does not exist.
        SpecError: if the file is not valid YAML or not a mapping.
    """
    text = path.read_text(encoding="utf-8")
    return parse_spec_document(text, source=str(path))


def parse_spec_document(text: str, *, source: str = "<string>") -> dict[str, Any]:
    """Parse YAML text into a raw spec mapping. An empty document is an empty mapping."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in {source}: {exc}"
        raise SpecError(msg) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"{source} must contain a mapping, got {type(data).__name__}"
        raise SpecError(msg)
    return data


def load_spec(path: Path) -> Spec:
    """Read and validate repoforge.yaml."""
    logger.debug("Loading spec from %s", path)
    return Spec.from_dict(read_spec_document(path))


def dump_spec(spec: Spec | Mapping[str, Any]) -> str:
    """Serialize a spec (or raw spec mapping) to YAML, preserving field order."""
    data = spec.to_dict() if isinstance(spec, Spec) else dict(spec)
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False, width=1_000_000)


def write_spec(path: Path, spec: Spec | Mapping[str, Any]) -> None:
    write_atomic(path, dump_spec(spec))


def spec_as_dict(spec: Spec | Mapping[str, Any]) -> dict[str, Any]:
    """Normalize a Spec or a raw (possibly partial) spec mapping to a plain dict."""
    if isinstance(spec, Spec):
        return spec.to_dict()
    return dict(spec)
