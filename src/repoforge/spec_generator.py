"""Turn fingerprint output into a complete, schema-valid spec."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime

from repoforge import __version__
from repoforge.spec import (
    DEFAULT_STANDARDS,
    DEFAULT_VERSION,
    STANDARDS_FIELDS,
    Project,
    Spec,
    SpecError,
    SpecMetadata,
    Standards,
)

logger = logging.getLogger(__name__)

_REQUIRED_PROJECT_FIELDS = ("type", "language", "runtime", "deployment")


@dataclass(frozen=True)
class SpecCheck:
    valid: bool
    errors: tuple[str, ...]


class SpecGenerator:
    """Builds specs with default standards levels and generation metadata."""

    def __init__(self, generator_id: str | None = None) -> None:
        self.generator_id = generator_id or f"repoforge@{__version__}"

    def generate_spec(
        self,
        project: Mapping[str, str | None],
        standards: Mapping[str, str | None] | None = None,
    ) -> Spec:
        """Generate a spec for a (possibly partial) project description.

        Args:
            project: Detected or user-supplied project facts. ``risk`` is optional.
            standards: Optional per-dimension overrides of the default levels.

        Raises:
            SpecError: If type, language, runtime, or deployment is missing, or
                any value is outside its enumeration.
        """
        if any(not project.get(name) for name in _REQUIRED_PROJECT_FIELDS):
            raise SpecError("Incomplete project definition")

        levels = dict(DEFAULT_STANDARDS)
        for name in STANDARDS_FIELDS:
            value = (standards or {}).get(name)
            if value:
                levels[name] = value  # type: ignore[assignment]

        try:
            spec = Spec(
                version=DEFAULT_VERSION,
                project=Project(
                    type=project["type"],  # type: ignore[arg-type]
                    language=project["language"],  # type: ignore[arg-type]
                    runtime=project["runtime"],  # type: ignore[arg-type]
                    deployment=project["deployment"],  # type: ignore[arg-type]
                    risk=project.get("risk") or "internal",  # type: ignore[arg-type]
                ),
                standards=Standards(**levels),
                metadata=SpecMetadata(
                    generated=datetime.now(UTC).isoformat(),
                    generated_by=self.generator_id,
                ),
            )
        except ValueError as exc:
            raise SpecError(str(exc)) from exc
        logger.info("Generated spec for %s/%s", spec.project.type, spec.project.language)
        return spec

    @staticmethod
    def validate_spec(spec: Spec | None) -> SpecCheck:
        """Check the top-level invariants of a generated spec."""
        errors: list[str] = []
        if spec is None:
            return SpecCheck(valid=False, errors=("Missing spec",))
        if not spec.version:
            errors.append("Missing spec version")
        if spec.project is None:
            errors.append("Missing project definition")
        if spec.standards is None:
            errors.append("Missing standards definition")
        return SpecCheck(valid=not errors, errors=tuple(errors))
