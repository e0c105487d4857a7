"""Release table and upgrade planning for repoforge-managed repositories.

Migrations are declarative records checked in order. Each record names the
(major, minor) range a repository upgrades FROM, the range it upgrades TO,
and the steps that transition requires.

Usage -- adding a new migration:
  1. Add a VersionMetadata entry to VERSIONS
  2. Append a MigrationRule to MIGRATION_RULES (never reorder existing rules)
  3. Add a test in tests/test_upgrader.py
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Literal

from repoforge.core import SPEC_FILENAME, workflow_path
from repoforge.spec import Spec
from repoforge.types.results import UpgradeGuideDict, UpgradeStepDict

logger = logging.getLogger(__name__)

StepAction = Literal["create", "modify", "delete", "manual"]

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


def parse_version(version: str) -> tuple[int, int, int]:
    """Parse ``MAJOR.MINOR.PATCH`` into an integer triple.

    Raises:
        ValueError: If version is not three dot-separated integers.
    """
    match = _VERSION_RE.match(version.strip()) if isinstance(version, str) else None
    if match is None:
        msg = f"Invalid version '{version}': expected MAJOR.MINOR.PATCH"
        raise ValueError(msg)
    major, minor, patch = (int(part) for part in match.groups())
    return major, minor, patch


# ---------------------------------------------------------------------------
# Version table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VersionMetadata:
    version: str
    date: str
    breaking_changes: tuple[str, ...] = ()
    features: tuple[str, ...] = ()
    deprecations: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "date": self.date,
            "breaking_changes": list(self.breaking_changes),
            "features": list(self.features),
            "deprecations": list(self.deprecations),
        }


VERSIONS: tuple[VersionMetadata, ...] = (
    VersionMetadata(
        version="1.0.0",
        date="2024-01-01",
        features=("Initial release", "CI/Security workflows", "Spec system"),
    ),
    VersionMetadata(
        version="1.1.0",
        date="2024-02-01",
        features=("Release workflow support", "Improved dependency scanning", "Added Go language support"),
    ),
    VersionMetadata(
        version="2.0.0",
        date="2024-03-01",
        breaking_changes=("Spec format changed from 1.0 to 2.0", "CI level 'permissive' renamed to 'relaxed'"),
        features=("Policy packs", "Team-level standards", "Drift auto-remediation"),
        deprecations=("Old spec format (1.0)",),
    ),
)


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UpgradeStep:
    action: StepAction
    file: str
    reason: str
    old_content: str | None = None
    new_content: str | None = None

    def to_dict(self) -> UpgradeStepDict:
        result: UpgradeStepDict = {"action": self.action, "file": self.file, "reason": self.reason}
        if self.old_content is not None:
            result["old_content"] = self.old_content
        if self.new_content is not None:
            result["new_content"] = self.new_content
        return result


@dataclass(frozen=True)
class UpgradeGuide:
    from_version: str
    to_version: str
    steps: list[UpgradeStep] = field(default_factory=list)
    backup_required: bool = False

    def to_dict(self) -> UpgradeGuideDict:
        return {
            "from_version": self.from_version,
            "to_version": self.to_version,
            "steps": [s.to_dict() for s in self.steps],
            "backup_required": self.backup_required,
        }


@dataclass(frozen=True)
class VersionRange:
    """Half-open ``[min, max)`` range over (major, minor) pairs."""

    min: tuple[int, int]
    max: tuple[int, int]

    def __post_init__(self) -> None:
        if self.min >= self.max:
            msg = f"Empty version range: {self.min} >= {self.max}"
            raise ValueError(msg)

    def contains(self, major: int, minor: int) -> bool:
        return self.min <= (major, minor) < self.max


@dataclass(frozen=True)
class MigrationRule:
    """Steps required whenever an upgrade crosses from from_range into to_range."""

    name: str
    from_range: VersionRange
    to_range: VersionRange
    steps: tuple[UpgradeStep, ...]

    def matches(self, current: tuple[int, int], target: tuple[int, int]) -> bool:
        return self.from_range.contains(*current) and self.to_range.contains(*target)


MIGRATION_RULES: tuple[MigrationRule, ...] = (
    MigrationRule(
        name="release-workflow",
        from_range=VersionRange((1, 0), (1, 1)),
        to_range=VersionRange((1, 1), (2, 0)),
        steps=(UpgradeStep("create", workflow_path("release.yml"), "New release workflow added in v1.1.0"),),
    ),
    MigrationRule(
        name="spec-format-v2",
        from_range=VersionRange((1, 0), (2, 0)),
        to_range=VersionRange((2, 0), (3, 0)),
        steps=(
            UpgradeStep("modify", SPEC_FILENAME, "Spec format updated from v1 to v2"),
            UpgradeStep("modify", workflow_path("ci.yml"), "CI workflow improvements in v2.0.0"),
        ),
    ),
)


class VersionManager:
    """Looks up released versions and plans upgrades between them."""

    def __init__(
        self,
        versions: tuple[VersionMetadata, ...] = VERSIONS,
        rules: tuple[MigrationRule, ...] = MIGRATION_RULES,
    ) -> None:
        self._versions = {v.version: v for v in versions}
        self._rules = rules

    def get_latest_version(self) -> str:
        return max(self._versions, key=parse_version)

    def get_version_metadata(self, version: str) -> VersionMetadata | None:
        return self._versions.get(version)

    def plan_upgrade(self, current: str, target: str) -> UpgradeGuide:
        """Build the ordered step list for moving from current to target.

        A pair that matches no rule yields an empty plan, not an error.

        Raises:
            ValueError: If either version is malformed (and they differ).
        """
        if current == target:
            return UpgradeGuide(from_version=current, to_version=target)

        cur_major, cur_minor, _ = parse_version(current)
        tgt_major, tgt_minor, _ = parse_version(target)

        steps: list[UpgradeStep] = []
        for rule in self._rules:
            if rule.matches((cur_major, cur_minor), (tgt_major, tgt_minor)):
                logger.debug("Migration rule %s applies to %s -> %s", rule.name, current, target)
                steps.extend(rule.steps)

        return UpgradeGuide(
            from_version=current,
            to_version=target,
            steps=steps,
            backup_required=tgt_major > cur_major,
        )

    def generate_migration_script(self, spec: Spec | None, guide: UpgradeGuide) -> dict[str, str]:
        """Placeholder content per created or modified file, keyed by path."""
        scripts: dict[str, str] = {}
        for step in guide.steps:
            if step.action in ("create", "modify"):
                scripts[step.file] = f"# repoforge migration pending: {step.reason}\n"
        return scripts


def attach_content(
    guide: UpgradeGuide,
    new_files: Mapping[str, str],
    old_files: Mapping[str, str],
) -> UpgradeGuide:
    """Fill each step's old/new content from generated and on-disk files."""
    steps = [
        replace(step, old_content=old_files.get(step.file), new_content=new_files.get(step.file))
        for step in guide.steps
    ]
    return replace(guide, steps=steps)
