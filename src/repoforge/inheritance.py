"""Policy inheritance -- organization → team → repository, most specific wins.

Each layer is a partial spec. Layers of the same level fold left (later wins),
then levels merge in fixed precedence order, then an optional override merges
last. Resolution is a pure function of the layers passed in; the resolver
object only holds the layers explicitly registered on it.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from repoforge.spec import Spec, spec_as_dict

logger = logging.getLogger(__name__)

PolicyLevel = Literal["organization", "team", "repository"]
POLICY_LEVELS: tuple[PolicyLevel, ...] = ("organization", "team", "repository")


def deep_merge(left: Any, right: Any) -> Any:
    """Merge right over left without mutating either.

    ``None`` on the right keeps the left value; a non-mapping on either side
    lets the right win outright; mappings merge key-wise (recursing into nested
    mappings); lists are replaced wholesale.
    """
    if right is None:
        return copy.deepcopy(left)
    if not isinstance(left, Mapping) or not isinstance(right, Mapping):
        return copy.deepcopy(right)

    result = copy.deepcopy(dict(left))
    for key, value in right.items():
        if value is None:
            continue
        if isinstance(value, Mapping):
            result[key] = deep_merge(result.get(key) or {}, value)
        else:
            result[key] = copy.deepcopy(value)
    return result


@dataclass(frozen=True)
class PolicyLayer:
    """One partial-spec policy tagged with its hierarchy level and origin."""

    level: PolicyLevel
    policy: Mapping[str, Any]
    source: str

    def __post_init__(self) -> None:
        if self.level not in POLICY_LEVELS:
            msg = f"Invalid policy level '{self.level}': must be one of {list(POLICY_LEVELS)}"
            raise ValueError(msg)


def resolve_layers(layers: Iterable[PolicyLayer], override: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Compute the effective policy from layers plus an optional highest-precedence override."""
    layers = list(layers)
    effective: dict[str, Any] = {}
    for level in POLICY_LEVELS:
        merged: dict[str, Any] = {}
        for layer in layers:
            if layer.level == level:
                merged = deep_merge(merged, layer.policy)
        effective = deep_merge(effective, merged)
    if override is not None:
        effective = deep_merge(effective, override)
    return effective


class PolicyResolver:
    """Registers policy layers and resolves them into one effective policy."""

    def __init__(self, layers: Iterable[PolicyLayer] = ()) -> None:
        self._layers: list[PolicyLayer] = list(layers)

    @property
    def layers(self) -> tuple[PolicyLayer, ...]:
        return tuple(self._layers)

    def register(self, level: PolicyLevel, policy: Mapping[str, Any], source: str) -> None:
        self._layers.append(PolicyLayer(level=level, policy=policy, source=source))
        logger.debug("Registered %s policy from %s", level, source)

    def resolve_policy(self, override: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return resolve_layers(self._layers, override)

    def get_effective_policy(
        self,
        repo_path: str,
        org_policy: Mapping[str, Any] | None = None,
        team_policy: Mapping[str, Any] | None = None,
        repo_policy: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Resolve exactly the supplied policies, ignoring previously registered layers.

        ``repo_path`` is accepted for a future per-path policy lookup and is not
        used in resolution.
        """
        layers: list[PolicyLayer] = []
        if org_policy is not None:
            layers.append(PolicyLayer("organization", org_policy, "organization"))
        if team_policy is not None:
            layers.append(PolicyLayer("team", team_policy, "team"))
        if repo_policy is not None:
            layers.append(PolicyLayer("repository", repo_policy, "repository"))
        logger.debug("Resolving effective policy for %s from %d layers", repo_path, len(layers))
        return resolve_layers(layers, repo_policy)


# ---------------------------------------------------------------------------
# Compliance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ComplianceResult:
    compliant: bool
    violations: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"compliant": self.compliant, "violations": list(self.violations)}


# (section, field, message label) -- the only fields compliance covers.
_COMPLIANCE_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("standards", "ci", "CI standard"),
    ("standards", "security", "Security standard"),
    ("standards", "releases", "Release standard"),
    ("project", "language", "Language"),
)


def _lookup(data: Mapping[str, Any], section: str, name: str) -> Any:
    container = data.get(section)
    if not isinstance(container, Mapping):
        return None
    return container.get(name)


def check_compliance(spec: Spec | Mapping[str, Any], policy: Mapping[str, Any]) -> ComplianceResult:
    """Report every covered field the policy pins that the spec does not match exactly."""
    data = spec_as_dict(spec)
    violations: list[str] = []
    for section, name, label in _COMPLIANCE_FIELDS:
        expected = _lookup(policy, section, name)
        if expected is None:
            continue
        actual = _lookup(data, section, name)
        if actual != expected:
            shown = "unset" if actual is None else actual
            violations.append(f"{label} mismatch: expected {expected}, got {shown}")
    return ComplianceResult(compliant=not violations, violations=tuple(violations))


def apply_policy(spec: Spec | Mapping[str, Any], policy: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new spec mapping where the policy's standards and project fields win."""
    data = spec_as_dict(spec)
    result = copy.deepcopy(data)
    for section in ("standards", "project"):
        pinned = policy.get(section)
        if isinstance(pinned, Mapping):
            result[section] = deep_merge(data.get(section) or {}, pinned)
    return result
