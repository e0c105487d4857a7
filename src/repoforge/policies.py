"""Policy packs -- named, built-in bundles of standards-level defaults.

A pack fills in standards the spec leaves unset; it never overrides a value
the spec already pins. Each caller constructs its own ``PolicyPackRegistry``;
there is no shared module-level registry.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from repoforge.spec import STANDARDS_FIELDS, Spec, spec_as_dict
from repoforge.types.core import PartialSpec

logger = logging.getLogger(__name__)


class PackNotFoundError(LookupError):
    """Raised when applying a pack name that was never registered."""

    def __init__(self, pack_name: str, available: list[str]) -> None:
        self.pack_name = pack_name
        self.available = available
        super().__init__(f"Policy pack not found: {pack_name}. Available packs: {', '.join(available)}")


@dataclass(frozen=True)
class PolicyPack:
    """A named, versioned bundle of spec defaults."""

    name: str
    description: str
    version: str
    spec: PartialSpec

    def standard(self, name: str) -> str | None:
        return (self.spec.get("standards") or {}).get(name)  # type: ignore[attr-defined]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "spec": copy.deepcopy(dict(self.spec)),
        }


BUILT_IN_PACKS: tuple[PolicyPack, ...] = (
    PolicyPack(
        name="startup",
        description="Minimal standards for fast-moving startups",
        version="1.0.0",
        spec={"standards": {"ci": "strict", "security": "strict", "releases": "permissive"}},
    ),
    PolicyPack(
        name="saas",
        description="Production-grade standards for SaaS companies",
        version="1.0.0",
        spec={"standards": {"ci": "enforced", "security": "enforced", "releases": "strict"}},
    ),
    PolicyPack(
        name="enterprise",
        description="Enterprise-grade standards for regulated industries",
        version="1.0.0",
        spec={"standards": {"ci": "enforced", "security": "enforced", "releases": "enforced"}},
    ),
    PolicyPack(
        name="oss",
        description="Standards for open source projects",
        version="1.0.0",
        spec={"standards": {"ci": "strict", "security": "strict", "releases": "strict"}},
    ),
)


class PolicyPackRegistry:
    """Catalog of policy packs, keyed by name, in registration order."""

    def __init__(self, packs: tuple[PolicyPack, ...] = BUILT_IN_PACKS) -> None:
        self._packs: dict[str, PolicyPack] = {}
        for pack in packs:
            self.register(pack)

    def register(self, pack: PolicyPack) -> None:
        """Store a pack by name. Re-registering a name replaces the earlier pack in place."""
        if pack.name in self._packs:
            logger.debug("Replacing policy pack: %s", pack.name)
        self._packs[pack.name] = pack

    def get(self, name: str) -> PolicyPack | None:
        return self._packs.get(name)

    def list_packs(self) -> list[PolicyPack]:
        return list(self._packs.values())

    def names(self) -> list[str]:
        return list(self._packs)

    def apply(self, spec: Spec | Mapping[str, Any], pack_name: str) -> dict[str, Any]:
        """Return a new spec mapping with the pack's standards as fallbacks.

        Raises:
            PackNotFoundError: If pack_name is not registered.
        """
        pack = self.get(pack_name)
        if pack is None:
            raise PackNotFoundError(pack_name, self.names())

        result = copy.deepcopy(spec_as_dict(spec))
        current = result.get("standards") or {}
        standards: dict[str, Any] = {}
        for name in STANDARDS_FIELDS:
            value = current.get(name) or pack.standard(name)
            if value is not None:
                standards[name] = value
        result["standards"] = standards
        logger.info("Applied policy pack %s", pack_name)
        return result
