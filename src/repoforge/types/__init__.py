# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from core.py, spec.py, or any generator; this prevents circular imports.
"""Typed shapes for repoforge's persisted documents and serialized results."""

from __future__ import annotations

from repoforge.types.core import (
    GitHubConfig,
    ISOTimestamp,
    MetadataDict,
    PartialSpec,
    ProjectDict,
    RepoForgeConfig,
    StandardsDict,
)
from repoforge.types.results import (
    AnalysisDict,
    UpgradeGuideDict,
    UpgradeStepDict,
    ViolationDict,
)

__all__ = [
    "AnalysisDict",
    "GitHubConfig",
    "ISOTimestamp",
    "MetadataDict",
    "PartialSpec",
    "ProjectDict",
    "RepoForgeConfig",
    "StandardsDict",
    "UpgradeGuideDict",
    "UpgradeStepDict",
    "ViolationDict",
]
