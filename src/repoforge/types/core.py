"""Shapes of repoforge.yaml, policy documents, and .repoforgerc files."""

from __future__ import annotations

from typing import NewType, TypedDict

ISOTimestamp = NewType("ISOTimestamp", str)


class ProjectDict(TypedDict, total=False):
    type: str
    language: str
    runtime: str
    deployment: str
    risk: str


class StandardsDict(TypedDict, total=False):
    ci: str
    security: str
    releases: str


# Persisted key is camelCase to stay readable by existing repoforge.yaml files.
MetadataDict = TypedDict(
    "MetadataDict",
    {"generated": ISOTimestamp, "generatedBy": str},
    total=False,
)


class PartialSpec(TypedDict, total=False):
    """Any subset of spec fields: policy layers, pack bundles, raw documents."""

    version: str
    project: ProjectDict
    standards: StandardsDict
    metadata: MetadataDict


class GitHubConfig(TypedDict, total=False):
    owner: str


class RepoForgeConfig(TypedDict, total=False):
    """Shape of .repoforgerc.yaml / .repoforgerc.json."""

    spec_path: str
    default_policy: str
    github: GitHubConfig
    auto_fix: bool
    dry_run: bool
    verbose: bool
    quiet: bool
