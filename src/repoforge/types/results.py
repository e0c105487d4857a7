"""TypedDicts for to_dict() returns used by --json output."""

from __future__ import annotations

from typing import Any, TypedDict


class ViolationDict(TypedDict):
    file: str
    rule: str
    severity: str
    message: str


class UpgradeStepDict(TypedDict, total=False):
    action: str
    file: str
    reason: str
    old_content: str
    new_content: str


class UpgradeGuideDict(TypedDict):
    from_version: str
    to_version: str
    steps: list[UpgradeStepDict]
    backup_required: bool


class AnalysisDict(TypedDict):
    project: dict[str, Any]
    confidence: float
    detected: dict[str, list[str]]
