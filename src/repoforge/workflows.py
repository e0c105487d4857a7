"""GitHub Actions workflow generation for a spec."""

from __future__ import annotations

from dataclasses import dataclass

from repoforge import templates_data
from repoforge.spec import Spec

CODEQL_LANGUAGES: dict[str, str] = {
    "typescript": "javascript",
    "javascript": "javascript",
    "python": "python",
    "go": "go",
    "rust": "rust",
}

_STEP_FAMILIES: dict[str, str] = {
    "typescript": "node",
    "javascript": "node",
    "python": "python",
    "go": "go",
    "rust": "rust",
}


@dataclass(frozen=True)
class Workflow:
    name: str
    content: str


def runtime_version(runtime: str) -> str:
    """Toolchain version for a runtime id: ``node20`` -> ``20``, ``python311`` -> ``3.11``."""
    if runtime.startswith("node"):
        return runtime[len("node") :]
    if runtime.startswith("python"):
        digits = runtime[len("python") :]
        return f"{digits[0]}.{digits[1:]}"
    return runtime


class WorkflowGenerator:
    def ci(self, spec: Spec) -> Workflow:
        family = _STEP_FAMILIES.get(spec.project.language, "node")
        version = runtime_version(spec.project.runtime)
        if family == "node" and not spec.project.runtime.startswith("node"):
            version = "20"
        elif family == "python" and not spec.project.runtime.startswith("python"):
            version = "3.11"
        steps = templates_data.CI_STEPS_TEMPLATES[family].format(version=version)
        return Workflow("ci.yml", templates_data.CI_WORKFLOW_TEMPLATE.format(steps=steps))

    def security(self, spec: Spec) -> Workflow:
        language = CODEQL_LANGUAGES.get(spec.project.language, "javascript")
        return Workflow("security.yml", templates_data.SECURITY_WORKFLOW_TEMPLATE.format(codeql_language=language))

    def release(self, spec: Spec) -> Workflow:
        return Workflow("release.yml", templates_data.RELEASE_WORKFLOW)

    def enforcement(self) -> Workflow:
        return Workflow("repoforge-enforce.yml", templates_data.ENFORCEMENT_WORKFLOW)

    def generate_all(self, spec: Spec) -> list[Workflow]:
        workflows = [self.ci(spec), self.security(spec), self.release(spec)]
        if spec.standards.ci == "enforced":
            workflows.append(self.enforcement())
        return workflows
