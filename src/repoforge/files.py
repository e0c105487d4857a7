"""Repository file generation: GitHub config, editor config, and documentation."""

from __future__ import annotations

from dataclasses import dataclass

from repoforge import templates_data
from repoforge.spec import Spec
from repoforge.workflows import runtime_version

DEPENDABOT_ECOSYSTEMS: dict[str, str] = {
    "typescript": "npm",
    "javascript": "npm",
    "python": "pip",
    "go": "gomod",
    "rust": "cargo",
}


@dataclass(frozen=True)
class GeneratedFile:
    path: str
    content: str


class FileGenerator:
    """Builds the non-workflow files every governed repository carries."""

    def generate_files(self, spec: Spec) -> list[GeneratedFile]:
        return [*self.github_files(spec), *self.config_files(), *self.documentation(spec)]

    def github_files(self, spec: Spec) -> list[GeneratedFile]:
        ecosystem = DEPENDABOT_ECOSYSTEMS.get(spec.project.language, "npm")
        return [
            GeneratedFile(".github/dependabot.yml", templates_data.DEPENDABOT_TEMPLATE.format(ecosystem=ecosystem)),
            GeneratedFile(".github/CODEOWNERS", templates_data.CODEOWNERS),
        ]

    def config_files(self) -> list[GeneratedFile]:
        return [
            GeneratedFile(".editorconfig", templates_data.EDITORCONFIG),
            GeneratedFile(".gitattributes", templates_data.GITATTRIBUTES),
        ]

    def documentation(self, spec: Spec) -> list[GeneratedFile]:
        return [
            GeneratedFile("README.md", self.readme(spec)),
            GeneratedFile("CONTRIBUTING.md", templates_data.CONTRIBUTING),
            GeneratedFile("SECURITY.md", templates_data.SECURITY_POLICY),
            GeneratedFile("CHANGELOG.md", templates_data.CHANGELOG),
        ]

    def readme(self, spec: Spec) -> str:
        project = spec.project
        prereqs, install, dev, test, build = templates_data.LANGUAGE_COMMANDS[project.language]
        version = runtime_version(project.runtime)
        kind = templates_data.PROJECT_DESCRIPTIONS.get(project.type, "project")
        description = (
            f"> {kind} written in `{project.language}`. "
            f"Built with {project.runtime}. Designed for {project.deployment} deployment."
        )
        note = templates_data.DEPLOYMENT_NOTES.get(project.deployment)
        return templates_data.README_TEMPLATE.format(
            title=project.type.replace("-", " ").capitalize(),
            description=description,
            prerequisites="\n".join(f"- {p.format(version=version)}" for p in prereqs),
            install=install,
            dev=dev,
            test=test,
            build=build,
            deployment=f"## Deployment\n\n{note}\n\n" if note else "",
            ci=spec.standards.ci,
            security=spec.standards.security,
            releases=spec.standards.releases,
        )
