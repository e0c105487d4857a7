"""Tests for policy-list and policy-apply."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from repoforge.cli import cli
from repoforge.spec import load_spec, write_spec
from tests.conftest import make_spec


@pytest.fixture
def policy_dir(in_tmp_dir: Path) -> Path:
    """A directory with a default-standards repoforge.yaml (ci/releases strict, security enforced)."""
    write_spec(in_tmp_dir / "repoforge.yaml", make_spec())
    return in_tmp_dir


def _write_policy(path: Path, **standards: str) -> Path:
    path.write_text(yaml.safe_dump({"standards": standards}))
    return path


class TestPolicyList:
    def test_text(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["policy-list"])
        assert result.exit_code == 0
        assert "startup (v1.0.0)" in result.output
        assert "Production-grade standards for SaaS companies" in result.output
        assert "  releases: permissive" in result.output
        assert "Usage: repoforge init --policy <pack-name>" in result.output

    def test_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["policy-list", "--json"])
        assert result.exit_code == 0
        packs = json.loads(result.output)
        assert [p["name"] for p in packs] == ["startup", "saas", "enterprise", "oss"]
        assert packs[2]["spec"]["standards"]["releases"] == "enforced"


class TestPolicyApply:
    def test_compliant(self, policy_dir: Path, cli_runner: CliRunner) -> None:
        org = _write_policy(policy_dir / "org.yaml", ci="strict")
        result = cli_runner.invoke(cli, ["policy-apply", "--repo-spec", "repoforge.yaml", "--org-policy", str(org)])
        assert result.exit_code == 0
        assert "Repository spec complies with policies" in result.output
        assert "Policy hierarchy:" in result.output

    def test_check_only_reports_and_fails(self, policy_dir: Path, cli_runner: CliRunner) -> None:
        org = _write_policy(policy_dir / "org.yaml", ci="enforced")
        before = (policy_dir / "repoforge.yaml").read_text()
        result = cli_runner.invoke(
            cli, ["policy-apply", "--repo-spec", "repoforge.yaml", "--org-policy", str(org), "--check-only"]
        )
        assert result.exit_code == 1
        assert "Found 1 compliance issue(s):" in result.output
        assert "CI standard mismatch: expected enforced, got strict" in result.output
        assert (policy_dir / "repoforge.yaml").read_text() == before

    def test_applies_in_place(self, policy_dir: Path, cli_runner: CliRunner) -> None:
        org = _write_policy(policy_dir / "org.yaml", ci="enforced")
        result = cli_runner.invoke(cli, ["policy-apply", "--repo-spec", "repoforge.yaml", "--org-policy", str(org)])
        assert result.exit_code == 0
        assert "Policies applied and saved to repoforge.yaml" in result.output
        assert load_spec(policy_dir / "repoforge.yaml").standards.ci == "enforced"

    def test_out_leaves_source_untouched(self, policy_dir: Path, cli_runner: CliRunner) -> None:
        org = _write_policy(policy_dir / "org.yaml", ci="enforced", releases="enforced")
        result = cli_runner.invoke(
            cli,
            ["policy-apply", "--repo-spec", "repoforge.yaml", "--org-policy", str(org), "--out", "applied.yaml"],
        )
        assert result.exit_code == 0
        assert load_spec(policy_dir / "repoforge.yaml").standards.ci == "strict"
        applied = load_spec(policy_dir / "applied.yaml")
        assert (applied.standards.ci, applied.standards.releases) == ("enforced", "enforced")
        assert applied.project.language == "typescript"

    def test_team_overrides_organization(self, policy_dir: Path, cli_runner: CliRunner) -> None:
        org = _write_policy(policy_dir / "org.yaml", ci="enforced")
        team = _write_policy(policy_dir / "team.yaml", ci="strict")
        result = cli_runner.invoke(
            cli,
            ["policy-apply", "--repo-spec", "repoforge.yaml", "--org-policy", str(org), "--team-policy", str(team)],
        )
        assert result.exit_code == 0
        assert "Repository spec complies with policies" in result.output
        assert "Organization (" in result.output
        assert "Team (" in result.output
        assert "Repository (current):" in result.output

    def test_pack_as_organization_baseline(self, policy_dir: Path, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["policy-apply", "--repo-spec", "repoforge.yaml", "--pack", "enterprise", "--check-only"]
        )
        assert result.exit_code == 1
        assert "Found 2 compliance issue(s):" in result.output
        assert "Organization (pack:enterprise):" in result.output

    def test_org_file_overrides_pack(self, policy_dir: Path, cli_runner: CliRunner) -> None:
        org = _write_policy(policy_dir / "org.yaml", ci="strict")
        result = cli_runner.invoke(
            cli,
            [
                "policy-apply",
                "--repo-spec",
                "repoforge.yaml",
                "--pack",
                "enterprise",
                "--org-policy",
                str(org),
                "--check-only",
            ],
        )
        assert result.exit_code == 1
        assert "Found 1 compliance issue(s):" in result.output
        assert "Release standard mismatch: expected enforced, got strict" in result.output

    def test_no_policies_is_compliant(self, policy_dir: Path, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["policy-apply", "--repo-spec", "repoforge.yaml"])
        assert result.exit_code == 0
        assert "Repository spec complies with policies" in result.output

    def test_missing_files(self, policy_dir: Path, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["policy-apply", "--repo-spec", "missing.yaml"])
        assert result.exit_code == 1
        assert "Repository spec not found: missing.yaml" in result.output

        result = cli_runner.invoke(cli, ["policy-apply", "--repo-spec", "repoforge.yaml", "--org-policy", "org.yaml"])
        assert result.exit_code == 1
        assert "Organization policy not found: org.yaml" in result.output

    def test_out_of_range_policy_value_rejected(self, policy_dir: Path, cli_runner: CliRunner) -> None:
        org = _write_policy(policy_dir / "org.yaml", ci="relaxed")
        before = (policy_dir / "repoforge.yaml").read_text()
        result = cli_runner.invoke(cli, ["policy-apply", "--repo-spec", "repoforge.yaml", "--org-policy", str(org)])
        assert result.exit_code == 1
        assert "Invalid policy" in result.output
        assert "Invalid standards.ci 'relaxed'" in result.output
        assert (policy_dir / "repoforge.yaml").read_text() == before

    def test_scalar_standards_policy_rejected(self, policy_dir: Path, cli_runner: CliRunner) -> None:
        (policy_dir / "org.yaml").write_text("standards: enforced\n")
        result = cli_runner.invoke(cli, ["policy-apply", "--repo-spec", "repoforge.yaml", "--org-policy", "org.yaml"])
        assert result.exit_code == 1
        assert "standards must be a mapping, got str" in result.output
        assert not isinstance(result.exception, AttributeError)

    def test_scalar_standards_repo_spec_rejected(self, in_tmp_dir: Path, cli_runner: CliRunner) -> None:
        (in_tmp_dir / "repoforge.yaml").write_text("version: 1.0.0\nstandards: strict\n")
        result = cli_runner.invoke(cli, ["policy-apply", "--repo-spec", "repoforge.yaml"])
        assert result.exit_code == 1
        assert "Invalid spec: standards must be a mapping, got str" in result.output

    def test_applied_spec_must_be_complete(self, in_tmp_dir: Path, cli_runner: CliRunner) -> None:
        (in_tmp_dir / "repoforge.yaml").write_text("version: 1.0.0\n")
        org = _write_policy(in_tmp_dir / "org.yaml", ci="enforced")
        result = cli_runner.invoke(cli, ["policy-apply", "--repo-spec", "repoforge.yaml", "--org-policy", str(org)])
        assert result.exit_code == 1
        assert "Applied spec is invalid: Missing project definition" in result.output
        assert (in_tmp_dir / "repoforge.yaml").read_text() == "version: 1.0.0\n"

    def test_invalid_policy_yaml(self, policy_dir: Path, cli_runner: CliRunner) -> None:
        (policy_dir / "team.yaml").write_text("standards: [unclosed")
        result = cli_runner.invoke(
            cli, ["policy-apply", "--repo-spec", "repoforge.yaml", "--team-policy", "team.yaml"]
        )
        assert result.exit_code == 1
        assert "Invalid YAML" in result.output
