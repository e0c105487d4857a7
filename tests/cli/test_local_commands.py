"""Tests for the local-checkout commands: analyze, init, apply, validate, local-fix, baseline, drift, upgrade."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from repoforge import __version__
from repoforge.cli import cli
from repoforge.spec import load_spec
from tests.cli.conftest import _workflow


class TestGroup:
    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert f"repoforge, version {__version__}" in result.output

    def test_commands_registered(self) -> None:
        assert set(cli.commands) == {
            "analyze",
            "init",
            "apply",
            "validate",
            "local-fix",
            "baseline",
            "drift",
            "upgrade",
            "policy-list",
            "policy-apply",
            "github-init",
            "github-validate",
            "github-upgrade",
            "github-auto-fix",
            "scan",
            "config-init",
        }

    def test_command_logged_once_repoforge_dir_exists(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        result = runner.invoke(cli, ["validate"])
        assert result.exit_code == 0
        records = [json.loads(line) for line in (root / ".repoforge" / "repoforge.log").read_text().splitlines()]
        finished = [r for r in records if r["msg"] == "command finished"]
        assert finished[-1]["command"] == "validate"
        assert "duration_ms" in finished[-1]


class TestAnalyze:
    def test_text_output(self, ts_project: Path, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(ts_project)
        result = cli_runner.invoke(cli, ["analyze"])
        assert result.exit_code == 0
        assert "Type: backend-api (80% confidence)" in result.output
        assert "Language: typescript" in result.output
        assert "  - nodejs" in result.output

    def test_json_output(self, ts_project: Path, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(ts_project)
        result = cli_runner.invoke(cli, ["analyze", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["project"]["runtime"] == "node20"
        assert data["detected"]["patterns"] == ["nodejs", "containerized"]


class TestInit:
    def test_writes_spec_artifacts_and_baseline(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        _, root = cli_in_project
        spec = load_spec(root / "repoforge.yaml")
        assert spec.project.language == "typescript"
        assert spec.standards.ci == "strict"
        assert _workflow(root, "ci.yml").exists()
        assert (root / ".npmrc").exists()
        assert not _workflow(root, "repoforge-enforce.yml").exists()
        baseline = json.loads((root / ".repoforge" / "baseline.json").read_text())
        assert set(baseline["files"]) == {
            ".github/workflows/ci.yml",
            ".github/workflows/security.yml",
            ".github/workflows/release.yml",
        }
        assert ".repoforge/*.log*" in (root / ".gitignore").read_text()

    def test_output(self, ts_project: Path, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(ts_project)
        result = cli_runner.invoke(cli, ["init"])
        assert result.exit_code == 0
        assert "Detected: backend-api (typescript)" in result.output
        assert "Wrote repoforge.yaml and 13 artifact(s):" in result.output
        assert "Next: repoforge validate" in result.output

    def test_dry_run_writes_nothing(self, ts_project: Path, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(ts_project)
        result = cli_runner.invoke(cli, ["init", "--dry-run"])
        assert result.exit_code == 0
        assert "Would write:" in result.output
        assert "  repoforge.yaml" in result.output
        assert "No changes applied." in result.output
        assert not (ts_project / "repoforge.yaml").exists()
        assert not (ts_project / ".github").exists()

    def test_policy_pack(self, ts_project: Path, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(ts_project)
        result = cli_runner.invoke(cli, ["init", "--policy", "enterprise"])
        assert result.exit_code == 0
        assert "Policy pack: enterprise" in result.output
        spec = load_spec(ts_project / "repoforge.yaml")
        assert (spec.standards.ci, spec.standards.security, spec.standards.releases) == (
            "enforced",
            "enforced",
            "enforced",
        )
        assert _workflow(ts_project, "repoforge-enforce.yml").exists()

    def test_unknown_policy_rejected(self, ts_project: Path, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(ts_project)
        result = cli_runner.invoke(cli, ["init", "--policy", "nonexistent"])
        assert result.exit_code == 2

    def test_default_policy_from_config(self, ts_project: Path, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(ts_project)
        (ts_project / ".repoforgerc.yaml").write_text("default_policy: startup\n")
        result = cli_runner.invoke(cli, ["init"])
        assert result.exit_code == 0
        assert load_spec(ts_project / "repoforge.yaml").standards.releases == "permissive"

    def test_bad_config_policy(self, ts_project: Path, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(ts_project)
        (ts_project / ".repoforgerc.yaml").write_text("default_policy: bogus\n")
        result = cli_runner.invoke(cli, ["init"])
        assert result.exit_code == 1
        assert "Policy pack not found: bogus" in result.output

    def test_keeps_existing_files(self, ts_project: Path, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(ts_project)
        (ts_project / "README.md").write_text("# Orders\n")
        result = cli_runner.invoke(cli, ["init"])
        assert result.exit_code == 0
        assert "Kept 1 existing file(s):" in result.output
        assert (ts_project / "README.md").read_text() == "# Orders\n"

    def test_backs_up_existing_spec(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        spec_file = root / "repoforge.yaml"
        spec_file.write_text(spec_file.read_text().replace("ci: strict", "ci: enforced"))
        hand_edited = spec_file.read_text()
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 0
        assert "Backed up existing spec to repoforge.yaml.bak" in result.output
        assert (root / "repoforge.yaml.bak").read_text() == hand_edited
        assert load_spec(spec_file).standards.ci == "strict"

    def test_dir_option(self, ts_project: Path, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        elsewhere = ts_project / "elsewhere"
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)
        result = cli_runner.invoke(cli, ["init", "--dir", str(ts_project)])
        assert result.exit_code == 0
        assert (ts_project / "repoforge.yaml").exists()
        assert not (elsewhere / "repoforge.yaml").exists()


class TestValidate:
    def test_compliant(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["validate"])
        assert result.exit_code == 0
        assert "Repository is compliant" in result.output

    def test_missing_workflow_warns(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        _workflow(root, "security.yml").unlink()
        result = runner.invoke(cli, ["validate"])
        assert result.exit_code == 0
        assert "Found 1 violation(s):" in result.output
        assert "[WARN] .github/workflows/security.yml" in result.output
        assert "Warnings present (use --strict to fail)" in result.output

    def test_strict_fails_on_warnings(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        _workflow(root, "security.yml").unlink()
        result = runner.invoke(cli, ["validate", "--strict"])
        assert result.exit_code == 1

    def test_auto_fix_from_env(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        _workflow(root, "security.yml").unlink()
        result = runner.invoke(cli, ["validate", "--strict"], env={"REPOFORGE_AUTO_FIX": "true"})
        assert result.exit_code == 0
        assert "Auto-fixed 1 missing workflow(s)" in result.output
        assert "Repository is compliant" in result.output
        assert _workflow(root, "security.yml").exists()

    def test_auto_fix_respects_dry_run(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        _workflow(root, "security.yml").unlink()
        result = runner.invoke(cli, ["validate"], env={"REPOFORGE_AUTO_FIX": "true", "REPOFORGE_DRY_RUN": "true"})
        assert result.exit_code == 0
        assert "Auto-fixed" not in result.output
        assert not _workflow(root, "security.yml").exists()

    def test_json(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        _workflow(root, "ci.yml").unlink()
        result = runner.invoke(cli, ["validate", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["valid"] is True
        assert data["violations"][0]["rule"] == "required-workflow"

    def test_missing_spec(self, in_tmp_dir: Path, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["validate"])
        assert result.exit_code == 1
        assert "Spec file not found" in result.output

    def test_missing_spec_json(self, in_tmp_dir: Path, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["validate", "--json"])
        assert result.exit_code == 1
        assert "Spec file not found" in json.loads(result.output)["error"]

    def test_spec_without_project(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        (root / "repoforge.yaml").write_text("version: 1.0.0\n")
        result = runner.invoke(cli, ["validate"])
        assert result.exit_code == 1
        assert "[ERROR] repoforge.yaml" in result.output
        assert "project-defined" in result.output

    def test_invalid_spec(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        (root / "repoforge.yaml").write_text("project:\n  type: cli\nstandards:\n  ci: loose\n")
        result = runner.invoke(cli, ["validate"])
        assert result.exit_code == 1
        assert "Invalid spec" in result.output
        assert "Invalid standards.ci 'loose'" in result.output

    def test_enforced_missing_workflow_fails(self, ts_project: Path, cli_runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(ts_project)
        assert cli_runner.invoke(cli, ["init", "--policy", "saas"]).exit_code == 0
        _workflow(ts_project, "ci.yml").unlink()
        result = cli_runner.invoke(cli, ["validate"])
        assert result.exit_code == 1
        assert "[ERROR] .github/workflows/ci.yml" in result.output

    def test_plugin_rules(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["validate", "--plugin-rules"])
        assert result.exit_code == 1
        assert "plugin:node-package-json" in result.output

    def test_spec_path_from_environment(self, cli_in_project: tuple[CliRunner, Path], monkeypatch: pytest.MonkeyPatch) -> None:
        runner, root = cli_in_project
        (root / "repoforge.yaml").rename(root / "governance.yaml")
        monkeypatch.setenv("REPOFORGE_SPEC_PATH", "governance.yaml")
        result = runner.invoke(cli, ["validate"])
        assert result.exit_code == 0
        assert "Repository is compliant" in result.output

    def test_spec_option(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        (root / "repoforge.yaml").rename(root / "governance.yaml")
        assert runner.invoke(cli, ["validate"]).exit_code == 1
        assert runner.invoke(cli, ["validate", "--spec", "governance.yaml"]).exit_code == 0


class TestLocalFix:
    def test_recreates_missing_workflow(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        _workflow(root, "ci.yml").unlink()
        result = runner.invoke(cli, ["local-fix"])
        assert result.exit_code == 0
        assert "Applied 1 fix(es)" in result.output
        assert "All violations fixed" in result.output
        assert _workflow(root, "ci.yml").exists()

    def test_nothing_to_fix(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["local-fix"])
        assert result.exit_code == 0
        assert "No fixable violations found" in result.output

    def test_dry_run(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        _workflow(root, "ci.yml").unlink()
        _workflow(root, "security.yml").unlink()
        result = runner.invoke(cli, ["local-fix", "--dry-run"])
        assert result.exit_code == 0
        assert "Files to be created:" in result.output
        assert "  + .github/workflows/ci.yml" in result.output
        assert "  + .github/workflows/security.yml" in result.output
        assert not _workflow(root, "ci.yml").exists()

    def test_does_not_touch_existing_workflows(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        _workflow(root, "security.yml").unlink()
        _workflow(root, "release.yml").write_text("name: Custom release\n")
        assert runner.invoke(cli, ["local-fix"]).exit_code == 0
        assert _workflow(root, "release.yml").read_text() == "name: Custom release\n"


class TestApply:
    def test_already_matches(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["apply"])
        assert result.exit_code == 0
        assert "Repository already matches the spec" in result.output

    def test_restores_modified_workflow(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        original = _workflow(root, "ci.yml").read_text()
        _workflow(root, "ci.yml").write_text("name: hacked\n")

        preview = runner.invoke(cli, ["apply", "--dry-run"])
        assert preview.exit_code == 0
        assert "  ~ .github/workflows/ci.yml" in preview.output
        assert _workflow(root, "ci.yml").read_text() == "name: hacked\n"

        result = runner.invoke(cli, ["apply"])
        assert result.exit_code == 0
        assert "Applied 1 change(s):" in result.output
        assert _workflow(root, "ci.yml").read_text() == original

    def test_creates_missing_artifacts_but_keeps_edited_docs(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        (root / ".editorconfig").unlink()
        (root / "README.md").write_text("# Custom\n")
        result = runner.invoke(cli, ["apply"])
        assert result.exit_code == 0
        assert "  + .editorconfig" in result.output
        assert (root / ".editorconfig").exists()
        assert (root / "README.md").read_text() == "# Custom\n"

    def test_apply_refreshes_baseline(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        _workflow(root, "security.yml").unlink()
        assert runner.invoke(cli, ["apply"]).exit_code == 0
        result = runner.invoke(cli, ["drift"])
        assert "No drift from baseline" in result.output


class TestBaselineAndDrift:
    def test_no_drift_after_init(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["drift"])
        assert result.exit_code == 0
        assert "No drift from baseline" in result.output

    def test_detects_modified_and_deleted(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        _workflow(root, "ci.yml").write_text("name: changed\n")
        _workflow(root, "release.yml").unlink()
        result = runner.invoke(cli, ["drift", "--json"])
        assert result.exit_code == 0
        rules = {(v["file"], v["rule"]) for v in json.loads(result.output)["violations"]}
        assert rules == {
            (".github/workflows/ci.yml", "file-modified"),
            (".github/workflows/release.yml", "file-deleted"),
        }

    def test_rebaseline_accepts_changes(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        _workflow(root, "ci.yml").write_text("name: changed\n")
        result = runner.invoke(cli, ["baseline"])
        assert result.exit_code == 0
        assert "Recorded 3 file(s)" in result.output
        assert "No drift from baseline" in runner.invoke(cli, ["drift"]).output

    def test_missing_baseline(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        (root / ".repoforge" / "baseline.json").unlink()
        result = runner.invoke(cli, ["drift"])
        assert result.exit_code == 1
        assert "No baseline recorded" in result.output


class TestUpgrade:
    def test_dry_run(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        before = (root / "repoforge.yaml").read_text()
        result = runner.invoke(cli, ["upgrade", "--dry-run"])
        assert result.exit_code == 0
        assert "Current: 1.0.0" in result.output
        assert "Latest: 2.0.0" in result.output
        assert "MODIFY: repoforge.yaml" in result.output
        assert "MODIFY: .github/workflows/ci.yml" in result.output
        assert "This is a major version upgrade. Backup recommended." in result.output
        assert "Dry run complete. No changes applied." in result.output
        assert (root / "repoforge.yaml").read_text() == before

    def test_minor_upgrade(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        result = runner.invoke(cli, ["upgrade", "--to", "1.1.0"])
        assert result.exit_code == 0
        assert "CREATE: .github/workflows/release.yml" in result.output
        assert "Created: .github/workflows/release.yml" in result.output
        assert "Upgraded to 1.1.0" in result.output
        assert load_spec(root / "repoforge.yaml").version == "1.1.0"

    def test_major_upgrade_with_backup(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, root = cli_in_project
        result = runner.invoke(cli, ["upgrade", "--auto-backup"])
        assert result.exit_code == 0
        backup = root / "repoforge.yaml.backup-1.0.0"
        assert backup.exists()
        assert "version: 1.0.0" in backup.read_text()
        assert "Modified: .github/workflows/ci.yml" in result.output
        assert load_spec(root / "repoforge.yaml").version == "2.0.0"

    def test_already_latest(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        assert runner.invoke(cli, ["upgrade"]).exit_code == 0
        result = runner.invoke(cli, ["upgrade"])
        assert result.exit_code == 0
        assert "Already at 2.0.0" in result.output

    def test_malformed_target(self, cli_in_project: tuple[CliRunner, Path]) -> None:
        runner, _ = cli_in_project
        result = runner.invoke(cli, ["upgrade", "--to", "2.0"])
        assert result.exit_code == 1
        assert "Invalid version" in result.output
