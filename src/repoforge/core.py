"""Conventions, configuration, and file helpers shared by every entry point.

Convention-based discovery: a governed repository carries ``repoforge.yaml``
at its root and a ``.repoforge/`` directory holding the drift baseline and the
structured log. User preferences live in ``.repoforgerc.yaml`` (or ``.yml`` /
``.json``) in the working directory or up to two parents.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from repoforge.types.core import RepoForgeConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Convention-based discovery
# ---------------------------------------------------------------------------

SPEC_FILENAME = "repoforge.yaml"
REPOFORGE_DIR_NAME = ".repoforge"
BASELINE_FILENAME = "baseline.json"
WORKFLOWS_DIR = ".github/workflows"
CONFIG_FILENAMES = (".repoforgerc.yaml", ".repoforgerc.yml", ".repoforgerc.json")

PACK_NAMES = ("startup", "saas", "enterprise", "oss")


def workflow_path(name: str) -> str:
    """Repo-relative path of a workflow file, e.g. ``ci.yml`` -> ``.github/workflows/ci.yml``."""
    return f"{WORKFLOWS_DIR}/{name}"


def find_repoforge_dir(start: Path | None = None) -> Path:
    """Walk up from start (default cwd) looking for a .repoforge/ directory.

    Returns the .repoforge/ directory path (not the project root).
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / REPOFORGE_DIR_NAME
        if candidate.is_dir():
            return candidate
    msg = f"No {REPOFORGE_DIR_NAME}/ directory found in {current} or any parent"
    raise FileNotFoundError(msg)


# ---------------------------------------------------------------------------
# Configuration (.repoforgerc)
# ---------------------------------------------------------------------------

DEFAULT_CONFIG: RepoForgeConfig = {
    "spec_path": SPEC_FILENAME,
    "default_policy": "saas",
    "auto_fix": False,
    "dry_run": False,
    "verbose": False,
    "quiet": False,
}

_BOOL_ENV_OVERRIDES = {
    "REPOFORGE_AUTO_FIX": "auto_fix",
    "REPOFORGE_DRY_RUN": "dry_run",
    "REPOFORGE_VERBOSE": "verbose",
    "REPOFORGE_QUIET": "quiet",
}


def config_search_dirs(start: Path | None = None) -> list[Path]:
    """Directories searched for a config file: start, its parent, its grandparent."""
    current = (start or Path.cwd()).resolve()
    return [current, *list(current.parents)[:2]]


def find_config_file(start: Path | None = None) -> Path | None:
    """Return the first config file found, by file-name preference then directory order."""
    dirs = config_search_dirs(start)
    for filename in CONFIG_FILENAMES:
        for directory in dirs:
            candidate = directory / filename
            if candidate.is_file():
                return candidate
    return None


def read_config(start: Path | None = None) -> RepoForgeConfig:
    """Read the nearest .repoforgerc file. Returns an empty config if missing or corrupt."""
    config_path = find_config_file(start)
    if config_path is None:
        return {}
    try:
        text = config_path.read_text(encoding="utf-8")
        data = json.loads(text) if config_path.suffix == ".json" else yaml.safe_load(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        logger.warning("Failed to load config from %s, using defaults: %s", config_path, exc)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Config %s must contain a mapping, got %s, ignoring", config_path, type(data).__name__)
        return {}
    result: RepoForgeConfig = data  # type: ignore[assignment]
    return result


def apply_env_overrides(config: RepoForgeConfig, environ: Mapping[str, str] | None = None) -> RepoForgeConfig:
    """Return a copy of config with REPOFORGE_* environment overrides applied."""
    env = os.environ if environ is None else environ
    result: RepoForgeConfig = dict(config)  # type: ignore[assignment]
    if env.get("REPOFORGE_SPEC_PATH"):
        result["spec_path"] = env["REPOFORGE_SPEC_PATH"]
    if env.get("REPOFORGE_POLICY"):
        result["default_policy"] = env["REPOFORGE_POLICY"]
    for var, key in _BOOL_ENV_OVERRIDES.items():
        if env.get(var) == "true":
            result[key] = True  # type: ignore[literal-required]
    return result


def get_config(start: Path | None = None) -> RepoForgeConfig:
    """Effective config: file values with environment overrides on top."""
    return apply_env_overrides(read_config(start))


def write_config(path: Path, config: Mapping[str, Any]) -> None:
    """Write a .repoforgerc file (YAML unless the path ends in .json)."""
    if path.suffix == ".json":
        content = json.dumps(dict(config), indent=2) + "\n"
    else:
        content = yaml.safe_dump(dict(config), sort_keys=False, default_flow_style=False)
    write_atomic(path, content)


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------


def write_atomic(path: Path, content: str) -> None:
    """Write content to path atomically via temp file + os.replace()."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise


def ensure_gitignore(project_root: Path) -> tuple[bool, str]:
    """Ensure the repoforge log files are in .gitignore."""
    gitignore = project_root / ".gitignore"
    pattern = f"{REPOFORGE_DIR_NAME}/*.log*"

    if gitignore.exists():
        content = gitignore.read_text()
        if pattern in content:
            return True, f"{pattern} already in .gitignore"
        if content and not content.endswith("\n"):
            content += "\n"
        content += f"\n# repoforge logs\n{pattern}\n"
        gitignore.write_text(content)
        return True, f"Added {pattern} to .gitignore"
    gitignore.write_text(f"# repoforge logs\n{pattern}\n")
    return True, f"Created .gitignore with {pattern}"
