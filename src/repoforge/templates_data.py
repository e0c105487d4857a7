# src/repoforge/templates_data.py
"""Static artifact text for generated workflows, repository files, and plugin files.

Logic lives in workflows.py, files.py and plugins.py; this file is pure data.

Names ending in ``_TEMPLATE`` are ``str.format`` templates and contain no
literal braces. Every other constant is emitted verbatim (GitHub Actions
expressions such as ``${{ github.ref }}`` included).
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------------

CI_WORKFLOW_TEMPLATE = """\
name: CI

on:
  push:
    branches: [main, master, develop]
  pull_request:
    branches: [main, master]

jobs:
  test:
    runs-on: ubuntu-latest
    steps:
{steps}"""

CI_STEPS_TEMPLATES: dict[str, str] = {
    "node": """\
      - uses: actions/checkout@v4
      - uses: actions/setup-node@v4
        with:
          node-version: '{version}'
      - run: npm ci
      - run: npm run lint
      - run: npm run type-check
      - run: npm run test
      - run: npm run build
""",
    "python": """\
      - uses: actions/checkout@v4
      - uses: actions/setup-python@v5
        with:
          python-version: '{version}'
      - run: pip install -r requirements.txt
      - run: pylint src
      - run: pytest
""",
    "go": """\
      - uses: actions/checkout@v4
      - uses: actions/setup-go@v5
        with:
          go-version: '1.21'
      - run: go vet ./...
      - run: go test -race ./...
      - run: go build ./...
""",
    "rust": """\
      - uses: actions/checkout@v4
      - uses: dtolnay/rust-toolchain@stable
        with:
          components: clippy, rustfmt
      - run: cargo fmt --all -- --check
      - run: cargo clippy --all -- -D warnings
      - run: cargo test --all
""",
}

SECURITY_WORKFLOW_TEMPLATE = """\
name: Security

on:
  push:
    branches: [main, master]
  pull_request:
    branches: [main, master]
  schedule:
    - cron: '0 0 * * 0'

jobs:
  security:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4

      - name: Run CodeQL
        uses: github/codeql-action/init@v3
        with:
          languages: '{codeql_language}'

      - name: Autobuild
        uses: github/codeql-action/autobuild@v3

      - name: Perform CodeQL Analysis
        uses: github/codeql-action/analyze@v3

      - name: Dependency scanning
        uses: actions/dependency-review-action@v4
        if: github.event_name == 'pull_request'

      - name: Secret scanning
        uses: gitleaks/gitleaks-action@v2
"""

RELEASE_WORKFLOW = """\
name: Release

on:
  push:
    branches: [main, master]
    tags:
      - 'v*'

jobs:
  release:
    runs-on: ubuntu-latest
    permissions:
      contents: write
    steps:
      - uses: actions/checkout@v4

      - name: Check if version changed
        id: check-version
        run: |
          if [[ ${{ github.ref }} == refs/tags/v* ]]; then
            echo "version=${GITHUB_REF#refs/tags/v}" >> $GITHUB_OUTPUT
            echo "is_release=true" >> $GITHUB_OUTPUT
          fi

      - name: Create Release
        if: steps.check-version.outputs.is_release == 'true'
        uses: softprops/action-gh-release@v2
        with:
          tag_name: ${{ github.ref_name }}
          name: Release ${{ steps.check-version.outputs.version }}
          draft: false
          prerelease: false
"""

ENFORCEMENT_WORKFLOW = """\
name: RepoForge Enforce

on:
  pull_request:
    paths:
      - '.github/workflows/**'
      - 'repoforge.yaml'
      - '.editorconfig'
      - '.gitattributes'
  push:
    branches: [main]
    paths:
      - '.github/workflows/**'
      - 'repoforge.yaml'

jobs:
  enforce:
    runs-on: ubuntu-latest
    name: Enforce RepoForge Standards
    steps:
      - uses: actions/checkout@v4

      - name: Setup Python
        uses: actions/setup-python@v5
        with:
          python-version: '3.11'

      - name: Install RepoForge
        run: pip install repoforge

      - name: Validate Compliance
        run: |
          if [ ! -f "repoforge.yaml" ]; then
            echo "Missing repoforge.yaml"
            exit 1
          fi
          repoforge validate --strict

      - name: Check Required Files
        run: |
          for file in .github/workflows/ci.yml .github/workflows/security.yml; do
            if [ ! -f "$file" ]; then
              echo "Missing required file: $file"
              exit 1
            fi
          done

      - name: Prevent Workflow Disabling
        run: |
          if ! grep -q "name: Security" .github/workflows/security.yml; then
            echo "Security workflow was modified"
            exit 1
          fi

      - name: Annotate on Failure
        if: failure()
        uses: actions/github-script@v7
        with:
          script: |
            core.setFailed('RepoForge compliance check failed')
"""

# ---------------------------------------------------------------------------
# Repository files
# ---------------------------------------------------------------------------

DEPENDABOT_TEMPLATE = """\
version: 2
updates:
  - package-ecosystem: "{ecosystem}"
    directory: "/"
    schedule:
      interval: "weekly"
    allow:
      - dependency-type: "all"
"""

CODEOWNERS = """\
# CODEOWNERS
# See: https://docs.github.com/en/repositories/managing-your-repositorys-settings-and-features/customizing-your-repository/about-code-owners

# Specify default code owners for the repo
# * @username

# Assign specific paths to team members
# /src/  @team-name
# .github/workflows/ @devops-team
"""

EDITORCONFIG = """\
root = true

[*]
charset = utf-8
end_of_line = lf
insert_final_newline = true
trim_trailing_whitespace = true

[*.{json,yaml,yml}]
indent_style = space
indent_size = 2

[*.py]
indent_style = space
indent_size = 4
"""

GITATTRIBUTES = """\
* text=auto
*.js text eol=lf
*.ts text eol=lf
*.py text eol=lf
*.json text eol=lf
*.md text eol=lf
"""

README_TEMPLATE = """\
# {title}

{description}

## Quick Start

### Prerequisites
{prerequisites}

### Development

```bash
# Install dependencies
{install}

# Start development server
{dev}
```

## Testing

```bash
{test}
```

## Building

```bash
{build}
```

{deployment}## Code Standards

This project enforces its code standards in CI:
- **CI**: {ci} checks on every push and pull request
- **Security**: {security} (CodeQL, dependency review, secret scanning)
- **Releases**: {releases} release process

See [CONTRIBUTING.md](./CONTRIBUTING.md) for detailed guidelines.

## Support

For issues, questions, or suggestions, please open an issue.
"""

CONTRIBUTING = """\
# Contributing

## Code Standards

This repository enforces its code standards via CI.

### Requirements

- All tests must pass
- Type checking must succeed
- Linting must pass
- Security scans must pass

## Process

1. Create a feature branch
2. Make your changes
3. Ensure all checks pass
4. Submit a pull request

## Conventional Commits

We use [Conventional Commits](https://www.conventionalcommits.org/) for commit messages.

```
<type>(<scope>): <subject>
```

Types: `feat`, `fix`, `docs`, `test`, `refactor`, `perf`, `ci`
"""

SECURITY_POLICY = """\
# Security Policy

## Reporting a Vulnerability

If you discover a security vulnerability, please email **[ADD YOUR SECURITY CONTACT]** instead of using the issue tracker.

Do not open public issues for security vulnerabilities.

## Supported Versions

Only the latest version is supported with security updates.

## Security Features

- Automated dependency updates (Dependabot)
- Secret scanning
- SAST via CodeQL

See [CONTRIBUTING.md](./CONTRIBUTING.md) for development guidelines.
"""

CHANGELOG = "# Changelog\n\nAll notable changes to this project will be documented in this file.\n"

PROJECT_DESCRIPTIONS: dict[str, str] = {
    "backend-api": "A production-grade backend API service",
    "frontend": "A modern frontend application",
    "cli": "A command-line interface application",
    "library": "A reusable software library",
    "monorepo": "A monorepo managing multiple packages",
    "static-site": "A static website",
}

DEPLOYMENT_NOTES: dict[str, str] = {
    "container": (
        "This project is containerized. Build and deploy using:\n\n"
        "```bash\ndocker build -t app .\ndocker run -p 8080:8080 app\n```"
    ),
    "serverless": (
        "This project is designed for serverless deployment. "
        "Deploy using your cloud provider's CLI or web console."
    ),
    "static": (
        "This is a static site. Deploy the built files to any static hosting service "
        "(GitHub Pages, Netlify, Vercel, etc.)."
    ),
}

# language -> (prerequisites, install, dev, test, build)
LANGUAGE_COMMANDS: dict[str, tuple[tuple[str, ...], str, str, str, str]] = {
    "typescript": (("Node.js {version}", "npm"), "npm install", "npm run dev", "npm test", "npm run build"),
    "javascript": (("Node.js {version}", "npm"), "npm install", "npm run dev", "npm test", "npm run build"),
    "python": (("Python {version}", "pip"), "pip install -r requirements.txt", "python -m app", "pytest", "python -m build"),
    "go": (("Go 1.21+",), "go mod download", "go run ./cmd/main.go", "go test ./...", "go build -o app"),
    "rust": (("Rust 1.70+", "Cargo"), "cargo fetch", "cargo run", "cargo test", "cargo build --release"),
}

# ---------------------------------------------------------------------------
# Language plugin files
# ---------------------------------------------------------------------------

NPMRC = "engine-strict=true\nlegacy-peer-deps=false\n"

ESLINTRC: dict[str, object] = {
    "env": {"node": True, "es2020": True},
    "extends": ["eslint:recommended"],
    "parserOptions": {"ecmaVersion": "latest"},
    "rules": {"no-console": "warn", "no-debugger": "error"},
}

PYPROJECT_TEMPLATE = """\
[build-system]
requires = ["setuptools>=61.0", "wheel"]
build-backend = "setuptools.build_meta"

[project]
name = "project"
version = "0.1.0"
description = "Project description"
requires-python = ">={version}"
dependencies = []

[project.optional-dependencies]
dev = [
    "pytest>=7.0",
    "pytest-cov>=4.0",
    "ruff>=0.4",
]

[tool.ruff]
line-length = 100
target-version = "py{target}"
"""

PYTHON_REQUIREMENTS = "# Python project dependencies\n# Install with: pip install -r requirements.txt\n"

GO_MOD = "module github.com/example/project\n\ngo 1.21\n"

GOLANGCI = """\
run:
  timeout: 5m

linters:
  enable:
    - staticcheck
    - gosimple
    - unused
    - errcheck

issues:
  exclude-rules:
    - path: _test\\.go
      linters:
        - errcheck
"""

GO_MAKEFILE = """\
.PHONY: build test lint fmt clean

build:
\tgo build -v ./...

test:
\tgo test -v -race -coverprofile=coverage.out ./...

lint:
\tgolangci-lint run ./...

fmt:
\tgo fmt ./...

clean:
\tgo clean
"""

CARGO_TOML = """\
[package]
name = "project"
version = "0.1.0"
edition = "2021"

[dependencies]

[dev-dependencies]

[profile.release]
opt-level = 3
lto = true
"""

RUSTFMT = """\
edition = "2021"
hard_tabs = false
tab_spaces = 4
newline_style = "Auto"
use_small_heuristics = "Default"
reorder_imports = true
reorder_modules = true
"""

CLIPPY = """\
too-many-arguments-threshold = 8
type-complexity-threshold = 250
single-char-lifetime-names-threshold = 4
"""

RUST_MAKEFILE = """\
.PHONY: build test lint fmt check clean

build:
\tcargo build --release

test:
\tcargo test --all

lint:
\tcargo clippy --all -- -D warnings

fmt:
\tcargo fmt --all

check:
\tcargo check

clean:
\tcargo clean
"""
