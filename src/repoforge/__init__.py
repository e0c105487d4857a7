"""repoforge: policy-driven repository governance."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("repoforge")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from repoforge.spec import Project, Spec, Standards

__all__ = ["Project", "Spec", "Standards", "__version__"]
