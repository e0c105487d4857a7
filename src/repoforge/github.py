"""Remote repository gateway: read files from and propose changes to a GitHub repository.

The core only depends on the four-operation ``RepositoryGateway`` protocol.
``GitHubClient`` implements it over the GitHub REST API with httpx. Calls are
sequential with no retries; any failure other than an access check or a 404
propagates as ``httpx.HTTPError``.
"""

from __future__ import annotations

import base64
import logging
import time
from collections.abc import Mapping
from types import TracebackType
from typing import Any, Protocol
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
BRANCH_PREFIX = "repoforge/"


class RepositoryGateway(Protocol):
    """What commands need from a remote repository host."""

    def validate_access(self) -> bool: ...

    def fetch_file(self, path: str) -> str | None: ...

    def list_files(self, dir_path: str) -> list[str]: ...

    def create_pull_request(
        self,
        title: str,
        body: str,
        files: Mapping[str, str],
        base_branch: str | None = None,
    ) -> str: ...


class GitHubClient:
    """GitHub REST client for one repository."""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        *,
        base_url: str = GITHUB_API_URL,
        client: httpx.Client | None = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if client is None:
            self._client = httpx.Client(base_url=base_url, headers=headers)
        else:
            client.headers.update(headers)
            self._client = client

    # -- Lifecycle ------------------------------------------------------------

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # -- HTTP helpers ---------------------------------------------------------

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def _contents_path(self, path: str) -> str:
        return f"{self._repo_path}/contents/{quote(path.strip('/'))}"

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        response = self._client.request(method, url, **kwargs)
        logger.debug("%s %s -> %d", method, url, response.status_code)
        response.raise_for_status()
        return response

    # -- Gateway operations ---------------------------------------------------

    def validate_access(self) -> bool:
        try:
            self._request("GET", self._repo_path)
        except httpx.HTTPError as exc:
            logger.warning("Cannot access %s/%s: %s", self.owner, self.repo, exc)
            return False
        return True

    def get_default_branch(self) -> str:
        data = self._request("GET", self._repo_path).json()
        return data.get("default_branch") or "main"

    def fetch_file(self, path: str, ref: str | None = None) -> str | None:
        params = {"ref": ref} if ref else None
        try:
            data = self._request("GET", self._contents_path(path), params=params).json()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                return None
            raise
        if not isinstance(data, dict) or data.get("type") != "file":
            return None
        return base64.b64decode(data.get("content", "")).decode("utf-8")

    def list_files(self, dir_path: str) -> list[str]:
        try:
            data = self._request("GET", self._contents_path(dir_path)).json()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                return []
            raise
        if not isinstance(data, list):
            return []
        return [entry["path"] for entry in data if entry.get("type") == "file"]

    def create_pull_request(
        self,
        title: str,
        body: str,
        files: Mapping[str, str],
        base_branch: str | None = None,
    ) -> str:
        """Commit files to a fresh branch and open a PR against base_branch.

        Returns the pull request's HTML URL.
        """
        base = base_branch or self.get_default_branch()
        branch = f"{BRANCH_PREFIX}{int(time.time() * 1000)}"

        ref = self._request("GET", f"{self._repo_path}/git/ref/heads/{base}").json()
        self._request(
            "POST",
            f"{self._repo_path}/git/refs",
            json={"ref": f"refs/heads/{branch}", "sha": ref["object"]["sha"]},
        )
        for path, content in files.items():
            self._commit_file(branch, path, content)

        pr = self._request(
            "POST",
            f"{self._repo_path}/pulls",
            json={"title": title, "body": body, "head": branch, "base": base},
        ).json()
        logger.info("Opened pull request %s with %d file(s)", pr.get("html_url"), len(files))
        return pr["html_url"]

    def delete_branch(self, branch: str) -> None:
        self._request("DELETE", f"{self._repo_path}/git/refs/heads/{branch}")

    def _existing_sha(self, branch: str, path: str) -> str | None:
        try:
            data = self._request("GET", self._contents_path(path), params={"ref": branch}).json()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                return None
            raise
        return data.get("sha") if isinstance(data, dict) else None

    def _commit_file(self, branch: str, path: str, content: str) -> None:
        sha = self._existing_sha(branch, path)
        payload: dict[str, Any] = {
            "message": f"repoforge: {'update' if sha else 'add'} {path}",
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if sha:
            payload["sha"] = sha
        self._request("PUT", self._contents_path(path), json=payload)
